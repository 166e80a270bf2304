"""Tests for the cart repository."""

import typing as t

import pytest

from clubify_checkout.events import Event
from clubify_checkout.exceptions import ValidationError
from clubify_checkout.modules import CartRepository
from tests.conftest import FakeGateway


@pytest.fixture
def carts(deps: dict[str, t.Any]) -> CartRepository:
    return CartRepository.build(**deps)


@pytest.mark.unit
class TestCartRepository:
    @pytest.mark.asyncio
    async def test_find_by_session(
        self, carts: CartRepository, gateway: FakeGateway
    ) -> None:
        gateway.reply(200, {"data": [{"id": "cart_1", "session_id": "s1"}]})
        gateway.reply(404)

        assert await carts.find_by_session("s1") == {"id": "cart_1", "session_id": "s1"}
        assert await carts.find_by_session("s2") is None
        assert gateway.calls[0].uri == "cart"
        assert gateway.calls[0].params == {"session_id": "s1"}

    @pytest.mark.asyncio
    async def test_find_by_customer_only_active(
        self, carts: CartRepository, gateway: FakeGateway
    ) -> None:
        gateway.reply(200, {"carts": []})

        assert await carts.find_by_customer("c1") is None
        assert gateway.last.params == {"customer_id": "c1", "status": "active"}

    @pytest.mark.asyncio
    async def test_add_item(
        self, carts: CartRepository, gateway: FakeGateway, emitted: list[Event]
    ) -> None:
        gateway.reply(200, {"data": {"id": "cart_1", "items": [{"product_id": "p1"}]}})

        cart = await carts.add_item("cart_1", {"product_id": "p1", "quantity": 2})

        assert cart["id"] == "cart_1"
        assert gateway.last.method == "POST"
        assert gateway.last.uri == "cart/cart_1/items"
        assert gateway.last.json == {"product_id": "p1", "quantity": 2, "metadata": {}}
        assert emitted[-1].name == "cart.item_added"
        assert emitted[-1].payload["cart_id"] == "cart_1"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "item",
        [
            {"product_id": "p1", "quantity": 0},
            {"product_id": "", "quantity": 1},
            {"product_id": "p1", "price": -1},
        ],
    )
    async def test_add_item_rejects_invalid_items(
        self, carts: CartRepository, gateway: FakeGateway, item: dict[str, t.Any]
    ) -> None:
        with pytest.raises(ValidationError):
            await carts.add_item("cart_1", item)

        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_update_item_checks_quantity(
        self, carts: CartRepository, gateway: FakeGateway
    ) -> None:
        with pytest.raises(ValidationError):
            await carts.update_item("cart_1", "item_1", {"quantity": -3})

        gateway.reply(200, {"id": "cart_1"})
        await carts.update_item("cart_1", "item_1", {"quantity": 3})

        assert gateway.last.method == "PUT"
        assert gateway.last.uri == "cart/cart_1/items/item_1"

    @pytest.mark.asyncio
    async def test_cart_cache_is_dropped_on_change(
        self, carts: CartRepository, gateway: FakeGateway
    ) -> None:
        gateway.reply(200, {"id": "cart_1", "total": 10})
        gateway.reply(200, {"id": "cart_1", "total": 8})
        gateway.reply(200, {"id": "cart_1", "total": 8})

        await carts.find_by_id_cached("cart_1")
        await carts.apply_promotion("cart_1", "SAVE20")
        cart = await carts.find_by_id_cached("cart_1")

        assert cart == {"id": "cart_1", "total": 8}
        assert gateway.calls[1].json == {"code": "SAVE20"}

    @pytest.mark.asyncio
    async def test_clear_and_totals(
        self, carts: CartRepository, gateway: FakeGateway
    ) -> None:
        gateway.reply(204)
        gateway.reply(200, {"data": {"subtotal": 10, "discount": 2, "total": 8}})

        assert await carts.clear_items("cart_1") == {}
        totals = await carts.calculate_totals("cart_1")

        assert totals == {"subtotal": 10, "discount": 2, "total": 8}
        assert gateway.calls[0].method == "DELETE"
        assert gateway.last.uri == "cart/cart_1/totals"

    @pytest.mark.asyncio
    async def test_convert_to_order(
        self, carts: CartRepository, gateway: FakeGateway, emitted: list[Event]
    ) -> None:
        gateway.reply(201, {"data": {"id": "order_1", "cart_id": "cart_1"}})

        order = await carts.convert_to_order("cart_1")

        assert order["id"] == "order_1"
        assert emitted[-1].name == "cart.converted"
