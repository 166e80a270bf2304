import typing as t

import pytest

from clubify_checkout.events import Event
from clubify_checkout.exceptions import RemoteError
from clubify_checkout.modules import OrderRepository
from tests.conftest import FakeGateway


@pytest.fixture
def orders(deps: dict[str, t.Any]) -> OrderRepository:
    return OrderRepository.build(**deps)


@pytest.mark.unit
class TestOrderRepository:
    @pytest.mark.asyncio
    async def test_find_by_customer(
        self, orders: OrderRepository, gateway: FakeGateway
    ) -> None:
        gateway.reply(200, {"data": {"orders": [{"id": "o1"}]}})

        result = await orders.find_by_customer("c1", {"status": "paid"})

        assert result == [{"id": "o1"}]
        assert gateway.last.params == {
            "customer_id": "c1",
            "status": "paid",
            "limit": None,
            "offset": None,
        }

    @pytest.mark.asyncio
    async def test_cancel(
        self, orders: OrderRepository, gateway: FakeGateway, emitted: list[Event]
    ) -> None:
        gateway.reply(200, {"id": "o1", "status": "cancelled"})

        order = await orders.cancel("o1", "out of stock")

        assert order["status"] == "cancelled"
        assert gateway.last.json == {"reason": "out of stock"}
        assert emitted[-1].name == "order.cancelled"
        assert emitted[-1].payload == {"order_id": "o1", "reason": "out of stock"}

    @pytest.mark.asyncio
    async def test_cancel_conflict_keeps_cache(
        self, orders: OrderRepository, gateway: FakeGateway, emitted: list[Event]
    ) -> None:
        gateway.reply(200, {"id": "o1", "status": "paid"})
        await orders.find_by_id_cached("o1")
        gateway.reply(409, {"message": "order already shipped"})

        with pytest.raises(RemoteError, match="already shipped") as exc_info:
            await orders.cancel("o1")

        assert exc_info.value.status_code == 409
        assert gateway.last.json is None
        assert await orders.find_by_id_cached("o1") == {"id": "o1", "status": "paid"}
        assert emitted == []

    @pytest.mark.asyncio
    async def test_status_history(
        self, orders: OrderRepository, gateway: FakeGateway
    ) -> None:
        gateway.reply(200, [{"status": "pending"}, {"status": "paid"}])

        history = await orders.get_status_history("o1")

        assert [h["status"] for h in history] == ["pending", "paid"]
        assert gateway.last.uri == "orders/o1/status-history"

    @pytest.mark.asyncio
    async def test_order_stats(
        self, orders: OrderRepository, gateway: FakeGateway
    ) -> None:
        gateway.reply(200, {"data": {"total": 12, "revenue": 990.5}})

        stats = await orders.get_order_stats({"period": "month"})

        assert stats == {"total": 12, "revenue": 990.5}
        assert gateway.last.uri == "orders/statistics"
