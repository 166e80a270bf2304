"""Shopping carts.

Every item or promotion change answers with the updated cart, drops the
cart's cache keys and emits ``cart.{action}``.
"""

import typing as t
from pydantic import Field

from clubify_checkout.repository import Entity, EntityId

from ._base import DataModel, ResourceRepository, validate_payload


class CartItemData(DataModel):
    product_id: str = Field(min_length=1)
    quantity: int = Field(default=1, ge=1)
    price: float | None = Field(default=None, ge=0)
    variant_id: str | None = None
    metadata: dict[str, t.Any] = Field(default_factory=dict)


class CartRepository(ResourceRepository):
    endpoint = "cart"
    resource_name = "cart"
    collection_name = "carts"

    async def _first(self, criteria: t.Mapping[str, t.Any], operation: str) -> Entity | None:
        payload = await self.core.make_request(
            "GET",
            self.core.endpoint,
            params=criteria,
            operation=operation,
            allow_not_found=True,
        )
        items = self.core.to_items(payload)
        return items[0] if items else None

    async def find_by_session(self, session_id: str) -> Entity | None:
        return await self._first({"session_id": session_id}, "find_by_session")

    async def find_by_customer(self, customer_id: str) -> Entity | None:
        """The customer's active cart, if any."""
        return await self._first(
            {"customer_id": customer_id, "status": "active"}, "find_by_customer"
        )

    async def _change(
        self,
        method: str,
        cart_id: EntityId,
        *path: t.Any,
        action: str,
        json: t.Any = None,
        event_payload: t.Mapping[str, t.Any] | None = None,
    ) -> Entity:
        return await self.core.mutate(
            method,
            cart_id,
            *path,
            json=json,
            operation=action,
            event=action,
            event_payload=event_payload,
        )

    async def add_item(self, cart_id: EntityId, item: t.Mapping[str, t.Any]) -> Entity:
        body = validate_payload(CartItemData, item)
        return await self._change(
            "POST",
            cart_id,
            "items",
            action="item_added",
            json=body,
            event_payload={"item": body},
        )

    async def update_item(
        self, cart_id: EntityId, item_id: str, updates: t.Mapping[str, t.Any]
    ) -> Entity:
        quantity = updates.get("quantity")
        if quantity is not None:
            validate_payload(CartItemData, {"product_id": item_id, "quantity": quantity})
        return await self._change(
            "PUT",
            cart_id,
            "items",
            item_id,
            action="item_updated",
            json=dict(updates),
            event_payload={"item_id": item_id, "updates": dict(updates)},
        )

    async def remove_item(self, cart_id: EntityId, item_id: str) -> Entity:
        return await self._change(
            "DELETE",
            cart_id,
            "items",
            item_id,
            action="item_removed",
            event_payload={"item_id": item_id},
        )

    async def clear_items(self, cart_id: EntityId) -> Entity:
        return await self._change("DELETE", cart_id, "items", action="cleared")

    async def apply_promotion(self, cart_id: EntityId, code: str) -> Entity:
        return await self._change(
            "POST",
            cart_id,
            "promotions",
            action="promotion_applied",
            json={"code": code},
            event_payload={"code": code},
        )

    async def remove_promotion(self, cart_id: EntityId) -> Entity:
        return await self._change(
            "DELETE", cart_id, "promotions", action="promotion_removed"
        )

    async def calculate_totals(self, cart_id: EntityId) -> t.Any:
        return await self.core.fetch_raw(
            "GET", self.core.uri(cart_id, "totals"), operation="calculate_totals"
        )

    async def convert_to_order(self, cart_id: EntityId) -> Entity:
        order = await self._change("POST", cart_id, "convert", action="converted")
        self.core.logger.info(
            "Cart converted to order", cart_id=cart_id, order_id=order.get("id")
        )
        return order
