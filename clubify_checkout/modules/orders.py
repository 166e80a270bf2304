import typing as t

from clubify_checkout.repository import Entity, EntityId

from ._base import ResourceRepository


class OrderRepository(ResourceRepository):
    endpoint = "orders"
    resource_name = "order"

    async def find_by_customer(
        self, customer_id: str, filters: t.Mapping[str, t.Any] | None = None
    ) -> list[Entity]:
        return await self.core.find_by({"customer_id": customer_id, **(filters or {})})

    async def find_by_tenant(
        self, tenant_id: str, filters: t.Mapping[str, t.Any] | None = None
    ) -> list[Entity]:
        return await self.core.find_by({"tenant_id": tenant_id, **(filters or {})})

    async def find_by_status(self, status: str) -> list[Entity]:
        return await self.core.find_by({"status": status})

    async def cancel(
        self, order_id: EntityId, reason: str | None = None
    ) -> Entity:
        body = {"reason": reason} if reason else None
        return await self.core.mutate(
            "POST",
            order_id,
            "cancel",
            json=body,
            operation="cancel",
            event="cancelled",
            event_payload={"reason": reason},
        )

    async def get_status_history(self, order_id: EntityId) -> list[Entity]:
        return await self.core.get_related(order_id, "status-history")

    async def get_order_stats(
        self, filters: t.Mapping[str, t.Any] | None = None
    ) -> t.Any:
        return await self.core.fetch_raw(
            "GET",
            self.core.uri("statistics"),
            params=filters,
            operation="get_order_stats",
            cache_key=self.key("statistics", filters),
            ttl=self.settings.stats_ttl,
        )
