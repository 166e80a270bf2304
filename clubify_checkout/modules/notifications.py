import typing as t
from pydantic import Field

from clubify_checkout.repository import Entity, EntityId

from ._base import DataModel, ResourceRepository

NotificationChannel = t.Literal["email", "sms", "push", "webhook"]


class NotificationData(DataModel):
    type: str = Field(min_length=1)
    recipient: str = Field(min_length=1)
    channel: NotificationChannel = "email"
    subject: str | None = None
    content: str | None = None
    tenant_id: str | None = None
    metadata: dict[str, t.Any] = Field(default_factory=dict)


class NotificationRepository(ResourceRepository):
    endpoint = "notifications"
    resource_name = "notification"
    create_model = NotificationData

    async def find_by_recipient(
        self, recipient: str, limit: int | None = None
    ) -> list[Entity]:
        return await self.core.find_by({"recipient": recipient}, limit=limit)

    async def find_by_tenant(
        self, tenant_id: str, filters: t.Mapping[str, t.Any] | None = None
    ) -> list[Entity]:
        return await self.core.find_by({"tenant_id": tenant_id, **(filters or {})})

    async def find_by_status(self, status: str) -> list[Entity]:
        return await self.core.find_by({"status": status})

    async def mark_as_read(self, notification_id: EntityId) -> Entity:
        return await self.core.mutate(
            "PATCH", notification_id, "read", operation="mark_as_read", event="read"
        )

    async def get_delivery_stats(
        self, filters: t.Mapping[str, t.Any] | None = None
    ) -> t.Any:
        return await self.core.fetch_raw(
            "GET",
            self.core.uri("delivery-stats"),
            params=filters,
            operation="get_delivery_stats",
            cache_key=self.key("delivery_stats", filters),
            ttl=self.settings.stats_ttl,
        )
