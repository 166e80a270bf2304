from urllib.parse import urlparse

import typing as t
from pydantic import Field, field_validator

from clubify_checkout.repository import (
    Entity,
    EntityId,
    ResponseEnvelope,
    derived_key,
)

from ._base import DataModel, ResourceRepository


class WebhookData(DataModel):
    url: str
    events: list[str] = Field(min_length=1)
    secret: str | None = None
    active: bool = True
    tenant_id: str | None = None
    headers: dict[str, str] = Field(default_factory=dict)

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            msg = "Webhook URL must be an absolute http(s) URL"
            raise ValueError(msg)
        return v


class WebhookRepository(ResourceRepository):
    """Webhook configurations.

    The API wraps lists as ``{"configurations": [...]}`` or
    ``{"webhooks": [...]}`` depending on the route.
    """

    endpoint = "webhooks/configurations"
    resource_name = "webhook"
    collection_name = "webhooks"
    item_keys = ("configurations",)
    create_model = WebhookData

    async def find_by_event(self, event_type: str) -> list[Entity]:
        return await self.core.fetch_many(
            self.core.endpoint,
            params={"event_type": event_type, "active": True},
            operation="find_by_event",
            cache_key=self.key("event", {"event_type": event_type}),
            ttl=self.settings.entity_ttl,
        )

    async def find_by_url(self, url: str) -> Entity | None:
        async def load() -> Entity | None:
            items = await self.core.fetch_many(
                self.core.endpoint, params={"url": url}, operation="find_by_url"
            )
            return items[0] if items else None

        return await self.core.get_cached_or_execute(
            self.key("url", {"url": url}), load, self.settings.entity_ttl
        )

    async def find_active(self) -> list[Entity]:
        return await self.core.find_by({"active": True})

    async def find_by_tenant(self, tenant_id: str) -> list[Entity]:
        return await self.core.find_by({"tenant_id": tenant_id})

    async def validate_url(self, url: str) -> dict[str, t.Any]:
        """Ask the API to probe ``url``.

        Returns:
            The probe report (``accessible``, ``response_code``, ...)
        """
        result = await self.core.fetch_raw(
            "POST",
            self.core.uri("validate-url"),
            json={"url": url},
            operation="validate_url",
        )
        return result if isinstance(result, dict) else {"url": url}

    async def reset_failure_count(self, webhook_id: EntityId) -> bool:
        await self.core.mutate(
            "PATCH",
            webhook_id,
            "reset-failures",
            operation="reset_failure_count",
            event="failures.reset",
        )
        return True

    async def increment_failure_count(self, webhook_id: EntityId) -> bool:
        await self.core.mutate(
            "PATCH",
            webhook_id,
            "increment-failures",
            operation="increment_failure_count",
        )
        return True

    async def update_last_delivery(
        self, webhook_id: EntityId, delivery: t.Mapping[str, t.Any]
    ) -> bool:
        await self.core.mutate(
            "PATCH",
            webhook_id,
            "last-delivery",
            json=dict(delivery),
            operation="update_last_delivery",
        )
        return True

    async def activate(self, webhook_id: EntityId) -> Entity:
        return await self.core.update_status(webhook_id, "active")

    async def deactivate(self, webhook_id: EntityId) -> Entity:
        return await self.core.update_status(webhook_id, "inactive")

    async def get_webhook_stats(self, webhook_id: EntityId) -> t.Any:
        return await self.core.fetch_raw(
            "GET",
            self.core.uri(webhook_id, "stats"),
            operation="get_webhook_stats",
            cache_key=self.scoped_key("stats", webhook_id),
            ttl=self.settings.entity_ttl,
        )

    async def find_delivery_logs(
        self, webhook_id: EntityId, options: t.Mapping[str, t.Any] | None = None
    ) -> list[Entity]:
        async def load() -> list[Entity]:
            payload = await self.core.make_request(
                "GET",
                self.core.uri(webhook_id, "delivery-logs"),
                params=options,
                operation="find_delivery_logs",
            )
            return ResponseEnvelope.extract_items(payload, ("logs", *self.unwrap_keys))

        return await self.core.get_cached_or_execute(
            derived_key(
                self.resource_name,
                "related",
                webhook_id,
                {"relation": "delivery-logs", **(options or {})},
            ),
            load,
            self.settings.query_ttl,
        )
