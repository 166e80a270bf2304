import typing as t
from pydantic import Field

from clubify_checkout.repository import Entity, EntityId

from ._base import DataModel, ResourceRepository

# Server-assigned; the API rejects them on create.
READ_ONLY_FIELDS = frozenset(
    {"slug", "status", "created_at", "updated_at", "organization_id"}
)


class TenantData(DataModel):
    name: str = Field(min_length=2, max_length=120)
    domain: str | None = None
    plan: str | None = None
    settings: dict[str, t.Any] = Field(default_factory=dict)


def root_domain(domain: str) -> str:
    """``shop.acme.com`` -> ``acme.com``; two-label domains are returned as-is."""
    labels = domain.split(".")
    if len(labels) <= 2:
        return domain
    return ".".join(labels[1:])


class TenantRepository(ResourceRepository):
    endpoint = "tenants"
    resource_name = "tenant"
    unwrap_keys = ("data", "tenant")
    create_model = TenantData

    def prepare_create(self, data: t.Mapping[str, t.Any]) -> dict[str, t.Any]:
        filtered = {k: v for k, v in data.items() if k not in READ_ONLY_FIELDS}
        return super().prepare_create(filtered)

    async def find_by_slug(self, slug: str) -> Entity | None:
        return await self.core.fetch_one(
            self.core.uri("slug", slug),
            operation="find_by_slug",
            cache_key=self.key("slug", {"slug": slug}),
            ttl=self.settings.entity_ttl,
        )

    async def _find_by_exact_domain(self, domain: str) -> Entity | None:
        return await self.core.fetch_one(
            self.core.uri("domain", domain), operation="find_by_domain"
        )

    async def find_by_domain(self, domain: str) -> Entity | None:
        """Find the tenant serving ``domain``, falling back to its root domain."""
        domain = domain.strip().lower()

        async def load() -> Entity | None:
            tenant = await self._find_by_exact_domain(domain)
            if tenant is not None:
                return tenant
            fallback = root_domain(domain)
            if fallback == domain:
                return None
            self.core.logger.debug(
                "Falling back to root domain", domain=domain, root_domain=fallback
            )
            return await self._find_by_exact_domain(fallback)

        return await self.core.get_cached_or_execute(
            self.key("domain", {"domain": domain}), load, self.settings.entity_ttl
        )

    async def find_by_status(self, status: str) -> list[Entity]:
        return await self.core.fetch_many(
            self.core.endpoint,
            params={"status": status},
            operation="find_by_status",
            cache_key=self.key("status", {"status": status}),
            ttl=self.settings.stats_ttl,
        )

    async def find_by_plan(self, plan: str) -> list[Entity]:
        return await self.core.fetch_many(
            self.core.endpoint,
            params={"plan": plan},
            operation="find_by_plan",
            cache_key=self.key("plan", {"plan": plan}),
            ttl=self.settings.stats_ttl,
        )

    async def update_settings(
        self, tenant_id: EntityId, settings: t.Mapping[str, t.Any]
    ) -> Entity:
        return await self.core.mutate(
            "PATCH",
            tenant_id,
            "settings",
            json={"settings": dict(settings)},
            operation="update_settings",
            event="settings.updated",
            event_payload={"settings": dict(settings)},
        )

    async def add_domain(
        self, tenant_id: EntityId, domain_data: t.Mapping[str, t.Any]
    ) -> Entity:
        return await self.core.mutate(
            "POST",
            tenant_id,
            "domains",
            json=dict(domain_data),
            operation="add_domain",
            event="domain.added",
            event_payload={"domain": domain_data.get("domain")},
        )

    async def remove_domain(self, tenant_id: EntityId, domain: str) -> bool:
        await self.core.mutate(
            "DELETE",
            tenant_id,
            "domains",
            domain,
            operation="remove_domain",
            event="domain.removed",
            event_payload={"domain": domain},
        )
        return True

    async def suspend(self, tenant_id: EntityId, reason: str = "") -> bool:
        await self.core.mutate(
            "PUT",
            tenant_id,
            "suspend",
            json={"reason": reason},
            operation="suspend",
            event="suspended",
            event_payload={"reason": reason},
        )
        return True

    async def reactivate(self, tenant_id: EntityId) -> bool:
        await self.core.mutate(
            "PUT", tenant_id, "activate", operation="reactivate", event="reactivated"
        )
        return True

    async def is_slug_available(
        self, slug: str, exclude_tenant_id: EntityId | None = None
    ) -> bool:
        tenant = await self.find_by_slug(slug)
        if tenant is None:
            return True
        return exclude_tenant_id is not None and str(tenant.get("id")) == str(
            exclude_tenant_id
        )

    async def is_domain_available(
        self, domain: str, exclude_tenant_id: EntityId | None = None
    ) -> bool:
        tenant = await self.find_by_domain(domain)
        if tenant is None:
            return True
        return exclude_tenant_id is not None and str(tenant.get("id")) == str(
            exclude_tenant_id
        )

    async def get_tenant_stats(self) -> t.Any:
        return await self.core.get_stats()
