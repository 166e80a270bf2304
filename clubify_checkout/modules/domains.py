import typing as t

from clubify_checkout.repository import Entity, EntityId

from ._base import ResourceRepository


def _tenant_headers(tenant_id: str | None) -> dict[str, str] | None:
    return {"X-Tenant-Id": tenant_id} if tenant_id else None


class DomainRepository(ResourceRepository):
    """Custom domains attached to tenants.

    Domain lookups are scoped with an ``X-Tenant-Id`` header rather than a
    query parameter.
    """

    endpoint = "domains"
    resource_name = "domain"

    async def find_by_tenant(self, tenant_id: str) -> list[Entity]:
        return await self.core.find_by({"tenant_id": tenant_id})

    async def find_by_domain(
        self, domain: str, tenant_id: str | None = None
    ) -> Entity | None:
        domain = domain.strip().lower()
        return await self.core.fetch_one(
            self.core.uri(domain, "status"),
            headers=_tenant_headers(tenant_id),
            operation="find_by_domain",
            cache_key=self.key("name", {"domain": domain, "tenant_id": tenant_id}),
            ttl=self.settings.entity_ttl,
        )

    async def find_by_verification_token(self, token: str) -> Entity | None:
        return await self.core.find_one_by({"verification_token": token})

    async def update_verification_status(
        self,
        domain_id: EntityId,
        status: str,
        metadata: t.Mapping[str, t.Any] | None = None,
    ) -> Entity:
        metadata = dict(metadata or {})
        return await self.core.mutate(
            "POST",
            domain_id,
            "verify",
            json={"status": status, **metadata},
            headers=_tenant_headers(metadata.get("tenant_id")),
            operation="update_verification_status",
            event="verification.updated",
            event_payload={"status": status},
        )

    async def get_verified_domains(self, tenant_id: str) -> list[Entity]:
        return await self.core.find_by(
            {"tenant_id": tenant_id, "verification_status": "verified"}
        )

    async def get_pending_verification(self) -> list[Entity]:
        return await self.core.find_by({"verification_status": "pending"})

    async def domain_exists(self, domain: str, tenant_id: str | None = None) -> bool:
        return await self.find_by_domain(domain, tenant_id) is not None

    async def update_ssl_config(
        self, domain_id: EntityId, config: t.Mapping[str, t.Any]
    ) -> Entity:
        config = dict(config)
        return await self.core.mutate(
            "PUT",
            domain_id,
            "ssl",
            json=config,
            headers=_tenant_headers(config.get("tenant_id")),
            operation="update_ssl_config",
            event="ssl.updated",
        )
