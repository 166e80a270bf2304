"""Subscriptions and their plans.

Plans live on a sibling endpoint (``subscription-plans``) and are cached
under ``subscription:plan:{id}`` and ``subscription:plans:{...}``. Plan
writes drop those keys themselves.
"""

import typing as t
from pydantic import Field

from clubify_checkout.adapters.requests import ResponseProtocol
from clubify_checkout.repository import Entity, EntityId

from ._base import DataModel, ResourceRepository

PLANS_ENDPOINT = "subscription-plans"

BillingCycle = t.Literal["daily", "weekly", "monthly", "quarterly", "yearly"]


class SubscriptionData(DataModel):
    customer_id: str = Field(min_length=1)
    plan_id: str = Field(min_length=1)
    billing_cycle: BillingCycle = "monthly"
    currency: str = Field(default="BRL", max_length=3)
    quantity: int = Field(default=1, ge=1)
    payment_method_id: str | None = None
    coupon_code: str | None = None
    metadata: dict[str, t.Any] = Field(default_factory=dict)


class SubscriptionRepository(ResourceRepository):
    endpoint = "subscriptions"
    resource_name = "subscription"
    create_model = SubscriptionData

    async def find_by_customer(self, customer_id: str) -> list[Entity]:
        return await self.core.find_by({"customer_id": customer_id})

    async def find_by_tenant(
        self, tenant_id: str, filters: t.Mapping[str, t.Any] | None = None
    ) -> list[Entity]:
        return await self.core.find_by({"tenant_id": tenant_id, **(filters or {})})

    async def find_by_plan(self, plan_id: str) -> list[Entity]:
        return await self.core.find_by({"plan_id": plan_id})

    async def cancel(
        self,
        subscription_id: EntityId,
        reason: str = "customer_request",
        at_period_end: bool = True,
    ) -> Entity:
        return await self.core.mutate(
            "POST",
            subscription_id,
            "cancel",
            json={"reason": reason, "cancel_at_period_end": at_period_end},
            operation="cancel",
            event="canceled",
            event_payload={"reason": reason, "cancel_at_period_end": at_period_end},
        )

    async def pause(self, subscription_id: EntityId) -> Entity:
        return await self.core.mutate(
            "POST", subscription_id, "pause", operation="pause", event="paused"
        )

    async def resume(self, subscription_id: EntityId) -> Entity:
        return await self.core.mutate(
            "POST", subscription_id, "resume", operation="resume", event="resumed"
        )

    # Plans -------------------------------------------------------------------

    def _plan_key(self, plan_id: EntityId) -> str:
        return self.scoped_key("plan", plan_id)

    async def create_plan(self, data: t.Mapping[str, t.Any]) -> Entity:
        body = dict(data)

        async def run() -> Entity:
            response = t.cast(
                "ResponseProtocol",
                await self.core.send_checked(
                    "POST", PLANS_ENDPOINT, json=body, operation="create_plan"
                ),
            )
            await self.forget(f"{self.resource_name}:plans:*")
            payload = self.core.decode(
                response, uri=PLANS_ENDPOINT, operation="create_plan"
            )
            plan = self.core.to_entity(
                payload, uri=PLANS_ENDPOINT, operation="create_plan"
            )
            await self.core.emit(
                "plan.created", {"plan_id": plan.get("id"), "data": plan}
            )
            return plan

        return await self.core.execute_with_metrics(
            f"create_plan_{self.resource_name}", run
        )

    async def find_plan(self, plan_id: EntityId) -> Entity | None:
        return await self.core.fetch_one(
            f"{PLANS_ENDPOINT}/{plan_id}",
            operation="find_plan",
            cache_key=self._plan_key(plan_id),
            ttl=self.settings.entity_ttl,
        )

    async def list_plans(
        self, filters: t.Mapping[str, t.Any] | None = None
    ) -> list[Entity]:
        return await self.core.fetch_many(
            PLANS_ENDPOINT,
            params=filters,
            operation="list_plans",
            cache_key=self.key("plans", filters),
        )

    async def update_plan(
        self, plan_id: EntityId, data: t.Mapping[str, t.Any]
    ) -> Entity:
        body = dict(data)
        uri = f"{PLANS_ENDPOINT}/{plan_id}"

        async def run() -> Entity:
            response = t.cast(
                "ResponseProtocol",
                await self.core.send_checked(
                    "PUT", uri, json=body, operation="update_plan"
                ),
            )
            await self.forget(self._plan_key(plan_id), f"{self.resource_name}:plans:*")
            payload = self.core.decode(response, uri=uri, operation="update_plan")
            plan = self.core.to_entity(payload, uri=uri, operation="update_plan")
            await self.core.emit("plan.updated", {"plan_id": plan_id, "updates": body})
            return plan

        return await self.core.execute_with_metrics(
            f"update_plan_{self.resource_name}", run
        )
