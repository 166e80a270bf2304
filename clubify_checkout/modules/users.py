import re

import typing as t
from pydantic import Field, field_validator

from clubify_checkout.exceptions import ValidationError
from clubify_checkout.repository import Entity, EntityId

from ._base import DataModel, ResourceRepository

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class UserData(DataModel):
    name: str = Field(min_length=2, max_length=100)
    email: str
    password: str | None = Field(default=None, min_length=8)
    tenant_id: str | None = None
    roles: list[str] = Field(default_factory=list)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.lower()
        if not EMAIL_PATTERN.match(v):
            msg = "Invalid email address"
            raise ValueError(msg)
        return v


class UserRepository(ResourceRepository):
    endpoint = "users"
    resource_name = "user"
    create_model = UserData

    async def find_by_email(self, email: str) -> Entity | None:
        email = email.strip().lower()

        async def load() -> Entity | None:
            payload = await self.core.make_request(
                "GET",
                self.core.uri("search", "advanced"),
                params={"email": email},
                operation="find_by_email",
            )
            users = self.core.to_items(payload)
            return users[0] if users else None

        return await self.core.get_cached_or_execute(
            self.key("email", {"email": email}), load, self.settings.entity_ttl
        )

    async def is_email_taken(self, email: str, exclude_id: EntityId | None = None) -> bool:
        user = await self.find_by_email(email)
        if user is None:
            return False
        return exclude_id is None or str(user.get("id")) != str(exclude_id)

    async def find_by_tenant(
        self, tenant_id: str, filters: t.Mapping[str, t.Any] | None = None
    ) -> list[Entity]:
        return await self.core.find_by({"tenant_id": tenant_id, **(filters or {})})

    async def find_by_role(self, role: str) -> list[Entity]:
        return await self.core.find_by({"role": role})

    async def update_profile(
        self, user_id: EntityId, profile: t.Mapping[str, t.Any]
    ) -> Entity:
        return await self.core.mutate(
            "PATCH",
            user_id,
            "profile",
            json=dict(profile),
            operation="update_profile",
            event="profile.updated",
            event_payload={"updates": dict(profile)},
        )

    async def change_password(self, user_id: EntityId, new_password: str) -> bool:
        if len(new_password) < 8:
            msg = "Password must have at least 8 characters"
            raise ValidationError(
                msg, [{"loc": ("password",), "msg": msg, "type": "too_short"}]
            )
        await self.core.mutate(
            "PATCH",
            user_id,
            "password",
            json={"password": new_password},
            operation="change_password",
            event="password.changed",
        )
        return True

    async def activate(self, user_id: EntityId) -> Entity:
        return await self.core.update_status(user_id, "active")

    async def deactivate(self, user_id: EntityId) -> Entity:
        return await self.core.update_status(user_id, "inactive")

    async def get_user_roles(self, user_id: EntityId) -> list[str]:
        async def load() -> list[str]:
            payload = await self.core.make_request(
                "GET", self.core.uri(user_id, "roles"), operation="get_user_roles"
            )
            if isinstance(payload, dict) and isinstance(payload.get("roles"), list):
                return payload["roles"]
            return self.core.to_items(payload)

        return await self.core.get_cached_or_execute(
            self.scoped_key("roles", user_id), load, self.settings.entity_ttl
        )

    async def assign_role(self, user_id: EntityId, role: str) -> Entity:
        return await self.core.mutate(
            "POST",
            user_id,
            "roles",
            json={"role": role},
            operation="assign_role",
            event="role.assigned",
            event_payload={"role": role},
        )

    async def remove_role(self, user_id: EntityId, role: str) -> Entity:
        return await self.core.mutate(
            "DELETE",
            user_id,
            "roles",
            role,
            operation="remove_role",
            event="role.removed",
            event_payload={"role": role},
        )

    async def get_user_stats(self, tenant_id: str | None = None) -> t.Any:
        return await self.core.get_stats({"tenant_id": tenant_id} if tenant_id else None)
