"""Shared plumbing for domain repositories.

A domain repository is declared by its class attributes (``endpoint``,
``resource_name`` and optionally ``unwrap_keys``, ``collection_name`` and
``create_model``) and wraps one :class:`RepositoryCore`. The generic
entity operations are delegated straight to the core; subclasses only add
domain-named queries and state changes built from core primitives.
"""

import typing as t
from collections.abc import Iterable, Mapping
from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from clubify_checkout.adapters.cache import CacheProtocol
from clubify_checkout.adapters.requests import HttpGatewayProtocol
from clubify_checkout.config import RepositorySettings
from clubify_checkout.events import EventSinkProtocol
from clubify_checkout.exceptions import ValidationError
from clubify_checkout.logger import LoggerProtocol
from clubify_checkout.metrics import MetricsSinkProtocol
from clubify_checkout.repository import (
    Entity,
    EntityId,
    RepositoryCore,
    derive_cache_key,
    scoped_key,
)


class DataModel(BaseModel):
    """Base for request payload models; unknown fields pass through."""

    model_config = ConfigDict(extra="allow", str_strip_whitespace=True)


def validate_payload(
    model: type[BaseModel], data: Mapping[str, t.Any]
) -> dict[str, t.Any]:
    """Validate ``data`` against ``model`` and return the cleaned payload.

    Raises:
        ValidationError: With pydantic's error list on ``errors``
    """
    try:
        instance = model.model_validate(dict(data))
    except PydanticValidationError as e:
        errors = [
            {"loc": err["loc"], "msg": err["msg"], "type": err["type"]}
            for err in e.errors()
        ]
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in errors)
        msg = f"Invalid {model.__name__}: {fields}"
        raise ValidationError(msg, errors, context={"model": model.__name__}) from e
    return instance.model_dump(mode="json", exclude_none=True)


class ResourceRepository:
    endpoint: t.ClassVar[str]
    resource_name: t.ClassVar[str]
    unwrap_keys: t.ClassVar[tuple[str, ...]] = ("data",)
    collection_name: t.ClassVar[str | None] = None
    item_keys: t.ClassVar[tuple[str, ...]] = ()
    create_model: t.ClassVar[type[BaseModel] | None] = None

    def __init__(self, core: RepositoryCore) -> None:
        self.core = core

    @classmethod
    def build(
        cls,
        *,
        gateway: HttpGatewayProtocol,
        cache: CacheProtocol | None = None,
        events: EventSinkProtocol | None = None,
        logger: LoggerProtocol | None = None,
        metrics: MetricsSinkProtocol | None = None,
        settings: RepositorySettings | None = None,
    ) -> t.Self:
        return cls(
            RepositoryCore(
                cls.endpoint,
                cls.resource_name,
                gateway=gateway,
                cache=cache,
                events=events,
                logger=logger,
                metrics=metrics,
                settings=settings,
                unwrap_keys=cls.unwrap_keys,
                collection_name=cls.collection_name,
                item_keys=cls.item_keys,
            )
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(endpoint={self.core.endpoint!r})"

    @property
    def settings(self) -> RepositorySettings:
        return self.core.settings

    def key(self, operation: str, params: Mapping[str, t.Any] | None = None) -> str:
        return derive_cache_key(self.resource_name, operation, params)

    def scoped_key(self, tag: str, entity_id: EntityId) -> str:
        return scoped_key(self.resource_name, tag, entity_id)

    async def forget(self, *keys: str) -> None:
        """Drop cache keys (or ``*`` patterns) outside the entity key family."""
        if self.core.cache is None:
            return
        for key in keys:
            await self.core.cache.delete(key)

    def prepare_create(self, data: Mapping[str, t.Any]) -> dict[str, t.Any]:
        if self.create_model is None:
            return dict(data)
        return validate_payload(self.create_model, data)

    # Delegated core operations ----------------------------------------------

    async def create(self, data: Mapping[str, t.Any]) -> Entity:
        return await self.core.create(self.prepare_create(data))

    async def find_by_id(self, entity_id: EntityId) -> Entity | None:
        return await self.core.find_by_id(entity_id)

    async def find_by_id_cached(self, entity_id: EntityId) -> Entity | None:
        return await self.core.find_by_id_cached(entity_id)

    async def find_by_id_or_raise(self, entity_id: EntityId) -> Entity:
        return await self.core.find_by_id_or_raise(entity_id)

    async def exists(self, entity_id: EntityId) -> bool:
        return await self.core.exists(entity_id)

    async def find_by_ids(self, entity_ids: Iterable[EntityId]) -> list[Entity]:
        return await self.core.find_by_ids(entity_ids)

    async def find_all(self, limit: int | None = None, offset: int = 0) -> list[Entity]:
        return await self.core.find_all(limit, offset)

    async def find_by(
        self,
        criteria: Mapping[str, t.Any],
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Entity]:
        return await self.core.find_by(criteria, limit, offset)

    async def find_one_by(self, criteria: Mapping[str, t.Any]) -> Entity | None:
        return await self.core.find_one_by(criteria)

    async def count(self, criteria: Mapping[str, t.Any] | None = None) -> int:
        return await self.core.count(criteria)

    async def search(
        self,
        criteria: Mapping[str, t.Any],
        sort: Mapping[str, str] | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Entity]:
        return await self.core.search(criteria, sort, limit, offset)

    async def update(self, entity_id: EntityId, data: Mapping[str, t.Any]) -> Entity:
        return await self.core.update(entity_id, data)

    async def delete(self, entity_id: EntityId) -> bool:
        return await self.core.delete(entity_id)

    async def bulk_create(self, items: Iterable[Mapping[str, t.Any]]) -> t.Any:
        return await self.core.bulk_create([self.prepare_create(i) for i in items])

    async def bulk_update(
        self, updates: Mapping[EntityId, Mapping[str, t.Any]]
    ) -> t.Any:
        return await self.core.bulk_update(updates)

    async def update_status(self, entity_id: EntityId, status: str) -> Entity:
        return await self.core.update_status(entity_id, status)

    async def archive(self, entity_id: EntityId) -> Entity:
        return await self.core.archive(entity_id)

    async def restore(self, entity_id: EntityId) -> Entity:
        return await self.core.restore(entity_id)

    async def get_history(
        self, entity_id: EntityId, options: Mapping[str, t.Any] | None = None
    ) -> list[Entity]:
        return await self.core.get_history(entity_id, options)

    async def get_related(
        self,
        entity_id: EntityId,
        relation: str,
        options: Mapping[str, t.Any] | None = None,
    ) -> list[Entity]:
        return await self.core.get_related(entity_id, relation, options)

    async def add_relationship(
        self,
        entity_id: EntityId,
        related_id: EntityId,
        relation: str,
        metadata: Mapping[str, t.Any] | None = None,
    ) -> Entity:
        return await self.core.add_relationship(entity_id, related_id, relation, metadata)

    async def remove_relationship(
        self, entity_id: EntityId, related_id: EntityId, relation: str
    ) -> Entity:
        return await self.core.remove_relationship(entity_id, related_id, relation)

    async def get_stats(self, filters: Mapping[str, t.Any] | None = None) -> t.Any:
        return await self.core.get_stats(filters)

    async def invalidate_cache(self, entity_id: EntityId) -> None:
        await self.core.invalidate_cache(entity_id)

    async def warm_cache(self, entity_id: EntityId) -> Entity | None:
        return await self.core.warm_cache(entity_id)

    async def clear_all_cache(self) -> None:
        await self.core.clear_all_cache()
