"""Repository core.

:class:`RepositoryCore` is the one place where remote reads and writes go
through. It applies caching, metrics, event emission and error translation
for a single resource, configured by:

- ``endpoint``: URL path on the API, e.g. ``"users"``
- ``resource_name``: short noun namespacing cache keys and event names

Domain repositories (see :mod:`clubify_checkout.modules`) hold a core and
build their domain-named methods from its primitives.

Error policy: a 404 on a single-entity read becomes ``None`` and a 404 on
delete becomes ``True``. Every other failure is logged and re-raised.
"""

import inspect
import time

import typing as t
from collections.abc import Awaitable, Callable, Iterable, Mapping

from clubify_checkout.adapters.cache import CacheProtocol
from clubify_checkout.adapters.requests import HttpGatewayProtocol, ResponseProtocol
from clubify_checkout.config import RepositorySettings
from clubify_checkout.events import EventSinkProtocol
from clubify_checkout.exceptions import (
    DecodeError,
    EntityNotFoundError,
    RemoteError,
    TransportError,
)
from clubify_checkout.logger import Logger, LoggerProtocol
from clubify_checkout.metrics import MetricsSinkProtocol, OperationMetric

from .envelope import Entity, Payload, ResponseEnvelope
from .keys import (
    derive_cache_key,
    derived_key,
    entity_key,
    invalidation_patterns,
    resource_pattern,
)

EntityId = str | int

type Loader[T] = Callable[[], Awaitable[T] | T]


async def _resolve[T](loader: Loader[T]) -> T:
    result = loader()
    if inspect.isawaitable(result):
        return await result
    return result


class RepositoryCore:
    def __init__(
        self,
        endpoint: str,
        resource_name: str,
        *,
        gateway: HttpGatewayProtocol,
        cache: CacheProtocol | None = None,
        events: EventSinkProtocol | None = None,
        logger: LoggerProtocol | None = None,
        metrics: MetricsSinkProtocol | None = None,
        settings: RepositorySettings | None = None,
        unwrap_keys: Iterable[str] = ("data",),
        collection_name: str | None = None,
        item_keys: Iterable[str] = (),
    ) -> None:
        self.endpoint = endpoint.strip("/")
        self.resource_name = resource_name
        self.gateway = gateway
        self.cache = cache
        self.events = events
        self.logger = logger or Logger(f"repository.{resource_name}")
        self.metrics = metrics
        self.settings = settings or RepositorySettings()
        self.unwrap_keys = tuple(unwrap_keys)
        self.collection_name = collection_name or f"{resource_name}s"
        self.item_keys = tuple(item_keys)

    def __repr__(self) -> str:
        return f"RepositoryCore(endpoint={self.endpoint!r}, resource={self.resource_name!r})"

    @property
    def id_field(self) -> str:
        return f"{self.resource_name}_id"

    @property
    def cache_enabled(self) -> bool:
        return self.cache is not None and self.settings.cache_enabled

    @property
    def _list_keys(self) -> tuple[str, ...]:
        return (
            *self.unwrap_keys,
            self.collection_name,
            *self.item_keys,
            "items",
            "results",
        )

    def uri(self, *parts: t.Any) -> str:
        """Join ``endpoint`` and path parts: ``uri(5, "status")`` -> ``users/5/status``."""
        segments = [str(p).strip("/") for p in parts if p is not None and p != ""]
        return "/".join([self.endpoint, *segments])

    # Transport ---------------------------------------------------------------

    def _log_failure(
        self, method: str, uri: str, operation: str | None, error: Exception
    ) -> None:
        self.logger.error(
            "HTTP request failed",
            method=method,
            uri=uri,
            resource=self.resource_name,
            operation=operation,
            error=str(error),
        )

    def _remote_error(
        self,
        response: ResponseProtocol,
        method: str,
        uri: str,
        operation: str | None,
    ) -> RemoteError:
        body = ResponseEnvelope.get_data(response)
        detail = None
        if isinstance(body, dict):
            detail = body.get("message") or body.get("error")
        msg = f"{method} {uri} failed with status {response.status_code}"
        if detail:
            msg = f"{msg}: {detail}"
        return RemoteError(
            msg,
            status_code=response.status_code,
            resource=self.resource_name,
            operation=operation,
            method=method,
            uri=uri,
            body=body,
        )

    async def send(
        self,
        method: str,
        uri: str,
        *,
        json: t.Any = None,
        params: Mapping[str, t.Any] | None = None,
        headers: Mapping[str, str] | None = None,
        operation: str | None = None,
    ) -> ResponseProtocol:
        """Issue one gateway call and return the raw response, whatever its status.

        Raises:
            TransportError: The gateway failed before producing a response
        """
        try:
            return await self.gateway.request(
                method, uri, json=json, params=params, headers=headers
            )
        except TransportError as e:
            e.resource = e.resource or self.resource_name
            e.operation = e.operation or operation
            self._log_failure(method, uri, operation, e)
            raise
        except OSError as e:
            error = TransportError(
                f"{method} {uri} failed: {e}",
                resource=self.resource_name,
                operation=operation,
                method=method,
                uri=uri,
            )
            self._log_failure(method, uri, operation, error)
            raise error from e

    async def send_checked(
        self,
        method: str,
        uri: str,
        *,
        json: t.Any = None,
        params: Mapping[str, t.Any] | None = None,
        headers: Mapping[str, str] | None = None,
        operation: str | None = None,
        allow_not_found: bool = False,
    ) -> ResponseProtocol | None:
        """Like :meth:`send`, but non-2xx statuses raise :class:`RemoteError`.

        Returns ``None`` for a 404 when ``allow_not_found`` is set.
        """
        response = await self.send(
            method, uri, json=json, params=params, headers=headers, operation=operation
        )
        if ResponseEnvelope.is_successful(response):
            return response
        if allow_not_found and response.status_code == 404:
            self.logger.debug(
                "Resource not found", method=method, uri=uri, resource=self.resource_name
            )
            return None
        error = self._remote_error(response, method, uri, operation)
        self._log_failure(method, uri, operation, error)
        raise error

    def decode(
        self,
        response: ResponseProtocol,
        *,
        uri: str,
        operation: str | None = None,
        required: bool = True,
    ) -> Payload | None:
        try:
            return ResponseEnvelope.decode(
                response,
                required=required,
                uri=uri,
                resource=self.resource_name,
                operation=operation,
            )
        except DecodeError as e:
            self.logger.error(
                "Failed to decode response",
                uri=uri,
                resource=self.resource_name,
                operation=operation,
                error=str(e),
            )
            raise

    async def make_request(
        self,
        method: str,
        uri: str,
        *,
        json: t.Any = None,
        params: Mapping[str, t.Any] | None = None,
        headers: Mapping[str, str] | None = None,
        operation: str | None = None,
        required: bool = True,
        allow_not_found: bool = False,
    ) -> Payload | None:
        """Send a request and decode its 2xx body.

        Args:
            method: HTTP method
            uri: Path relative to the API base URL
            json: Request body
            params: Query parameters
            headers: Extra request headers, e.g. ``X-Tenant-Id``
            operation: Operation name for logs and errors
            required: Whether an empty 2xx body is a :class:`DecodeError`
            allow_not_found: Return ``None`` on 404 instead of raising

        Returns:
            The decoded payload, or ``None`` (allowed 404 or empty body)

        Raises:
            RemoteError: Non-2xx status
            TransportError: No response at all
            DecodeError: Unparsable 2xx body
        """
        response = await self.send_checked(
            method,
            uri,
            json=json,
            params=params,
            headers=headers,
            operation=operation,
            allow_not_found=allow_not_found,
        )
        if response is None:
            return None
        return self.decode(response, uri=uri, operation=operation, required=required)

    def to_entity(self, payload: t.Any, *, uri: str, operation: str) -> Entity:
        entity = ResponseEnvelope.unwrap(payload, self.unwrap_keys)
        if not isinstance(entity, dict):
            msg = f"Expected an entity object from {uri}"
            raise DecodeError(
                msg, resource=self.resource_name, operation=operation, uri=uri
            )
        return entity

    def to_items(self, payload: t.Any) -> list[Entity]:
        return ResponseEnvelope.extract_items(payload, self._list_keys)

    # Observability -----------------------------------------------------------

    async def emit(self, event: str, payload: Mapping[str, t.Any]) -> None:
        """Emit ``{resource}.{event}`` to the event sink."""
        if self.events is None or not self.settings.events_enabled:
            return
        await self.events.emit(f"{self.resource_name}.{event}", dict(payload))

    def _record(
        self, name: str, started: float, success: bool, error_type: str | None = None
    ) -> float:
        duration_ms = (time.perf_counter() - started) * 1000
        if self.metrics is not None:
            self.metrics.record_operation(
                OperationMetric(
                    name=name,
                    duration_ms=duration_ms,
                    success=success,
                    error_type=error_type,
                    tags={"resource": self.resource_name},
                )
            )
        return duration_ms

    async def execute_with_metrics[T](self, name: str, operation: Loader[T]) -> T:
        """Run ``operation``, recording its duration and outcome.

        Failures are logged and re-raised unchanged.
        """
        started = time.perf_counter()
        try:
            result = await _resolve(operation)
        except Exception as e:
            duration_ms = self._record(name, started, False, type(e).__name__)
            self.logger.error(
                "Repository operation failed",
                operation=name,
                resource=self.resource_name,
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=round(duration_ms, 2),
            )
            raise
        duration_ms = self._record(name, started, True)
        self.logger.debug(
            "Repository operation completed",
            operation=name,
            resource=self.resource_name,
            duration_ms=round(duration_ms, 2),
        )
        return result

    # Cache -------------------------------------------------------------------

    async def get_cached_or_execute[T](
        self, key: str, loader: Loader[T], ttl: int | None = None
    ) -> T:
        """Return the cached value for ``key`` or load and cache it.

        ``loader`` runs at most once per call. Its exceptions propagate and
        nothing is cached; a ``None`` result is returned but not cached. A
        ``ttl`` of zero or less bypasses the cache.
        """
        ttl = self.settings.entity_ttl if ttl is None else ttl
        if not self.cache_enabled or ttl <= 0:
            return await _resolve(loader)

        cache = t.cast("CacheProtocol", self.cache)
        cached = await cache.get(key)
        if cached is not None:
            self.logger.debug("Cache hit", key=key)
            return t.cast("T", cached)

        result = await _resolve(loader)
        if result is not None:
            await cache.set(key, result, ttl=ttl)
        return result

    async def invalidate_cache(self, entity_id: EntityId) -> None:
        """Delete every cache key that can reference ``entity_id``."""
        if self.cache is None:
            return
        for pattern in invalidation_patterns(self.resource_name, entity_id):
            await self.cache.delete(pattern)
        self.logger.debug(
            "Cache invalidated", resource=self.resource_name, entity_id=entity_id
        )

    async def clear_all_cache(self) -> None:
        if self.cache is not None:
            await self.cache.delete(resource_pattern(self.resource_name))

    async def warm_cache(self, entity_id: EntityId) -> Entity | None:
        return await self.find_by_id_cached(entity_id)

    # Generic reads -----------------------------------------------------------

    async def fetch_one(
        self,
        uri: str,
        *,
        params: Mapping[str, t.Any] | None = None,
        headers: Mapping[str, str] | None = None,
        operation: str,
        cache_key: str | None = None,
        ttl: int | None = None,
    ) -> Entity | None:
        """GET a single entity; 404 and ``{"success": false}`` bodies are ``None``."""

        async def load() -> Entity | None:
            payload = await self.make_request(
                "GET",
                uri,
                params=params,
                headers=headers,
                operation=operation,
                allow_not_found=True,
            )
            if payload is None or ResponseEnvelope.is_structured_failure(payload):
                return None
            return self.to_entity(payload, uri=uri, operation=operation)

        if cache_key is None:
            return await load()
        return await self.get_cached_or_execute(cache_key, load, ttl)

    async def fetch_many(
        self,
        uri: str,
        *,
        params: Mapping[str, t.Any] | None = None,
        operation: str,
        cache_key: str | None = None,
        ttl: int | None = None,
    ) -> list[Entity]:
        async def load() -> list[Entity]:
            payload = await self.make_request(
                "GET", uri, params=params, operation=operation
            )
            return self.to_items(payload)

        if cache_key is None:
            return await load()
        return await self.get_cached_or_execute(
            cache_key, load, self.settings.query_ttl if ttl is None else ttl
        )

    async def fetch_raw(
        self,
        method: str,
        uri: str,
        *,
        json: t.Any = None,
        params: Mapping[str, t.Any] | None = None,
        headers: Mapping[str, str] | None = None,
        operation: str,
        cache_key: str | None = None,
        ttl: int | None = None,
    ) -> t.Any:
        """Request ``uri`` and return the unwrapped payload as-is (stats, checks)."""

        async def load() -> t.Any:
            payload = await self.make_request(
                method,
                uri,
                json=json,
                params=params,
                headers=headers,
                operation=operation,
            )
            return ResponseEnvelope.unwrap(payload, self.unwrap_keys)

        if cache_key is None:
            return await load()
        return await self.get_cached_or_execute(cache_key, load, ttl)

    async def find_by_id(self, entity_id: EntityId) -> Entity | None:
        return await self.execute_with_metrics(
            f"find_{self.resource_name}",
            lambda: self.fetch_one(self.uri(entity_id), operation="find_by_id"),
        )

    async def find_by_id_cached(
        self, entity_id: EntityId, ttl: int | None = None
    ) -> Entity | None:
        return await self.get_cached_or_execute(
            entity_key(self.resource_name, entity_id),
            lambda: self.find_by_id(entity_id),
            self.settings.entity_ttl if ttl is None else ttl,
        )

    async def find_by_id_or_raise(self, entity_id: EntityId) -> Entity:
        entity = await self.find_by_id(entity_id)
        if entity is None:
            raise EntityNotFoundError(self.resource_name, entity_id)
        return entity

    async def exists(self, entity_id: EntityId) -> bool:
        return await self.find_by_id(entity_id) is not None

    async def find_by_ids(self, entity_ids: Iterable[EntityId]) -> list[Entity]:
        ids = [str(i) for i in entity_ids]
        if not ids:
            return []
        return await self.fetch_many(
            self.endpoint,
            params={"ids": ids},
            operation="find_by_ids",
            cache_key=derive_cache_key(self.resource_name, "ids", {"ids": sorted(ids)}),
        )

    async def find_all(self, limit: int | None = None, offset: int = 0) -> list[Entity]:
        params = {
            "limit": self.settings.default_limit if limit is None else limit,
            "offset": offset,
        }
        return await self.fetch_many(
            self.endpoint,
            params=params,
            operation="find_all",
            cache_key=derive_cache_key(self.resource_name, "all", params),
        )

    async def find_by(
        self,
        criteria: Mapping[str, t.Any],
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Entity]:
        params = {**criteria, "limit": limit, "offset": offset}
        return await self.fetch_many(
            self.endpoint,
            params=params,
            operation="find_by",
            cache_key=derive_cache_key(self.resource_name, "by", params),
        )

    async def find_one_by(self, criteria: Mapping[str, t.Any]) -> Entity | None:
        items = await self.find_by(criteria, limit=1)
        return items[0] if items else None

    async def count(self, criteria: Mapping[str, t.Any] | None = None) -> int:
        criteria = dict(criteria or {})

        async def load() -> int:
            payload = await self.make_request(
                "GET",
                self.endpoint,
                params={**criteria, "count_only": True},
                operation="count",
            )
            if isinstance(payload, dict) and "total" in payload:
                return int(payload["total"])
            return len(self.to_items(payload))

        return await self.get_cached_or_execute(
            derive_cache_key(self.resource_name, "count", criteria),
            load,
            self.settings.entity_ttl,
        )

    async def search(
        self,
        criteria: Mapping[str, t.Any],
        sort: Mapping[str, str] | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Entity]:
        body = {
            "criteria": dict(criteria),
            "sort": dict(sort or {}),
            "limit": self.settings.default_limit if limit is None else limit,
            "offset": offset,
        }
        uri = self.uri("search")

        async def load() -> list[Entity]:
            payload = await self.make_request(
                "POST", uri, json=body, operation="search"
            )
            return self.to_items(payload)

        return await self.get_cached_or_execute(
            derive_cache_key(self.resource_name, "search", body),
            load,
            self.settings.query_ttl,
        )

    async def get_stats(self, filters: Mapping[str, t.Any] | None = None) -> t.Any:
        return await self.fetch_raw(
            "GET",
            self.uri("stats"),
            params=filters,
            operation="get_stats",
            cache_key=derive_cache_key(self.resource_name, "stats", filters),
            ttl=self.settings.stats_ttl,
        )

    async def get_history(
        self, entity_id: EntityId, options: Mapping[str, t.Any] | None = None
    ) -> list[Entity]:
        return await self.fetch_many(
            self.uri(entity_id, "history"),
            params=options,
            operation="get_history",
            cache_key=derived_key(self.resource_name, "history", entity_id, options),
            ttl=self.settings.history_ttl,
        )

    async def get_related(
        self,
        entity_id: EntityId,
        relation: str,
        options: Mapping[str, t.Any] | None = None,
    ) -> list[Entity]:
        return await self.fetch_many(
            self.uri(entity_id, relation),
            params=options,
            operation="get_related",
            cache_key=derived_key(
                self.resource_name,
                "related",
                entity_id,
                {"relation": relation, **(options or {})},
            ),
            ttl=self.settings.related_ttl,
        )

    # Writes ------------------------------------------------------------------

    async def create(self, data: Mapping[str, t.Any]) -> Entity:
        body = dict(data)
        uri = self.endpoint

        async def run() -> Entity:
            payload = await self.make_request("POST", uri, json=body, operation="create")
            entity = self.to_entity(payload, uri=uri, operation="create")
            await self.emit("created", {self.id_field: entity.get("id"), "data": entity})
            return entity

        return await self.execute_with_metrics(f"create_{self.resource_name}", run)

    async def update(self, entity_id: EntityId, data: Mapping[str, t.Any]) -> Entity:
        """Update an entity; its cache keys are cleared before this returns."""
        body = dict(data)
        uri = self.uri(entity_id)
        method = self.settings.update_method

        async def run() -> Entity:
            response = t.cast(
                "ResponseProtocol",
                await self.send_checked(method, uri, json=body, operation="update"),
            )
            await self.invalidate_cache(entity_id)
            payload = self.decode(response, uri=uri, operation="update")
            entity = self.to_entity(payload, uri=uri, operation="update")
            await self.emit("updated", {self.id_field: entity_id, "updates": body})
            return entity

        return await self.execute_with_metrics(f"update_{self.resource_name}", run)

    async def delete(self, entity_id: EntityId) -> bool:
        """Delete an entity. A 404 counts as already deleted and returns ``True``."""
        uri = self.uri(entity_id)

        async def run() -> bool:
            response = await self.send_checked(
                "DELETE", uri, operation="delete", allow_not_found=True
            )
            await self.invalidate_cache(entity_id)
            if response is not None:
                await self.emit("deleted", {self.id_field: entity_id})
            return True

        return await self.execute_with_metrics(f"delete_{self.resource_name}", run)

    async def mutate(
        self,
        method: str,
        entity_id: EntityId,
        *path: t.Any,
        json: t.Any = None,
        headers: Mapping[str, str] | None = None,
        operation: str,
        event: str | None = None,
        event_payload: Mapping[str, t.Any] | None = None,
        invalidate: Iterable[EntityId] = (),
    ) -> Entity:
        """Apply a state change on ``{endpoint}/{entity_id}/{path}``.

        On success, the cache keys of ``entity_id`` and of every id in
        ``invalidate`` are cleared, then ``{resource}.{event}`` is emitted.

        Returns:
            The entity from the response, or ``{}`` if the body was empty
        """
        uri = self.uri(entity_id, *path)

        async def run() -> Entity:
            response = t.cast(
                "ResponseProtocol",
                await self.send_checked(
                    method, uri, json=json, headers=headers, operation=operation
                ),
            )
            for target in (entity_id, *invalidate):
                await self.invalidate_cache(target)
            payload = self.decode(
                response, uri=uri, operation=operation, required=False
            )
            entity = (
                {} if payload is None else self.to_entity(payload, uri=uri, operation=operation)
            )
            if event:
                await self.emit(
                    event, {self.id_field: entity_id, **(event_payload or {})}
                )
            return entity

        return await self.execute_with_metrics(f"{operation}_{self.resource_name}", run)

    async def update_status(self, entity_id: EntityId, status: str) -> Entity:
        return await self.mutate(
            "PATCH",
            entity_id,
            "status",
            json={"status": status},
            operation="update_status",
            event="status_updated",
            event_payload={"status": status},
        )

    async def archive(self, entity_id: EntityId) -> Entity:
        return await self.mutate(
            "PATCH", entity_id, "archive", operation="archive", event="archived"
        )

    async def restore(self, entity_id: EntityId) -> Entity:
        return await self.mutate(
            "PATCH", entity_id, "restore", operation="restore", event="restored"
        )

    async def add_relationship(
        self,
        entity_id: EntityId,
        related_id: EntityId,
        relation: str,
        metadata: Mapping[str, t.Any] | None = None,
    ) -> Entity:
        return await self.mutate(
            "POST",
            entity_id,
            relation,
            json={"related_id": related_id, "metadata": dict(metadata or {})},
            operation="add_relationship",
            event="relationship.added",
            event_payload={"related_id": related_id, "relation": relation},
            invalidate=(related_id,),
        )

    async def remove_relationship(
        self, entity_id: EntityId, related_id: EntityId, relation: str
    ) -> Entity:
        return await self.mutate(
            "DELETE",
            entity_id,
            relation,
            related_id,
            operation="remove_relationship",
            event="relationship.removed",
            event_payload={"related_id": related_id, "relation": relation},
            invalidate=(related_id,),
        )

    async def bulk_create(self, items: Iterable[Mapping[str, t.Any]]) -> t.Any:
        """Create many entities in one request.

        The remote reports per-item outcomes in its response body, which is
        returned as-is; a non-2xx status fails the whole batch.
        """
        body = {self.collection_name: [dict(item) for item in items]}
        uri = self.uri("bulk")

        async def run() -> t.Any:
            payload = await self.make_request(
                "POST", uri, json=body, operation="bulk_create"
            )
            await self.emit(
                "bulk_created", {"count": len(body[self.collection_name])}
            )
            return ResponseEnvelope.unwrap(payload, self.unwrap_keys)

        return await self.execute_with_metrics(f"bulk_create_{self.resource_name}", run)

    async def bulk_update(
        self, updates: Mapping[EntityId, Mapping[str, t.Any]]
    ) -> t.Any:
        body = {"updates": {str(k): dict(v) for k, v in updates.items()}}
        uri = self.uri("bulk")

        async def run() -> t.Any:
            response = t.cast(
                "ResponseProtocol",
                await self.send_checked("PUT", uri, json=body, operation="bulk_update"),
            )
            for entity_id in updates:
                await self.invalidate_cache(entity_id)
            payload = self.decode(response, uri=uri, operation="bulk_update")
            await self.emit(
                "bulk_updated", {"count": len(updates), "ids": list(body["updates"])}
            )
            return ResponseEnvelope.unwrap(payload, self.unwrap_keys)

        return await self.execute_with_metrics(f"bulk_update_{self.resource_name}", run)

