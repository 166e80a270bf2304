"""Base classes for HTTP gateway adapters.

The repository layer only depends on :class:`HttpGatewayProtocol`: a single
``request`` coroutine returning an object with ``status_code`` and
``content``. Retries, timeouts and connection pooling belong to the adapter.
"""

import typing as t

from clubify_checkout.config import Config


@t.runtime_checkable
class ResponseProtocol(t.Protocol):
    status_code: int

    @property
    def content(self) -> bytes: ...


@t.runtime_checkable
class HttpGatewayProtocol(t.Protocol):
    async def request(
        self,
        method: str,
        uri: str,
        *,
        json: t.Any = None,
        params: t.Mapping[str, t.Any] | None = None,
        headers: t.Mapping[str, str] | None = None,
    ) -> ResponseProtocol: ...


def clean_params(params: t.Mapping[str, t.Any] | None) -> dict[str, t.Any] | None:
    """Drop ``None`` values and render booleans the way the API expects."""
    if not params:
        return None
    cleaned: dict[str, t.Any] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        elif isinstance(value, list | tuple | set):
            value = ",".join(str(v) for v in value)
        cleaned[key] = value
    return cleaned


class RequestsBase:
    """Base class for all gateway adapters."""

    def __init__(self, config: Config | None = None) -> None:
        self.config = config or Config()

    async def get(self, uri: str, **kwargs: t.Any) -> ResponseProtocol:
        return await self.request("GET", uri, **kwargs)

    async def post(self, uri: str, **kwargs: t.Any) -> ResponseProtocol:
        return await self.request("POST", uri, **kwargs)

    async def put(self, uri: str, **kwargs: t.Any) -> ResponseProtocol:
        return await self.request("PUT", uri, **kwargs)

    async def patch(self, uri: str, **kwargs: t.Any) -> ResponseProtocol:
        return await self.request("PATCH", uri, **kwargs)

    async def delete(self, uri: str, **kwargs: t.Any) -> ResponseProtocol:
        return await self.request("DELETE", uri, **kwargs)

    async def request(
        self,
        method: str,
        uri: str,
        *,
        json: t.Any = None,
        params: t.Mapping[str, t.Any] | None = None,
        headers: t.Mapping[str, str] | None = None,
    ) -> ResponseProtocol:
        raise NotImplementedError
