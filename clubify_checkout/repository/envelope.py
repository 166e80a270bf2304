"""Response envelope handling.

Decides success from the status code and turns response bodies into
entities. ``get_data`` is the lenient reader (``None`` for anything it cannot
use); ``decode`` is what repositories call on 2xx responses and raises
:class:`DecodeError` instead of guessing.
"""

import typing as t

import msgspec

from clubify_checkout.adapters.requests import ResponseProtocol
from clubify_checkout.exceptions import DecodeError

Entity = dict[str, t.Any]
Payload = Entity | list[t.Any]

_INVALID = object()


def _parse(content: bytes) -> t.Any:
    try:
        data = msgspec.json.decode(content)
    except msgspec.DecodeError:
        return _INVALID
    if isinstance(data, dict | list):
        return data
    return _INVALID


class ResponseEnvelope:
    @staticmethod
    def is_successful(response: ResponseProtocol) -> bool:
        return 200 <= response.status_code < 300

    @staticmethod
    def get_data(response: ResponseProtocol) -> Payload | None:
        """Parse the body as a JSON object or array; ``None`` if that fails."""
        content = response.content
        if not content or not content.strip():
            return None
        data = _parse(content)
        return None if data is _INVALID else data

    @staticmethod
    def decode(
        response: ResponseProtocol,
        *,
        required: bool = True,
        uri: str | None = None,
        resource: str | None = None,
        operation: str | None = None,
    ) -> Payload | None:
        """Decode a successful response body.

        Args:
            response: A 2xx response
            required: Whether an empty body is an error
            uri: Request URI, for error context
            resource: Resource name, for error context
            operation: Operation name, for error context

        Returns:
            The parsed object or array, or ``None`` for an allowed empty body

        Raises:
            DecodeError: The body is not a JSON object/array, or is empty
                when ``required``
        """
        content = response.content
        if not content or not content.strip():
            if not required:
                return None
            data: t.Any = _INVALID
        else:
            data = _parse(content)
        if data is _INVALID:
            msg = f"Failed to decode response data from {uri}"
            raise DecodeError(
                msg,
                resource=resource,
                operation=operation,
                uri=uri,
                context={
                    "status_code": response.status_code,
                    "body": content[:200].decode(errors="replace"),
                },
            )
        return t.cast("Payload", data)

    @staticmethod
    def unwrap(payload: t.Any, keys: t.Sequence[str]) -> t.Any:
        """Walk ``keys`` in priority order, descending into each one holding a mapping.

        With keys ``("data", "tenant")``, ``{"data": {...}}``,
        ``{"tenant": {...}}`` and ``{"data": {"tenant": {...}}}`` all unwrap
        to the inner entity; anything else is returned unchanged.
        """
        for key in keys:
            if isinstance(payload, dict) and isinstance(payload.get(key), dict):
                payload = payload[key]
        return payload

    @staticmethod
    def extract_items(payload: t.Any, keys: t.Sequence[str]) -> list[t.Any]:
        """Return the entity list from a list body or a wrapped collection."""
        if isinstance(payload, list):
            return payload
        if not isinstance(payload, dict):
            return []
        for key in keys:
            value = payload.get(key)
            if isinstance(value, list):
                return value
            if isinstance(value, dict):
                nested = ResponseEnvelope.extract_items(value, keys)
                if nested:
                    return nested
        return []

    @staticmethod
    def is_structured_failure(payload: t.Any) -> bool:
        return isinstance(payload, dict) and payload.get("success") is False
