"""Error taxonomy for the Clubify Checkout SDK.

Every error raised by the SDK derives from :class:`ClubifyError`:

- ``ConfigurationError``: invalid settings
- ``ValidationError``: local payload validation, raised before any network call
- ``RemoteError``: a non-2xx response from the remote API
- ``TransportError``: the gateway could not complete the request at all
- ``DecodeError``: a 2xx response whose body could not be parsed
- ``EntityNotFoundError``: explicit "must exist" lookups
- ``RepositoryRegistryError``: unknown repository type
"""

import typing as t


class ClubifyError(Exception):
    """Base exception for all SDK errors."""

    def __init__(
        self,
        message: str,
        *,
        context: dict[str, t.Any] | None = None,
    ) -> None:
        self.message = message
        self.context = context or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, t.Any]:
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


class ConfigurationError(ClubifyError):
    """Raised when SDK settings are missing or invalid."""


class ValidationError(ClubifyError):
    """Raised when a payload fails local validation."""

    def __init__(
        self,
        message: str,
        errors: list[dict[str, t.Any]] | None = None,
        *,
        context: dict[str, t.Any] | None = None,
    ) -> None:
        super().__init__(message, context=context)
        self.errors = errors or []

    @property
    def fields(self) -> list[str]:
        return [".".join(str(p) for p in error.get("loc", ())) for error in self.errors]


class RemoteError(ClubifyError):
    """Raised when the remote API answers with a non-2xx status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        resource: str | None = None,
        operation: str | None = None,
        method: str | None = None,
        uri: str | None = None,
        body: t.Any = None,
        context: dict[str, t.Any] | None = None,
    ) -> None:
        super().__init__(message, context=context)
        self.status_code = status_code
        self.resource = resource
        self.operation = operation
        self.method = method
        self.uri = uri
        self.body = body

    @property
    def is_client_error(self) -> bool:
        return self.status_code is not None and 400 <= self.status_code < 500

    @property
    def is_server_error(self) -> bool:
        return self.status_code is not None and self.status_code >= 500

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    @property
    def is_retryable(self) -> bool:
        """Whether the same request could succeed if sent again."""
        if self.status_code is None:
            return True
        return self.status_code in (408, 429) or self.is_server_error

    def to_dict(self) -> dict[str, t.Any]:
        data = super().to_dict()
        data.update(
            status_code=self.status_code,
            resource=self.resource,
            operation=self.operation,
            method=self.method,
            uri=self.uri,
        )
        return data


class TransportError(RemoteError):
    """Raised when the request never produced a response (timeout, DNS, reset)."""


class DecodeError(ClubifyError):
    """Raised when a successful response body cannot be parsed."""

    def __init__(
        self,
        message: str,
        *,
        resource: str | None = None,
        operation: str | None = None,
        uri: str | None = None,
        context: dict[str, t.Any] | None = None,
    ) -> None:
        super().__init__(message, context=context)
        self.resource = resource
        self.operation = operation
        self.uri = uri


class EntityNotFoundError(ClubifyError):
    """Raised when an entity that must exist is not found."""

    def __init__(self, resource: str, entity_id: t.Any) -> None:
        super().__init__(
            f"{resource} with ID {entity_id} not found",
            context={"resource": resource, "entity_id": entity_id},
        )
        self.resource = resource
        self.entity_id = entity_id


class RepositoryRegistryError(ClubifyError):
    """Raised for unknown or misconfigured repository types."""
