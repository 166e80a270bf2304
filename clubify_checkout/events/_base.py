"""Event model and handler types.

Repositories emit events such as ``"user.created"`` after a successful
remote call. An :class:`Event` carries the name, its source and the payload;
handlers are sync or async callables, or :class:`EventHandler` subclasses.
"""

import inspect
from abc import ABC, abstractmethod
from enum import Enum
from uuid import UUID, uuid4

import typing as t
from datetime import UTC, datetime
from pydantic import BaseModel, ConfigDict, Field


class EventStatus(Enum):
    """Event processing status."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    STOPPED = "stopped"


class EventMetadata(BaseModel):
    """Event metadata for routing and tracing."""

    model_config = ConfigDict(extra="forbid")

    event_id: UUID = Field(default_factory=uuid4)
    event_type: str = Field(description="Event name, e.g. 'tenant.updated'")
    source: str = Field(description="Component that emitted the event")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    correlation_id: str | None = None


class Event(BaseModel):
    """An emitted event and its processing state."""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="forbid")

    metadata: EventMetadata
    payload: dict[str, t.Any] = Field(default_factory=dict)

    status: EventStatus = Field(default=EventStatus.PENDING)
    handled_by: int = 0
    errors: list[str] = Field(default_factory=list)

    def __str__(self) -> str:
        return f"Event({self.metadata.event_type}, {self.metadata.event_id})"

    @property
    def name(self) -> str:
        return self.metadata.event_type

    @property
    def propagation_stopped(self) -> bool:
        return self.status is EventStatus.STOPPED

    def stop_propagation(self) -> None:
        """Prevent listeners after the current one from being called."""
        self.status = EventStatus.STOPPED

    def mark_completed(self) -> None:
        if self.status is EventStatus.PENDING:
            self.status = EventStatus.COMPLETED

    def mark_failed(self, error: str) -> None:
        self.errors.append(error)
        if self.status is not EventStatus.STOPPED:
            self.status = EventStatus.FAILED


class EventHandler(ABC):
    """Abstract base class for class-based event handlers."""

    @abstractmethod
    async def handle(self, event: Event) -> None: ...

    def can_handle(self, event: Event) -> bool:
        return True

    async def __call__(self, event: Event) -> None:
        if self.can_handle(event):
            await self.handle(event)


class FunctionalEventHandler(EventHandler):
    """Adapts a plain function (sync or async) to :class:`EventHandler`."""

    def __init__(self, func: t.Callable[[Event], t.Any]) -> None:
        self.func = func

    async def handle(self, event: Event) -> None:
        result = self.func(event)
        if inspect.isawaitable(result):
            await result

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FunctionalEventHandler):
            return self.func == other.func
        return self.func == other

    def __hash__(self) -> int:
        return hash(self.func)


@t.runtime_checkable
class EventSinkProtocol(t.Protocol):
    async def emit(self, name: str, payload: dict[str, t.Any]) -> t.Any: ...


def create_event(
    event_type: str,
    source: str,
    payload: dict[str, t.Any] | None = None,
    **metadata_kwargs: t.Any,
) -> Event:
    metadata = EventMetadata(event_type=event_type, source=source, **metadata_kwargs)
    return Event(metadata=metadata, payload=payload or {})
