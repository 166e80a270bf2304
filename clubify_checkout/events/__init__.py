from ._base import (
    Event,
    EventHandler,
    EventMetadata,
    EventSinkProtocol,
    EventStatus,
    FunctionalEventHandler,
    create_event,
)
from .dispatcher import EventDispatcher

__all__ = [
    "Event",
    "EventDispatcher",
    "EventHandler",
    "EventMetadata",
    "EventSinkProtocol",
    "EventStatus",
    "FunctionalEventHandler",
    "create_event",
]
