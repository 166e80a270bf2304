"""In-process event dispatcher used as the SDK's event sink.

Listeners run in priority order (higher first, then registration order).
A listener that raises is logged and recorded on the event. The remaining
listeners still run and ``emit`` itself never raises.
"""

import itertools
from collections import defaultdict

import typing as t
from dataclasses import dataclass

from clubify_checkout.logger import Logger, LoggerProtocol

from ._base import Event, EventHandler, FunctionalEventHandler, create_event

WILDCARD = "*"

Listener = EventHandler | t.Callable[[Event], t.Any]


@dataclass
class ListenerRegistration:
    handler: EventHandler
    priority: int
    sequence: int


class EventDispatcher:
    def __init__(
        self,
        logger: LoggerProtocol | None = None,
        source: str = "clubify_checkout",
    ) -> None:
        self.logger = logger or Logger("events")
        self.source = source
        self._listeners: dict[str, list[ListenerRegistration]] = defaultdict(list)
        self._sequence = itertools.count()
        self._stats = {"emitted": 0, "handled": 0, "failed": 0}

    def listen(self, name: str, handler: Listener, priority: int = 0) -> EventHandler:
        """Register ``handler`` for ``name`` (``"*"`` for every event).

        Returns:
            The registered handler, wrapped if a plain function was given
        """
        wrapped = (
            handler
            if isinstance(handler, EventHandler)
            else FunctionalEventHandler(handler)
        )
        registrations = self._listeners[name]
        registrations.append(
            ListenerRegistration(wrapped, priority, next(self._sequence))
        )
        registrations.sort(key=lambda r: (-r.priority, r.sequence))
        return wrapped

    def on(
        self, name: str, priority: int = 0
    ) -> t.Callable[[t.Callable[[Event], t.Any]], t.Callable[[Event], t.Any]]:
        def decorator(func: t.Callable[[Event], t.Any]) -> t.Callable[[Event], t.Any]:
            self.listen(name, func, priority)
            return func

        return decorator

    def subscribe(self, subscriber: t.Any) -> None:
        """Register every listener declared by ``subscriber.get_subscribed_events()``.

        The mapping values are method names or ``(method name, priority)`` pairs.
        """
        for name, spec in subscriber.get_subscribed_events().items():
            method_name, priority = (spec, 0) if isinstance(spec, str) else spec
            self.listen(name, getattr(subscriber, method_name), priority)

    def remove_listener(self, name: str, handler: Listener) -> bool:
        registrations = self._listeners.get(name, [])
        remaining = [r for r in registrations if r.handler != handler]
        removed = len(remaining) != len(registrations)
        if remaining:
            self._listeners[name] = remaining
        else:
            self._listeners.pop(name, None)
        return removed

    def remove_all_listeners(self, name: str | None = None) -> None:
        if name is None:
            self._listeners.clear()
        else:
            self._listeners.pop(name, None)

    def _registrations_for(self, name: str) -> list[ListenerRegistration]:
        registrations = [*self._listeners.get(name, [])]
        if name != WILDCARD:
            registrations.extend(self._listeners.get(WILDCARD, []))
        return sorted(registrations, key=lambda r: (-r.priority, r.sequence))

    def has_listeners(self, name: str | None = None) -> bool:
        if name is None:
            return any(self._listeners.values())
        return bool(self._registrations_for(name))

    def get_listeners(self, name: str) -> list[EventHandler]:
        return [r.handler for r in self._registrations_for(name)]

    async def emit(
        self,
        name: str,
        payload: t.Mapping[str, t.Any] | None = None,
        *,
        source: str | None = None,
    ) -> Event:
        """Create an event and dispatch it to the listeners of ``name``."""
        event = create_event(name, source or self.source, dict(payload or {}))
        return await self.dispatch(event)

    async def dispatch(self, event: Event) -> Event:
        self._stats["emitted"] += 1
        for registration in self._registrations_for(event.name):
            if event.propagation_stopped:
                break
            try:
                await registration.handler(event)
            except Exception as e:
                self._stats["failed"] += 1
                event.mark_failed(str(e))
                self.logger.error(
                    "Event listener failed",
                    event=event.name,
                    listener=repr(registration.handler),
                    error=str(e),
                    error_type=type(e).__name__,
                )
                continue
            self._stats["handled"] += 1
            event.handled_by += 1
        event.mark_completed()
        return event

    def get_statistics(self) -> dict[str, t.Any]:
        return self._stats | {
            "event_names": sorted(self._listeners),
            "listener_count": sum(len(r) for r in self._listeners.values()),
        }

    def clear(self) -> None:
        self._listeners.clear()
        self._stats = {"emitted": 0, "handled": 0, "failed": 0}
