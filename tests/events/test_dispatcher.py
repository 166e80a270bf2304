"""Tests for the event dispatcher."""

from unittest.mock import MagicMock

import pytest

from clubify_checkout.events import (
    Event,
    EventDispatcher,
    EventHandler,
    EventStatus,
    create_event,
)


class RecordingHandler(EventHandler):
    def __init__(self, calls: list[str], label: str) -> None:
        self.calls = calls
        self.label = label

    async def handle(self, event: Event) -> None:
        self.calls.append(self.label)


class TestEvent:
    @pytest.mark.unit
    def test_create_event(self) -> None:
        event = create_event("user.created", "tests", {"user_id": "u1"})

        assert event.name == "user.created"
        assert event.metadata.source == "tests"
        assert event.payload == {"user_id": "u1"}
        assert event.status is EventStatus.PENDING

    @pytest.mark.unit
    def test_failure_is_recorded(self) -> None:
        event = create_event("user.created", "tests")

        event.mark_failed("boom")
        event.mark_completed()

        assert event.status is EventStatus.FAILED
        assert event.errors == ["boom"]


@pytest.mark.unit
class TestEventDispatcher:
    @pytest.mark.asyncio
    async def test_emit_reaches_named_and_wildcard_listeners(
        self, events: EventDispatcher
    ) -> None:
        named = MagicMock()
        wildcard = MagicMock()
        other = MagicMock()
        events.listen("user.created", named)
        events.listen("*", wildcard)
        events.listen("user.deleted", other)

        event = await events.emit("user.created", {"user_id": "u1"})

        named.assert_called_once_with(event)
        wildcard.assert_called_once_with(event)
        other.assert_not_called()
        assert event.handled_by == 2
        assert event.status is EventStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_priority_then_registration_order(
        self, events: EventDispatcher
    ) -> None:
        calls: list[str] = []
        events.listen("order.cancelled", RecordingHandler(calls, "low"), priority=-5)
        events.listen("order.cancelled", RecordingHandler(calls, "first"))
        events.listen("*", RecordingHandler(calls, "high"), priority=10)
        events.listen("order.cancelled", RecordingHandler(calls, "second"))

        await events.emit("order.cancelled")

        assert calls == ["high", "first", "second", "low"]

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_stop_others(
        self, events: EventDispatcher
    ) -> None:
        after = MagicMock()

        def broken(event: Event) -> None:
            msg = "listener bug"
            raise RuntimeError(msg)

        events.listen("cart.item_added", broken, priority=1)
        events.listen("cart.item_added", after)

        event = await events.emit("cart.item_added", {"cart_id": "c1"})

        after.assert_called_once()
        assert event.errors == ["listener bug"]
        assert event.status is EventStatus.FAILED
        assert events.get_statistics()["failed"] == 1

    @pytest.mark.asyncio
    async def test_async_listener_and_decorator(self, events: EventDispatcher) -> None:
        received: list[str] = []

        @events.on("tenant.suspended")
        async def on_suspended(event: Event) -> None:
            received.append(event.payload["tenant_id"])

        await events.emit("tenant.suspended", {"tenant_id": "t1"})

        assert received == ["t1"]

    @pytest.mark.asyncio
    async def test_stop_propagation(self, events: EventDispatcher) -> None:
        later = MagicMock()
        events.listen("user.created", lambda e: e.stop_propagation(), priority=1)
        events.listen("user.created", later)

        event = await events.emit("user.created")

        later.assert_not_called()
        assert event.propagation_stopped

    @pytest.mark.asyncio
    async def test_remove_listener(self, events: EventDispatcher) -> None:
        handler = MagicMock()
        events.listen("user.created", handler)

        assert events.remove_listener("user.created", handler)
        assert not events.has_listeners("user.created")
        await events.emit("user.created")
        handler.assert_not_called()

    def test_subscribe(self, events: EventDispatcher) -> None:
        class AuditSubscriber:
            def get_subscribed_events(self) -> dict[str, object]:
                return {"user.created": "on_created", "user.deleted": ("on_deleted", 5)}

            def on_created(self, event: Event) -> None: ...

            def on_deleted(self, event: Event) -> None: ...

        events.subscribe(AuditSubscriber())

        assert events.has_listeners("user.created")
        assert len(events.get_listeners("user.deleted")) == 1
        assert events.get_statistics()["listener_count"] == 2

    def test_clear(self, events: EventDispatcher) -> None:
        events.listen("*", MagicMock())

        events.clear()

        assert not events.has_listeners()
        assert events.get_statistics()["emitted"] == 0
