"""Shared fixtures: a scripted HTTP gateway and real in-memory collaborators."""

from collections import deque
from uuid import uuid4

import httpx
import pytest
import typing as t
from dataclasses import dataclass

from clubify_checkout.adapters.cache import MemoryCache
from clubify_checkout.config import CacheSettings, RepositorySettings
from clubify_checkout.events import Event, EventDispatcher
from clubify_checkout.metrics import MetricsCollector
from clubify_checkout.repository import RepositoryCore


@dataclass
class Call:
    method: str
    uri: str
    json: t.Any = None
    params: t.Mapping[str, t.Any] | None = None
    headers: t.Mapping[str, str] | None = None


class FakeGateway:
    """Gateway double that replays queued responses and records every call."""

    def __init__(self) -> None:
        self.responses: deque[httpx.Response | Exception] = deque()
        self.calls: list[Call] = []

    def reply(
        self, status_code: int = 200, body: t.Any = None, *, content: bytes | None = None
    ) -> "FakeGateway":
        if content is not None:
            response = httpx.Response(status_code, content=content)
        elif body is None:
            response = httpx.Response(status_code, content=b"")
        else:
            response = httpx.Response(status_code, json=body)
        self.responses.append(response)
        return self

    def fail(self, error: Exception) -> "FakeGateway":
        self.responses.append(error)
        return self

    async def request(
        self,
        method: str,
        uri: str,
        *,
        json: t.Any = None,
        params: t.Mapping[str, t.Any] | None = None,
        headers: t.Mapping[str, str] | None = None,
    ) -> httpx.Response:
        self.calls.append(Call(method, uri, json, params, headers))
        if not self.responses:
            msg = f"Unexpected request: {method} {uri}"
            raise AssertionError(msg)
        item = self.responses.popleft()
        if isinstance(item, Exception):
            raise item
        return item

    @property
    def last(self) -> Call:
        return self.calls[-1]


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> MemoryCache:
    return MemoryCache(CacheSettings(prefix=f"test-{uuid4().hex}"), clock=clock)


@pytest.fixture
def events() -> EventDispatcher:
    return EventDispatcher()


@pytest.fixture
def emitted(events: EventDispatcher) -> list[Event]:
    received: list[Event] = []
    events.listen("*", received.append)
    return received


@pytest.fixture
def metrics() -> MetricsCollector:
    return MetricsCollector()


@pytest.fixture
def repo_settings() -> RepositorySettings:
    return RepositorySettings()


@pytest.fixture
def deps(
    gateway: FakeGateway,
    cache: MemoryCache,
    events: EventDispatcher,
    metrics: MetricsCollector,
    repo_settings: RepositorySettings,
) -> dict[str, t.Any]:
    """Keyword arguments for ``ResourceRepository.build``."""
    return {
        "gateway": gateway,
        "cache": cache,
        "events": events,
        "metrics": metrics,
        "settings": repo_settings,
    }


@pytest.fixture
def core(deps: dict[str, t.Any]) -> RepositoryCore:
    return RepositoryCore("users", "user", **deps)
