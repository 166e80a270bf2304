import re
import time
from abc import abstractmethod
from functools import lru_cache

import typing as t
from dataclasses import dataclass

from clubify_checkout.cleanup import CleanupMixin
from clubify_checkout.config import CacheSettings


@dataclass
class CacheEntry:
    """A cached value and the monotonic instant after which it is stale."""

    value: t.Any
    expires_at: float | None = None

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at


@lru_cache(maxsize=512)
def pattern_to_regex(pattern: str) -> re.Pattern[str]:
    """Compile a key pattern where ``*`` matches any run of characters.

    Every other character, including ``:``, ``[`` and ``?``, is literal.
    """
    return re.compile(".*".join(re.escape(part) for part in pattern.split("*")))


class CacheProtocol(t.Protocol):
    async def get(self, key: str) -> t.Any: ...

    async def set(self, key: str, value: t.Any, ttl: int | None = None) -> None: ...

    async def delete(self, key: str) -> int: ...


class CacheBase(CleanupMixin):
    """TTL key/value store shared by all repositories.

    Subclasses implement the raw ``_get``/``_set``/``_delete`` primitives
    against their backend. This class wraps values in :class:`CacheEntry` so
    staleness is decided here, against ``clock``, whatever the backend's own
    expiry resolution is.
    """

    def __init__(
        self,
        settings: CacheSettings | None = None,
        *,
        clock: t.Callable[[], float] = time.monotonic,
    ) -> None:
        CleanupMixin.__init__(self)
        self.settings = settings or CacheSettings()
        self.clock = clock
        self._client: t.Any = None

    @abstractmethod
    async def _create_client(self) -> t.Any: ...

    async def _ensure_client(self) -> t.Any:
        if self._client is None:
            self._client = await self._create_client()
        return self._client

    async def get_client(self) -> t.Any:
        return await self._ensure_client()

    @abstractmethod
    async def _get(self, key: str) -> CacheEntry | None: ...

    @abstractmethod
    async def _set(self, key: str, entry: CacheEntry, ttl: int | None) -> None: ...

    @abstractmethod
    async def _delete(self, key: str) -> int: ...

    @abstractmethod
    async def _delete_pattern(self, pattern: str) -> int: ...

    @abstractmethod
    async def _clear(self) -> None: ...

    def _resolve_ttl(self, ttl: int | None) -> int | None:
        ttl = self.settings.default_ttl if ttl is None else ttl
        return ttl if ttl > 0 else None

    async def get(self, key: str) -> t.Any:
        """Return the cached value, or ``None`` when absent or expired."""
        entry = await self._get(key)
        if entry is None:
            return None
        if entry.is_expired(self.clock()):
            await self._delete(key)
            return None
        return entry.value

    async def set(self, key: str, value: t.Any, ttl: int | None = None) -> None:
        """Store ``value`` for ``ttl`` seconds (``settings.default_ttl`` if omitted).

        A ``ttl`` of 0 stores the value without expiry.
        """
        ttl = self._resolve_ttl(ttl)
        expires_at = self.clock() + ttl if ttl is not None else None
        await self._set(key, CacheEntry(value=value, expires_at=expires_at), ttl)

    async def delete(self, key: str) -> int:
        """Delete one key, or every key matching it when it contains ``*``.

        Returns:
            The number of keys removed
        """
        if "*" in key:
            return await self._delete_pattern(key)
        return await self._delete(key)

    async def exists(self, key: str) -> bool:
        return await self.get(key) is not None

    async def clear(self) -> None:
        await self._clear()
