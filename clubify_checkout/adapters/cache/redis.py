import inspect
import time

import typing as t
from coredis import Redis
from msgspec import msgpack

from clubify_checkout.config import CacheSettings

from ._base import CacheBase, CacheEntry, pattern_to_regex

_GLOB_SPECIAL = "?[]\\"


def to_redis_glob(pattern: str) -> str:
    """Escape Redis glob metacharacters except ``*``."""
    return "".join(f"\\{c}" if c in _GLOB_SPECIAL else c for c in pattern)


class RedisCache(CacheBase):
    """Shared cache on Redis through coredis.

    Entries are msgpack-encoded :class:`CacheEntry` records stored under
    ``{prefix}:{key}`` with a native expiry matching the entry TTL. Expiry
    instants use wall-clock time since entries are shared across processes.
    """

    def __init__(
        self,
        settings: CacheSettings | None = None,
        *,
        clock: t.Callable[[], float] = time.time,
    ) -> None:
        super().__init__(settings, clock=clock)

    async def _create_client(self) -> Redis:  # type: ignore[type-arg]
        return Redis.from_url(self.settings.redis_url, decode_responses=False)

    def _key(self, key: str) -> str:
        return f"{self.settings.prefix}:{key}"

    async def _get(self, key: str) -> CacheEntry | None:
        client = await self.get_client()
        raw = await client.get(self._key(key))
        if raw is None:
            return None
        return msgpack.decode(raw, type=CacheEntry)

    async def _set(self, key: str, entry: CacheEntry, ttl: int | None) -> None:
        client = await self.get_client()
        await client.set(self._key(key), msgpack.encode(entry), ex=ttl)

    async def _delete(self, key: str) -> int:
        client = await self.get_client()
        return int(await client.unlink((self._key(key),)))

    async def _delete_pattern(self, pattern: str) -> int:
        client = await self.get_client()
        prefix = f"{self.settings.prefix}:"
        regex = pattern_to_regex(pattern)
        keys = await client.keys(to_redis_glob(prefix + pattern))
        matched = [
            k
            for k in (k.decode() if isinstance(k, bytes) else k for k in keys)
            if regex.fullmatch(k.removeprefix(prefix))
        ]
        if not matched:
            return 0
        return int(await client.unlink(matched))

    async def _clear(self) -> None:
        await self._delete_pattern("*")

    async def _cleanup_resources(self) -> None:
        if self._client is None:
            return
        pool = t.cast("t.Any", self._client).connection_pool
        result = pool.disconnect()
        if inspect.isawaitable(result):
            await result
        self._client = None
