import typing as t
from aiocache.backends.memory import SimpleMemoryCache
from aiocache.serializers import PickleSerializer

from ._base import CacheBase, CacheEntry, pattern_to_regex


class MemoryCache(CacheBase):
    """In-process cache on aiocache's ``SimpleMemoryCache``.

    Values go through ``PickleSerializer`` so every ``get`` hands back a copy
    and callers mutating a returned entity cannot corrupt the cached one.
    """

    def __init__(self, *args: t.Any, **kwargs: t.Any) -> None:
        super().__init__(*args, **kwargs)
        self._keys: set[str] = set()

    async def _create_client(self) -> SimpleMemoryCache:
        return SimpleMemoryCache(
            serializer=PickleSerializer(),
            namespace=f"{self.settings.prefix}:",
            timeout=0,
        )

    async def _get(self, key: str) -> CacheEntry | None:
        cache = await self.get_client()
        entry = await cache.get(key)
        if entry is None:
            self._keys.discard(key)
        return entry

    async def _set(self, key: str, entry: CacheEntry, ttl: int | None) -> None:
        cache = await self.get_client()
        await cache.set(key, entry, ttl=ttl)
        self._keys.add(key)

    async def _delete(self, key: str) -> int:
        cache = await self.get_client()
        self._keys.discard(key)
        return int(await cache.delete(key))

    async def _delete_pattern(self, pattern: str) -> int:
        await self._prune()
        regex = pattern_to_regex(pattern)
        deleted = 0
        for key in [k for k in self._keys if regex.fullmatch(k)]:
            deleted += await self._delete(key)
        return deleted

    async def _prune(self) -> None:
        """Drop index entries the backend has already evicted."""
        cache = await self.get_client()
        for key in list(self._keys):
            if not await cache.exists(key):
                self._keys.discard(key)

    async def _clear(self) -> None:
        cache = await self.get_client()
        await cache.clear()
        self._keys.clear()

    def keys(self) -> list[str]:
        return sorted(self._keys)

    async def _cleanup_resources(self) -> None:
        if self._client is not None:
            await self._client.clear()
            await self._client.close()
            self._client = None
        self._keys.clear()
