from clubify_checkout.config import CacheSettings

from ._base import CacheBase, CacheEntry, CacheProtocol, pattern_to_regex
from .memory import MemoryCache


def create_cache(settings: CacheSettings | None = None) -> CacheBase:
    """Build the cache backend named by ``settings.backend``."""
    settings = settings or CacheSettings()
    if settings.backend == "redis":
        from .redis import RedisCache

        return RedisCache(settings)
    return MemoryCache(settings)


__all__ = [
    "CacheBase",
    "CacheEntry",
    "CacheProtocol",
    "MemoryCache",
    "create_cache",
    "pattern_to_regex",
]
