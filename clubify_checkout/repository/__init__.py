from clubify_checkout.config import RepositorySettings

from ._base import EntityId, RepositoryCore
from .envelope import Entity, Payload, ResponseEnvelope
from .keys import (
    derive_cache_key,
    derived_key,
    entity_key,
    invalidation_patterns,
    resource_pattern,
    scoped_key,
    stable_serialize,
)

__all__ = [
    "Entity",
    "EntityId",
    "Payload",
    "RepositoryCore",
    "RepositorySettings",
    "ResponseEnvelope",
    "derive_cache_key",
    "derived_key",
    "entity_key",
    "invalidation_patterns",
    "resource_pattern",
    "scoped_key",
    "stable_serialize",
]
