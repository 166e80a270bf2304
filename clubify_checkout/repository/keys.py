"""Cache key derivation.

Keys always start with the resource name so repositories sharing one cache
never collide. Every key that embeds an entity id is shaped so that one of
:func:`invalidation_patterns` matches it::

    user:user_1                      entity_key
    user:roles:user_1                scoped_key        -> user:*:user_1
    user:history:user_1:{...}        derived_key       -> user:history:user_1:*
    user:related:user_1:{...}        derived_key       -> user:related:user_1:*
    user:all:{"limit":100,...}       derive_cache_key  (query keys, TTL-bound)
"""

import json

import typing as t


def stable_serialize(params: t.Mapping[str, t.Any] | None = None) -> str:
    """Serialize ``params`` so that key order does not matter."""
    return json.dumps(
        params or {},
        sort_keys=True,
        separators=(",", ":"),
        default=str,
        ensure_ascii=False,
    )


def derive_cache_key(
    resource: str,
    operation: str,
    params: t.Mapping[str, t.Any] | None = None,
) -> str:
    return f"{resource}:{operation}:{stable_serialize(params)}"


def entity_key(resource: str, entity_id: t.Any) -> str:
    return f"{resource}:{entity_id}"


def scoped_key(resource: str, tag: str, entity_id: t.Any) -> str:
    return f"{resource}:{tag}:{entity_id}"


def derived_key(
    resource: str,
    tag: str,
    entity_id: t.Any,
    params: t.Mapping[str, t.Any] | None = None,
) -> str:
    return f"{resource}:{tag}:{entity_id}:{stable_serialize(params)}"


def invalidation_patterns(resource: str, entity_id: t.Any) -> list[str]:
    return [
        entity_key(resource, entity_id),
        f"{resource}:*:{entity_id}",
        f"{resource}:related:{entity_id}:*",
        f"{resource}:history:{entity_id}:*",
    ]


def resource_pattern(resource: str) -> str:
    return f"{resource}:*"
