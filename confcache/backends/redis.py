"""Redis cache backend.

Key format:
    {prefix}:entry:{key}  - JSON {"value": <handle or null>, "ttl": ..., "tags": [...]}
    {prefix}:tag:{tag}    - set of entry keys carrying the tag

Tag sets are not expired with their entries; invalidate_tags tolerates
members whose entry is already gone.

TOML date, datetime and time values are written as
{"__confcache_type__": "date", "value": "<iso>"} and restored on load, so
a cached handle carries the same value types as a fresh parse.
"""

import json
from collections.abc import Iterable
from datetime import date, datetime, time
from typing import Any

import redis
from pydantic import ValidationError

from confcache.backends.base import CacheBackend
from confcache.config.models.cache import CacheConfig
from confcache.exceptions import CacheBackendError
from confcache.models import CacheEntry, ConfigHandle
from confcache.observability.logging import get_logger
from confcache.observability.metrics import CONFIG_CACHE_ERRORS

logger = get_logger(__name__)

TYPE_MARKER = "__confcache_type__"

# datetime subclasses date, so it is checked first
_TEMPORAL_TYPES: tuple[tuple[str, type], ...] = (
    ("datetime", datetime),
    ("date", date),
    ("time", time),
)


def json_serializer(obj: Any) -> dict[str, str]:
    """Serialize values json does not handle natively.

    Raises:
        TypeError: If the object type is not supported
    """
    for name, kind in _TEMPORAL_TYPES:
        if isinstance(obj, kind):
            return {TYPE_MARKER: name, "value": obj.isoformat()}
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def json_object_hook(obj: dict[str, Any]) -> Any:
    """Restore values written by json_serializer."""
    if obj.keys() != {TYPE_MARKER, "value"}:
        return obj
    for name, kind in _TEMPORAL_TYPES:
        if obj[TYPE_MARKER] == name:
            return kind.fromisoformat(obj["value"])
    raise ValueError(f"Unknown serialized type: {obj[TYPE_MARKER]}")


class RedisCacheBackend(CacheBackend):
    """Cache backend storing handles as JSON in Redis.

    Redis errors are logged and treated as misses (or failed saves) when
    `fallback_on_error` is set, so a Redis outage only costs reparses.
    """

    name = "redis"

    def __init__(
        self,
        redis_client: redis.Redis,
        config: CacheConfig | None = None,
    ) -> None:
        """Initialize the backend.

        Args:
            redis_client: Redis client instance
            config: Cache configuration (uses defaults if not provided)
        """
        self._redis = redis_client
        self._config = config or CacheConfig()
        self._prefix = self._config.key_prefix

    def _entry_key(self, key: str) -> str:
        return f"{self._prefix}:entry:{key}"

    def _tag_key(self, tag: str) -> str:
        return f"{self._prefix}:tag:{tag}"

    def load(self, key: str) -> CacheEntry | None:
        try:
            raw = self._redis.get(self._entry_key(key))
        except redis.RedisError as e:
            self._handle_error("load", key, e)
            return None

        if raw is None:
            return None

        try:
            payload = json.loads(raw, object_hook=json_object_hook)
            value = payload["value"]
            handle = ConfigHandle.model_validate(value) if value is not None else None
            return CacheEntry(
                key=key,
                value=handle,
                ttl=payload.get("ttl"),
                tags=tuple(payload.get("tags", ())),
            )
        except (ValueError, KeyError, TypeError, ValidationError) as e:
            # Unreadable entries are misses; the next save overwrites them
            logger.warning("redis_cache_corrupted_entry", key=key, error=str(e))
            return None

    def save(
        self,
        key: str,
        value: ConfigHandle | None,
        ttl: float | None = None,
        tags: Iterable[str] = (),
    ) -> bool:
        tags = tuple(tags)
        entry_key = self._entry_key(key)
        payload = json.dumps(
            {
                "value": value.model_dump() if value is not None else None,
                "ttl": ttl,
                "tags": list(tags),
            },
            default=json_serializer,
        )

        try:
            pipe = self._redis.pipeline()
            if ttl is not None:
                pipe.set(entry_key, payload, px=max(1, int(ttl * 1000)))
            else:
                pipe.set(entry_key, payload)
            for tag in tags:
                pipe.sadd(self._tag_key(tag), key)
            pipe.execute()
        except redis.RedisError as e:
            self._handle_error("save", key, e)
            return False

        logger.debug("redis_cache_set", key=key, ttl=ttl, negative=value is None)
        return True

    def delete(self, key: str) -> bool:
        try:
            return bool(self._redis.delete(self._entry_key(key)))
        except redis.RedisError as e:
            self._handle_error("delete", key, e)
            return False

    def invalidate_tags(self, tags: Iterable[str]) -> int:
        tag_keys = [self._tag_key(tag) for tag in tags]
        if not tag_keys:
            return 0

        try:
            members = self._redis.sunion(tag_keys)
            entry_keys = [
                self._entry_key(m.decode() if isinstance(m, bytes) else m)
                for m in members
            ]
            removed = self._redis.delete(*entry_keys) if entry_keys else 0
            self._redis.delete(*tag_keys)
        except redis.RedisError as e:
            self._handle_error("invalidate_tags", ",".join(tag_keys), e)
            return 0

        logger.info("redis_cache_tags_invalidated", tags=tag_keys, count=removed)
        return int(removed)

    def clear(self) -> None:
        try:
            keys = list(self._redis.scan_iter(match=f"{self._prefix}:*"))
            if keys:
                self._redis.delete(*keys)
        except redis.RedisError as e:
            self._handle_error("clear", self._prefix, e)

    def _handle_error(self, operation: str, key: str, error: redis.RedisError) -> None:
        CONFIG_CACHE_ERRORS.labels(backend=self.name, operation=operation).inc()
        logger.warning(
            f"redis_cache_{operation}_error",
            key=key,
            error=str(error),
        )
        if not self._config.fallback_on_error:
            raise CacheBackendError(
                f"Redis {operation} failed for {key}: {error}", operation=operation
            ) from error
