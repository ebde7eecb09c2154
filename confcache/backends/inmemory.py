"""In-memory cache backend."""

import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from confcache.backends.base import CacheBackend
from confcache.models import CacheEntry, ConfigHandle
from confcache.observability.logging import get_logger

logger = get_logger(__name__)


@dataclass
class _StoredEntry:
    entry: CacheEntry
    expires_at: float | None


class InMemoryCacheBackend(CacheBackend):
    """Process-local cache backend.

    Stores handle copies so callers mutating a returned handle cannot
    change what the next load sees. Expired entries are dropped lazily
    on access.
    """

    name = "inmemory"

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        """Initialize the backend.

        Args:
            clock: Monotonic time source, injectable for tests
        """
        self._clock = clock
        self._entries: dict[str, _StoredEntry] = {}
        self._lock = threading.Lock()

    def load(self, key: str) -> CacheEntry | None:
        with self._lock:
            stored = self._entries.get(key)
            if stored is None:
                return None
            if stored.expires_at is not None and self._clock() >= stored.expires_at:
                del self._entries[key]
                logger.debug("inmemory_cache_expired", key=key)
                return None
            entry = stored.entry

        return CacheEntry(
            key=entry.key,
            value=_copy(entry.value),
            ttl=entry.ttl,
            tags=entry.tags,
        )

    def save(
        self,
        key: str,
        value: ConfigHandle | None,
        ttl: float | None = None,
        tags: Iterable[str] = (),
    ) -> bool:
        entry = CacheEntry(key=key, value=_copy(value), ttl=ttl, tags=tuple(tags))
        expires_at = self._clock() + ttl if ttl is not None else None
        with self._lock:
            self._entries[key] = _StoredEntry(entry=entry, expires_at=expires_at)
        return True

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def invalidate_tags(self, tags: Iterable[str]) -> int:
        wanted = set(tags)
        with self._lock:
            doomed = [
                key
                for key, stored in self._entries.items()
                if wanted.intersection(stored.entry.tags)
            ]
            for key in doomed:
                del self._entries[key]
        logger.debug("inmemory_cache_tags_invalidated", tags=sorted(wanted), count=len(doomed))
        return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def _copy(value: ConfigHandle | None) -> ConfigHandle | None:
    return value.model_copy(deep=True) if value is not None else None
