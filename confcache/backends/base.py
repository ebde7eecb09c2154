"""CacheBackend abstract interface."""

from abc import ABC, abstractmethod
from collections.abc import Iterable

from confcache.models import CacheEntry, ConfigHandle


class CacheBackend(ABC):
    """Abstract interface for config cache storage.

    Backends store whole config handles. A None value is a valid,
    cacheable negative result and must round-trip as a CacheEntry whose
    value is None, distinct from a miss.
    """

    name: str = "abstract"

    @abstractmethod
    def load(self, key: str) -> CacheEntry | None:
        """Get the entry for a key, or None on miss."""
        pass

    @abstractmethod
    def save(
        self,
        key: str,
        value: ConfigHandle | None,
        ttl: float | None = None,
        tags: Iterable[str] = (),
    ) -> bool:
        """Store a handle (or a negative result) under a key."""
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove one entry, returning whether it existed."""
        pass

    @abstractmethod
    def invalidate_tags(self, tags: Iterable[str]) -> int:
        """Remove every entry carrying any of the tags, returning the count."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove every entry."""
        pass
