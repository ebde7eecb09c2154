"""Cache backends for parsed config handles."""

from confcache.backends.base import CacheBackend
from confcache.backends.factory import build_cache_backend
from confcache.backends.inmemory import InMemoryCacheBackend
from confcache.backends.redis import RedisCacheBackend

__all__ = [
    "CacheBackend",
    "InMemoryCacheBackend",
    "RedisCacheBackend",
    "build_cache_backend",
]
