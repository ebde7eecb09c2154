"""Cache backend construction from settings."""

import redis

from confcache.backends.base import CacheBackend
from confcache.backends.inmemory import InMemoryCacheBackend
from confcache.backends.redis import RedisCacheBackend
from confcache.config.models.cache import CacheConfig
from confcache.observability.logging import get_logger

logger = get_logger(__name__)


def build_cache_backend(config: CacheConfig) -> CacheBackend | None:
    """Create the configured cache backend.

    Returns None when caching is disabled or Redis is unreachable, which
    makes the loader parse sources on every call.

    Args:
        config: Cache configuration

    Returns:
        Ready backend, or None for direct parsing
    """
    if config.backend == "none":
        logger.info("config_cache_disabled")
        return None

    if config.backend == "inmemory":
        return InMemoryCacheBackend()

    if not config.redis_url:
        logger.error("config_cache_redis_url_missing")
        return None

    try:
        client = redis.Redis.from_url(
            config.redis_url,
            socket_timeout=config.socket_timeout,
            socket_connect_timeout=config.socket_timeout,
        )
        client.ping()
    except redis.RedisError as e:
        logger.error(
            "config_cache_redis_unavailable",
            redis_url=config.redis_url.split("@")[-1],  # Log without credentials
            error=str(e),
        )
        return None

    logger.info("config_cache_redis_connected", redis_url=config.redis_url.split("@")[-1])
    return RedisCacheBackend(client, config)
