"""Bootstrap a CachedConfigLoader from settings.

Example usage:

    from confcache.bootstrap import get_config_loader
    from confcache.models import ConfigType

    loader = get_config_loader()
    system = loader.load_config("/srv/app/config/system.toml", ConfigType.SYSTEM)
    db = system.get_data(loader.current_environment().name)["db"]

The process-wide loader is created on first use. Call get_config_loader()
once during startup, before request threads start, so every thread shares
the same instance.
"""

from functools import lru_cache

from confcache.backends.factory import build_cache_backend
from confcache.config import get_settings
from confcache.config.settings import Settings
from confcache.environment import DetectingEnvironmentResolver
from confcache.observability.logging import get_logger, setup_logging
from confcache.observability.metrics import setup_metrics
from confcache.orchestrator import CachedConfigLoader
from confcache.sources.toml import TomlConfigSource

logger = get_logger(__name__)


def bootstrap(settings: Settings | None = None) -> CachedConfigLoader:
    """Create a loader with the configured backend, resolver and TOML source.

    Args:
        settings: Settings to use (defaults to get_settings())

    Returns:
        Ready CachedConfigLoader
    """
    settings = settings or get_settings()

    logging_config = settings.observability.logging
    setup_logging(
        level=logging_config.level,
        format=logging_config.format,
        redact_secrets=logging_config.redact_secrets,
    )
    if settings.observability.metrics.enabled:
        setup_metrics()

    loader = CachedConfigLoader(
        source=TomlConfigSource(),
        resolver=DetectingEnvironmentResolver(settings.environment),
        backend=build_cache_backend(settings.cache),
        config=settings.cache,
        app_root=settings.app_root,
    )
    logger.info(
        "config_loader_ready",
        app_name=settings.app_name,
        backend=loader.backend.name if loader.backend else "none",
        ttl=loader.ttl,
        tags=loader.tags,
    )
    return loader


@lru_cache(maxsize=1)
def get_config_loader() -> CachedConfigLoader:
    """Get the process-wide loader, creating it from settings on first use."""
    return bootstrap()


def reset_config_loader() -> None:
    """Forget the process-wide loader so the next call rebuilds it."""
    get_config_loader.cache_clear()
