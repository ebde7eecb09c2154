"""Configuration model exports.

    from confcache.config.models import CacheConfig, EnvironmentConfig
"""

from confcache.config.models.cache import BackendType, CacheConfig
from confcache.config.models.environment import EnvironmentConfig
from confcache.config.models.observability import (
    LoggingConfig,
    MetricsConfig,
    ObservabilityConfig,
)

__all__ = [
    "BackendType",
    "CacheConfig",
    "EnvironmentConfig",
    "LoggingConfig",
    "MetricsConfig",
    "ObservabilityConfig",
]
