"""confcache: staleness-aware cache for parsed configuration files.

Parsed, environment-resolved config handles are kept in a cache backend.
Development environments re-check source files for changes on every load;
other environments never touch the filesystem after the first load.
"""

from confcache.models import CacheEntry, ConfigHandle, ConfigType, Environment
from confcache.orchestrator import CachedConfigLoader

__version__ = "0.1.0"
__all__ = [
    "CacheEntry",
    "CachedConfigLoader",
    "ConfigHandle",
    "ConfigType",
    "Environment",
    "__version__",
]
