"""Prometheus metrics for the config cache."""

from prometheus_client import Counter, Histogram

CONFIG_CACHE_HITS = Counter(
    "confcache_cache_hits_total",
    "Config loads answered from the cache",
    labelnames=["config_type"],
)

CONFIG_CACHE_MISSES = Counter(
    "confcache_cache_misses_total",
    "Config loads that found no cache entry",
    labelnames=["config_type"],
)

# reason: miss, stale, stat_error, appeared, no_backend
CONFIG_REPARSES = Counter(
    "confcache_reparses_total",
    "Source parses triggered by the cache layer",
    labelnames=["reason"],
)

CONFIG_CACHE_ERRORS = Counter(
    "confcache_backend_errors_total",
    "Cache backend operation failures",
    labelnames=["backend", "operation"],
)

CONFIG_PARSE_LATENCY = Histogram(
    "confcache_parse_latency_seconds",
    "Time spent parsing config sources",
    buckets=(0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
)


def setup_metrics() -> None:
    """Hook for startup; prometheus_client registers metrics on definition."""
    pass
