"""Cached config loading.

CachedConfigLoader sits in front of a ConfigSource. It keeps parsed,
environment-resolved handles in a cache backend and only re-checks source
files for changes while running in a development environment; other
environments pay no filesystem cost after the first load.

Concurrent misses for one key may both parse and save. The last save
wins.
"""

import os
from collections.abc import Callable
from pathlib import Path, PurePath

from confcache.backends.base import CacheBackend
from confcache.config.models.cache import CacheConfig
from confcache.environment import EnvironmentResolver
from confcache.exceptions import ConfigContractError
from confcache.keys import cache_key_for, resolve_app_root
from confcache.models import ConfigHandle, ConfigType, Environment
from confcache.observability.logging import get_logger
from confcache.observability.metrics import (
    CONFIG_CACHE_HITS,
    CONFIG_CACHE_MISSES,
    CONFIG_REPARSES,
)
from confcache.sources.base import ConfigSource

logger = get_logger(__name__)


def file_mtime(path: Path) -> float:
    """Get a file's modification time.

    os.stat always hits the filesystem; there is no stat cache to clear.
    """
    return os.stat(path).st_mtime


class CachedConfigLoader:
    """Loads config handles through a cache backend.

    A loader without a backend parses on every call and is otherwise
    indistinguishable from one with a backend.
    """

    def __init__(
        self,
        source: ConfigSource,
        resolver: EnvironmentResolver,
        backend: CacheBackend | None = None,
        config: CacheConfig | None = None,
        app_root: str | PurePath | None = None,
        stat: Callable[[Path], float] = file_mtime,
    ) -> None:
        """Initialize the loader.

        Args:
            source: Parser for config files
            resolver: Environment detection
            backend: Cache storage, None to parse on every call
            config: Cache tunables (uses defaults if not provided)
            app_root: Root that cache keys are made relative to (defaults to cwd)
            stat: Modification-time probe used for staleness checks
        """
        self._source = source
        self._resolver = resolver
        self._backend = backend
        self._config = config or CacheConfig()
        self._app_root = resolve_app_root(app_root)
        self._stat = stat

    # =========================================================================
    # TUNABLES
    # =========================================================================

    @property
    def backend(self) -> CacheBackend | None:
        return self._backend

    @property
    def config(self) -> CacheConfig:
        return self._config

    @property
    def ttl(self) -> float | None:
        """Cache TTL for config handles in seconds, None means unlimited."""
        return self._config.ttl

    @ttl.setter
    def ttl(self, value: float | None) -> None:
        self._update(ttl=value)

    @property
    def negative_ttl(self) -> float | None:
        """Cache TTL for 'source not found' results in seconds."""
        return self._config.negative_ttl

    @negative_ttl.setter
    def negative_ttl(self, value: float | None) -> None:
        self._update(negative_ttl=value)

    @property
    def tags(self) -> list[str]:
        """Tags attached to every cached handle, ['config'] by default."""
        return list(self._config.tags)

    @tags.setter
    def tags(self, value: list[str] | str) -> None:
        if isinstance(value, str):
            value = [value]
        self._update(tags=list(value))

    @property
    def environment_groups(self) -> dict[str, list[str]]:
        """Environment name -> other environments kept resolved in its cache entry."""
        return {name: list(members) for name, members in self._config.environment_groups.items()}

    @environment_groups.setter
    def environment_groups(self, value: dict[str, list[str]] | None) -> None:
        self._update(environment_groups={k: list(v) for k, v in (value or {}).items()})

    def _update(self, **changes: object) -> None:
        # Re-validate so setters get the same checks as construction
        self._config = CacheConfig.model_validate(
            {**self._config.model_dump(), **changes}
        )

    # =========================================================================
    # LOADING
    # =========================================================================

    def cache_key(self, path: str | PurePath) -> str:
        return cache_key_for(path, self._app_root)

    def current_environment(self) -> Environment:
        return self._resolver.current_environment()

    def load_config(
        self,
        path: str | PurePath,
        config_type: ConfigType = ConfigType.COMMON,
    ) -> ConfigHandle | None:
        """Get the current parsed config for a source.

        Args:
            path: Config file path, absolute or relative to the app root
            config_type: Kind of config being loaded

        Returns:
            Parsed handle with its environment sections resolved, or None
            if the source does not exist

        Raises:
            ConfigParseError: If the source is malformed (never cached)
            ConfigContractError: If the source returns something that is
                not a ConfigHandle
        """
        path = Path(path)
        if not path.is_absolute():
            path = self._app_root / path

        if self._backend is None:
            CONFIG_REPARSES.labels(reason="no_backend").inc()
            config = self._source.parse(path, config_type)
            if config is not None:
                self._check_contract(config)
                self._resolve(config, config_type)
            return config

        key = self.cache_key(path)
        entry = self._backend.load(key)

        if entry is None:
            CONFIG_CACHE_MISSES.labels(config_type=config_type.value).inc()
            logger.debug("config_cache_miss", key=key, path=str(path))
            return self._reparse(path, config_type, key, reason="miss")

        CONFIG_CACHE_HITS.labels(config_type=config_type.value).inc()
        cached = entry.value

        if cached is None:
            return self._recheck_missing(path, config_type, key)

        environment = self._environment_for(cached, config_type)
        if not environment.is_development:
            return cached

        try:
            modified = self._stat(path)
        except OSError as e:
            # Unknown state counts as stale
            logger.warning("config_stat_failed", key=key, path=str(path), error=str(e))
            return self._reparse(path, config_type, key, reason="stat_error")

        if modified > cached.last_changed:
            logger.info(
                "config_stale_reparse",
                key=key,
                path=str(path),
                cached_mtime=cached.last_changed,
                source_mtime=modified,
            )
            return self._reparse(path, config_type, key, reason="stale")

        return cached

    def _reparse(
        self,
        path: Path,
        config_type: ConfigType,
        key: str,
        reason: str,
    ) -> ConfigHandle | None:
        CONFIG_REPARSES.labels(reason=reason).inc()
        config = self._source.parse(path, config_type)
        if config is not None:
            self._check_contract(config)
            self._resolve(config, config_type)
        self._cache_config(key, config)
        return config

    def _resolve(self, config: ConfigHandle, config_type: ConfigType) -> None:
        environment = self._environment_for(config, config_type)
        self.precompute_environment_data(config, environment.name)

    def _recheck_missing(
        self, path: Path, config_type: ConfigType, key: str
    ) -> ConfigHandle | None:
        if not self._resolver.current_environment().is_development:
            return None

        try:
            self._stat(path)
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("config_stat_failed", key=key, path=str(path), error=str(e))
            return self._reparse(path, config_type, key, reason="stat_error")

        logger.info("config_source_appeared", key=key, path=str(path))
        return self._reparse(path, config_type, key, reason="appeared")

    def _environment_for(
        self, config: ConfigHandle, config_type: ConfigType
    ) -> Environment:
        # System and environment configs hold the detection rules, so they
        # detect; every other config reuses what was detected from them
        if config_type.detects_environment:
            return self._resolver.detect_environment(config)
        return self._resolver.current_environment()

    def precompute_environment_data(
        self, config: ConfigHandle, environment_name: str | None
    ) -> None:
        """Resolve the environment's data and that of its group members.

        Runs before the handle is cached so every section a group member
        may read is already resolved in the stored copy.
        """
        if environment_name is None:
            return

        names = [environment_name, *self._config.environment_groups.get(environment_name, [])]
        for name in dict.fromkeys(names):
            config.get_data(name)

    def _cache_config(self, key: str, config: ConfigHandle | None) -> bool:
        ttl = self._config.ttl if config is not None else self._config.negative_ttl
        saved = self._backend.save(key, config, ttl, self._config.tags)
        if config is None:
            logger.debug("config_negative_cached", key=key, ttl=ttl)
        elif not saved:
            logger.warning("config_cache_save_failed", key=key)
        return saved

    def _check_contract(self, config: object) -> None:
        if config is not None and not isinstance(config, ConfigHandle):
            raise ConfigContractError(
                f"[{type(self).__name__}] Config to cache must be a ConfigHandle, "
                f"got {type(config).__name__}"
            )

    # =========================================================================
    # INVALIDATION
    # =========================================================================

    def invalidate(self, path: str | PurePath) -> bool:
        """Drop the cached handle for one source."""
        if self._backend is None:
            return False
        return self._backend.delete(self.cache_key(path))

    def invalidate_tags(self, tags: list[str] | None = None) -> int:
        """Drop every cached handle carrying any of the tags.

        Defaults to the configured tags, which clears every config this
        loader cached.
        """
        if self._backend is None:
            return 0
        return self._backend.invalidate_tags(tags if tags is not None else self._config.tags)
