"""Shared test fixtures for the confcache test suite."""

import os
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from confcache.backends.inmemory import InMemoryCacheBackend
from confcache.config.models.cache import CacheConfig
from confcache.config.models.environment import EnvironmentConfig
from confcache.environment import DetectingEnvironmentResolver
from confcache.models import ConfigHandle, ConfigType
from confcache.orchestrator import CachedConfigLoader, file_mtime
from confcache.sources.base import ConfigSource
from confcache.sources.toml import TomlConfigSource


class CountingSource(ConfigSource):
    """Wraps a source and counts parse calls."""

    def __init__(self, inner: ConfigSource | None = None) -> None:
        self.inner = inner or TomlConfigSource()
        self.calls: list[Path] = []

    def parse(self, path: Path, config_type: ConfigType) -> ConfigHandle | None:
        self.calls.append(Path(path))
        return self.inner.parse(path, config_type)

    @property
    def count(self) -> int:
        return len(self.calls)


class CountingStat:
    """Wraps file_mtime and counts calls."""

    def __init__(self) -> None:
        self.calls: list[Path] = []

    def __call__(self, path: Path) -> float:
        self.calls.append(Path(path))
        return file_mtime(path)

    @property
    def count(self) -> int:
        return len(self.calls)


@pytest.fixture
def bump_mtime() -> Callable[[Path], None]:
    """Push a file's mtime forward so coarse filesystem clocks still see a change."""

    def _bump(path: Path, seconds: float = 10.0) -> None:
        current = os.stat(path)
        os.utime(path, (current.st_atime + seconds, current.st_mtime + seconds))

    return _bump


@pytest.fixture
def app_root(tmp_path: Path) -> Path:
    """Create a temporary application root."""
    root = tmp_path / "app"
    root.mkdir()
    return root


@pytest.fixture
def write_config(app_root: Path) -> Callable[[str, str], Path]:
    """Factory fixture to write TOML files under the app root.

    Usage:
        def test_something(write_config):
            path = write_config("config.toml", "name = 'x'")
    """

    def _write(relative: str, content: str) -> Path:
        path = app_root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path

    return _write


@pytest.fixture
def source() -> CountingSource:
    return CountingSource()


@pytest.fixture
def stat() -> CountingStat:
    return CountingStat()


@pytest.fixture
def backend() -> InMemoryCacheBackend:
    return InMemoryCacheBackend()


@pytest.fixture
def make_loader(
    source: CountingSource,
    stat: CountingStat,
    backend: InMemoryCacheBackend,
    app_root: Path,
) -> Callable[..., CachedConfigLoader]:
    """Factory fixture for loaders sharing the counting source, stat and backend.

    Usage:
        loader = make_loader(environment="production")
    """

    def _make(
        environment: str | None = "production",
        config: CacheConfig | None = None,
        use_backend: bool = True,
    ) -> CachedConfigLoader:
        resolver = DetectingEnvironmentResolver(
            EnvironmentConfig(name=environment),
            resolve_addresses=False,
        )
        return CachedConfigLoader(
            source=source,
            resolver=resolver,
            backend=backend if use_backend else None,
            config=config,
            app_root=app_root,
            stat=stat,
        )

    return _make


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Clear the settings and loader caches before and after each test."""
    from confcache.bootstrap import reset_config_loader
    from confcache.config import get_settings

    get_settings.cache_clear()
    reset_config_loader()
    yield
    get_settings.cache_clear()
    reset_config_loader()
