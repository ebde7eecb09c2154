"""Unit tests for loader bootstrap."""

from pathlib import Path

import pytest

from confcache.backends.inmemory import InMemoryCacheBackend
from confcache.bootstrap import bootstrap, get_config_loader, reset_config_loader
from confcache.config.models.cache import CacheConfig
from confcache.config.models.environment import EnvironmentConfig
from confcache.config.settings import Settings, set_toml_config
from confcache.models import ConfigType


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    monkeypatch.setenv("CONFCACHE_CONFIG_DIR", str(config_dir))
    set_toml_config({})


class TestBootstrap:
    """Tests for bootstrap function."""

    def test_builds_loader_from_settings(self, app_root: Path) -> None:
        """Backend, tunables and app root come from settings."""
        settings = Settings(
            app_root=app_root,
            cache=CacheConfig(ttl=45, environment_groups={"staging": ["production"]}),
            environment=EnvironmentConfig(name="staging"),
        )

        loader = bootstrap(settings)

        assert isinstance(loader.backend, InMemoryCacheBackend)
        assert loader.ttl == 45
        assert loader.environment_groups == {"staging": ["production"]}
        assert loader.current_environment().name == "staging"
        assert loader.cache_key(app_root / "config.toml") == "config.toml"

    def test_disabled_cache(self) -> None:
        """backend='none' gives a loader that parses every call."""
        loader = bootstrap(Settings(cache=CacheConfig(backend="none")))
        assert loader.backend is None

    def test_loads_end_to_end(self, app_root: Path) -> None:
        """A bootstrapped loader reads and caches a TOML system config."""
        path = app_root / "system.toml"
        path.write_text(
            "[db]\nhost = 'localhost'\n"
            "[environments.production.db]\nhost = 'db.internal'\n"
        )
        loader = bootstrap(Settings(app_root=app_root))

        handle = loader.load_config(path, ConfigType.SYSTEM)

        assert handle.get_data(loader.current_environment().name)["db"]["host"] == "db.internal"
        assert loader.backend.load("system.toml") is not None


class TestGetConfigLoader:
    """Tests for the process-wide loader."""

    def test_same_instance(self) -> None:
        """Repeated calls share one loader until reset."""
        first = get_config_loader()
        assert get_config_loader() is first

        reset_config_loader()
        assert get_config_loader() is not first

    def test_uses_env_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """The process-wide loader reads CONFCACHE_* settings."""
        monkeypatch.setenv("CONFCACHE_CACHE__BACKEND", "none")
        assert get_config_loader().backend is None
