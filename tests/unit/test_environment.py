"""Unit tests for environment resolution."""

import pytest

from confcache.config.models.environment import EnvironmentConfig
from confcache.environment import DetectingEnvironmentResolver
from confcache.exceptions import ConfigContractError
from confcache.models import ConfigHandle, ConfigType

DETECTION = {
    "development": {"hosts": ["dev-box", "127.0.0.1"]},
    "staging": {"variables": {"DEPLOY_TARGET": "staging", "REGION": "eu"}},
}


def system_handle(detection: dict | None = None) -> ConfigHandle:
    return ConfigHandle(
        path="/app/system.toml",
        last_changed=1.0,
        config_type=ConfigType.SYSTEM,
        detection=DETECTION if detection is None else detection,
    )


def make_resolver(**kwargs) -> DetectingEnvironmentResolver:
    kwargs.setdefault("hostname", "prod-box")
    kwargs.setdefault("environ", {})
    kwargs.setdefault("resolve_addresses", False)
    return DetectingEnvironmentResolver(**kwargs)


class TestDetectFromSystemConfig:
    """Tests for rule matching."""

    def test_matches_host(self) -> None:
        """A rule listing the host name matches."""
        resolver = make_resolver(hostname="dev-box")
        assert resolver.detect_from_system_config(DETECTION) == "development"

    def test_matches_all_variables(self) -> None:
        """A rule matches when every variable equals the environment."""
        resolver = make_resolver(environ={"DEPLOY_TARGET": "staging", "REGION": "eu"})
        assert resolver.detect_from_system_config(DETECTION) == "staging"

    def test_partial_variables_do_not_match(self) -> None:
        """One mismatching variable fails the rule."""
        resolver = make_resolver(environ={"DEPLOY_TARGET": "staging", "REGION": "us"})
        assert resolver.detect_from_system_config(DETECTION) is None

    def test_first_matching_rule_wins(self) -> None:
        """Rules are tried in order."""
        resolver = make_resolver(
            hostname="dev-box",
            environ={"DEPLOY_TARGET": "staging", "REGION": "eu"},
        )
        assert resolver.detect_from_system_config(DETECTION) == "development"

    def test_non_table_rules_ignored(self) -> None:
        """Malformed rules never match."""
        resolver = make_resolver()
        assert resolver.detect_from_system_config({"development": "dev-box"}) is None


class TestDetectEnvironment:
    """Tests for detect_environment and current_environment."""

    def test_default_before_detection(self) -> None:
        """Before detection the default environment is reported as undetected."""
        env = make_resolver().current_environment()
        assert env.name == "production"
        assert env.detected is False
        assert env.is_development is False

    def test_detects_from_config(self) -> None:
        """Detection data picks the environment."""
        env = make_resolver(hostname="dev-box").detect_environment(system_handle())
        assert env.name == "development"
        assert env.detected is True
        assert env.is_development is True

    def test_falls_back_to_default(self) -> None:
        """No matching rule yields the configured default."""
        resolver = make_resolver(config=EnvironmentConfig(default="qa"))
        assert resolver.detect_environment(system_handle()).name == "qa"

    def test_detects_once(self) -> None:
        """Later system configs do not re-detect unless forced."""
        resolver = make_resolver(hostname="dev-box")
        resolver.detect_environment(system_handle())

        other = system_handle({"staging": {"hosts": ["dev-box"]}})
        assert resolver.detect_environment(other).name == "development"
        assert resolver.detect_environment(other, force=True).name == "staging"

    def test_forced_name_skips_detection(self) -> None:
        """A configured name wins over detection rules."""
        resolver = make_resolver(
            hostname="dev-box",
            config=EnvironmentConfig(name="production"),
        )
        assert resolver.current_environment().detected is True
        assert resolver.detect_environment(system_handle(), force=True).name == "production"

    def test_none_config_returns_current(self) -> None:
        """Without a config the current environment is returned unchanged."""
        resolver = make_resolver()
        assert resolver.detect_environment(None).detected is False

    def test_rejects_non_handle(self) -> None:
        """Non-handle configs are a contract violation."""
        with pytest.raises(ConfigContractError):
            make_resolver().detect_environment({"detection": {}})

    def test_custom_development_names(self) -> None:
        """Development-like names are configurable."""
        resolver = make_resolver(
            config=EnvironmentConfig(name="local", development_names=["local", "development"])
        )
        assert resolver.current_environment().is_development is True
