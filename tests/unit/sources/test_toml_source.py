"""Unit tests for the TOML config source."""

import os
from pathlib import Path

import pytest

from confcache.exceptions import ConfigParseError
from confcache.models import COMMON_SECTION, ConfigType
from confcache.sources.toml import TomlConfigSource


@pytest.fixture
def toml_source() -> TomlConfigSource:
    return TomlConfigSource()


class TestParse:
    """Tests for TomlConfigSource.parse."""

    def test_missing_file_returns_none(self, toml_source, tmp_path: Path) -> None:
        """A missing file is not an error."""
        assert toml_source.parse(tmp_path / "missing.toml", ConfigType.COMMON) is None

    def test_splits_sections(self, toml_source, tmp_path: Path) -> None:
        """Common data, environment overrides and detection rules are separated."""
        path = tmp_path / "system.toml"
        path.write_text(
            'name = "app"\n'
            "[db]\n"
            'host = "localhost"\n'
            "[environments.production.db]\n"
            'host = "db.internal"\n'
            "[detection.development]\n"
            'hosts = ["dev-box"]\n'
        )

        handle = toml_source.parse(path, ConfigType.SYSTEM)

        assert handle.sections == {
            COMMON_SECTION: {"name": "app", "db": {"host": "localhost"}},
            "production": {"db": {"host": "db.internal"}},
        }
        assert handle.detection == {"development": {"hosts": ["dev-box"]}}
        assert handle.config_type is ConfigType.SYSTEM
        assert handle.path == str(path)

    def test_records_mtime(self, toml_source, tmp_path: Path) -> None:
        """last_changed is the file's mtime."""
        path = tmp_path / "config.toml"
        path.write_text("x = 1")
        os.utime(path, (1_000_000, 1_000_000))

        handle = toml_source.parse(path, ConfigType.COMMON)

        assert handle.last_changed == 1_000_000

    def test_invalid_toml_raises(self, toml_source, tmp_path: Path) -> None:
        """Invalid syntax raises ConfigParseError chained from tomllib."""
        path = tmp_path / "broken.toml"
        path.write_text("invalid = [unclosed")

        with pytest.raises(ConfigParseError) as exc_info:
            toml_source.parse(path, ConfigType.COMMON)

        assert exc_info.value.path == str(path)
        assert exc_info.value.__cause__ is not None

    def test_environment_must_be_table(self, toml_source, tmp_path: Path) -> None:
        """Environment overrides must be tables."""
        path = tmp_path / "config.toml"
        path.write_text('[environments]\nproduction = "nope"\n')

        with pytest.raises(ConfigParseError):
            toml_source.parse(path, ConfigType.COMMON)

    def test_common_is_reserved(self, toml_source, tmp_path: Path) -> None:
        """'common' cannot be used as an environment name."""
        path = tmp_path / "config.toml"
        path.write_text("[environments.common]\nx = 1\n")

        with pytest.raises(ConfigParseError):
            toml_source.parse(path, ConfigType.COMMON)

    def test_detection_must_be_table(self, toml_source, tmp_path: Path) -> None:
        """Detection rules must be a table."""
        path = tmp_path / "config.toml"
        path.write_text('detection = "dev"\n')

        with pytest.raises(ConfigParseError):
            toml_source.parse(path, ConfigType.SYSTEM)
