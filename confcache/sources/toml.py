"""TOML config source.

File layout:

    # common data, shared by every environment
    [db]
    host = "localhost"

    # per-environment overrides, deep-merged over the common data
    [environments.production.db]
    host = "db.internal"

    # environment detection rules (system configs)
    [detection.development]
    hosts = ["127.0.0.1", "dev-box"]
"""

import os
import tomllib
from pathlib import Path
from typing import Any

from confcache.config.loader import load_toml
from confcache.exceptions import ConfigParseError
from confcache.models import COMMON_SECTION, ConfigHandle, ConfigType
from confcache.observability.logging import get_logger
from confcache.observability.metrics import CONFIG_PARSE_LATENCY
from confcache.sources.base import ConfigSource

logger = get_logger(__name__)

ENVIRONMENTS_TABLE = "environments"
DETECTION_TABLE = "detection"


class TomlConfigSource(ConfigSource):
    """Reads config files with tomllib."""

    def parse(self, path: Path, config_type: ConfigType) -> ConfigHandle | None:
        """Parse a TOML config file.

        Args:
            path: Path to the TOML file
            config_type: Kind of config being loaded

        Returns:
            Parsed handle, or None if the file does not exist

        Raises:
            ConfigParseError: If the file is not valid TOML or has a bad layout
        """
        path = Path(path)
        try:
            last_changed = os.stat(path).st_mtime
        except FileNotFoundError:
            logger.debug("config_source_not_found", path=str(path))
            return None

        with CONFIG_PARSE_LATENCY.time():
            try:
                data = load_toml(path)
            except FileNotFoundError:
                # Removed between stat and open
                return None
            except tomllib.TOMLDecodeError as e:
                raise ConfigParseError(
                    f"Invalid TOML in config file {path}: {e}", path=str(path)
                ) from e

        handle = ConfigHandle(
            path=str(path),
            last_changed=last_changed,
            config_type=config_type,
            sections=self._split_sections(path, data),
            detection=self._table(path, data, DETECTION_TABLE),
        )
        logger.debug(
            "config_source_parsed",
            path=str(path),
            config_type=config_type.value,
            environments=sorted(name for name in handle.sections if name != COMMON_SECTION),
        )
        return handle

    def _split_sections(
        self, path: Path, data: dict[str, Any]
    ) -> dict[str, dict[str, Any]]:
        environments = self._table(path, data, ENVIRONMENTS_TABLE)
        sections: dict[str, dict[str, Any]] = {
            COMMON_SECTION: {
                key: value
                for key, value in data.items()
                if key not in (ENVIRONMENTS_TABLE, DETECTION_TABLE)
            }
        }
        for name, overrides in environments.items():
            if not isinstance(overrides, dict):
                raise ConfigParseError(
                    f"[{ENVIRONMENTS_TABLE}.{name}] in {path} must be a table",
                    path=str(path),
                )
            if name == COMMON_SECTION:
                raise ConfigParseError(
                    f"'{COMMON_SECTION}' is reserved and cannot be an environment name ({path})",
                    path=str(path),
                )
            sections[name] = overrides
        return sections

    def _table(self, path: Path, data: dict[str, Any], name: str) -> dict[str, Any]:
        table = data.get(name, {})
        if not isinstance(table, dict):
            raise ConfigParseError(f"'{name}' in {path} must be a table", path=str(path))
        return table
