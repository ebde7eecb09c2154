"""ConfigSource abstract interface."""

from abc import ABC, abstractmethod
from pathlib import Path

from confcache.models import ConfigHandle, ConfigType


class ConfigSource(ABC):
    """Abstract interface for reading and parsing config files.

    Implementations return None when the file does not exist and raise
    ConfigParseError when it exists but is malformed. Handles they return
    must record the file's mtime in `last_changed`.
    """

    @abstractmethod
    def parse(self, path: Path, config_type: ConfigType) -> ConfigHandle | None:
        """Parse the config file at path."""
        pass
