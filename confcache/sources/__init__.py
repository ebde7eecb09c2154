"""Config sources that parse files into config handles."""

from confcache.sources.base import ConfigSource
from confcache.sources.toml import TomlConfigSource

__all__ = [
    "ConfigSource",
    "TomlConfigSource",
]
