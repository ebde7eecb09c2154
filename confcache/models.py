"""Core data model: config types, parsed config handles, cache entries."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from confcache.config.loader import deep_merge

COMMON_SECTION = "common"


class ConfigType(str, Enum):
    """Kind of config file being loaded.

    System and environment configs carry the rules used to detect the
    active environment. Common configs only consume an environment that
    was detected elsewhere.
    """

    COMMON = "common"
    SYSTEM = "system"
    ENVIRONMENT = "environment"
    SYSTEM_ENVIRONMENT = "system_environment"

    @property
    def detects_environment(self) -> bool:
        return self is not ConfigType.COMMON


class Environment(BaseModel):
    """The active named runtime environment."""

    name: str | None = None
    is_development: bool = False
    detected: bool = False


class ConfigHandle(BaseModel):
    """A parsed config file.

    `sections` holds the raw data keyed by environment name, plus the
    `common` section shared by every environment. `resolved` memoizes
    the merged view per environment and is serialized with the handle, so
    sections resolved before caching stay resolved after a cache load.
    """

    path: str
    last_changed: float = Field(description="Source mtime at parse time")
    config_type: ConfigType = ConfigType.COMMON
    sections: dict[str, dict[str, Any]] = Field(default_factory=dict)
    detection: dict[str, Any] = Field(
        default_factory=dict,
        description="Environment detection rules carried by system configs",
    )
    resolved: dict[str, dict[str, Any]] = Field(default_factory=dict)

    def get_data(self, environment_name: str | None = None) -> dict[str, Any]:
        """Get config data merged for an environment.

        Args:
            environment_name: Environment to resolve, None for common data only

        Returns:
            Common data deep-merged with the environment's overrides
        """
        common = self.sections.get(COMMON_SECTION, {})
        if environment_name is None or environment_name == COMMON_SECTION:
            return common

        cached = self.resolved.get(environment_name)
        if cached is not None:
            return cached

        merged = deep_merge(common, self.sections.get(environment_name, {}))
        self.resolved[environment_name] = merged
        return merged

    def is_resolved(self, environment_name: str) -> bool:
        return environment_name in self.resolved

    def environment_detection_data(self) -> dict[str, Any]:
        return self.detection


@dataclass(frozen=True)
class CacheEntry:
    """A config handle as stored by a cache backend.

    A None value is a negative entry: the source did not exist when it
    was last parsed.
    """

    key: str
    value: ConfigHandle | None
    ttl: float | None = None
    tags: tuple[str, ...] = ()

    @property
    def is_negative(self) -> bool:
        return self.value is None
