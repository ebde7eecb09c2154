"""Cache layer configuration models."""

from typing import Literal

from pydantic import BaseModel, Field, field_validator

BackendType = Literal["none", "inmemory", "redis"]

DEFAULT_TAGS = ["config"]


class CacheConfig(BaseModel):
    """Tunables shared by every load_config call of one loader.

    Expected to be set once at startup, before concurrent loads begin.
    """

    backend: BackendType = Field(
        default="inmemory",
        description="Cache backend type ('none' parses on every call)",
    )
    ttl: float | None = Field(
        default=None,
        gt=0,
        description="TTL for cached configs in seconds, None means unlimited",
    )
    negative_ttl: float | None = Field(
        default=60.0,
        gt=0,
        description="TTL for cached 'source not found' results in seconds",
    )
    tags: list[str] = Field(
        default_factory=lambda: list(DEFAULT_TAGS),
        description="Tags attached to every cached config for bulk invalidation",
    )
    environment_groups: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Environment name -> other environments to pre-resolve with it",
    )
    redis_url: str | None = Field(
        default=None,
        description="Redis connection URL (from env var)",
    )
    key_prefix: str = Field(
        default="config",
        description="Key prefix for Redis keys",
    )
    socket_timeout: float = Field(
        default=2.0,
        gt=0,
        description="Redis socket timeout in seconds",
    )
    fallback_on_error: bool = Field(
        default=True,
        description="Treat backend errors as misses instead of raising",
    )

    @field_validator("tags")
    @classmethod
    def _dedupe_tags(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(value))

    @field_validator("environment_groups")
    @classmethod
    def _dedupe_groups(cls, value: dict[str, list[str]]) -> dict[str, list[str]]:
        return {name: list(dict.fromkeys(members)) for name, members in value.items()}
