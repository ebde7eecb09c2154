"""Environment detection configuration models."""

from pydantic import BaseModel, Field


class EnvironmentConfig(BaseModel):
    """How the active environment is chosen and classified."""

    name: str | None = Field(
        default=None,
        description="Force this environment name, skipping detection",
    )
    default: str = Field(
        default="production",
        description="Environment used when no detection rule matches",
    )
    development_names: list[str] = Field(
        default_factory=lambda: ["development"],
        description="Environments that re-check source files for changes",
    )
