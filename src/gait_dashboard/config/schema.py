"""Configuration schema using Pydantic for validation."""

from pydantic import BaseModel, Field, field_validator


class DashboardConfig(BaseModel):
    """Settings shared by every repository handle."""

    version: int = 1
    git_binary: str = "git"
    cache_ttl_seconds: float = 30.0
    command_timeout_seconds: float = 5.0
    log_timeout_seconds: float = 10.0
    default_commit_limit: int = 50
    discovery_max_depth: int = 3
    repositories: list[str] = Field(default_factory=list)

    model_config = {"extra": "forbid"}

    @field_validator(
        "cache_ttl_seconds", "command_timeout_seconds", "log_timeout_seconds"
    )
    @classmethod
    def _positive_duration(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("durations must be positive")
        return value

    @field_validator("default_commit_limit", "discovery_max_depth")
    @classmethod
    def _non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("must not be negative")
        return value
