"""Default configuration for gait-dashboard."""

from .schema import DashboardConfig


def get_default_config() -> DashboardConfig:
    """Generate the default dashboard configuration."""
    return DashboardConfig(
        version=1,
        git_binary="git",
        cache_ttl_seconds=30.0,
        command_timeout_seconds=5.0,
        log_timeout_seconds=10.0,
        default_commit_limit=50,
        discovery_max_depth=3,
        repositories=[],
    )
