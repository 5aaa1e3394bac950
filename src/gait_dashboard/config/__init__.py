"""Configuration loading for gait-dashboard."""

from .defaults import get_default_config
from .loader import clear_config_cache, load_config, load_config_file, save_config
from .schema import DashboardConfig

__all__ = [
    "DashboardConfig",
    "clear_config_cache",
    "get_default_config",
    "load_config",
    "load_config_file",
    "save_config",
]
