"""CLI commands for gait-dashboard."""

from .commands import (
    cmd_diff,
    cmd_doctor,
    cmd_list,
    cmd_log,
    cmd_repos,
    cmd_show,
    cmd_snapshot,
)

__all__ = [
    "cmd_diff",
    "cmd_doctor",
    "cmd_list",
    "cmd_log",
    "cmd_repos",
    "cmd_show",
    "cmd_snapshot",
]
