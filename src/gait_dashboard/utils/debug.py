"""Debug logging utilities."""

import os
import re
import sys
import time


def _log_key(repo_path: str) -> str:
    """Turn a repository path into a safe log file suffix."""
    if not repo_path:
        return "global"
    name = os.path.basename(os.path.normpath(repo_path)) or "root"
    return re.sub(r"[^A-Za-z0-9._-]", "_", name)


def get_logs_dir() -> str:
    """Directory for debug logs, overridable with GAIT_DASHBOARD_LOG_DIR."""
    override = os.getenv("GAIT_DASHBOARD_LOG_DIR")
    if override:
        return override
    return os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "logs")


def debug_log(message: str, repo_path: str = "") -> None:
    """Log debug messages to per-repository log files if debug mode is enabled.

    Args:
        message: Debug message to log
        repo_path: Optional repository the message concerns
    """
    if not os.getenv("GAIT_DASHBOARD_DEBUG"):
        return

    logs_dir = get_logs_dir()
    log_file = os.path.join(logs_dir, f"gait_debug_{_log_key(repo_path)}.log")
    timestamp = time.strftime("%Y-%m-%d %H:%M:%S")

    repo_prefix = f"[{repo_path}] " if repo_path else ""
    log_message = f"[{timestamp}] {repo_prefix}{message}\n"

    try:
        os.makedirs(logs_dir, exist_ok=True)
        with open(log_file, "a", encoding="utf-8") as f:
            f.write(log_message)
    except OSError:
        print(
            f"DEBUG (couldn't write to {log_file}): {repo_prefix}{message}",
            file=sys.stderr,
        )
