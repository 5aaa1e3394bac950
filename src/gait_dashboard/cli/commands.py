"""CLI commands for gait-dashboard."""

import json
import shutil
import subprocess
import sys

from pathlib import Path
from typing import Any, Optional

from ..aggregate import AggregationFacade
from ..config.loader import get_config_path, load_config, load_config_file
from ..errors import GitError
from ..git.repository import Repository
from ..repositories import RepositoryRegistry


def _emit(data: Any) -> int:
    print(json.dumps(data, indent=2))
    return 0


def _fail(message: str) -> int:
    print(f"✗ {message}", file=sys.stderr)
    return 1


def open_repository(path: Optional[str]) -> Repository:
    return Repository(Path(path or ".").resolve(), config=load_config())


def cmd_snapshot(repo_path: Optional[str], limit: Optional[int] = None) -> int:
    """Print commits, branches, tags, stashes, remotes and working tree changes."""
    repository = open_repository(repo_path)
    try:
        snapshot = AggregationFacade(repository).snapshot(limit)
    except GitError as e:
        return _fail(str(e))
    return _emit(snapshot.to_dict())


def cmd_log(
    repo_path: Optional[str],
    limit: int = 0,
    offset: int = 0,
    branch: str = "",
    all_refs: bool = False,
) -> int:
    repository = open_repository(repo_path)
    limit = limit or repository.config.default_commit_limit
    commits = repository.list_commits(limit, offset, branch, all_refs)
    return _emit([c.to_dict() for c in commits])


def cmd_show(repo_path: Optional[str], commit_hash: str) -> int:
    try:
        commit = open_repository(repo_path).get_commit_details(commit_hash)
    except GitError as e:
        return _fail(str(e))
    return _emit(commit.to_dict())


def cmd_diff(repo_path: Optional[str], revision: str, path: str) -> int:
    try:
        file_diff = open_repository(repo_path).get_file_diff(revision, path)
    except GitError as e:
        return _fail(str(e))
    return _emit(file_diff.to_dict())


def cmd_list(repo_path: Optional[str], category: str) -> int:
    """Print one metadata listing: branches, tags, remotes, stashes or status."""
    repository = open_repository(repo_path)
    readers = {
        "branches": repository.list_branches,
        "tags": repository.list_tags,
        "remotes": repository.list_remotes,
        "stashes": repository.list_stashes,
        "status": repository.list_uncommitted_changes,
    }
    return _emit([item.to_dict() for item in readers[category]()])


def cmd_repos(discover_root: Optional[str] = None) -> int:
    registry = RepositoryRegistry(load_config())
    if discover_root:
        registry.discover(discover_root)
    return _emit([info.to_dict() for info in registry.list()])


def cmd_doctor(repo_path: Optional[str]) -> int:
    """Verify that git, the repository and the config file are usable.

    Returns:
        Exit code (0 if healthy, 1 if issues found)
    """
    from .. import __version__

    print(f"gait-dashboard v{__version__}")
    print("\nChecking installation...\n")

    issues = 0

    config_path = get_config_path()
    print(f"[1/3] Checking config file at {config_path}")

    git_binary = "git"
    if not config_path.exists():
        print("      ⓘ Config file not found (will use defaults)")
    else:
        try:
            git_binary = load_config_file().git_binary
            print("      ✓ Config file is valid")
        except Exception as e:
            print(f"      ✗ Config file has errors: {e}")
            issues += 1

    print(f"\n[2/3] Checking git binary '{git_binary}'")

    if shutil.which(git_binary) is None:
        print(f"      ✗ {git_binary} not found on PATH")
        issues += 1
    else:
        try:
            result = subprocess.run(
                [git_binary, "--version"],
                capture_output=True,
                text=True,
                timeout=5,
            )
            print(f"      ✓ {result.stdout.strip()}")
        except (subprocess.TimeoutExpired, OSError) as e:
            print(f"      ✗ Could not run {git_binary}: {e}")
            issues += 1

    target = Path(repo_path or ".").resolve()
    print(f"\n[3/3] Checking repository at {target}")

    try:
        config = load_config()
        Repository(target, config=config).runner.run(
            ["rev-parse", "--git-dir"], timeout=config.command_timeout_seconds
        )
        print("      ✓ Repository is readable")
    except GitError as e:
        print(f"      ⚠ Not a readable repository: {e}")
        print("      → Pass --repo PATH to point at a working tree")
        issues += 1

    print("\n" + "=" * 50)

    if issues == 0:
        print("✓ All checks passed!")
        return 0

    print(f"⚠ Found {issues} issue(s)")
    return 1
