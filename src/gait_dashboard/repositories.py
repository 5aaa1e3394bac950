"""Multi-repository mode: one handle, and one cache, per repository path."""

from __future__ import annotations

import os
import threading

from pathlib import Path
from typing import Optional, Union

from .config.defaults import get_default_config
from .config.schema import DashboardConfig
from .git.repository import Repository
from .types import RepositoryInfo
from .utils.debug import debug_log


def discover_repositories(root: Union[str, Path], max_depth: int = 3) -> list[RepositoryInfo]:
    """Find directories containing a ``.git`` entry below root.

    Discovery does not descend into a repository once found, nor deeper than
    max_depth directories below root.
    """
    root_path = Path(root).resolve()
    found: list[RepositoryInfo] = []

    for dirpath, dirnames, filenames in os.walk(root_path):
        current = Path(dirpath)
        depth = len(current.relative_to(root_path).parts)
        if ".git" in dirnames or ".git" in filenames:
            found.append(RepositoryInfo(name=current.name, path=str(current)))
            dirnames[:] = []
            continue
        if depth >= max_depth:
            dirnames[:] = []
            continue
        dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))

    return found


class RepositoryRegistry:
    """Known repositories and the currently selected one.

    Handles are created lazily and kept per path so repositories never share
    or cross-invalidate cached metadata.
    """

    def __init__(self, config: Optional[DashboardConfig] = None) -> None:
        self.config = config or get_default_config()
        self._lock = threading.Lock()
        self._handles: dict[str, Repository] = {}
        self._paths: list[str] = []
        self._current: Optional[str] = None
        for path in self.config.repositories:
            try:
                self.add(path)
            except ValueError as e:
                debug_log(f"Skipping configured repository: {e}")

    @staticmethod
    def _key(path: Union[str, Path]) -> str:
        return str(Path(path).expanduser().resolve())

    def add(self, path: Union[str, Path]) -> RepositoryInfo:
        """Register a repository path.

        Raises:
            ValueError: If the path is not a git working tree
        """
        key = self._key(path)
        if not (Path(key) / ".git").exists():
            raise ValueError(f"not a git repository: {key}")
        with self._lock:
            if key not in self._paths:
                self._paths.append(key)
                debug_log("Registered repository", key)
            if self._current is None:
                self._current = key
        return self._info(key)

    def remove(self, path: Union[str, Path]) -> None:
        key = self._key(path)
        with self._lock:
            if key in self._paths:
                self._paths.remove(key)
            self._handles.pop(key, None)
            if self._current == key:
                self._current = self._paths[0] if self._paths else None

    def switch(self, path: Union[str, Path]) -> Repository:
        """Select a registered repository and return its handle.

        Raises:
            KeyError: If the path was never registered
        """
        key = self._key(path)
        with self._lock:
            if key not in self._paths:
                raise KeyError(f"unknown repository: {key}")
            self._current = key
        return self.get(key)

    def get(self, path: Union[str, Path]) -> Repository:
        key = self._key(path)
        with self._lock:
            handle = self._handles.get(key)
            if handle is None:
                handle = Repository(key, config=self.config)
                self._handles[key] = handle
            return handle

    def current(self) -> Optional[Repository]:
        """Handle for the selected repository, or None when none is selected."""
        with self._lock:
            key = self._current
        return self.get(key) if key is not None else None

    def list(self) -> list[RepositoryInfo]:
        with self._lock:
            return [self._info(key) for key in self._paths]

    def discover(self, root: Union[str, Path], max_depth: Optional[int] = None) -> list[RepositoryInfo]:
        """Register every repository found below root."""
        depth = self.config.discovery_max_depth if max_depth is None else max_depth
        found = discover_repositories(root, depth)
        for info in found:
            self.add(info.path)
        return self.list()

    def _info(self, key: str) -> RepositoryInfo:
        return RepositoryInfo(name=Path(key).name, path=key, current=key == self._current)
