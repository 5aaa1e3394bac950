"""Git data access: command runner, cache, history, refs and diffs."""

from .cache import CacheCategory, MetadataCache
from .diff import EMPTY_TREE_HASH, UNCOMMITTED, DiffReconstructor
from .history import HistoryReader
from .refs import RefResolver
from .repository import Repository
from .runner import CommandRunner, SubprocessRunner

__all__ = [
    "CacheCategory",
    "CommandRunner",
    "DiffReconstructor",
    "EMPTY_TREE_HASH",
    "HistoryReader",
    "MetadataCache",
    "RefResolver",
    "Repository",
    "SubprocessRunner",
    "UNCOMMITTED",
]
