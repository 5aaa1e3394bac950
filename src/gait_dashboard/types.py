"""Data types for the repository data access layer."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass
class Author:
    """Name and email of a commit author, committer or tagger."""

    name: str = ""
    email: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "email": self.email}


@dataclass
class CommitStats:
    """Aggregate line statistics for a commit."""

    files_changed: int = 0
    additions: int = 0
    deletions: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "filesChanged": self.files_changed,
            "additions": self.additions,
            "deletions": self.deletions,
        }


@dataclass
class FileChange:
    """A single changed path in a commit, stash or working tree."""

    path: str
    status: str = "M"
    additions: int = 0
    deletions: int = 0
    old_path: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "path": self.path,
            "status": self.status,
            "additions": self.additions,
            "deletions": self.deletions,
        }
        if self.old_path:
            data["oldPath"] = self.old_path
        return data


@dataclass
class Commit:
    """A commit as reported by the log command.

    Parents are plain hash strings; there is no in-memory commit graph.
    Dates are None when git emitted a timestamp that could not be parsed.
    """

    hash: str
    short_hash: str = ""
    message: str = ""
    author: Author = field(default_factory=Author)
    committer: Author = field(default_factory=Author)
    date: Optional[datetime] = None
    commit_date: Optional[datetime] = None
    parents: list[str] = field(default_factory=list)
    refs: list[str] = field(default_factory=list)
    stats: CommitStats = field(default_factory=CommitStats)
    file_changes: Optional[list[FileChange]] = None
    is_uncommitted: bool = False

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "hash": self.hash,
            "shortHash": self.short_hash,
            "message": self.message,
            "author": self.author.to_dict(),
            "committer": self.committer.to_dict(),
            "date": _iso(self.date),
            "commitDate": _iso(self.commit_date),
            "parents": list(self.parents),
            "refs": list(self.refs),
            "stats": self.stats.to_dict(),
        }
        if self.file_changes is not None:
            data["fileChanges"] = [c.to_dict() for c in self.file_changes]
        if self.is_uncommitted:
            data["isUncommitted"] = True
        return data


@dataclass
class Branch:
    """A branch pointer."""

    name: str
    hash: str
    is_remote: bool = False
    is_current: bool = False
    upstream: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "hash": self.hash,
            "isRemote": self.is_remote,
            "isCurrent": self.is_current,
        }
        if self.upstream:
            data["upstream"] = self.upstream
        return data


@dataclass
class Tag:
    """A lightweight or annotated tag."""

    name: str
    hash: str
    type: str = "lightweight"
    message: Optional[str] = None
    tagger: Optional[Author] = None
    date: Optional[datetime] = None
    target_hash: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "hash": self.hash, "type": self.type}
        if self.message:
            data["message"] = self.message
        if self.tagger is not None:
            data["tagger"] = self.tagger.to_dict()
        if self.date is not None:
            data["date"] = _iso(self.date)
        if self.target_hash:
            data["targetHash"] = self.target_hash
        return data


@dataclass
class Stash:
    """A stash entry.

    The index is positional: it is only meaningful until the next stash
    mutation, after which the stash list must be re-read.
    """

    index: int
    message: str = ""
    branch: str = ""
    hash: str = ""
    date: Optional[datetime] = None

    @property
    def ref(self) -> str:
        return f"stash@{{{self.index}}}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "ref": self.ref,
            "message": self.message,
            "branch": self.branch,
            "hash": self.hash,
            "date": _iso(self.date),
        }


@dataclass
class Remote:
    """A remote with its fetch and push URLs."""

    name: str
    fetch_url: str = ""
    push_url: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "fetchUrl": self.fetch_url, "pushUrl": self.push_url}


@dataclass
class DiffLine:
    """One classified line of a hunk.

    old_num is set for context and deletion lines, new_num for context and
    addition lines.
    """

    type: str
    content: str
    old_num: Optional[int] = None
    new_num: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type, "content": self.content}
        if self.old_num is not None:
            data["oldNum"] = self.old_num
        if self.new_num is not None:
            data["newNum"] = self.new_num
        return data


@dataclass
class DiffHunk:
    """A contiguous block of a diff sharing one range header."""

    old_start: int
    old_lines: int
    new_start: int
    new_lines: int
    header: str = ""
    lines: list[DiffLine] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "oldStart": self.old_start,
            "oldLines": self.old_lines,
            "newStart": self.new_start,
            "newLines": self.new_lines,
            "header": self.header,
            "lines": [line.to_dict() for line in self.lines],
        }


@dataclass
class FileDiff:
    """Parsed diff of a single file plus both full sides for split view."""

    path: str
    hunks: list[DiffHunk] = field(default_factory=list)
    old_content: list[str] = field(default_factory=list)
    new_content: list[str] = field(default_factory=list)
    status: str = "M"
    additions: int = 0
    deletions: int = 0
    old_path: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "path": self.path,
            "status": self.status,
            "additions": self.additions,
            "deletions": self.deletions,
            "hunks": [hunk.to_dict() for hunk in self.hunks],
            "oldContent": list(self.old_content),
            "newContent": list(self.new_content),
        }
        if self.old_path:
            data["oldPath"] = self.old_path
        return data


@dataclass
class RepositoryInfo:
    """A known repository in multi-repo mode."""

    name: str
    path: str
    current: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "path": self.path, "current": self.current}


@dataclass
class RepositorySnapshot:
    """Everything the dashboard shows for one repository, fetched together."""

    commits: list[Commit] = field(default_factory=list)
    branches: list[Branch] = field(default_factory=list)
    tags: list[Tag] = field(default_factory=list)
    stashes: list[Stash] = field(default_factory=list)
    remotes: list[Remote] = field(default_factory=list)
    uncommitted_changes: list[FileChange] = field(default_factory=list)
    limit: int = 0

    @classmethod
    def empty(cls) -> "RepositorySnapshot":
        return cls()

    @property
    def has_more(self) -> bool:
        """True when the commit page was full, so another page may exist."""
        return self.limit > 0 and len(self.commits) == self.limit

    @property
    def offset(self) -> int:
        return len(self.commits)

    def to_dict(self) -> dict[str, Any]:
        return {
            "commits": [c.to_dict() for c in self.commits],
            "branches": [b.to_dict() for b in self.branches],
            "tags": [t.to_dict() for t in self.tags],
            "stashes": [s.to_dict() for s in self.stashes],
            "remotes": [r.to_dict() for r in self.remotes],
            "uncommittedChanges": [c.to_dict() for c in self.uncommitted_changes],
            "hasMore": self.has_more,
            "offset": self.offset,
        }
