"""Paginated commit history."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..errors import GitCommandError, GitError, NotFoundError, RecordParseError
from ..types import Author, Commit
from ..utils.debug import debug_log
from .refs import RefResolver
from .runner import CommandRunner

FIELD_DELIMITER = "|"
LOG_FORMAT = "%H|%h|%s|%an|%ae|%ad|%cd|%P"
LOG_FIELD_COUNT = 8
GIT_ISO_DATE_FORMAT = "%Y-%m-%d %H:%M:%S %z"
DEFAULT_LOG_TIMEOUT = 10.0  # seconds

# stderr fragments git prints when a revision does not resolve
NOT_FOUND_MARKERS = ("unknown revision", "bad revision", "bad object")


def parse_git_date(value: str) -> Optional[datetime]:
    """Parse a ``--date=iso`` timestamp, returning None when malformed."""
    try:
        return datetime.strptime(value.strip(), GIT_ISO_DATE_FORMAT)
    except ValueError:
        return None


def parse_log_line(line: str) -> Commit:
    """Parse one line produced by LOG_FORMAT.

    Raises:
        RecordParseError: If the line does not have exactly eight fields
    """
    parts = line.split(FIELD_DELIMITER)
    if len(parts) != LOG_FIELD_COUNT:
        raise RecordParseError(
            f"expected {LOG_FIELD_COUNT} fields, got {len(parts)}: {line!r}"
        )

    full_hash, short_hash, subject, name, email, authored, committed, parents = parts
    author = Author(name=name, email=email)

    return Commit(
        hash=full_hash,
        short_hash=short_hash,
        message=subject,
        author=author,
        committer=Author(name=name, email=email),
        date=parse_git_date(authored),
        commit_date=parse_git_date(committed),
        parents=parents.split() if parents.strip() else [],
    )


def parse_log_output(output: str) -> list[Commit]:
    """Parse log output, skipping blank and malformed lines."""
    commits = []
    for line in output.split("\n"):
        if not line:
            continue
        try:
            commits.append(parse_log_line(line))
        except RecordParseError:
            continue
    return commits


def build_log_args(
    limit: int = 0,
    offset: int = 0,
    branch: str = "",
    all_refs: bool = False,
) -> list[str]:
    """Build the log invocation for one page of history."""
    args = ["log", f"--pretty=format:{LOG_FORMAT}", "--date=iso"]
    if offset > 0:
        args.append(f"--skip={offset}")
    if limit > 0:
        args.append(f"-{limit}")
    if all_refs:
        args.append("--all")
    elif branch:
        args.append(branch)
    return args


class HistoryReader:
    """Reads commit history newest-first, one page at a time."""

    def __init__(
        self,
        runner: CommandRunner,
        resolver: Optional[RefResolver] = None,
        timeout: float = DEFAULT_LOG_TIMEOUT,
    ) -> None:
        self.runner = runner
        self.resolver = resolver if resolver is not None else RefResolver(runner)
        self.timeout = timeout

    def list(
        self,
        limit: int = 0,
        offset: int = 0,
        branch: str = "",
        all_refs: bool = False,
    ) -> list[Commit]:
        """Return one page of commits in the order git emits them.

        When all_refs is set the branch argument is ignored. A failing or
        timed out log command yields an empty list.
        """
        return self._read(build_log_args(limit, offset, branch, all_refs))

    def list_for_tag(self, tag: str, limit: int = 0, offset: int = 0) -> list[Commit]:
        """Return one page of the commits reachable from a tag."""
        return self._read(build_log_args(limit, offset, branch=tag))

    def get(self, revision: str) -> Commit:
        """Return a single commit with its decoration refs.

        Raises:
            GitError: If git fails
            NotFoundError: If the output cannot be parsed as a commit
        """
        try:
            output = self.runner.run(
                ["log", f"--pretty=format:{LOG_FORMAT}", "--date=iso", "-1", revision],
                timeout=self.timeout,
            )
        except GitCommandError as e:
            if any(marker in e.output for marker in NOT_FOUND_MARKERS):
                raise NotFoundError(f"commit not found: {revision}") from e
            raise
        first_line = output.split("\n", 1)[0] if output else ""
        try:
            commit = parse_log_line(first_line)
        except RecordParseError as e:
            raise NotFoundError(f"commit not found: {revision}") from e
        commit.refs = self.resolver.resolve(commit.hash)
        return commit

    def _read(self, args: list[str]) -> list[Commit]:
        try:
            output = self.runner.run(args, timeout=self.timeout)
        except GitError as e:
            debug_log(f"History unavailable, returning no commits: {e}", self.runner.repo_path)
            return []

        commits = parse_log_output(output)
        for commit in commits:
            commit.refs = self.resolver.resolve(commit.hash)
        return commits
