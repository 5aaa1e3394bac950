"""Line-level diff reconstruction and per-file change status."""

import re

from pathlib import Path
from typing import Callable, Optional

from ..errors import GitCommandError, GitError, NotFoundError
from ..types import DiffHunk, DiffLine, FileChange, FileDiff
from ..utils.debug import debug_log
from .runner import CommandRunner

UNCOMMITTED = "uncommitted"
EMPTY_TREE_HASH = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"

HUNK_HEADER_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@(.*)$")
RENAME_BRACES_RE = re.compile(r"\{([^{}]*) => ([^{}]*)\}")

CONTEXT = "context"
ADDITION = "addition"
DELETION = "deletion"


def parse_hunk_header(line: str) -> Optional[tuple[int, int, int, int]]:
    """Parse ``@@ -a,b +c,d @@`` into (old_start, old_lines, new_start, new_lines).

    A length omitted from the header defaults to 1, as in unified diff.
    """
    match = HUNK_HEADER_RE.match(line)
    if not match:
        return None
    old_start, old_lines, new_start, new_lines, _ = match.groups()
    return (
        int(old_start),
        int(old_lines) if old_lines else 1,
        int(new_start),
        int(new_lines) if new_lines else 1,
    )


def _apply_preamble(file_diff: FileDiff, line: str) -> None:
    """Record what a preamble line says about the file's status."""
    if line.startswith("new file mode"):
        file_diff.status = "A"
    elif line.startswith("deleted file mode"):
        file_diff.status = "D"
    elif line.startswith("rename from "):
        file_diff.status = "R"
        file_diff.old_path = line[len("rename from ") :]
    elif line.startswith("copy from "):
        file_diff.status = "C"
        file_diff.old_path = line[len("copy from ") :]


def parse_unified_diff(text: str, path: str) -> FileDiff:
    """Parse unified diff text into hunks with old/new line numbers.

    A hunk stays open until its declared old and new lengths are consumed or
    the next header arrives; anything outside an open hunk is preamble and is
    never classified.
    """
    file_diff = FileDiff(path=path)

    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()

    hunk: Optional[DiffHunk] = None
    old_num = new_num = 0
    old_left = new_left = 0

    for line in lines:
        if line.startswith("@@"):
            parsed = parse_hunk_header(line)
            if parsed is None:
                continue
            if hunk is not None:
                file_diff.hunks.append(hunk)
            old_start, old_lines, new_start, new_lines = parsed
            hunk = DiffHunk(old_start, old_lines, new_start, new_lines, header=line)
            old_num, new_num = old_start, new_start
            old_left, new_left = old_lines, new_lines
            continue

        if hunk is None or (old_left <= 0 and new_left <= 0):
            if hunk is not None:
                file_diff.hunks.append(hunk)
                hunk = None
            _apply_preamble(file_diff, line)
            continue

        if line.startswith("-"):
            hunk.lines.append(DiffLine(DELETION, line[1:], old_num=old_num))
            old_num += 1
            old_left -= 1
            file_diff.deletions += 1
        elif line.startswith("+"):
            hunk.lines.append(DiffLine(ADDITION, line[1:], new_num=new_num))
            new_num += 1
            new_left -= 1
            file_diff.additions += 1
        elif line.startswith(" ") or line == "":
            hunk.lines.append(
                DiffLine(CONTEXT, line[1:], old_num=old_num, new_num=new_num)
            )
            old_num += 1
            new_num += 1
            old_left -= 1
            new_left -= 1
        # "\ No newline at end of file" and anything else is not a diff line

    if hunk is not None:
        file_diff.hunks.append(hunk)

    return file_diff


def synthesize_untracked_diff(path: str, content: list[str]) -> str:
    """Build diff text presenting a whole untracked file as additions."""
    header = [
        f"diff --git a/{path} b/{path}",
        "new file mode 100644",
        "--- /dev/null",
        f"+++ b/{path}",
        f"@@ -0,0 +{1 if content else 0},{len(content)} @@",
    ]
    return "\n".join(header + [f"+{line}" for line in content]) + "\n"


def resolve_rename_path(path: str) -> str:
    """Return the destination of a numstat rename path.

    Handles both ``old => new`` and ``dir/{old => new}/file``.
    """
    if "{" in path and " => " in path:
        resolved = RENAME_BRACES_RE.sub(lambda m: m.group(2), path)
        return resolved.replace("//", "/")
    if " => " in path:
        return path.split(" => ", 1)[1]
    return path


def _parse_count(value: str) -> int:
    if value == "-":
        return 0
    try:
        return int(value)
    except ValueError:
        return 0


def parse_numstat(output: str) -> list[FileChange]:
    """Parse ``--numstat`` output; a ``-`` count (binary file) reads as 0."""
    changes = []
    for line in output.split("\n"):
        if not line.strip():
            continue
        parts = line.split("\t", 2) if "\t" in line else line.split(None, 2)
        if len(parts) < 3:
            continue
        additions, deletions, path = parts
        changes.append(
            FileChange(
                path=resolve_rename_path(path.strip()),
                status="M",
                additions=_parse_count(additions.strip()),
                deletions=_parse_count(deletions.strip()),
            )
        )
    return changes


def parse_name_status(output: str) -> list[FileChange]:
    """Parse ``--name-status`` output into changes carrying git's own codes."""
    changes = []
    for line in output.split("\n"):
        if not line.strip():
            continue
        parts = line.split("\t") if "\t" in line else line.split()
        if len(parts) < 2:
            continue
        code = parts[0].strip()
        status = code[:1].upper()
        if status in ("R", "C") and len(parts) >= 3:
            changes.append(FileChange(path=parts[2], status=status, old_path=parts[1]))
        else:
            changes.append(FileChange(path=parts[1], status=status))
    return changes


def infer_status(
    additions: int,
    deletions: int,
    exists_in_parent: Callable[[], bool],
    exists_in_current: Callable[[], bool],
) -> str:
    """Guess a change status from line counts by probing tree membership.

    Only used for paths git's own name-status did not report.
    """
    if deletions == 0 and not exists_in_parent():
        return "A"
    if additions == 0 and not exists_in_current():
        return "D"
    return "M"


def split_content(text: str) -> list[str]:
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


class DiffReconstructor:
    """Builds FileDiff models and file change lists for a repository."""

    def __init__(self, runner: CommandRunner, timeout: Optional[float] = None) -> None:
        self.runner = runner
        self.timeout = timeout

    def parents(self, revision: str) -> list[str]:
        """Return the parent hashes of a commit, empty for a root commit."""
        output = self.runner.run(
            ["rev-list", "--parents", "-n", "1", revision], timeout=self.timeout
        )
        return output.split()[1:]

    def base_of(self, revision: str) -> str:
        """First parent of a commit, or the empty tree for a root commit."""
        parents = self.parents(revision)
        return parents[0] if parents else EMPTY_TREE_HASH

    def diff(self, revision: str, path: str) -> FileDiff:
        """Return the diff of one file in a commit or in the working tree.

        Raises:
            GitError: If the diff command fails
        """
        if revision == UNCOMMITTED:
            text = self.runner.run(
                ["diff", "HEAD", "--", path], timeout=self.timeout, strip=False
            )
            if not text.strip() and self.is_untracked(path):
                content = self._side(UNCOMMITTED, path)
                debug_log(f"Synthesizing diff for untracked {path}", self.runner.repo_path)
                text = synthesize_untracked_diff(path, content)
            old_revision = "HEAD"
        else:
            base = self.base_of(revision)
            text = self.runner.run(
                ["diff", base, revision, "--", path], timeout=self.timeout, strip=False
            )
            old_revision = "" if base == EMPTY_TREE_HASH else base

        file_diff = parse_unified_diff(text, path)
        file_diff.new_content = self._side(revision, path)
        file_diff.old_content = (
            self._side(old_revision, file_diff.old_path or path) if old_revision else []
        )
        return file_diff

    def is_untracked(self, path: str) -> bool:
        try:
            output = self.runner.run(
                ["status", "--porcelain", "--", path], timeout=self.timeout
            )
        except GitError:
            return False
        return output.strip().startswith("??")

    def file_content(self, revision: str, path: str) -> list[str]:
        """Return a file's lines at a revision or in the working tree.

        Raises:
            NotFoundError: If the file does not exist on that side
            GitTimeoutError: If git does not answer in time
        """
        if revision == UNCOMMITTED:
            full_path = Path(self.runner.repo_path) / path
            try:
                text = full_path.read_text(encoding="utf-8", errors="replace")
            except OSError as e:
                raise NotFoundError(f"{path} not found in working tree") from e
            return split_content(text)

        try:
            text = self.runner.run(
                ["show", f"{revision}:{path}"], timeout=self.timeout, strip=False
            )
        except GitCommandError as e:
            raise NotFoundError(f"{path} not found at {revision}") from e
        return split_content(text)

    def _side(self, revision: str, path: str) -> list[str]:
        try:
            return self.file_content(revision, path)
        except GitError:
            return []

    def exists(self, revision: str, path: str) -> bool:
        try:
            self.runner.run(["cat-file", "-e", f"{revision}:{path}"], timeout=self.timeout)
        except GitError:
            return False
        return True

    def file_changes(self, revision: str) -> list[FileChange]:
        """Return the changed files of a commit with status and line counts.

        git's name-status codes decide the status; numstat only supplies the
        counts. Paths missing from name-status fall back to infer_status.
        """
        try:
            numstat = parse_numstat(
                self.runner.run(
                    ["show", "--numstat", "-M", "--format=", revision],
                    timeout=self.timeout,
                )
            )
        except GitError:
            numstat = []
        try:
            name_status = parse_name_status(
                self.runner.run(
                    ["show", "--name-status", "-M", "--format=", revision],
                    timeout=self.timeout,
                )
            )
        except GitError:
            name_status = []

        counts = {change.path: change for change in numstat}
        changes = []
        for change in name_status:
            sized = counts.pop(change.path, None)
            if sized is not None:
                change.additions = sized.additions
                change.deletions = sized.deletions
            changes.append(change)

        for change in counts.values():
            change.status = infer_status(
                change.additions,
                change.deletions,
                lambda p=change.path: self.exists(f"{revision}^", p),
                lambda p=change.path: self.exists(revision, p),
            )
            changes.append(change)

        return changes
