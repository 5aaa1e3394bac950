"""Exceptions raised by the repository data access layer."""

from typing import Optional, Sequence


class GitError(Exception):
    """Base class for failures talking to git."""


class GitCommandError(GitError):
    """git exited non-zero or could not be started."""

    def __init__(
        self,
        args: Sequence[str],
        output: str = "",
        returncode: Optional[int] = None,
    ) -> None:
        self.command = list(args)
        self.output = output
        self.returncode = returncode
        message = f"git command failed: git {' '.join(self.command)}"
        if returncode is not None:
            message += f" (exit code {returncode})"
        if output:
            message += f", output: {output.strip()}"
        super().__init__(message)


class GitTimeoutError(GitError):
    """git did not finish within its allotted time and was killed."""

    def __init__(self, args: Sequence[str], timeout: float) -> None:
        self.command = list(args)
        self.timeout = timeout
        super().__init__(
            f"git command timed out after {timeout:g}s: git {' '.join(self.command)}"
        )


class NotFoundError(GitError):
    """A commit, stash, tag or file lookup had no match."""


class RecordParseError(ValueError):
    """A single line of git output did not match its expected layout."""
