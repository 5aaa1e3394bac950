"""Decoration refs (branch and tag names) attached to a commit."""

from typing import Optional

from ..errors import GitError
from .runner import CommandRunner


def parse_decorations(output: str) -> list[str]:
    """Split ``%D`` output such as ``HEAD -> main, tag: v1.0`` into refs."""
    return [ref.strip() for ref in output.split(", ") if ref.strip()]


class RefResolver:
    """Looks up the refs decorating a single commit."""

    def __init__(self, runner: CommandRunner, timeout: Optional[float] = None) -> None:
        self.runner = runner
        self.timeout = timeout

    def resolve(self, commit_hash: str) -> list[str]:
        """Return the decoration refs of a commit, or [] if git fails."""
        try:
            output = self.runner.run(
                ["log", "--decorate=short", "--format=%D", "-1", commit_hash],
                timeout=self.timeout,
            )
        except GitError:
            return []
        return parse_decorations(output)
