"""Scripted CommandRunner for exercising parsers and caches without git."""

import threading

from typing import Optional, Sequence, Union

from .errors import GitCommandError
from .git.runner import CommandRunner

Response = Union[str, Exception]


class ScriptedRunner(CommandRunner):
    """Answers git invocations from a table keyed by argument prefix.

    The longest matching prefix wins. Unmatched commands fail like git
    would. Every call is recorded in ``calls``.
    """

    def __init__(
        self,
        responses: Optional[dict[tuple[str, ...], Response]] = None,
        repo_path: str = "/scripted/repo",
    ) -> None:
        self.repo_path = repo_path
        self.responses: dict[tuple[str, ...], Response] = dict(responses or {})
        self.calls: list[tuple[str, ...]] = []
        self._lock = threading.Lock()

    def respond(self, prefix: Sequence[str], response: Response) -> None:
        self.responses[tuple(prefix)] = response

    def count(self, *prefix: str) -> int:
        """Number of recorded calls starting with the given arguments."""
        with self._lock:
            return sum(1 for call in self.calls if call[: len(prefix)] == prefix)

    def run(
        self,
        args: Sequence[str],
        timeout: Optional[float] = None,
        strip: bool = True,
    ) -> str:
        call = tuple(args)
        with self._lock:
            self.calls.append(call)

        best: Optional[tuple[str, ...]] = None
        for prefix in self.responses:
            if call[: len(prefix)] == prefix and (best is None or len(prefix) > len(best)):
                best = prefix

        if best is None:
            raise GitCommandError(args, "fatal: unscripted command", 128)

        response = self.responses[best]
        if isinstance(response, Exception):
            raise response
        return response.rstrip() if strip else response
