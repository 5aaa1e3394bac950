"""Git command execution.

Every other component reaches git through a CommandRunner, so parsing and
caching can be exercised against scripted output instead of a real binary.
"""

import subprocess

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Sequence, Union

from ..errors import GitCommandError, GitTimeoutError
from ..utils.debug import debug_log


class CommandRunner(ABC):
    """Runs git sub-commands rooted at one repository."""

    repo_path: str = ""

    @abstractmethod
    def run(
        self,
        args: Sequence[str],
        timeout: Optional[float] = None,
        strip: bool = True,
    ) -> str:
        """Run git with the given arguments.

        Args:
            args: Git arguments, without the binary name
            timeout: Seconds before the process is killed, or None to wait
            strip: Trim trailing whitespace from the output

        Returns:
            Standard output of the command

        Raises:
            GitCommandError: If git exits non-zero or cannot be started
            GitTimeoutError: If git exceeds the timeout
        """


class SubprocessRunner(CommandRunner):
    """CommandRunner backed by a real git process."""

    def __init__(
        self,
        repo_path: Union[str, Path],
        git_binary: str = "git",
        default_timeout: Optional[float] = None,
    ) -> None:
        self.repo_path = str(repo_path)
        self.git_binary = git_binary
        self.default_timeout = default_timeout

    def run(
        self,
        args: Sequence[str],
        timeout: Optional[float] = None,
        strip: bool = True,
    ) -> str:
        effective_timeout = timeout if timeout is not None else self.default_timeout
        try:
            # subprocess.run kills the child before raising TimeoutExpired
            result = subprocess.run(
                [self.git_binary, *args],
                cwd=self.repo_path,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=effective_timeout,
            )
        except subprocess.TimeoutExpired as e:
            debug_log(f"Timed out after {effective_timeout}s: git {' '.join(args)}", self.repo_path)
            raise GitTimeoutError(args, effective_timeout or 0.0) from e
        except OSError as e:
            debug_log(f"Could not start git: {e}", self.repo_path)
            raise GitCommandError(args, str(e)) from e

        if result.returncode != 0:
            output = (result.stderr or "") + (result.stdout or "")
            debug_log(
                f"git {' '.join(args)} exited {result.returncode}: {output.strip()}",
                self.repo_path,
            )
            raise GitCommandError(args, output, result.returncode)

        return result.stdout.rstrip() if strip else result.stdout
