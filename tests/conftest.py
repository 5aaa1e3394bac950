import shutil
import subprocess

import pytest

from gait_dashboard.git.cache import MetadataCache
from gait_dashboard.git.repository import Repository
from gait_dashboard.testing import ScriptedRunner


def pytest_configure(config):
    """Register custom test markers."""
    config.addinivalue_line("markers", "unit: Unit tests that do not perform real I/O")
    config.addinivalue_line(
        "markers", "integration: Integration tests against a real git repository"
    )
    config.addinivalue_line("markers", "performance: Benchmarks run with pytest-benchmark")


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def runner():
    """Empty scripted runner; tests add responses with runner.respond()."""
    return ScriptedRunner()


@pytest.fixture
def make_repository(clock):
    """Factory for a Repository backed by a scripted runner and fake clock."""

    def _make(runner: ScriptedRunner, ttl: float = 30.0) -> Repository:
        return Repository(
            runner.repo_path,
            runner=runner,
            cache=MetadataCache(ttl=ttl, clock=clock),
        )

    return _make


@pytest.fixture
def sample_log_output():
    """Three commits as produced by the history log format."""
    return "\n".join(
        [
            "c3c3c3c3c3c3c3c3c3c3c3c3c3c3c3c3c3c3c3c3|c3c3c3c|Merge feature|Jane Doe|jane@x.com"
            "|2024-01-03 09:00:00 +0100|2024-01-03 09:05:00 +0100"
            "|b2b2b2b2b2b2b2b2b2b2b2b2b2b2b2b2b2b2b2b2 a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1",
            "b2b2b2b2b2b2b2b2b2b2b2b2b2b2b2b2b2b2b2b2|b2b2b2b|Add parser|John Roe|john@x.com"
            "|2024-01-02 10:00:00 +0000|2024-01-02 10:00:00 +0000"
            "|a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1",
            "a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1|a1a1a1a|Initial commit|Jane Doe|jane@x.com"
            "|2024-01-01 10:00:00 +0000|2024-01-01 10:00:00 +0000|",
        ]
    )


def _git(cwd, *args):
    return subprocess.run(
        ["git", *args], cwd=cwd, check=True, capture_output=True, text=True
    ).stdout


@pytest.fixture
def git_repo(tmp_path, monkeypatch):
    """A real repository with two commits on main, isolated from user config."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")

    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Jane Doe")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "jane@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Jane Doe")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "jane@example.com")

    repo = tmp_path / "repo"
    repo.mkdir()
    _git(repo, "init", "-q")
    _git(repo, "symbolic-ref", "HEAD", "refs/heads/main")

    (repo / "hello.txt").write_text("one\ntwo\nthree\n")
    _git(repo, "add", "hello.txt")
    _git(repo, "commit", "-q", "-m", "Initial commit")

    (repo / "hello.txt").write_text("one\n2\nthree\nfour\n")
    (repo / "notes.md").write_text("# Notes\n")
    _git(repo, "add", "hello.txt", "notes.md")
    _git(repo, "commit", "-q", "-m", "Update hello and add notes")

    return repo


@pytest.fixture
def git():
    """Run git in a directory and return stdout."""
    return _git
