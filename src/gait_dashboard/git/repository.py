"""Repository handle: one runner and one metadata cache per repository."""

from pathlib import Path
from typing import Any, Callable, Optional, Union

from ..config.defaults import get_default_config
from ..config.schema import DashboardConfig
from ..errors import GitError, NotFoundError
from ..types import Branch, Commit, CommitStats, FileChange, FileDiff, Remote, Stash, Tag
from ..utils.debug import debug_log
from .cache import CacheCategory, MetadataCache
from .diff import UNCOMMITTED, DiffReconstructor, parse_name_status, split_content
from .history import HistoryReader
from .metadata import (
    STASH_FORMAT,
    TAG_FORMAT,
    merge_working_tree_changes,
    parse_annotated_tag,
    parse_branches,
    parse_remotes,
    parse_stashes,
    parse_tags,
)
from .refs import RefResolver
from .runner import CommandRunner, SubprocessRunner

RESET_MODES = ("soft", "mixed", "hard")


def _require(value: str, what: str) -> None:
    if not value:
        raise ValueError(f"{what} cannot be empty")


class Repository:
    """All data access for a single repository.

    Read listings degrade to empty lists when git fails. Mutations propagate
    GitError and only invalidate the cache after the command succeeded.
    """

    def __init__(
        self,
        path: Union[str, Path],
        config: Optional[DashboardConfig] = None,
        runner: Optional[CommandRunner] = None,
        cache: Optional[MetadataCache] = None,
    ) -> None:
        self.config = config or get_default_config()
        self.path = str(path)
        # No default timeout: reads pass their own, mutations must never be killed
        self.runner = runner or SubprocessRunner(self.path, git_binary=self.config.git_binary)
        self.cache = cache or MetadataCache(ttl=self.config.cache_ttl_seconds, name=self.path)

        timeout = self.config.command_timeout_seconds
        self.refs = RefResolver(self.runner, timeout=timeout)
        self.history = HistoryReader(
            self.runner, self.refs, timeout=self.config.log_timeout_seconds
        )
        self.diffs = DiffReconstructor(self.runner, timeout=timeout)

    @property
    def name(self) -> str:
        return Path(self.path).name

    def _run(self, *args: str) -> str:
        return self.runner.run(list(args), timeout=self.config.command_timeout_seconds)

    def _run_mutation(self, args: list[str], *categories: CacheCategory) -> str:
        output = self.runner.run(args, timeout=None)
        for category in categories:
            self.cache.invalidate(category)
        return output

    # History

    def list_commits(
        self,
        limit: int = 0,
        offset: int = 0,
        branch: str = "",
        all_refs: bool = False,
    ) -> list[Commit]:
        return self.history.list(limit, offset, branch, all_refs)

    def list_commits_for_tag(self, tag: str, limit: int = 0, offset: int = 0) -> list[Commit]:
        return self.history.list_for_tag(tag, limit, offset)

    def get_commit_details(self, commit_hash: str) -> Commit:
        """Return a commit with its file changes and aggregate stats.

        Raises:
            GitError: If git fails
            NotFoundError: If there is no such commit
        """
        commit = self.history.get(commit_hash)
        changes = self.diffs.file_changes(commit.hash)
        commit.file_changes = changes
        commit.stats = CommitStats(
            files_changed=len(changes),
            additions=sum(c.additions for c in changes),
            deletions=sum(c.deletions for c in changes),
        )
        return commit

    # Diffs and content

    def get_file_diff(self, revision: str, path: str) -> FileDiff:
        return self.diffs.diff(revision, path)

    def get_file_content(self, revision: str, path: str) -> list[str]:
        return self.diffs.file_content(revision, path)

    def save_file_content(self, path: str, content: list[str]) -> None:
        """Write lines to a working tree file, creating parent directories."""
        _require(path, "file path")
        full_path = Path(self.path) / path
        full_path.parent.mkdir(parents=True, exist_ok=True)
        text = "\n".join(content)
        if content:
            text += "\n"
        full_path.write_text(text, encoding="utf-8")

    # Cached metadata

    def _read_cached(
        self,
        category: CacheCategory,
        args: tuple[str, ...],
        parse: Callable[[str], list[Any]],
    ) -> list[Any]:
        cached = self.cache.get(category)
        if cached is not None:
            return cached
        # Taken before git runs so a concurrent invalidation discards this refresh
        generation = self.cache.generation(category)
        try:
            output = self._run(*args)
        except GitError as e:
            debug_log(f"{category.value.capitalize()} unavailable: {e}", self.path)
            return []
        items = parse(output)
        self.cache.put(category, items, generation=generation)
        return items

    def list_branches(self) -> list[Branch]:
        return self._read_cached(CacheCategory.BRANCHES, ("branch", "-v"), parse_branches)

    def list_tags(self) -> list[Tag]:
        return self._read_cached(
            CacheCategory.TAGS, ("tag", "-l", f"--format={TAG_FORMAT}"), parse_tags
        )

    def list_remotes(self) -> list[Remote]:
        return self._read_cached(CacheCategory.REMOTES, ("remote", "-v"), parse_remotes)

    def get_remote_info(self, remote_name: str) -> Remote:
        output = self._run("remote", "show", "-n", remote_name)
        remote = Remote(name=remote_name)
        for line in output.split("\n"):
            line = line.strip()
            if line.startswith("Fetch URL:"):
                remote.fetch_url = line[len("Fetch URL:") :].strip()
            elif line.startswith("Push  URL:"):
                remote.push_url = line[len("Push  URL:") :].strip()
        return remote

    def get_tag_details(self, tag_name: str) -> Tag:
        """Return full details of a tag, reading the tag object when annotated."""
        try:
            object_type = self._run("cat-file", "-t", tag_name).strip()
        except GitError as e:
            raise NotFoundError(f"tag not found: {tag_name}") from e

        if object_type != "tag":
            target = self._run("rev-list", "-n", "1", tag_name).strip()
            return Tag(name=tag_name, hash=target, type="lightweight", target_hash=target)

        tag = parse_annotated_tag(tag_name, self._run("cat-file", "-p", tag_name))
        try:
            tag.hash = self._run("rev-parse", tag_name).strip()
        except GitError:
            pass
        return tag

    # Stashes are never cached: indices go stale on every stash mutation

    def list_stashes(self) -> list[Stash]:
        try:
            output = self._run("stash", "list", f"--format={STASH_FORMAT}")
        except GitError as e:
            debug_log(f"Stashes unavailable: {e}", self.path)
            return []
        return parse_stashes(output)

    def show_stash(self, index: int) -> Commit:
        """Return a stash as a commit with its file changes.

        Raises:
            NotFoundError: If no stash has that index
        """
        ref = f"stash@{{{index}}}"
        try:
            commit = self.history.get(ref)
        except GitError as e:
            raise NotFoundError(f"stash not found: {ref}") from e
        commit.parents = []
        commit.refs = [ref]
        try:
            commit.file_changes = parse_name_status(
                self._run("stash", "show", "--name-status", ref)
            )
        except GitError:
            commit.file_changes = []
        return commit

    def stash_push(self, message: str = "", include_untracked: bool = False) -> None:
        args = ["stash", "push"]
        if include_untracked:
            args.append("-u")
        if message:
            args.extend(["-m", message])
        self._run_mutation(args)

    def stash_apply(self, index: int) -> None:
        self._run_mutation(["stash", "apply", f"stash@{{{index}}}"])

    def stash_pop(self, index: int) -> None:
        self._run_mutation(["stash", "pop", f"stash@{{{index}}}"])

    def stash_drop(self, index: int) -> None:
        self._run_mutation(["stash", "drop", f"stash@{{{index}}}"])

    def create_branch_from_stash(self, branch_name: str, index: int) -> None:
        _require(branch_name, "branch name")
        self._run_mutation(
            ["stash", "branch", branch_name, f"stash@{{{index}}}"],
            CacheCategory.BRANCHES,
        )

    # Branch mutations

    def checkout_branch(self, branch: str) -> None:
        _require(branch, "branch name")
        self._run_mutation(["checkout", branch], CacheCategory.BRANCHES)

    def create_branch(self, branch_name: str, start_point: str = "") -> None:
        _require(branch_name, "branch name")
        args = ["checkout", "-b", branch_name]
        if start_point:
            args.append(start_point)
        self._run_mutation(args, CacheCategory.BRANCHES)

    def delete_branch(self, branch_name: str, force: bool = False) -> None:
        _require(branch_name, "branch name")
        self._run_mutation(
            ["branch", "-D" if force else "-d", branch_name], CacheCategory.BRANCHES
        )

    def rename_branch(self, old_name: str, new_name: str) -> None:
        _require(old_name, "branch name")
        _require(new_name, "branch name")
        self._run_mutation(["branch", "-m", old_name, new_name], CacheCategory.BRANCHES)

    def merge_branch(self, branch_name: str, no_fast_forward: bool = False) -> None:
        _require(branch_name, "branch name")
        args = ["merge"]
        if no_fast_forward:
            args.append("--no-ff")
        args.append(branch_name)
        self._run_mutation(args, CacheCategory.BRANCHES)

    def rebase_branch(self, target_branch: str) -> None:
        """Rebase the current branch onto target_branch."""
        _require(target_branch, "branch name")
        self._run_mutation(["rebase", target_branch], CacheCategory.BRANCHES)

    # Tag mutations

    def create_tag(
        self,
        tag_name: str,
        commit_hash: str = "",
        message: str = "",
        annotated: bool = False,
    ) -> None:
        _require(tag_name, "tag name")
        args = ["tag"]
        if annotated and message:
            args.extend(["-a", tag_name, "-m", message])
        else:
            args.append(tag_name)
        if commit_hash:
            args.append(commit_hash)
        self._run_mutation(args, CacheCategory.TAGS)

    def delete_tag(self, tag_name: str) -> None:
        _require(tag_name, "tag name")
        self._run_mutation(["tag", "-d", tag_name], CacheCategory.TAGS)

    def push_tag(self, remote: str, tag_name: str) -> None:
        self._run_mutation(["push", remote, tag_name])

    def push_all_tags(self, remote: str) -> None:
        self._run_mutation(["push", remote, "--tags"])

    # Remote operations

    def fetch(self, remote: str = "", prune: bool = False) -> None:
        args = ["fetch", remote] if remote else ["fetch", "--all"]
        if prune:
            args.append("--prune")
        self._run_mutation(args, CacheCategory.BRANCHES, CacheCategory.REMOTES)

    def pull(self, remote: str = "", branch: str = "") -> None:
        args = ["pull"]
        if remote:
            args.append(remote)
            if branch:
                args.append(branch)
        self._run_mutation(args, CacheCategory.BRANCHES)

    def push(self, remote: str = "", branch: str = "", force: bool = False) -> None:
        args = ["push"]
        if force:
            args.append("--force")
        if remote:
            args.append(remote)
            if branch:
                args.append(branch)
        self._run_mutation(args, CacheCategory.BRANCHES)

    # Working tree

    def list_uncommitted_changes(self) -> list[FileChange]:
        """Staged, unstaged and untracked changes, each with line counts."""
        changes: list[FileChange] = []
        for prefix, extra in (("staged", ["--cached"]), ("unstaged", [])):
            try:
                numstat = self._run("diff", *extra, "--numstat")
                name_status = self._run("diff", *extra, "--name-status")
            except GitError as e:
                debug_log(f"{prefix} changes unavailable: {e}", self.path)
                continue
            changes.extend(merge_working_tree_changes(numstat, name_status, prefix))

        try:
            untracked = self._run("ls-files", "--others", "--exclude-standard")
        except GitError as e:
            debug_log(f"Untracked files unavailable: {e}", self.path)
            return changes

        for path in untracked.split("\n"):
            if not path:
                continue
            try:
                additions = len(self.diffs.file_content(UNCOMMITTED, path))
            except NotFoundError:
                additions = 0
            changes.append(FileChange(path=path, status="untracked", additions=additions))
        return changes

    def stage_file(self, path: str) -> None:
        _require(path, "file path")
        self._run_mutation(["add", "--", path])

    def unstage_file(self, path: str) -> None:
        _require(path, "file path")
        self._run_mutation(["reset", "HEAD", "--", path])

    def discard_file_changes(self, path: str) -> None:
        _require(path, "file path")
        self._run_mutation(["checkout", "HEAD", "--", path])

    def create_commit(self, message: str) -> str:
        """Commit the index and return the new commit hash."""
        _require(message, "commit message")
        self._run_mutation(["commit", "-m", message], CacheCategory.BRANCHES)
        return self._run("rev-parse", "HEAD").strip()

    def cherry_pick(self, commit_hash: str) -> None:
        _require(commit_hash, "commit hash")
        self._run_mutation(["cherry-pick", commit_hash], CacheCategory.BRANCHES)

    def revert_commit(self, commit_hash: str, no_commit: bool = False) -> None:
        _require(commit_hash, "commit hash")
        args = ["revert"]
        if no_commit:
            args.append("--no-commit")
        args.append(commit_hash)
        self._run_mutation(args, CacheCategory.BRANCHES)

    def reset_branch(self, commit_hash: str, mode: str = "mixed") -> None:
        _require(commit_hash, "commit hash")
        flag = f"--{mode}" if mode in RESET_MODES else "--mixed"
        self._run_mutation(["reset", flag, commit_hash], CacheCategory.BRANCHES)

    def clean_working_directory(
        self, dry_run: bool = True, include_directories: bool = False
    ) -> list[str]:
        """Remove (or with dry_run, list) untracked files."""
        args = ["clean", "-n" if dry_run else "-f"]
        if include_directories:
            args.append("-d")
        output = self._run_mutation(args)
        return [line for line in split_content(output) if line]
