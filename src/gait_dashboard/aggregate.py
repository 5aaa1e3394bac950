"""Concurrent fan-out of every dashboard category into one snapshot."""

from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import Any, Callable, Optional

from .git.repository import Repository
from .types import RepositorySnapshot
from .utils.debug import debug_log

CATEGORY_COUNT = 6


class AggregationFacade:
    """Fetches commits, branches, tags, stashes, remotes and working tree changes.

    Each category runs as its own unit of work. The facade fails fast: the
    first category to raise aborts the snapshot and other results are
    discarded. No ordering holds across categories.
    """

    def __init__(
        self, repository: Optional[Repository], default_limit: Optional[int] = None
    ) -> None:
        self.repository = repository
        if default_limit is None and repository is not None:
            default_limit = repository.config.default_commit_limit
        self.default_limit = default_limit or 0

    def snapshot(self, limit: Optional[int] = None) -> RepositorySnapshot:
        """Return all categories for the repository.

        Raises:
            Exception: Whatever the first failing category raised
        """
        if self.repository is None:
            return RepositorySnapshot.empty()

        repo = self.repository
        page = self.default_limit if limit is None else limit

        tasks: dict[str, Callable[[], list[Any]]] = {
            "commits": lambda: repo.list_commits(limit=page),
            "branches": repo.list_branches,
            "tags": repo.list_tags,
            "stashes": repo.list_stashes,
            "remotes": repo.list_remotes,
            "uncommitted_changes": repo.list_uncommitted_changes,
        }

        executor = ThreadPoolExecutor(
            max_workers=CATEGORY_COUNT, thread_name_prefix="gait-snapshot"
        )
        try:
            futures: dict[Future[list[Any]], str] = {
                executor.submit(task): category for category, task in tasks.items()
            }
            done, pending = wait(futures, return_when=FIRST_EXCEPTION)

            for future in done:
                error = future.exception()
                if error is not None:
                    debug_log(
                        f"Snapshot failed in {futures[future]}: {error}", repo.path
                    )
                    for other in pending:
                        other.cancel()
                    raise error

            results = {futures[future]: future.result() for future in done}
        finally:
            # Do not block a failed snapshot on slow siblings
            executor.shutdown(wait=False, cancel_futures=True)

        return RepositorySnapshot(limit=page, **results)
