"""Time-expiring cache for branch, tag and remote snapshots."""

import copy
import threading
import time

from enum import Enum
from typing import Any, Callable, NamedTuple, Optional

from ..utils.debug import debug_log

DEFAULT_CACHE_TTL = 30.0  # seconds


class CacheCategory(str, Enum):
    BRANCHES = "branches"
    TAGS = "tags"
    REMOTES = "remotes"


class CacheEntry(NamedTuple):
    """Snapshot of one category. Replaced whole, never mutated.

    generation counts invalidations; a refresh started under an older
    generation is stale and must not be stored.
    """

    data: tuple[Any, ...]
    expiry: float
    generation: int = 0


_EMPTY_ENTRY = CacheEntry(data=(), expiry=0.0)


class ReadWriteLock:
    """Many concurrent readers or one exclusive writer."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            while self._writer or self._readers > 0:
                self._cond.wait()
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    def read(self) -> "_Guard":
        return _Guard(self.acquire_read, self.release_read)

    def write(self) -> "_Guard":
        return _Guard(self.acquire_write, self.release_write)


class _Guard:
    def __init__(self, acquire: Callable[[], None], release: Callable[[], None]) -> None:
        self._acquire = acquire
        self._release = release

    def __enter__(self) -> None:
        self._acquire()

    def __exit__(self, *exc: object) -> None:
        self._release()


class MetadataCache:
    """Per-repository cache with an independent expiry for each category.

    An entry is served while ``now < expiry`` and it holds at least one item.
    Invalidation sets the expiry to zero so the next get misses.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
        name: str = "",
    ) -> None:
        self.ttl = ttl
        self._clock = clock
        self._name = name
        self._lock = ReadWriteLock()
        self._entries: dict[CacheCategory, CacheEntry] = {
            category: _EMPTY_ENTRY for category in CacheCategory
        }

    def get(self, category: CacheCategory) -> Optional[list[Any]]:
        """Return a copy of the cached list, or None if it must be refreshed."""
        with self._lock.read():
            entry = self._entries[category]
            if self._clock() < entry.expiry and entry.data:
                return copy.deepcopy(list(entry.data))
        return None

    def generation(self, category: CacheCategory) -> int:
        """Current invalidation count, to be handed back to put()."""
        with self._lock.read():
            return self._entries[category].generation

    def put(
        self,
        category: CacheCategory,
        data: list[Any],
        ttl: Optional[float] = None,
        generation: Optional[int] = None,
    ) -> None:
        """Replace a category's snapshot and restart its expiry window.

        When generation is given and the category was invalidated since it
        was read, the data predates that invalidation and is dropped.
        """
        snapshot = tuple(copy.deepcopy(data))
        lifetime = self.ttl if ttl is None else ttl
        with self._lock.write():
            current = self._entries[category]
            stale = generation is not None and generation != current.generation
            if not stale:
                self._entries[category] = CacheEntry(
                    snapshot, self._clock() + lifetime, current.generation
                )
        if stale:
            debug_log(f"Dropped stale {category.value} refresh", self._name)
            return
        debug_log(f"Cached {len(snapshot)} {category.value} for {lifetime:g}s", self._name)

    def invalidate(self, category: CacheCategory) -> None:
        with self._lock.write():
            entry = self._entries[category]
            self._entries[category] = CacheEntry(entry.data, 0.0, entry.generation + 1)
        debug_log(f"Invalidated {category.value} cache", self._name)

    def invalidate_all(self) -> None:
        for category in CacheCategory:
            self.invalidate(category)

    def is_expired(self, category: CacheCategory) -> bool:
        with self._lock.read():
            return not self._clock() < self._entries[category].expiry
