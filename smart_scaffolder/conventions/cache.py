"""TTL cache for analysed project conventions.

Each ``ConventionAnalyzer`` owns one ``ConventionCache``. Entries are stored
and replaced whole, and a per-project ``asyncio.Lock`` lets the analyzer
serialise concurrent analyses of the same project while different projects
proceed in parallel.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass

from ..models import ProjectConventions


@dataclass(frozen=True)
class CacheEntry:
    conventions: ProjectConventions
    stored_at: float


class ConventionCache:
    """Project id -> ``ProjectConventions`` with time-based expiry.

    Args:
        ttl_seconds: Age after which an entry is stale.
        clock: Monotonic clock returning seconds. Injected by tests.
    """

    def __init__(
        self,
        ttl_seconds: float = 3600,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def get(self, project_id: str) -> ProjectConventions | None:
        """Return the fresh entry for *project_id*, or ``None`` if absent or stale."""
        entry = self._entries.get(project_id)
        if entry is None:
            return None
        if self.clock() - entry.stored_at >= self.ttl_seconds:
            del self._entries[project_id]
            return None
        return entry.conventions

    def put(self, project_id: str, conventions: ProjectConventions) -> None:
        self._entries[project_id] = CacheEntry(conventions, self.clock())

    def invalidate(self, project_id: str) -> None:
        self._entries.pop(project_id, None)
        self._drop_lock(project_id)

    def clear(self) -> None:
        self._entries.clear()
        for project_id in list(self._locks):
            self._drop_lock(project_id)

    def lock_for(self, project_id: str) -> asyncio.Lock:
        """Return the lock guarding analysis of *project_id*."""
        lock = self._locks.get(project_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[project_id] = lock
        return lock

    def _drop_lock(self, project_id: str) -> None:
        # A held lock stays until its analysis finishes.
        lock = self._locks.get(project_id)
        if lock is not None and not lock.locked():
            del self._locks[project_id]

    def __contains__(self, project_id: object) -> bool:
        return isinstance(project_id, str) and self.get(project_id) is not None

    def __len__(self) -> int:
        return len(self._entries)
