"""
Per-project mutual exclusion for tree mutations.

Reordering, deleting, and status cascades each read a sibling group or an
ancestor chain and then write it back. Holding the project's lock for the
whole read-then-write sequence keeps two such operations on the same tree
from interleaving.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict
from uuid import UUID

from tasktree.logging_config import get_logger

logger = get_logger(__name__)


class TreeLocks:
    """Registry of asyncio locks keyed by project id."""

    def __init__(self) -> None:
        self._locks: Dict[UUID, asyncio.Lock] = {}
        self._waiters: Dict[UUID, int] = {}

    def is_locked(self, project_id: UUID) -> bool:
        lock = self._locks.get(project_id)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, project_id: UUID) -> AsyncIterator[None]:
        """
        Hold the lock of a project for the duration of the block.

        Not reentrant: a coroutine already holding a project's lock must not
        enter hold() again for the same project.

        Args:
            project_id: UUID of the project whose tree is being mutated
        """
        lock = self._locks.setdefault(project_id, asyncio.Lock())
        self._waiters[project_id] = self._waiters.get(project_id, 0) + 1
        try:
            async with lock:
                logger.debug(f"Acquired tree lock for project {project_id}")
                yield
        finally:
            self._waiters[project_id] -= 1
            if self._waiters[project_id] == 0:
                del self._waiters[project_id]
                del self._locks[project_id]
