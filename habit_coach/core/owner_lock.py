"""Per-owner mutation locks for read-modify-write cycles on blob storage."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


logger = logging.getLogger(__name__)


class OwnerLockRegistry:
    """Hands out one asyncio.Lock per owner id.

    Locks are created on first use and dropped once no task holds or waits on them,
    so the registry does not grow with the number of owners ever seen.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, owner_id: str) -> AsyncIterator[None]:
        """Serialize the enclosed block with every other block for the same owner."""
        lock = self._locks.get(owner_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[owner_id] = lock
        self._users[owner_id] = self._users.get(owner_id, 0) + 1

        try:
            async with lock:
                yield
        finally:
            remaining = self._users[owner_id] - 1
            if remaining:
                self._users[owner_id] = remaining
            else:
                del self._users[owner_id]
                del self._locks[owner_id]

    def active_owners(self) -> list[str]:
        """Owner ids with a mutation in flight or queued."""
        return list(self._locks)
