"""Per-document serialization of extraction attempts.

At most one extraction runs per document id at a time. A second request for
the same document waits for the first to finish; different documents never
block each other.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class DocumentLockRegistry:
    """Hands out one asyncio.Lock per document id.

    Locks are created on first use and discarded once no task holds or waits
    for them, so the registry does not grow with the number of documents seen.
    Must be used from a single event loop.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, document_id: str) -> AsyncIterator[None]:
        lock = self._locks.get(document_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[document_id] = lock
        self._users[document_id] = self._users.get(document_id, 0) + 1

        try:
            async with lock:
                yield
        finally:
            self._users[document_id] -= 1
            if self._users[document_id] == 0:
                del self._users[document_id]
                del self._locks[document_id]

    def is_locked(self, document_id: str) -> bool:
        lock = self._locks.get(document_id)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
