"""In-process Settlement Lock

Keyed asyncio locks for a single worker process. Cross-process exclusion
comes from the SELECT FOR UPDATE on the credit account row.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict
from src.app.services.settlement_lock import SettlementLock


class InProcessSettlementLock(SettlementLock):
    """
    SettlementLock backed by one asyncio.Lock per key

    Locks are created on first use and dropped once no task holds or waits
    on them, so the map stays bounded by the number of active keys.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        self._users[key] = self._users.get(key, 0) + 1

        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def active_keys(self) -> int:
        return len(self._locks)
