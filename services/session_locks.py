"""
Per-session write locks.

All mutating interview operations for one session id run one at a time.
Locks are created on first use and dropped as soon as nobody holds or
waits on them, so idle sessions cost nothing.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = asyncio.Lock()
        self.users = 0


class SessionLockRegistry:
    def __init__(self):
        self._entries: Dict[str, _Entry] = {}

    @asynccontextmanager
    async def hold(self, session_id: str) -> AsyncIterator[None]:
        """Serialize the wrapped block with every other holder of the same session id."""
        entry = self._entries.get(session_id)
        if entry is None:
            entry = _Entry()
            self._entries[session_id] = entry
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0 and self._entries.get(session_id) is entry:
                del self._entries[session_id]

    def active_count(self) -> int:
        return len(self._entries)


session_locks = SessionLockRegistry()
