"""Per-user ordering of verified-run side effects.

Two submissions for the same wallet must not both read the same progression
snapshot before either commits (lost XP, or two signatures over one sequence
value). Within a process, the coordinator holds this wallet-keyed lock for the
whole unit of work, commit included. Across processes the same unit also
loads the user row with SELECT ... FOR UPDATE.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class UserSequencer:
    """Keyed asyncio locks, dropped when no holder or waiter remains."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._refs: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        key = key.lower()
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._refs[key] = self._refs.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._refs[key] -= 1
            if self._refs[key] == 0:
                del self._refs[key]
                del self._locks[key]

    def active_keys(self) -> int:
        return len(self._locks)
