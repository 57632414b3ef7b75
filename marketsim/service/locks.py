"""
Per-account locks shared by the tick and request-driven mutations.
"""

import asyncio

from marketsim.accounts.models import normalize_username


class AccountLocks:
    """Lazily created asyncio lock per username (case-insensitive)."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}

    def lock_for(self, username: str) -> asyncio.Lock:
        key = normalize_username(username)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)
