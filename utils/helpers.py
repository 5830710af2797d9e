"""
============================================================================
UPTIME WORKERS - HELPER UTILITIES
============================================================================
Small helpers shared by the record store and the check engine: time
stamps, string handling and a per-key asyncio lock.
============================================================================
"""

import asyncio
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Hashable


# ============================================================================
# TIME HELPERS
# ============================================================================

class TimeHelper:
    """
    Time-related helper functions.
    """

    @staticmethod
    def now_ms() -> int:
        """Current wall-clock time in milliseconds since the epoch."""
        return int(time.time() * 1000)


# ============================================================================
# STRING HELPERS
# ============================================================================

class StringHelper:
    """
    String manipulation helpers.
    """

    @staticmethod
    def truncate(text: str, max_length: int = 100, suffix: str = "...") -> str:
        """
        Truncate text to maximum length.

        Args:
            text: Text to truncate
            max_length: Maximum length
            suffix: Suffix to add when truncated

        Returns:
            Truncated text
        """
        if len(text) <= max_length:
            return text
        return text[:max_length - len(suffix)] + suffix


# ============================================================================
# KEYED LOCK
# ============================================================================

class KeyedLock:
    """
    One asyncio.Lock per key, created on demand and dropped once no
    coroutine holds or waits for it.

    Usage
    -----
        locks = KeyedLock()
        async with locks.acquire(check_id):
            ...
    """

    def __init__(self):
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._waiters: Dict[Hashable, int] = {}

    @asynccontextmanager
    async def acquire(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        self._waiters[key] = self._waiters.get(key, 0) + 1

        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]

    def locked(self, key: Hashable) -> bool:
        """Return True if some coroutine currently holds the lock for *key*."""
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
