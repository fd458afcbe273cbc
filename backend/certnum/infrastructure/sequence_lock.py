"""Sequence Locks — in-process mutual exclusion keyed by sequence identity.

Invariants:
    - At most one holder per sequence key inside this process
    - Waiting is bounded: a timed-out wait raises StorageTimeoutError and the
      caller never enters the locked block
    - The lock is always released on exit, including on exceptions

Design Decisions:
    - asyncio.Lock per key over one global lock: independent sequences do not
      block each other once per-template numbering is enabled
    - Registry is an instance, not a module global: asyncio locks bind to the
      event loop that first waits on them
    - Complements the database row lock (FOR UPDATE), which covers other
      processes; this lock covers backends without row locks (SQLite)
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from certnum.core.errors import ErrorContext, StorageTimeoutError

logger = logging.getLogger(__name__)


class SequenceLocks:
    """Registry of asyncio locks, one per sequence key."""

    def __init__(self, timeout_seconds: float | None = 10.0):
        self.timeout_seconds = timeout_seconds
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncGenerator[None, None]:
        """Hold the lock for key for the duration of the block."""
        lock = self._lock_for(key)
        try:
            await asyncio.wait_for(lock.acquire(), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(
                f"Timed out waiting for sequence lock '{key}'",
                extra={"sequence_key": key},
            )
            raise StorageTimeoutError(
                "lock", self.timeout_seconds,
                context=ErrorContext(sequence_key=key),
            ) from None
        try:
            yield
        finally:
            lock.release()
