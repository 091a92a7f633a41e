"""
InMemoryLockAdapter - In-process implementation of LockPort.

Serializes ledger operations inside a single asyncio event loop.
Only works within a single process.
"""
import asyncio
from typing import Dict, Set

from futures_ledger.application.ports.outbound.lock_port import LockPort


class InMemoryLockAdapter(LockPort):
    """
    In-memory lock adapter.

    Keeps one asyncio.Lock per lock name. Acquisition waits up to
    timeout_seconds, in FIFO order with other waiters.
    """

    def __init__(self):
        """Initialize empty lock table."""
        self._locks: Dict[str, asyncio.Lock] = {}

    def clear(self):
        """Forget all locks. Useful for test cleanup."""
        self._locks.clear()

    def _get_lock(self, lock_name: str) -> asyncio.Lock:
        lock = self._locks.get(lock_name)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[lock_name] = lock
        return lock

    async def acquire(self, lock_name: str, timeout_seconds: float) -> bool:
        """Wait up to timeout_seconds for the lock; False on timeout."""
        lock = self._get_lock(lock_name)
        try:
            await asyncio.wait_for(lock.acquire(), timeout=timeout_seconds)
        except asyncio.TimeoutError:
            return False
        return True

    async def release(self, lock_name: str) -> None:
        """Release a held lock. No-op if it is not held."""
        lock = self._locks.get(lock_name)
        if lock is not None and lock.locked():
            lock.release()

    async def is_locked(self, lock_name: str) -> bool:
        lock = self._locks.get(lock_name)
        return lock is not None and lock.locked()

    @property
    def held_locks(self) -> Set[str]:
        """Get set of currently held locks (for testing)."""
        return {name for name, lock in self._locks.items() if lock.locked()}
