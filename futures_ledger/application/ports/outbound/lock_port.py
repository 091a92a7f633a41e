"""
LockPort - Interface for serializing ledger operations.

Every public ledger operation runs while holding LEDGER_LOCK, so no two
operations ever observe each other's intermediate state.
"""
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncGenerator

LEDGER_LOCK = "ledger_state"


class LockAcquisitionError(Exception):
    """
    Raised when a lock is still held elsewhere after the wait timed out.

    This is an infrastructure failure: LedgerService lets it propagate
    instead of returning a coded response.
    """

    def __init__(self, lock_name: str, timeout_seconds: float):
        super().__init__(f"Could not acquire lock {lock_name} within {timeout_seconds}s")
        self.lock_name = lock_name
        self.timeout_seconds = timeout_seconds


class LockPort(ABC):
    """
    Port interface for named locks with a bounded wait.

    Usage:
        async with lock_port.hold(LEDGER_LOCK, timeout_seconds=30):
            await run_operation()
    """

    @abstractmethod
    async def acquire(self, lock_name: str, timeout_seconds: float) -> bool:
        """
        Wait up to timeout_seconds for the lock.

        Returns:
            True once the lock is held, False if the wait timed out
        """
        pass

    @abstractmethod
    async def release(self, lock_name: str) -> None:
        """Release a held lock. Releasing a free lock is a no-op."""
        pass

    @abstractmethod
    async def is_locked(self, lock_name: str) -> bool:
        pass

    @asynccontextmanager
    async def hold(self, lock_name: str, timeout_seconds: float) -> AsyncGenerator[None, None]:
        """
        Hold the lock for the duration of the block.

        Raises:
            LockAcquisitionError: If the lock could not be acquired in time
        """
        if not await self.acquire(lock_name, timeout_seconds):
            raise LockAcquisitionError(lock_name, timeout_seconds)
        try:
            yield
        finally:
            await self.release(lock_name)
