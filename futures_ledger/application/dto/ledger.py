"""
Ledger DTOs for operation context and results.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Optional

from futures_ledger.domain.exceptions import ErrorCode, LedgerError


@dataclass(frozen=True)
class ExecutionContext:
    """
    Who is calling and at which block height.

    Passed explicitly into every operation so runs are deterministic and
    replayable.

    Attributes:
        caller: Principal invoking the operation
        height: Current block height
    """
    caller: str
    height: int = 0

    def __post_init__(self) -> None:
        if not self.caller:
            raise ValueError("Execution context requires a caller")
        if not isinstance(self.height, int) or isinstance(self.height, bool) or self.height < 0:
            raise ValueError(f"Block height must be a non-negative integer: {self.height!r}")


@dataclass(frozen=True)
class LedgerResponse:
    """
    Result of a ledger operation.

    Attributes:
        success: Whether the operation committed
        value: Operation result on success
        error_code: Failure category on failure
        error_message: Human readable failure reason
    """
    success: bool
    value: Any = None
    error_code: Optional[ErrorCode] = None
    error_message: Optional[str] = None

    @classmethod
    def success_response(cls, value: Any = True) -> LedgerResponse:
        """Create successful response."""
        return cls(success=True, value=value)

    @classmethod
    def failure_response(
        cls,
        error_code: ErrorCode,
        error_message: str,
    ) -> LedgerResponse:
        """Create failed response."""
        return cls(
            success=False,
            error_code=error_code,
            error_message=error_message,
        )

    @classmethod
    def from_error(cls, error: LedgerError) -> LedgerResponse:
        """Create failed response from a domain error."""
        return cls.failure_response(error.error_code, error.message)

    def unwrap(self) -> Any:
        """Return the value, raising LedgerError if the operation failed."""
        if not self.success:
            raise LedgerError(self.error_message or "operation failed", self.error_code)
        return self.value
