"""
Domain Exceptions

Every rejected ledger operation maps to exactly one ErrorCode. The domain and
use-case layers raise these; LedgerService turns them into LedgerResponse
values at the public boundary.
"""
from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """Categorical failure codes returned by ledger operations."""
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    INVALID_INPUT = "INVALID_INPUT"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    EXPIRED_OR_INACTIVE = "EXPIRED_OR_INACTIVE"
    UNLIQUIDATABLE = "UNLIQUIDATABLE"
    CUSTODY_FAILURE = "CUSTODY_FAILURE"


class LedgerError(Exception):
    """Base exception for ledger domain errors."""

    error_code: ErrorCode = ErrorCode.INVALID_INPUT

    def __init__(self, message: str, error_code: Optional[ErrorCode] = None):
        super().__init__(message)
        self.message = message
        if error_code is not None:
            self.error_code = error_code


class UnauthorizedError(LedgerError):
    """Raised when the caller does not hold the required role."""
    error_code = ErrorCode.UNAUTHORIZED


class NotFoundError(LedgerError):
    """Raised when a contract, position or price does not exist."""
    error_code = ErrorCode.NOT_FOUND


class AlreadyExistsError(LedgerError):
    """Raised when opening a position that is already open."""
    error_code = ErrorCode.ALREADY_EXISTS


class InvalidInputError(LedgerError):
    """Raised when an argument fails validation."""
    error_code = ErrorCode.INVALID_INPUT


class InsufficientFundsError(LedgerError):
    """Raised when collateral, balance or payout is too small."""
    error_code = ErrorCode.INSUFFICIENT_FUNDS


class ExpiredOrInactiveError(LedgerError):
    """Raised when trading against a deactivated or expired contract."""
    error_code = ErrorCode.EXPIRED_OR_INACTIVE


class UnliquidatableError(LedgerError):
    """Raised when liquidating a position that is still solvent."""
    error_code = ErrorCode.UNLIQUIDATABLE


class CustodyFailureError(LedgerError):
    """Raised when the collateral token transfer fails."""
    error_code = ErrorCode.CUSTODY_FAILURE
