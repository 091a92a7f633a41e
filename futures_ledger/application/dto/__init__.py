"""Data Transfer Objects."""
from futures_ledger.application.dto.ledger import ExecutionContext, LedgerResponse

__all__ = [
    "ExecutionContext",
    "LedgerResponse",
]
