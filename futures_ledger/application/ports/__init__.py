"""Application ports (interfaces)."""
from futures_ledger.application.ports.outbound import (
    CustodyPort,
    LedgerStorePort,
    LockPort,
)

__all__ = [
    "CustodyPort",
    "LedgerStorePort",
    "LockPort",
]
