# Outbound ports (external system interfaces)
from futures_ledger.application.ports.outbound.custody_port import CustodyPort, CustodyError
from futures_ledger.application.ports.outbound.ledger_store_port import LedgerStorePort
from futures_ledger.application.ports.outbound.lock_port import (
    LockPort,
    LEDGER_LOCK,
    LockAcquisitionError,
)

__all__ = [
    "CustodyPort",
    "CustodyError",
    "LedgerStorePort",
    "LockPort",
    "LEDGER_LOCK",
    "LockAcquisitionError",
]
