from futures_ledger.infrastructure.adapters.persistence.memory_ledger_adapter import InMemoryLedgerAdapter
from futures_ledger.infrastructure.adapters.persistence.memory_lock_adapter import InMemoryLockAdapter
from futures_ledger.infrastructure.adapters.persistence.sqlalchemy_ledger_adapter import SqlAlchemyLedgerAdapter

__all__ = [
    "InMemoryLedgerAdapter",
    "InMemoryLockAdapter",
    "SqlAlchemyLedgerAdapter",
]
