"""
Infrastructure Layer - External System Adapters

This module contains adapters that implement the application ports.

Structure:
- adapters/custody/: Collateral token adapters
- adapters/persistence/: Ledger stores (in-memory, SQLAlchemy) and locks
- db/: SQLAlchemy base, models and session helpers
"""
from futures_ledger.infrastructure.adapters.custody.memory_token_adapter import InMemoryTokenAdapter
from futures_ledger.infrastructure.adapters.persistence.memory_ledger_adapter import InMemoryLedgerAdapter
from futures_ledger.infrastructure.adapters.persistence.memory_lock_adapter import InMemoryLockAdapter
from futures_ledger.infrastructure.adapters.persistence.sqlalchemy_ledger_adapter import SqlAlchemyLedgerAdapter

__all__ = [
    "InMemoryTokenAdapter",
    "InMemoryLedgerAdapter",
    "InMemoryLockAdapter",
    "SqlAlchemyLedgerAdapter",
]
