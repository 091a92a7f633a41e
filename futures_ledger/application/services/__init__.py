"""
Application Services Layer
"""
from .ledger_service import LedgerService

__all__ = ['LedgerService']
