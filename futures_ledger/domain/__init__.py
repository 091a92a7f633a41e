"""
Domain Layer - Pure Business Logic

This module contains the core ledger logic with zero external dependencies.

Structure:
- entities/: FuturesContract, Position
- value_objects/: AssetSymbol, PositionKey
- services/: MarginEngine, AccessControl
- exceptions.py: ErrorCode and LedgerError hierarchy
"""
