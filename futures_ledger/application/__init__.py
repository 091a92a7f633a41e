"""
Application Layer - Use Cases and Ports

This module contains the application logic that orchestrates domain entities
and coordinates with external systems through ports (interfaces).

Structure:
- ports/outbound/: Interfaces to the state store, collateral token and locks
- use_cases/: Contract registry, price feed and position lifecycle
- services/: LedgerService, the serialized transactional facade
- dto/: ExecutionContext and LedgerResponse
"""
from futures_ledger.application.use_cases.manage_contracts import ManageContractsUseCase
from futures_ledger.application.use_cases.publish_price import PublishPriceUseCase
from futures_ledger.application.use_cases.trade_position import TradePositionUseCase

__all__ = [
    "ManageContractsUseCase",
    "PublishPriceUseCase",
    "TradePositionUseCase",
]
