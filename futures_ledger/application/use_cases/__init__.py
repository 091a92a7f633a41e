"""Application use cases."""
from futures_ledger.application.use_cases.manage_contracts import ManageContractsUseCase
from futures_ledger.application.use_cases.publish_price import PublishPriceUseCase
from futures_ledger.application.use_cases.trade_position import TradePositionUseCase

__all__ = [
    "ManageContractsUseCase",
    "PublishPriceUseCase",
    "TradePositionUseCase",
]
