"""Domain value objects."""
from futures_ledger.domain.value_objects.asset_symbol import AssetSymbol, MAX_SYMBOL_LENGTH
from futures_ledger.domain.value_objects.position_key import PositionKey

__all__ = [
    "AssetSymbol",
    "MAX_SYMBOL_LENGTH",
    "PositionKey",
]
