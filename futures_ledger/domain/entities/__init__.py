"""Domain entities."""
from futures_ledger.domain.entities.futures_contract import FuturesContract
from futures_ledger.domain.entities.position import Position, PositionSide

__all__ = [
    "FuturesContract",
    "Position",
    "PositionSide",
]
