"""
PositionKey Value Object

Composite (user, contract_id) key identifying a position record.
"""
from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class PositionKey:
    """
    Hashable composite key of the position table.

    Attributes:
        user: Principal owning the position
        contract_id: Futures contract the position is written against
    """
    user: str
    contract_id: int

    def __str__(self) -> str:
        return f"{self.user}/{self.contract_id}"
