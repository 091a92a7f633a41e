"""
Position Domain Entity

A leveraged long/short position held by one user against one futures contract.
"""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Union

from futures_ledger.domain.exceptions import InvalidInputError
from futures_ledger.domain.value_objects.position_key import PositionKey


class PositionSide(Enum):
    """Direction of a position."""
    LONG = "long"
    SHORT = "short"

    @classmethod
    def parse(cls, raw: Union[PositionSide, str]) -> PositionSide:
        """
        Accept a PositionSide or its case-insensitive name/value.

        Raises:
            InvalidInputError: If raw is not a known side
        """
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, str):
            try:
                return cls(raw.strip().lower())
            except ValueError:
                pass
        raise InvalidInputError(f"Invalid position side: {raw!r}")


@dataclass(frozen=True)
class Position:
    """
    Immutable position record.

    Created exactly once by a successful open and removed exactly once by a
    close or a liquidation. It is never updated in place.

    Attributes:
        user: Principal that opened the position
        contract_id: Futures contract id
        side: Long or short
        entry_price: Price snapshot taken at open
        collateral_amount: Collateral escrowed at open
        size: Size requested by the opener
    """
    user: str
    contract_id: int
    side: PositionSide
    entry_price: int
    collateral_amount: int
    size: int

    @property
    def key(self) -> PositionKey:
        """Composite key of this position."""
        return PositionKey(self.user, self.contract_id)

    def to_dict(self) -> dict:
        """Plain representation for logging and the CLI."""
        return {
            "user": self.user,
            "contract_id": self.contract_id,
            "side": self.side.value,
            "entry_price": self.entry_price,
            "collateral_amount": self.collateral_amount,
            "size": self.size,
        }
