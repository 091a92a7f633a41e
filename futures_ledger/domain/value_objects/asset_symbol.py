"""
AssetSymbol Value Object

Short identifier of an underlying asset, used as the key of the price table
and recorded on every futures contract.
"""
from __future__ import annotations
from dataclasses import dataclass

from futures_ledger.domain.exceptions import InvalidInputError

# Upper bound for every configured limit; also the width of the stored symbol columns
MAX_SYMBOL_LENGTH = 16


@dataclass(frozen=True)
class AssetSymbol:
    """
    Immutable asset symbol.

    Only the length is validated; the ledger attaches no other meaning to
    the characters.

    Attributes:
        value: The raw symbol string (e.g. "PET")
    """
    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            raise InvalidInputError(f"Asset symbol must be a string, got {type(self.value).__name__}")

    @classmethod
    def parse(cls, raw: str, max_length: int = MAX_SYMBOL_LENGTH) -> AssetSymbol:
        """Build a symbol, rejecting values longer than max_length."""
        symbol = cls(raw)
        if len(symbol.value) > max_length:
            raise InvalidInputError(
                f"Asset symbol '{symbol.value}' exceeds {max_length} characters"
            )
        return symbol

    def __str__(self) -> str:
        return self.value
