"""
FuturesContract Domain Entity

A fixed-expiry futures contract registered by the ledger owner.
"""
from __future__ import annotations
from dataclasses import dataclass, replace


@dataclass(frozen=True)
class FuturesContract:
    """
    Immutable futures contract.

    Attributes:
        id: Sequential identifier, starting at 1 and never reused
        symbol: Underlying asset symbol
        expiry_height: Block height at which trading stops
        active: False once the owner deactivates the contract
    """
    id: int
    symbol: str
    expiry_height: int
    active: bool = True

    # --- Factory Methods ---

    @classmethod
    def register(
        cls,
        contract_id: int,
        symbol: str,
        current_height: int,
        expiry_in_blocks: int,
    ) -> FuturesContract:
        """Create an active contract expiring expiry_in_blocks after current_height."""
        return cls(
            id=contract_id,
            symbol=symbol,
            expiry_height=current_height + expiry_in_blocks,
            active=True,
        )

    # --- State Transitions ---

    def deactivate(self) -> FuturesContract:
        """Return an inactive copy. There is no way back to active."""
        return replace(self, active=False)

    # --- Queries ---

    def is_expired(self, height: int) -> bool:
        """Check whether the contract has reached its expiry height."""
        return height >= self.expiry_height

    def is_tradable(self, height: int) -> bool:
        """Check if new positions may be opened at the given height."""
        return self.active and not self.is_expired(height)
