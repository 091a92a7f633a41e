"""
LedgerStorePort - Interface for ledger state persistence.

Persisted layout:
- scalar state: last contract id, oracle principal, collateral token
- price table keyed by asset symbol
- contract table keyed by contract id
- position table keyed by (user, contract_id)
"""
from abc import ABC, abstractmethod
from typing import AsyncContextManager, Optional

from futures_ledger.domain.entities.futures_contract import FuturesContract
from futures_ledger.domain.entities.position import Position
from futures_ledger.domain.value_objects.position_key import PositionKey


class LedgerStorePort(ABC):
    """
    Port interface for ledger state.

    Writes made inside transaction() either all commit when the block exits
    normally or are all discarded when an exception escapes it.

    Usage:
        async with store.transaction():
            await store.set_price("PET", 1000)
            await store.save_contract(contract)
    """

    @abstractmethod
    def transaction(self) -> AsyncContextManager[None]:
        """
        Open an atomic unit of work.

        Returns:
            Async context manager committing on success, rolling back on error
        """
        pass

    # --- Scalar State ---

    @abstractmethod
    async def get_last_contract_id(self) -> int:
        """Get the highest contract id issued so far (0 if none)."""
        pass

    @abstractmethod
    async def set_last_contract_id(self, contract_id: int) -> None:
        """Record the highest contract id issued."""
        pass

    @abstractmethod
    async def get_oracle(self) -> Optional[str]:
        """Get the configured oracle principal."""
        pass

    @abstractmethod
    async def set_oracle(self, principal: str) -> None:
        """Replace the oracle principal."""
        pass

    @abstractmethod
    async def get_collateral_token(self) -> Optional[str]:
        """Get the configured collateral token identity."""
        pass

    @abstractmethod
    async def set_collateral_token(self, token: str) -> None:
        """Replace the collateral token identity."""
        pass

    # --- Prices ---

    @abstractmethod
    async def get_price(self, symbol: str) -> Optional[int]:
        """Get the latest price for a symbol."""
        pass

    @abstractmethod
    async def set_price(self, symbol: str, price: int) -> None:
        """Overwrite the price for a symbol."""
        pass

    # --- Contracts ---

    @abstractmethod
    async def get_contract(self, contract_id: int) -> Optional[FuturesContract]:
        """Get a contract by id."""
        pass

    @abstractmethod
    async def save_contract(self, contract: FuturesContract) -> FuturesContract:
        """Insert or replace a contract."""
        pass

    # --- Positions ---

    @abstractmethod
    async def get_position(self, key: PositionKey) -> Optional[Position]:
        """Get the position stored under a key."""
        pass

    @abstractmethod
    async def save_position(self, position: Position) -> Position:
        """Insert a position under position.key."""
        pass

    @abstractmethod
    async def delete_position(self, key: PositionKey) -> bool:
        """
        Remove a position.

        Returns:
            True if a record was removed
        """
        pass
