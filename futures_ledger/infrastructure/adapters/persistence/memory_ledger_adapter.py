"""
InMemoryLedgerAdapter - In-memory implementation of LedgerStorePort.

Keeps the ledger tables in dictionaries. Transactions snapshot the tables and
restore them if the unit of work fails. All data is lost when the adapter is
destroyed.
"""
import copy
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Optional

from futures_ledger.application.ports.outbound.ledger_store_port import LedgerStorePort
from futures_ledger.domain.entities.futures_contract import FuturesContract
from futures_ledger.domain.entities.position import Position
from futures_ledger.domain.value_objects.position_key import PositionKey

logger = logging.getLogger(__name__)


class InMemoryLedgerAdapter(LedgerStorePort):
    """
    In-memory ledger store.

    Entities are frozen dataclasses, so tables hold them directly; a
    transaction snapshot only needs to copy the containers.
    """

    def __init__(
        self,
        oracle: Optional[str] = None,
        collateral_token: Optional[str] = None,
    ):
        """
        Initialize empty storage.

        Args:
            oracle: Initial oracle principal
            collateral_token: Initial collateral token identity
        """
        self._last_contract_id = 0
        self._oracle = oracle
        self._collateral_token = collateral_token
        self._prices: Dict[str, int] = {}
        self._contracts: Dict[int, FuturesContract] = {}
        self._positions: Dict[PositionKey, Position] = {}
        self._in_transaction = False

    def clear(self):
        """Clear all stored data. Useful for test cleanup."""
        self._last_contract_id = 0
        self._oracle = None
        self._collateral_token = None
        self._prices.clear()
        self._contracts.clear()
        self._positions.clear()

    # --- Transactions ---

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[None, None]:
        """Snapshot the tables and roll back to the snapshot on error."""
        if self._in_transaction:
            # Nested blocks join the outer unit of work
            yield
            return

        snapshot = self._snapshot()
        self._in_transaction = True
        try:
            yield
        except BaseException:
            self._restore(snapshot)
            logger.debug("In-memory ledger transaction rolled back")
            raise
        finally:
            self._in_transaction = False

    def _snapshot(self) -> dict:
        return {
            "last_contract_id": self._last_contract_id,
            "oracle": self._oracle,
            "collateral_token": self._collateral_token,
            "prices": copy.copy(self._prices),
            "contracts": copy.copy(self._contracts),
            "positions": copy.copy(self._positions),
        }

    def _restore(self, snapshot: dict) -> None:
        self._last_contract_id = snapshot["last_contract_id"]
        self._oracle = snapshot["oracle"]
        self._collateral_token = snapshot["collateral_token"]
        self._prices = snapshot["prices"]
        self._contracts = snapshot["contracts"]
        self._positions = snapshot["positions"]

    # --- Scalar State ---

    async def get_last_contract_id(self) -> int:
        return self._last_contract_id

    async def set_last_contract_id(self, contract_id: int) -> None:
        self._last_contract_id = contract_id

    async def get_oracle(self) -> Optional[str]:
        return self._oracle

    async def set_oracle(self, principal: str) -> None:
        self._oracle = principal

    async def get_collateral_token(self) -> Optional[str]:
        return self._collateral_token

    async def set_collateral_token(self, token: str) -> None:
        self._collateral_token = token

    # --- Prices ---

    async def get_price(self, symbol: str) -> Optional[int]:
        return self._prices.get(symbol)

    async def set_price(self, symbol: str, price: int) -> None:
        self._prices[symbol] = price

    # --- Contracts ---

    async def get_contract(self, contract_id: int) -> Optional[FuturesContract]:
        return self._contracts.get(contract_id)

    async def save_contract(self, contract: FuturesContract) -> FuturesContract:
        self._contracts[contract.id] = contract
        return contract

    # --- Positions ---

    async def get_position(self, key: PositionKey) -> Optional[Position]:
        return self._positions.get(key)

    async def save_position(self, position: Position) -> Position:
        self._positions[position.key] = position
        return position

    async def delete_position(self, key: PositionKey) -> bool:
        return self._positions.pop(key, None) is not None

    # --- Inspection (testing) ---

    @property
    def position_count(self) -> int:
        return len(self._positions)
