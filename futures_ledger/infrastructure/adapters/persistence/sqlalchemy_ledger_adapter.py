"""
SqlAlchemyLedgerAdapter - SQL implementation of LedgerStorePort.

Maps domain entities to the ledger ORM models. A transaction binds one
AsyncSession for the whole unit of work and commits or rolls it back as a
whole; calls made outside a transaction use a short-lived session that
commits immediately.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from futures_ledger.application.ports.outbound.ledger_store_port import LedgerStorePort
from futures_ledger.domain.entities.futures_contract import FuturesContract
from futures_ledger.domain.entities.position import Position, PositionSide
from futures_ledger.domain.value_objects.position_key import PositionKey
from futures_ledger.infrastructure.db.models import (
    LEDGER_STATE_ROW_ID,
    FuturesContractModel,
    LedgerStateModel,
    PositionModel,
    PriceModel,
)

logger = logging.getLogger(__name__)


class SqlAlchemyLedgerAdapter(LedgerStorePort):
    """
    SQLAlchemy async ledger store.

    Operations are serialized by the ledger lock, so a single bound session
    per adapter is enough.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        """
        Initialize with SQLAlchemy async session factory.

        Args:
            session_factory: Callable that returns an AsyncSession
        """
        self._session_factory = session_factory
        self._session: Optional[AsyncSession] = None

    async def initialize(
        self,
        oracle: Optional[str] = None,
        collateral_token: Optional[str] = None,
    ) -> None:
        """
        Seed the scalar state row if it does not exist yet.

        Existing values are left untouched.
        """
        async with self._session_scope() as session:
            state = await session.get(LedgerStateModel, LEDGER_STATE_ROW_ID)
            if state is None:
                session.add(LedgerStateModel(
                    id=LEDGER_STATE_ROW_ID,
                    last_contract_id=0,
                    oracle=oracle,
                    collateral_token=collateral_token,
                ))
                await session.flush()
                logger.info("Ledger state initialized")

    # --- Transactions ---

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[None, None]:
        if self._session is not None:
            # Nested blocks join the outer unit of work
            yield
            return

        async with self._session_factory() as session:
            self._session = session
            try:
                yield
                await session.commit()
            except BaseException:
                await session.rollback()
                logger.debug("Ledger transaction rolled back")
                raise
            finally:
                self._session = None

    @asynccontextmanager
    async def _session_scope(self) -> AsyncGenerator[AsyncSession, None]:
        if self._session is not None:
            yield self._session
            return

        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception as e:
                await session.rollback()
                logger.error(f"Ledger store operation failed: {e}")
                raise

    async def _get_state(self, session: AsyncSession) -> LedgerStateModel:
        state = await session.get(LedgerStateModel, LEDGER_STATE_ROW_ID)
        if state is None:
            state = LedgerStateModel(id=LEDGER_STATE_ROW_ID, last_contract_id=0)
            session.add(state)
            await session.flush()
        return state

    # --- Scalar State ---

    async def get_last_contract_id(self) -> int:
        async with self._session_scope() as session:
            state = await session.get(LedgerStateModel, LEDGER_STATE_ROW_ID)
            return state.last_contract_id if state else 0

    async def set_last_contract_id(self, contract_id: int) -> None:
        async with self._session_scope() as session:
            state = await self._get_state(session)
            state.last_contract_id = contract_id
            await session.flush()

    async def get_oracle(self) -> Optional[str]:
        async with self._session_scope() as session:
            state = await session.get(LedgerStateModel, LEDGER_STATE_ROW_ID)
            return state.oracle if state else None

    async def set_oracle(self, principal: str) -> None:
        async with self._session_scope() as session:
            state = await self._get_state(session)
            state.oracle = principal
            await session.flush()

    async def get_collateral_token(self) -> Optional[str]:
        async with self._session_scope() as session:
            state = await session.get(LedgerStateModel, LEDGER_STATE_ROW_ID)
            return state.collateral_token if state else None

    async def set_collateral_token(self, token: str) -> None:
        async with self._session_scope() as session:
            state = await self._get_state(session)
            state.collateral_token = token
            await session.flush()

    # --- Prices ---

    async def get_price(self, symbol: str) -> Optional[int]:
        async with self._session_scope() as session:
            row = await session.get(PriceModel, symbol)
            return row.price if row else None

    async def set_price(self, symbol: str, price: int) -> None:
        async with self._session_scope() as session:
            row = await session.get(PriceModel, symbol)
            if row is None:
                session.add(PriceModel(symbol=symbol, price=price))
            else:
                row.price = price
            await session.flush()

    # --- Contracts ---

    async def get_contract(self, contract_id: int) -> Optional[FuturesContract]:
        async with self._session_scope() as session:
            row = await session.get(FuturesContractModel, contract_id)
            return self._map_db_contract_to_domain(row) if row else None

    async def save_contract(self, contract: FuturesContract) -> FuturesContract:
        async with self._session_scope() as session:
            row = await session.get(FuturesContractModel, contract.id)
            if row is None:
                session.add(FuturesContractModel(
                    id=contract.id,
                    symbol=contract.symbol,
                    expiry_height=contract.expiry_height,
                    active=contract.active,
                ))
            else:
                row.symbol = contract.symbol
                row.expiry_height = contract.expiry_height
                row.active = contract.active
            await session.flush()
        return contract

    # --- Positions ---

    async def get_position(self, key: PositionKey) -> Optional[Position]:
        async with self._session_scope() as session:
            row = await session.get(PositionModel, (key.user, key.contract_id))
            return self._map_db_position_to_domain(row) if row else None

    async def save_position(self, position: Position) -> Position:
        async with self._session_scope() as session:
            session.add(PositionModel(
                user=position.user,
                contract_id=position.contract_id,
                side=position.side.value,
                entry_price=position.entry_price,
                collateral_amount=position.collateral_amount,
                size=position.size,
            ))
            await session.flush()
        return position

    async def delete_position(self, key: PositionKey) -> bool:
        async with self._session_scope() as session:
            row = await session.get(PositionModel, (key.user, key.contract_id))
            if row is None:
                return False
            await session.delete(row)
            await session.flush()
            return True

    # --- Mapping ---

    @staticmethod
    def _map_db_contract_to_domain(row: FuturesContractModel) -> FuturesContract:
        return FuturesContract(
            id=row.id,
            symbol=row.symbol,
            expiry_height=row.expiry_height,
            active=row.active,
        )

    @staticmethod
    def _map_db_position_to_domain(row: PositionModel) -> Position:
        return Position(
            user=row.user,
            contract_id=row.contract_id,
            side=PositionSide(row.side),
            entry_price=row.entry_price,
            collateral_amount=row.collateral_amount,
            size=row.size,
        )
