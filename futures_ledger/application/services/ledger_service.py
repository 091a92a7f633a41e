"""
Ledger Service

Public operation surface of the futures ledger.

Every operation runs under the ledger lock, so operations are strictly
serialized. Write operations additionally run inside one store transaction:
either all of their writes and the custody transfer take effect, or none do.
If the transaction fails after custody already moved tokens (a failed
commit), the applied transfers are sent back.

Domain failures come back as LedgerResponse values carrying an ErrorCode.
Infrastructure failures are logged and re-raised: storage errors, and
LockAcquisitionError when the ledger lock cannot be taken within
lock_timeout_seconds.
"""
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

from futures_ledger.application.dto.ledger import ExecutionContext, LedgerResponse
from futures_ledger.application.ports.outbound.ledger_store_port import LedgerStorePort
from futures_ledger.application.ports.outbound.lock_port import LockPort, LEDGER_LOCK
from futures_ledger.application.use_cases.manage_contracts import ManageContractsUseCase
from futures_ledger.application.use_cases.publish_price import PublishPriceUseCase
from futures_ledger.application.use_cases.trade_position import TradePositionUseCase
from futures_ledger.domain.entities.futures_contract import FuturesContract
from futures_ledger.domain.entities.position import Position, PositionSide
from futures_ledger.domain.exceptions import LedgerError
from futures_ledger.domain.services.margin_engine import MarginEngine

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_LOCK_TIMEOUT_SECONDS = 30


class LedgerService:
    """
    Serialized, transactional facade over the ledger use cases.

    Usage:
        service = container.get_ledger_service()
        owner = ExecutionContext(caller="ledger-owner", height=100)

        response = await service.create_contract(owner, "PET", 1000)
        if response.success:
            contract_id = response.value
    """

    def __init__(
        self,
        store: LedgerStorePort,
        lock: LockPort,
        contracts: ManageContractsUseCase,
        prices: PublishPriceUseCase,
        positions: TradePositionUseCase,
        margin: MarginEngine,
        lock_timeout_seconds: float = DEFAULT_LOCK_TIMEOUT_SECONDS,
    ):
        self.store = store
        self.lock = lock
        self.contracts = contracts
        self.prices = prices
        self.positions = positions
        self.margin = margin
        self.lock_timeout_seconds = lock_timeout_seconds

    # --- Administration ---

    async def set_oracle(self, ctx: ExecutionContext, principal: str) -> LedgerResponse:
        return await self._write("set_oracle", ctx, lambda: self.prices.set_oracle(ctx, principal))

    async def set_collateral_token(self, ctx: ExecutionContext, token: str) -> LedgerResponse:
        return await self._write(
            "set_collateral_token", ctx,
            lambda: self.positions.set_collateral_token(ctx, token),
        )

    # --- Contract Registry ---

    async def create_contract(
        self,
        ctx: ExecutionContext,
        symbol: str,
        expiry_in_blocks: int,
    ) -> LedgerResponse:
        """Register a contract. Value on success: the new contract id."""
        return await self._write(
            "create_contract", ctx,
            lambda: self.contracts.create(ctx, symbol, expiry_in_blocks),
        )

    async def deactivate_contract(self, ctx: ExecutionContext, contract_id: int) -> LedgerResponse:
        return await self._write(
            "deactivate_contract", ctx,
            lambda: self.contracts.deactivate(ctx, contract_id),
        )

    # --- Price Feed ---

    async def update_price(self, ctx: ExecutionContext, symbol: str, price: int) -> LedgerResponse:
        return await self._write(
            "update_price", ctx,
            lambda: self.prices.update(ctx, symbol, price),
        )

    # --- Positions ---

    async def open_position(
        self,
        ctx: ExecutionContext,
        contract_id: int,
        side: Union[PositionSide, str],
        size: int,
        token: str,
    ) -> LedgerResponse:
        """Open a position. Value on success: the recorded Position."""
        return await self._write(
            "open_position", ctx,
            lambda: self.positions.open(ctx, contract_id, side, size, token),
        )

    async def close_position(
        self,
        ctx: ExecutionContext,
        contract_id: int,
        token: str,
    ) -> LedgerResponse:
        """Close the caller's position. Value on success: the signed PnL."""
        return await self._write(
            "close_position", ctx,
            lambda: self.positions.close(ctx, contract_id, token),
        )

    async def liquidate_position(
        self,
        ctx: ExecutionContext,
        user: str,
        contract_id: int,
        token: str,
    ) -> LedgerResponse:
        """Liquidate a position. Value on success: the reward paid to the caller."""
        return await self._write(
            "liquidate_position", ctx,
            lambda: self.positions.liquidate(ctx, user, contract_id, token),
        )

    # --- Read Operations ---

    async def get_contract(self, contract_id: int) -> Optional[FuturesContract]:
        return await self._read(lambda: self.contracts.get(contract_id))

    async def get_position(self, user: str, contract_id: int) -> Optional[Position]:
        return await self._read(lambda: self.positions.get_position(user, contract_id))

    async def get_price(self, symbol: str) -> Optional[int]:
        return await self._read(lambda: self.prices.get(symbol))

    async def get_oracle(self) -> Optional[str]:
        return await self._read(self.prices.get_oracle)

    async def get_collateral_token(self) -> Optional[str]:
        return await self._read(self.positions.get_collateral_token)

    async def get_last_contract_id(self) -> int:
        return await self._read(self.contracts.get_last_contract_id)

    async def calculate_liquidation_price(self, user: str, contract_id: int) -> LedgerResponse:
        return await self._query(lambda: self.positions.liquidation_price(user, contract_id))

    async def get_position_pnl(self, user: str, contract_id: int) -> LedgerResponse:
        return await self._query(lambda: self.positions.position_pnl(user, contract_id))

    # --- Margin Queries (no state) ---

    def calculate_required_collateral(self, size: int) -> LedgerResponse:
        try:
            return LedgerResponse.success_response(self.margin.required_collateral(size))
        except LedgerError as e:
            return LedgerResponse.from_error(e)

    def calculate_pnl(
        self,
        side: Union[PositionSide, str],
        entry_price: int,
        current_price: int,
        size: int,
    ) -> LedgerResponse:
        try:
            return LedgerResponse.success_response(
                self.margin.pnl(side, entry_price, current_price, size)
            )
        except LedgerError as e:
            return LedgerResponse.from_error(e)

    # --- Private Methods ---

    async def _write(
        self,
        operation: str,
        ctx: ExecutionContext,
        action: Callable[[], Awaitable[Any]],
    ) -> LedgerResponse:
        async with self.lock.hold(LEDGER_LOCK, self.lock_timeout_seconds):
            self.positions.begin_operation()
            try:
                async with self.store.transaction():
                    value = await action()
            except LedgerError as e:
                await self.positions.revert_transfers()
                logger.warning(
                    f"{operation} rejected for {ctx.caller} at height {ctx.height}: "
                    f"{e.error_code.value} - {e.message}"
                )
                return LedgerResponse.from_error(e)
            except Exception as e:
                await self.positions.revert_transfers()
                logger.error(f"{operation} failed for {ctx.caller}: {e}")
                raise

        return LedgerResponse.success_response(value)

    async def _read(self, action: Callable[[], Awaitable[T]]) -> T:
        async with self.lock.hold(LEDGER_LOCK, self.lock_timeout_seconds):
            return await action()

    async def _query(self, action: Callable[[], Awaitable[Any]]) -> LedgerResponse:
        try:
            value = await self._read(action)
        except LedgerError as e:
            return LedgerResponse.from_error(e)
        return LedgerResponse.success_response(value)
