"""
TradePositionUseCase - Position lifecycle.

Opens, closes and liquidates leveraged positions, one per (user, contract).
Every precondition is checked before the first write, and the custody
transfer is always the last step so a refused transfer leaves nothing behind
once the surrounding transaction rolls back. Applied transfers are recorded so
they can be sent back if the transaction fails afterwards (e.g. on commit).
"""
import logging
from typing import List, Optional, Tuple, Union

from futures_ledger.application.dto.ledger import ExecutionContext
from futures_ledger.application.ports.outbound.custody_port import CustodyPort, CustodyError
from futures_ledger.application.ports.outbound.ledger_store_port import LedgerStorePort
from futures_ledger.domain.entities.futures_contract import FuturesContract
from futures_ledger.domain.entities.position import Position, PositionSide
from futures_ledger.domain.exceptions import (
    AlreadyExistsError,
    CustodyFailureError,
    ExpiredOrInactiveError,
    InsufficientFundsError,
    InvalidInputError,
    NotFoundError,
    UnliquidatableError,
)
from futures_ledger.domain.services.access_control import AccessControl
from futures_ledger.domain.services.margin_engine import MarginEngine
from futures_ledger.domain.value_objects.position_key import PositionKey

logger = logging.getLogger(__name__)


class TradePositionUseCase:
    """
    Use case for the open -> close / liquidate position state machine.

    States per (user, contract): Absent -> Open -> Absent. Reopening after a
    close or liquidation is allowed.
    """

    def __init__(
        self,
        store: LedgerStorePort,
        custody: CustodyPort,
        margin: MarginEngine,
        access: AccessControl,
        custody_principal: str,
    ):
        """
        Initialize with required ports.

        Args:
            store: Ledger state store
            custody: Collateral token gateway
            margin: Margin/PnL/liquidation arithmetic
            access: Owner/oracle role checks
            custody_principal: Principal holding escrowed collateral
        """
        self.store = store
        self.custody = custody
        self.margin = margin
        self.access = access
        self.custody_principal = custody_principal
        # (amount, sender, recipient) of transfers applied by the current operation
        self._applied_transfers: List[Tuple[int, str, str]] = []

    # --- Collateral Token ---

    async def set_collateral_token(self, ctx: ExecutionContext, token: str) -> bool:
        """Replace the collateral token identity. Owner only."""
        self.access.ensure_owner(ctx.caller)
        if not isinstance(token, str) or not token:
            raise InvalidInputError(f"Collateral token must be a non-empty string, got {token!r}")

        await self.store.set_collateral_token(token)
        logger.info(f"Collateral token set: {token}")
        return True

    async def get_collateral_token(self) -> Optional[str]:
        return await self.store.get_collateral_token()

    # --- Lifecycle ---

    async def open(
        self,
        ctx: ExecutionContext,
        contract_id: int,
        side: Union[PositionSide, str],
        size: int,
        token: str,
    ) -> Position:
        """
        Open a position for ctx.caller.

        Escrows required_collateral(size) from the caller and snapshots the
        current price as the entry price.

        Returns:
            The recorded position
        """
        await self._ensure_collateral_token(token)
        contract = await self._get_contract(contract_id)
        if not contract.is_tradable(ctx.height):
            raise ExpiredOrInactiveError(
                f"Contract {contract_id} is not tradable at height {ctx.height} "
                f"(active={contract.active}, expiry_height={contract.expiry_height})"
            )

        position_side = PositionSide.parse(side)
        required = self.margin.check_position_size(size)

        balance = await self._balance_of(ctx.caller)
        if balance < required:
            raise InsufficientFundsError(
                f"Insufficient balance. Available: {balance}, Required: {required}"
            )

        key = PositionKey(ctx.caller, contract_id)
        if await self.store.get_position(key) is not None:
            raise AlreadyExistsError(f"Position {key} already open")

        entry_price = await self._current_price(contract)

        position = Position(
            user=ctx.caller,
            contract_id=contract_id,
            side=position_side,
            entry_price=entry_price,
            collateral_amount=required,
            size=size,
        )
        await self.store.save_position(position)
        await self._transfer(required, ctx.caller, self.custody_principal)

        logger.info(
            f"Position opened: {key} {position_side.value} size={size} "
            f"entry={entry_price} collateral={required}"
        )
        return position

    async def close(self, ctx: ExecutionContext, contract_id: int, token: str) -> int:
        """
        Close the caller's position and pay out collateral + PnL.

        Returns:
            Signed PnL realised by the close
        """
        await self._ensure_collateral_token(token)
        contract = await self._get_contract(contract_id)
        key = PositionKey(ctx.caller, contract_id)
        position = await self._get_position(key)
        price = await self._current_price(contract)

        pnl = self.margin.position_pnl(position, price)
        payout = position.collateral_amount + pnl
        if payout < 0:
            raise InsufficientFundsError(
                f"Losses exceed collateral for {key}: collateral={position.collateral_amount} pnl={pnl}"
            )

        await self.store.delete_position(key)
        if payout > 0:
            await self._transfer(payout, self.custody_principal, ctx.caller)

        logger.info(f"Position closed: {key} price={price} pnl={pnl} payout={payout}")
        return pnl

    async def liquidate(
        self,
        ctx: ExecutionContext,
        user: str,
        contract_id: int,
        token: str,
    ) -> int:
        """
        Liquidate another user's underwater position.

        Callable by anyone. The caller receives the whole escrowed collateral.

        Returns:
            Reward paid to the caller
        """
        await self._ensure_collateral_token(token)
        key = PositionKey(user, contract_id)
        position = await self._get_position(key)
        contract = await self._get_contract(contract_id)
        price = await self._current_price(contract)

        if not self.margin.is_liquidatable(position, price):
            raise UnliquidatableError(
                f"Position {key} is solvent at price {price} "
                f"(liquidation price {self.margin.liquidation_price(position)})"
            )

        reward = position.collateral_amount
        await self.store.delete_position(key)
        await self._transfer(reward, self.custody_principal, ctx.caller)

        logger.info(f"Position liquidated: {key} by {ctx.caller} price={price} reward={reward}")
        return reward

    # --- Compensation ---

    def begin_operation(self) -> None:
        """Forget transfers recorded by a previous operation."""
        self._applied_transfers = []

    async def revert_transfers(self) -> None:
        """
        Send back every transfer applied by the current operation, newest first.

        Called when the surrounding transaction fails after custody already
        moved tokens. A reversal the token refuses is logged and the rest are
        still attempted.
        """
        applied, self._applied_transfers = self._applied_transfers, []
        for amount, sender, recipient in reversed(applied):
            try:
                reverted = await self.custody.transfer(amount, recipient, sender)
            except CustodyError as e:
                logger.error(
                    f"Reverting transfer of {amount} from {sender} to {recipient} failed: {e}"
                )
                continue
            if reverted:
                logger.warning(f"Reverted transfer of {amount} from {sender} to {recipient}")
            else:
                logger.error(
                    f"Reverting transfer of {amount} from {sender} to {recipient} was refused"
                )

    # --- Queries ---

    async def get_position(self, user: str, contract_id: int) -> Optional[Position]:
        return await self.store.get_position(PositionKey(user, contract_id))

    async def position_pnl(self, user: str, contract_id: int) -> int:
        """Unrealised signed PnL at the current price."""
        position = await self._get_position(PositionKey(user, contract_id))
        contract = await self._get_contract(contract_id)
        price = await self._current_price(contract)
        return self.margin.position_pnl(position, price)

    async def liquidation_price(self, user: str, contract_id: int) -> int:
        position = await self._get_position(PositionKey(user, contract_id))
        return self.margin.liquidation_price(position)

    # --- Private Methods ---

    async def _ensure_collateral_token(self, token: str) -> None:
        configured = await self.store.get_collateral_token()
        if configured is None or token != configured:
            raise InvalidInputError(
                f"Token {token!r} is not the collateral token ({configured!r})"
            )

    async def _get_contract(self, contract_id: int) -> FuturesContract:
        contract = await self.store.get_contract(contract_id)
        if contract is None:
            raise NotFoundError(f"Contract {contract_id} not found")
        return contract

    async def _get_position(self, key: PositionKey) -> Position:
        position = await self.store.get_position(key)
        if position is None:
            raise NotFoundError(f"Position {key} not found")
        return position

    async def _current_price(self, contract: FuturesContract) -> int:
        price = await self.store.get_price(contract.symbol)
        if price is None or price <= 0:
            raise NotFoundError(f"No price available for {contract.symbol}")
        return price

    async def _balance_of(self, principal: str) -> int:
        try:
            return await self.custody.balance_of(principal)
        except CustodyError as e:
            raise CustodyFailureError(f"Balance lookup failed for {principal}: {e}") from e

    async def _transfer(self, amount: int, sender: str, recipient: str) -> None:
        try:
            transferred = await self.custody.transfer(amount, sender, recipient)
        except CustodyError as e:
            raise CustodyFailureError(f"Collateral transfer failed: {e}") from e
        if not transferred:
            raise CustodyFailureError(
                f"Collateral transfer of {amount} from {sender} to {recipient} was refused"
            )
        self._applied_transfers.append((amount, sender, recipient))
