"""
PublishPriceUseCase - Oracle-fed price table.

One latest price per asset symbol, written only by the configured oracle.
There is no history and no staleness window.
"""
import logging
from typing import Optional

from futures_ledger.application.dto.ledger import ExecutionContext
from futures_ledger.application.ports.outbound.ledger_store_port import LedgerStorePort
from futures_ledger.domain.exceptions import InvalidInputError
from futures_ledger.domain.services.access_control import AccessControl
from futures_ledger.domain.value_objects.asset_symbol import AssetSymbol, MAX_SYMBOL_LENGTH
from futures_ledger.utils.helpers import is_strict_int

logger = logging.getLogger(__name__)


class PublishPriceUseCase:
    """
    Use case for oracle management and price updates.
    """

    def __init__(
        self,
        store: LedgerStorePort,
        access: AccessControl,
        max_symbol_length: int = MAX_SYMBOL_LENGTH,
    ):
        self.store = store
        self.access = access
        self.max_symbol_length = max_symbol_length

    async def set_oracle(self, ctx: ExecutionContext, principal: str) -> bool:
        """
        Replace the oracle principal.

        Owner only. Reassignment is unrestricted and no history is kept.
        """
        self.access.ensure_owner(ctx.caller)
        if not isinstance(principal, str) or not principal:
            raise InvalidInputError(f"Oracle principal must be a non-empty string, got {principal!r}")

        await self.store.set_oracle(principal)
        logger.info(f"Oracle set: {principal}")
        return True

    async def update(self, ctx: ExecutionContext, symbol: str, price: int) -> bool:
        """
        Overwrite the price of a symbol.

        Args:
            ctx: Caller must be the configured oracle
            symbol: Asset symbol
            price: New price, must be > 0
        """
        oracle = await self.store.get_oracle()
        self.access.ensure_oracle(ctx.caller, oracle)

        if not is_strict_int(price) or price <= 0:
            raise InvalidInputError(f"Price must be a positive integer, got {price!r}")
        asset = AssetSymbol.parse(symbol, self.max_symbol_length)

        await self.store.set_price(asset.value, price)
        logger.info(f"Price updated: {asset}={price} at height {ctx.height}")
        return True

    async def get(self, symbol: str) -> Optional[int]:
        """Latest price for a symbol, or None."""
        return await self.store.get_price(symbol)

    async def get_oracle(self) -> Optional[str]:
        """Configured oracle principal, or None."""
        return await self.store.get_oracle()
