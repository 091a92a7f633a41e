"""
ManageContractsUseCase - Futures contract registry.

The owner registers fixed-expiry contracts and may deactivate them. Ids are
handed out sequentially from 1 and never reused.
"""
import logging
from typing import Optional

from futures_ledger.application.dto.ledger import ExecutionContext
from futures_ledger.application.ports.outbound.ledger_store_port import LedgerStorePort
from futures_ledger.domain.entities.futures_contract import FuturesContract
from futures_ledger.domain.exceptions import InvalidInputError, NotFoundError
from futures_ledger.domain.services.access_control import AccessControl
from futures_ledger.domain.value_objects.asset_symbol import AssetSymbol, MAX_SYMBOL_LENGTH
from futures_ledger.utils.helpers import is_strict_int

logger = logging.getLogger(__name__)


class ManageContractsUseCase:
    """
    Use case for creating, deactivating and reading futures contracts.
    """

    def __init__(
        self,
        store: LedgerStorePort,
        access: AccessControl,
        max_symbol_length: int = MAX_SYMBOL_LENGTH,
    ):
        """
        Initialize with required ports.

        Args:
            store: Ledger state store
            access: Owner/oracle role checks
            max_symbol_length: Longest accepted asset symbol
        """
        self.store = store
        self.access = access
        self.max_symbol_length = max_symbol_length

    async def create(
        self,
        ctx: ExecutionContext,
        symbol: str,
        expiry_in_blocks: int,
    ) -> int:
        """
        Register a new contract expiring expiry_in_blocks after ctx.height.

        Returns:
            The new contract id
        """
        self.access.ensure_owner(ctx.caller)

        if not is_strict_int(expiry_in_blocks) or expiry_in_blocks <= 0:
            raise InvalidInputError(
                f"Expiry must be a positive number of blocks, got {expiry_in_blocks!r}"
            )
        asset = AssetSymbol.parse(symbol, self.max_symbol_length)

        contract_id = await self.store.get_last_contract_id() + 1
        contract = FuturesContract.register(
            contract_id=contract_id,
            symbol=asset.value,
            current_height=ctx.height,
            expiry_in_blocks=expiry_in_blocks,
        )
        await self.store.save_contract(contract)
        await self.store.set_last_contract_id(contract_id)

        logger.info(
            f"Contract created: id={contract_id} symbol={asset} "
            f"expiry_height={contract.expiry_height}"
        )
        return contract_id

    async def deactivate(self, ctx: ExecutionContext, contract_id: int) -> bool:
        """Deactivate a contract. Inactive contracts stay inactive."""
        self.access.ensure_owner(ctx.caller)

        contract = await self.store.get_contract(contract_id)
        if contract is None:
            raise NotFoundError(f"Contract {contract_id} not found")

        await self.store.save_contract(contract.deactivate())
        logger.info(f"Contract deactivated: id={contract_id}")
        return True

    async def get(self, contract_id: int) -> Optional[FuturesContract]:
        """Get a contract by id."""
        return await self.store.get_contract(contract_id)

    async def get_last_contract_id(self) -> int:
        """Highest id issued so far (0 before the first create)."""
        return await self.store.get_last_contract_id()
