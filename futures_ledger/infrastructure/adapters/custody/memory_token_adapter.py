"""
InMemoryTokenAdapter - In-memory fungible token implementing CustodyPort.

A balance book with fungible-token transfer semantics: transfers of zero or
negative amounts and transfers exceeding the sender's balance are refused.
"""
import logging
from typing import Dict

from futures_ledger.application.ports.outbound.custody_port import CustodyPort
from futures_ledger.utils.helpers import is_strict_int

logger = logging.getLogger(__name__)


class InMemoryTokenAdapter(CustodyPort):
    """
    In-memory collateral token.

    Useful for tests and scenario replays without a real token backend.
    """

    def __init__(self, token_id: str = "collateral-token"):
        """
        Initialize an empty balance book.

        Args:
            token_id: Identity of the token this book represents
        """
        self.token_id = token_id
        self._balances: Dict[str, int] = {}

    def clear(self):
        """Clear all balances. Useful for test cleanup."""
        self._balances.clear()

    def mint(self, principal: str, amount: int) -> int:
        """
        Credit freshly minted tokens to a principal.

        Returns:
            The principal's new balance
        """
        if not is_strict_int(amount) or amount <= 0:
            raise ValueError(f"Mint amount must be a positive integer: {amount!r}")
        self._balances[principal] = self._balances.get(principal, 0) + amount
        logger.debug(f"Minted {amount} {self.token_id} to {principal}")
        return self._balances[principal]

    async def transfer(self, amount: int, sender: str, recipient: str) -> bool:
        """Move tokens; False when the amount is invalid or the sender is short."""
        if not is_strict_int(amount) or amount <= 0:
            logger.warning(f"{self.token_id} transfer refused: invalid amount {amount!r}")
            return False

        available = self._balances.get(sender, 0)
        if available < amount:
            logger.warning(
                f"{self.token_id} transfer refused: {sender} has {available}, needs {amount}"
            )
            return False

        self._balances[sender] = available - amount
        self._balances[recipient] = self._balances.get(recipient, 0) + amount
        return True

    async def balance_of(self, principal: str) -> int:
        return self._balances.get(principal, 0)

    @property
    def total_supply(self) -> int:
        return sum(self._balances.values())
