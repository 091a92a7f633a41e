"""
CustodyPort - Interface to the external collateral token.

The ledger escrows collateral by transferring tokens from the trader to its
own custody principal on open, and pays them out again on close or
liquidation. The token contract itself is an external collaborator.
"""
from abc import ABC, abstractmethod


class CustodyPort(ABC):
    """
    Port interface for the fungible collateral token.

    Amounts are non-negative integers. Adapters report a refused transfer by
    returning False; they may raise CustodyError when the token backend
    itself fails. Either outcome aborts the enclosing ledger operation.
    """

    @abstractmethod
    async def transfer(self, amount: int, sender: str, recipient: str) -> bool:
        """
        Move tokens between principals.

        Args:
            amount: Number of tokens to move
            sender: Principal debited
            recipient: Principal credited

        Returns:
            True if the transfer was applied
            False if the token refused it (e.g. insufficient balance)
        """
        pass

    @abstractmethod
    async def balance_of(self, principal: str) -> int:
        """
        Get a principal's token balance.

        Args:
            principal: Account to query

        Returns:
            Balance (0 for unknown principals)
        """
        pass


class CustodyError(Exception):
    """Raised by adapters when the token backend fails."""
    pass
