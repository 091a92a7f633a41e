"""
AccessControl Domain Service

Single-principal role checks for the ledger owner and the price oracle.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from futures_ledger.domain.exceptions import UnauthorizedError


@dataclass(frozen=True)
class AccessControl:
    """
    Role checks against a fixed owner identity.

    The owner is set once when the ledger is wired and never changes. The
    oracle is stored with the rest of the ledger state and passed in on every
    check.

    Attributes:
        owner: Principal allowed to run administrative operations
    """
    owner: str

    def __post_init__(self) -> None:
        if not self.owner:
            raise ValueError("Owner principal must not be empty")

    def is_owner(self, caller: str) -> bool:
        return caller == self.owner

    def ensure_owner(self, caller: str) -> None:
        """Raise UnauthorizedError unless caller is the owner."""
        if not self.is_owner(caller):
            raise UnauthorizedError(f"Caller {caller} is not the ledger owner")

    def ensure_oracle(self, caller: str, oracle: Optional[str]) -> None:
        """Raise UnauthorizedError unless an oracle is configured and caller is it."""
        if oracle is None:
            raise UnauthorizedError("No price oracle is configured")
        if caller != oracle:
            raise UnauthorizedError(f"Caller {caller} is not the price oracle")
