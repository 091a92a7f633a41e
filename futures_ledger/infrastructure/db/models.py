"""
Ledger ORM models.

Tables:
- ledger_state: single row of scalar state
- prices: latest price per asset symbol
- futures_contracts: contract registry
- positions: open positions, composite key (user, contract_id)
"""
from typing import Optional

from sqlalchemy import BigInteger, Boolean, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from futures_ledger.domain.value_objects.asset_symbol import MAX_SYMBOL_LENGTH
from futures_ledger.infrastructure.db.base import Base

LEDGER_STATE_ROW_ID = 1


class LedgerStateModel(Base):
    """Scalar ledger state (one row)."""
    __tablename__ = "ledger_state"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=LEDGER_STATE_ROW_ID)

    last_contract_id: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
        comment="Highest contract id issued"
    )

    oracle: Mapped[Optional[str]] = mapped_column(
        String(128), nullable=True,
        comment="Principal allowed to publish prices"
    )

    collateral_token: Mapped[Optional[str]] = mapped_column(
        String(128), nullable=True,
        comment="Collateral token identity"
    )

    def __repr__(self) -> str:
        return f"<LedgerState last_id={self.last_contract_id} oracle={self.oracle}>"


class PriceModel(Base):
    """Latest price per asset symbol."""
    __tablename__ = "prices"

    symbol: Mapped[str] = mapped_column(String(MAX_SYMBOL_LENGTH), primary_key=True)
    price: Mapped[int] = mapped_column(BigInteger, nullable=False)

    def __repr__(self) -> str:
        return f"<Price {self.symbol}={self.price}>"


class FuturesContractModel(Base):
    """Futures contract registry."""
    __tablename__ = "futures_contracts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    symbol: Mapped[str] = mapped_column(String(MAX_SYMBOL_LENGTH), nullable=False, index=True)
    expiry_height: Mapped[int] = mapped_column(BigInteger, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<FuturesContract {self.id} {self.symbol} expiry={self.expiry_height} active={self.active}>"


class PositionModel(Base):
    """Open positions."""
    __tablename__ = "positions"

    user: Mapped[str] = mapped_column(String(128), primary_key=True)
    contract_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("futures_contracts.id"), primary_key=True
    )
    side: Mapped[str] = mapped_column(String(8), nullable=False)
    entry_price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    collateral_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    size: Mapped[int] = mapped_column(BigInteger, nullable=False)

    def __repr__(self) -> str:
        return f"<Position {self.user}/{self.contract_id} {self.side} size={self.size}>"
