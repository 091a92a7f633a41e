"""
MarginEngine Domain Service

Pure integer arithmetic for collateral requirements, profit and loss, and
liquidation prices. Holds no state beyond its configured limits.
"""
from __future__ import annotations
from dataclasses import dataclass

from futures_ledger.domain.entities.position import Position, PositionSide
from futures_ledger.domain.exceptions import InsufficientFundsError, InvalidInputError
from futures_ledger.utils.helpers import is_strict_int, is_uint

# required collateral = size * COLLATERAL_SCALE // leverage
COLLATERAL_SCALE = 100
DEFAULT_LEVERAGE = 2
DEFAULT_MIN_COLLATERAL = 1000
DEFAULT_MAX_POSITION_SIZE = 1_000_000_000


def _require_price(value, name: str) -> int:
    if not is_strict_int(value) or value <= 0:
        raise InvalidInputError(f"{name} must be a positive integer, got {value!r}")
    return value


@dataclass(frozen=True)
class MarginEngine:
    """
    Domain service for margin, PnL and liquidation math.

    All divisions are integer floor divisions on non-negative operands.
    PnL is a signed Python int; it is never derived by subtracting from an
    unsigned zero.

    Attributes:
        leverage: Ratio of notional to collateral (2 means 50% margin)
        min_collateral: Smallest collateral a position may escrow
        max_position_size: Largest size a position may request
    """
    leverage: int = DEFAULT_LEVERAGE
    min_collateral: int = DEFAULT_MIN_COLLATERAL
    max_position_size: int = DEFAULT_MAX_POSITION_SIZE

    def __post_init__(self) -> None:
        if not is_strict_int(self.leverage) or self.leverage <= 0:
            raise ValueError(f"Leverage must be a positive integer: {self.leverage!r}")
        if not is_strict_int(self.min_collateral) or self.min_collateral <= 0:
            raise ValueError(f"Minimum collateral must be a positive integer: {self.min_collateral!r}")
        if not is_strict_int(self.max_position_size) or self.max_position_size <= 0:
            raise ValueError(f"Maximum position size must be a positive integer: {self.max_position_size!r}")

    # --- Factory Methods ---

    @classmethod
    def from_settings(cls, settings) -> MarginEngine:
        """Create an engine from LedgerSettings."""
        return cls(
            leverage=settings.LEVERAGE,
            min_collateral=settings.MIN_COLLATERAL,
            max_position_size=settings.MAX_POSITION_SIZE,
        )

    # --- Collateral ---

    def required_collateral(self, size: int) -> int:
        """Collateral needed to open a position of the given size."""
        if not is_uint(size):
            raise InvalidInputError(f"Position size must be a non-negative integer, got {size!r}")
        return size * COLLATERAL_SCALE // self.leverage

    def check_position_size(self, size: int) -> int:
        """
        Validate a requested size and return its required collateral.

        Raises:
            InvalidInputError: If size is not a non-negative int or exceeds the maximum
            InsufficientFundsError: If the required collateral is below the minimum
        """
        if not is_uint(size):
            raise InvalidInputError(f"Position size must be a non-negative integer, got {size!r}")
        if size > self.max_position_size:
            raise InvalidInputError(
                f"Position size {size} exceeds maximum {self.max_position_size}"
            )
        required = self.required_collateral(size)
        if required < self.min_collateral:
            raise InsufficientFundsError(
                f"Required collateral {required} below minimum {self.min_collateral}"
            )
        return required

    # --- Profit and Loss ---

    def pnl(self, side: PositionSide, entry: int, current: int, size: int) -> int:
        """
        Signed profit or loss of a position.

        magnitude = |current - entry| * size // entry, positive when the price
        moved in the position's favour (or not at all).
        """
        side = PositionSide.parse(side)
        _require_price(entry, "Entry price")
        _require_price(current, "Current price")
        if not is_uint(size):
            raise InvalidInputError(f"Position size must be a non-negative integer, got {size!r}")

        magnitude = abs(current - entry) * size // entry
        if side == PositionSide.LONG:
            favourable = current >= entry
        else:
            favourable = entry >= current
        return magnitude if favourable else -magnitude

    def position_pnl(self, position: Position, current: int) -> int:
        """PnL of a recorded position at the current price."""
        return self.pnl(position.side, position.entry_price, current, position.size)

    # --- Liquidation ---

    def liquidation_price(self, position: Position) -> int:
        """
        Price at which the position becomes liquidatable.

        Long: entry - collateral * entry // size, clamped at 0.
        Short: entry + collateral * entry // size.
        """
        if position.size <= 0:
            raise InvalidInputError(f"Position size must be positive, got {position.size}")
        buffer = position.collateral_amount * position.entry_price // position.size
        if position.side == PositionSide.LONG:
            return max(position.entry_price - buffer, 0)
        return position.entry_price + buffer

    def is_liquidatable(self, position: Position, current: int) -> bool:
        """Check the liquidation condition at the current price."""
        _require_price(current, "Current price")
        threshold = self.liquidation_price(position)
        if position.side == PositionSide.LONG:
            return current <= threshold
        return current >= threshold
