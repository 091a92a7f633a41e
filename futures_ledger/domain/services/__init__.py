"""Domain services."""
from futures_ledger.domain.services.access_control import AccessControl
from futures_ledger.domain.services.margin_engine import (
    MarginEngine,
    COLLATERAL_SCALE,
    DEFAULT_LEVERAGE,
    DEFAULT_MIN_COLLATERAL,
    DEFAULT_MAX_POSITION_SIZE,
)

__all__ = [
    "AccessControl",
    "MarginEngine",
    "COLLATERAL_SCALE",
    "DEFAULT_LEVERAGE",
    "DEFAULT_MIN_COLLATERAL",
    "DEFAULT_MAX_POSITION_SIZE",
]
