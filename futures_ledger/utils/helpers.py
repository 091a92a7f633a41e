"""
Utility functions
"""
from typing import Any


def is_strict_int(value: Any) -> bool:
    """True for int values, excluding bool."""
    return isinstance(value, int) and not isinstance(value, bool)


def is_uint(value: Any) -> bool:
    """True for non-negative ints."""
    return is_strict_int(value) and value >= 0


def format_amount(amount: int) -> str:
    """Format a token amount with thousands separators."""
    return f"{amount:,}"
