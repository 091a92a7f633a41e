"""Utility module."""
from .helpers import is_strict_int, is_uint, format_amount

__all__ = ['is_strict_int', 'is_uint', 'format_amount']
