"""Configuration module."""
from .settings import LedgerSettings, settings

__all__ = ['LedgerSettings', 'settings']
