"""
Ledger settings.

Values come from environment variables prefixed with LEDGER_ (or a .env file)
and are validated on load.
"""
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from futures_ledger.domain.value_objects.asset_symbol import MAX_SYMBOL_LENGTH as SYMBOL_COLUMN_LENGTH

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class LedgerSettings(BaseSettings):
    """Futures ledger configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="LEDGER_",
        case_sensitive=True,
        extra="ignore",
    )

    # Identities
    OWNER_PRINCIPAL: str = "ledger-owner"
    CUSTODY_PRINCIPAL: str = "futures-ledger"
    COLLATERAL_TOKEN: Optional[str] = None

    # Margin limits
    LEVERAGE: int = 2
    MIN_COLLATERAL: int = 1000
    MAX_POSITION_SIZE: int = 1_000_000_000
    MAX_SYMBOL_LENGTH: int = SYMBOL_COLUMN_LENGTH

    # Storage
    DATABASE_URL: str = "sqlite+aiosqlite:///./futures_ledger.db"

    # Logging
    LOG_LEVEL: str = "INFO"

    @field_validator("OWNER_PRINCIPAL", "CUSTODY_PRINCIPAL")
    @classmethod
    def principal_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("principal must not be empty")
        return v.strip()

    @field_validator("LEVERAGE", "MIN_COLLATERAL", "MAX_POSITION_SIZE", "MAX_SYMBOL_LENGTH")
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be greater than 0")
        return v

    @field_validator("MAX_SYMBOL_LENGTH")
    @classmethod
    def fits_symbol_column(cls, v: int) -> int:
        if v > SYMBOL_COLUMN_LENGTH:
            raise ValueError(f"must not exceed the stored symbol length {SYMBOL_COLUMN_LENGTH}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def known_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(VALID_LOG_LEVELS)}")
        return level


settings = LedgerSettings()
