"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

import decimal
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


ROUNDING_MODES = (
    decimal.ROUND_UP,
    decimal.ROUND_DOWN,
    decimal.ROUND_CEILING,
    decimal.ROUND_FLOOR,
    decimal.ROUND_HALF_UP,
    decimal.ROUND_HALF_DOWN,
    decimal.ROUND_HALF_EVEN,
    decimal.ROUND_05UP,
)


class WalletLedgerConfig(BaseSettings):
    """Wallet ledger configuration"""

    # Arithmetic configuration
    rounding_mode: str = decimal.ROUND_HALF_UP  # Half away from zero
    default_decimal_places: int = 2  # Used when creating wallets without explicit precision

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stderr

    model_config = SettingsConfigDict(
        env_prefix="WALLET_LEDGER_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("rounding_mode")
    @classmethod
    def _check_rounding_mode(cls, value: str) -> str:
        value = value.upper()
        if value not in ROUNDING_MODES:
            raise ValueError(f"Unknown rounding mode '{value}'")
        return value

    @field_validator("default_decimal_places")
    @classmethod
    def _check_decimal_places(cls, value: int) -> int:
        if value < 0:
            raise ValueError("default_decimal_places must be non-negative")
        return value

    @field_validator("log_format")
    @classmethod
    def _check_log_format(cls, value: str) -> str:
        value = value.lower()
        if value not in ("json", "text"):
            raise ValueError("log_format must be 'json' or 'text'")
        return value


# Global configuration instance
config = WalletLedgerConfig()


def get_config() -> WalletLedgerConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> WalletLedgerConfig:
    """Reload configuration from environment"""
    global config
    config = WalletLedgerConfig()
    return config
