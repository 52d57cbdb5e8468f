"""
Configuration Management for Xpense

Uses pydantic-settings for type-safe configuration from environment variables.

All configuration is centralized here, one settings class per concern,
each with its own environment prefix. Thresholds are Decimal so that they
compare exactly against account balances.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """Ledger rules: alert thresholds and id generation."""

    model_config = SettingsConfigDict(
        env_prefix="XPENSE_LEDGER_",
        extra="ignore"
    )

    low_balance_threshold: Decimal = Field(
        default=Decimal("100.00"),
        ge=0,
        description="Balance floor below which a low-funds alert is raised"
    )
    spending_limit_threshold: Decimal = Field(
        default=Decimal("1000.00"),
        gt=0,
        description="Single expenditure amount above which a spending alert is raised"
    )
    expenditure_id_prefix: str = Field(
        default="EXP",
        min_length=1,
        max_length=10,
        description="Prefix for auto-generated expenditure ids"
    )
    expenditure_id_width: int = Field(
        default=4,
        ge=1,
        le=12,
        description="Zero-padded width of the numeric part of generated ids"
    )
    category_id_start: int = Field(
        default=1000,
        ge=0,
        description="First number used for generated category ids (CAT1000, ...)"
    )

    @field_validator('expenditure_id_prefix')
    @classmethod
    def validate_prefix(cls, v: str) -> str:
        """Generated ids are parsed back by suffix, so the prefix can't end in a digit."""
        v = v.strip()
        if not v or v[-1].isdigit() or "|" in v:
            raise ValueError(f"Invalid expenditure id prefix: {v!r}")
        return v


class StorageSettings(BaseSettings):
    """Flat-file persistence configuration."""

    model_config = SettingsConfigDict(
        env_prefix="XPENSE_STORAGE_",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=Path("data"),
        description="Directory holding the pipe-delimited data files"
    )

    # File names within data_dir
    expenditures_file: str = Field(default="expenditures.txt")
    categories_file: str = Field(default="categories.txt")
    accounts_file: str = Field(default="accounts.txt")
    receipts_file: str = Field(default="receipts.txt")

    write_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="How many times a failed file write is attempted"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Minimum level for structured logs"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with an extra
    "<name>_error" entry for every section that failed.
    """
    results = {}

    settings = get_settings()

    for name in ("ledger", "storage", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
