"""
Configuration Management for FinanceFriend

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see which knobs exist and ensures all
configuration is validated at startup.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Local store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FINANCEFRIEND_STORAGE_",
        extra="ignore"
    )

    backend: str = Field(
        default="sqlite",
        pattern="^(sqlite|memory)$",
        description="Which storage backend to use"
    )
    database_path: str = Field(
        default="financefriend.db",
        description="Path to the SQLite database file"
    )
    audit_enabled: bool = Field(
        default=True,
        description="Persist audit events alongside the ledger"
    )

    @field_validator('database_path')
    @classmethod
    def validate_database_path(cls, v: str) -> str:
        """Warn if the parent directory doesn't exist (it might be mounted later)."""
        if v != ":memory:" and not Path(v).expanduser().parent.exists():
            import warnings
            warnings.warn(
                f"Directory for database {v} does not exist. "
                "Make sure it exists before running the application."
            )
        return v


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

    # Environment
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
        description="Minimum level for local structured logs"
    )

    # Display
    currency_symbol: str = Field(
        default="$",
        max_length=5,
        description="Symbol used when formatting money"
    )
    recent_transactions_limit: int = Field(
        default=4,
        ge=1,
        le=100,
        description="How many recent transactions the overview shows"
    )

    # Validation thresholds
    large_amount_warning_threshold: float = Field(
        default=100000.0,
        gt=0,
        description="Amounts above this get a non-blocking 'please double-check' warning"
    )

    @field_validator('log_level', mode='before')
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


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

    # Note: These are loaded lazily to allow partial configuration

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

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.storage
        results["storage"] = True
    except Exception as e:
        results["storage"] = False
        results["storage_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
