"""
Configuration Management for Debt Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Interest rate, starting balance and the undo depth are settings rather than
literals so a household can track a loan with different terms.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """Loan terms and undo depth."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    annual_rate: float = Field(
        default=0.15,
        ge=0.0,
        le=10.0,
        description="Annual interest rate (0.15 = 15%)"
    )
    days_in_year: int = Field(
        default=365,
        ge=360,
        le=366,
        description="Day count used to derive the daily rate"
    )
    initial_balance: float = Field(
        default=100000.0,
        ge=0.0,
        description="Balance used when nothing has been saved yet"
    )
    max_history: int = Field(
        default=10,
        ge=1,
        le=100,
        description="How many operations can be undone"
    )

    @property
    def daily_rate(self) -> float:
        """Annual rate spread over the day count."""
        return self.annual_rate / self.days_in_year


class StorageSettings(BaseSettings):
    """Where ledger state is persisted."""

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: Literal["json_file", "google_sheets", "memory"] = Field(
        default="json_file",
        description="Persistence backend"
    )
    json_path: Path = Field(
        default=Path("~/.debt_tracker/state.json"),
        description="State file for the json_file backend"
    )

    @field_validator('json_path')
    @classmethod
    def expand_user(cls, v: Path) -> Path:
        return v.expanduser()


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Sheet names within the spreadsheet
    state_sheet_name: str = Field(
        default="State",
        description="Name of the key/value sheet holding ledger state"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class DisplaySettings(BaseSettings):
    """Presentation preferences."""

    model_config = SettingsConfigDict(
        env_prefix="DISPLAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    locale: str = Field(
        default="ja_JP",
        description="Locale used for date formatting"
    )
    animation_duration_ms: int = Field(
        default=800,
        ge=0,
        le=10000,
        description="Length of the balance counter animation"
    )
    frame_interval_ms: int = Field(
        default=16,
        ge=1,
        le=1000,
        description="Delay between animation frames"
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
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def display(self) -> DisplaySettings:
        return DisplaySettings()

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

    Returns a dict of {setting_name: is_valid}, with a
    "<name>_error" entry holding the message for each failure.
    """
    results = {}
    settings = get_settings()

    for name in ("ledger", "storage", "google_sheets", "display", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
