"""Configuration package."""

from debt_tracker.config.settings import (
    AppSettings,
    DisplaySettings,
    GoogleSheetsSettings,
    LedgerSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "DisplaySettings",
    "GoogleSheetsSettings",
    "LedgerSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
