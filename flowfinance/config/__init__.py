"""Configuration package."""

from flowfinance.config.settings import (
    GeminiSettings,
    GoogleSheetsSettings,
    LedgerSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "GeminiSettings",
    "GoogleSheetsSettings",
    "LedgerSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
