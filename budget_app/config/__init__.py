"""Configuration package."""

from budget_app.config.settings import (
    AppSettings,
    GoogleSheetsSettings,
    LocalStorageSettings,
    Settings,
    SyncSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GoogleSheetsSettings",
    "LocalStorageSettings",
    "Settings",
    "SyncSettings",
    "get_settings",
    "validate_all_settings",
]
