"""
Budget App configuration.

Every tunable value is read from the environment (or a .env file) through
pydantic-settings, one section per concern with its own variable prefix.

DESIGN DECISION: Sections are built on access, not at import. A missing
Google Sheets setup then only fails the remote section, and a session can
still run on the local save slot.
"""

import warnings
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SyncSettings(BaseSettings):
    """Remote sync timing."""

    model_config = SettingsConfigDict(env_prefix="SYNC_", extra="ignore")

    debounce_seconds: float = Field(
        default=2.0,
        ge=0.0,
        le=60.0,
        description="Quiet period before a local change is written remotely"
    )
    poll_interval_seconds: float = Field(
        default=5.0,
        gt=0.0,
        description="How often polling stores check the remote document"
    )


class GoogleSheetsSettings(BaseSettings):
    """Where the per-user state documents are kept in Google Sheets."""

    model_config = SettingsConfigDict(env_prefix="GOOGLE_SHEETS_", extra="ignore")

    credentials_path: str = Field(
        ...,
        description="Service account key file used to reach the spreadsheet"
    )
    spreadsheet_id: str = Field(
        ...,
        description="Spreadsheet holding the documents worksheet"
    )
    documents_sheet_name: str = Field(
        default="Documents",
        description="Worksheet with one state document row per user"
    )

    @field_validator('credentials_path')
    @classmethod
    def check_credentials_file(cls, path: str) -> str:
        """A missing key file is only a warning; it may be mounted before sync starts."""
        if not Path(path).exists():
            warnings.warn(
                f"Service account key not found at {path}; "
                "remote sessions will fail until it is provided."
            )
        return path


class LocalStorageSettings(BaseSettings):
    """Offline fallback storage configuration."""

    model_config = SettingsConfigDict(env_prefix="LOCAL_STORAGE_", extra="ignore")

    path: str = Field(
        default=".budget_app/storage.json",
        description="JSON file backing the local key-value store"
    )
    storage_key: str = Field(
        default="budgetApp",
        min_length=1,
        description="Save slot holding the serialized AppState"
    )


class AppSettings(BaseSettings):
    """Process-wide options, read without a prefix."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
        description="Deployment name bound into every log line"
    )
    debug_mode: bool = Field(
        default=False,
        description="Log at DEBUG whatever log_level says"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Minimum log level"
    )


class Settings(BaseSettings):
    """Entry point to every configuration section."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def sync(self) -> SyncSettings:
        return SyncSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def local_storage(self) -> LocalStorageSettings:
        return LocalStorageSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


SECTIONS = ("sync", "google_sheets", "local_storage", "app")


@lru_cache()
def get_settings() -> Settings:
    """Shared Settings instance. Tests reset it with get_settings.cache_clear()."""
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Try to load every section.

    Returns {section: loaded}, with a `<section>_error` message for each
    section that could not be loaded.
    """
    settings = get_settings()
    results: dict[str, bool] = {}

    for name in SECTIONS:
        try:
            getattr(settings, name)
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)
        else:
            results[name] = True

    return results
