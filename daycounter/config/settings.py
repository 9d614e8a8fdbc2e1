"""
Configuration Management for Day Counter

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets document store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
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

    # Every document (registries and day aggregates) lives on one sheet
    documents_sheet_name: str = Field(
        default="Documents",
        description="Name of the sheet holding the counter documents"
    )
    transaction_max_attempts: int = Field(
        default=5,
        ge=1,
        le=20,
        description="How many times a conflicting transaction is retried"
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


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="DAYCOUNTER_",
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

    # Storage
    storage_backend: Literal["memory", "google_sheets"] = Field(
        default="memory",
        description="Which document store backs the counters"
    )

    # Initial load
    default_user: str = Field(
        default="Klara",
        min_length=1,
        description="User selected on start-up"
    )
    starter_counter_names: str = Field(
        default="Wedding,Fatness",
        description="Comma-separated counters registered for a user with an empty registry"
    )

    # Day boundaries
    day_key_timezone: Optional[str] = Field(
        default=None,
        description="IANA timezone for day keys (process-local time when unset)"
    )

    @field_validator('day_key_timezone')
    @classmethod
    def validate_day_key_timezone(cls, v: Optional[str]) -> Optional[str]:
        """Reject timezone names the tz database does not know."""
        if v is None or not v.strip():
            return None
        try:
            ZoneInfo(v.strip())
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v}")
        return v.strip()

    @property
    def starter_counters_list(self) -> list[str]:
        """Get starter counter names as a list, keeping their order."""
        names = []
        for name in self.starter_counter_names.split(","):
            name = name.strip()
            if name and name not in names:
                names.append(name)
        return names

    @property
    def day_key_tzinfo(self) -> Optional[ZoneInfo]:
        """Get the configured day-key timezone, if any."""
        if self.day_key_timezone is None:
            return None
        return ZoneInfo(self.day_key_timezone)


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

    # Sub-settings are loaded lazily so the in-memory store
    # works without any Google configuration

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

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
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    try:
        _ = settings.google_sheets
        results["google_sheets"] = True
    except Exception as e:
        results["google_sheets"] = False
        results["google_sheets_error"] = str(e)

    return results
