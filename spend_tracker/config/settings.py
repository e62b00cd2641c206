"""
Configuration Management for Spend Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The backend location, the local preferences file and the dashboard
thresholds are all read once and validated at startup.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BackendSettings(BaseSettings):
    """REST backend configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SPEND_TRACKER_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    base_url: str = Field(
        default="",
        description="Backend base URL. Empty means same-origin relative /api paths"
    )
    origin: str = Field(
        default="http://localhost:3000",
        description="Server that answers relative /api paths when base_url is empty"
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="Per-request timeout in seconds"
    )
    max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for idempotent reads (fetches only, never commands)"
    )

    @field_validator('base_url', 'origin')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the base URL so paths can be appended with a single slash."""
        return v.strip().rstrip("/")

    @property
    def is_relative(self) -> bool:
        """True when requests go to same-origin /api paths."""
        return not self.base_url


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
    debug_mode: bool = Field(
        default=False,
        description="Log debug-level sync events (view changes) as well"
    )
    offline_mode: bool = Field(
        default=False,
        description="Use the in-memory backend instead of the REST API"
    )

    # Display
    currency_symbol: str = Field(
        default="₹",
        max_length=3,
        description="Currency symbol used when formatting amounts"
    )

    # Local preferences (view mode, scope, my member name, dark mode, auth)
    preferences_path: Path = Field(
        default=Path.home() / ".spend_tracker" / "preferences.json",
        description="Where UI preferences are persisted on this device"
    )

    # Insight thresholds
    investment_ratio_threshold: float = Field(
        default=20.0,
        ge=0.0,
        le=100.0,
        description="Percent of income invested that earns a positive insight"
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
    def backend(self) -> BackendSettings:
        return BackendSettings()

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

    Returns a dict of {setting_name: is_valid}, plus an ``<name>_error``
    entry for every section that failed. Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.backend
        results["backend"] = True
    except Exception as e:
        results["backend"] = False
        results["backend_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
