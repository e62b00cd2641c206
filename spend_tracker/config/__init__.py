"""Configuration package."""

from spend_tracker.config.settings import (
    AppSettings,
    BackendSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "BackendSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
