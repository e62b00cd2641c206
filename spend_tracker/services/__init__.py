"""Services package."""

from spend_tracker.services.backend import (
    AuthenticationError,
    BackendError,
    BackendInterface,
    ConnectionError,
    HttpBackend,
    InMemoryBackend,
    NotFoundError,
    api_url,
)
from spend_tracker.services.preferences import Preferences, PreferencesStore

__all__ = [
    # Backend
    "AuthenticationError",
    "BackendError",
    "BackendInterface",
    "ConnectionError",
    "HttpBackend",
    "InMemoryBackend",
    "NotFoundError",
    "api_url",
    # Preferences
    "Preferences",
    "PreferencesStore",
]
