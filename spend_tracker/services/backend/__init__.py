"""
Backend Services Package

Provides the abstract backend interface and its two implementations:
the REST client used in production and an in-memory backend for tests
and offline demos.
"""

from spend_tracker.services.backend.interface import (
    AuthenticationError,
    BackendError,
    BackendInterface,
    ConnectionError,
    NotFoundError,
)
from spend_tracker.services.backend.http_client import HttpBackend, api_url
from spend_tracker.services.backend.memory import InMemoryBackend

__all__ = [
    # Interface
    "BackendInterface",
    # Exceptions
    "AuthenticationError",
    "BackendError",
    "ConnectionError",
    "NotFoundError",
    # Implementations
    "HttpBackend",
    "InMemoryBackend",
    "api_url",
]
