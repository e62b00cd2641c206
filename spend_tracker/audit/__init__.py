"""Sync event logging package."""

from spend_tracker.audit.logger import (
    SyncEventLogger,
    configure_logging,
    create_correlation_id,
)

__all__ = ["SyncEventLogger", "configure_logging", "create_correlation_id"]
