"""
Sync Event Models for Spend Tracker

Every call across the backend boundary produces one structured event:
fetches, commands, fund saves, membership changes and sign-ins.
This provides:
1. A readable trace of what the client asked for and what came back
2. Debugging information when a refresh is discarded or a command fails

DESIGN DECISION: Events are logged locally only. Nothing here is stored
or replayed; the backend remains the single source of truth.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class SyncEventType(str, Enum):
    """Types of events we log at the sync boundary."""
    # Snapshot fetches
    SNAPSHOT_FETCHED = "snapshot_fetched"
    SNAPSHOT_FETCH_FAILED = "snapshot_fetch_failed"
    STALE_RESPONSE_DISCARDED = "stale_response_discarded"
    AMOUNT_COERCED = "amount_coerced"

    # Entry commands
    ENTRY_ADDED = "entry_added"
    ENTRY_DELETED = "entry_deleted"
    COMMAND_FAILED = "command_failed"
    COMMAND_REFUSED = "command_refused"

    # Funds
    FUNDS_FETCHED = "funds_fetched"
    FUNDS_SAVED = "funds_saved"
    FUNDS_SAVE_FAILED = "funds_save_failed"

    # Members
    MEMBERS_FETCHED = "members_fetched"
    MEMBER_ADDED = "member_added"
    MEMBER_REMOVED = "member_removed"

    # Authentication
    SIGNED_IN = "signed_in"
    SIGNED_OUT = "signed_out"
    AUTH_FAILED = "auth_failed"

    # View
    VIEW_CHANGED = "view_changed"
    NAVIGATION_BLOCKED = "navigation_blocked"


class SyncSeverity(str, Enum):
    """Severity level for sync events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class SyncEvent(BaseModel):
    """A single event at the sync boundary."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )
    event_type: SyncEventType
    severity: SyncSeverity = SyncSeverity.INFO

    entity_type: Optional[str] = Field(
        default=None,
        description="Kind of thing involved (e.g. 'expense', 'funds', 'member')"
    )
    entity_id: Optional[str] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


def _key(fetch_key: tuple) -> list[str]:
    return [str(getattr(part, "value", part)) for part in fetch_key]


class SyncEventBuilder:
    """
    Helper class to build sync events with common patterns.

    Usage:
        event = SyncEventBuilder.entry_added("expense", "e1")
        logger.log(event)
    """

    @staticmethod
    def snapshot_fetched(fetch_key: tuple, entry_count: int) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.SNAPSHOT_FETCHED,
            entity_type="snapshot",
            description=f"Fetched snapshot with {entry_count} entries",
            details={"fetch_key": _key(fetch_key)},
        )

    @staticmethod
    def snapshot_fetch_failed(fetch_key: tuple, error_message: str) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.SNAPSHOT_FETCH_FAILED,
            severity=SyncSeverity.ERROR,
            entity_type="snapshot",
            description="Snapshot fetch failed, keeping the previous snapshot",
            details={"fetch_key": _key(fetch_key)},
            error_message=error_message,
        )

    @staticmethod
    def stale_response_discarded(
        fetch_key: tuple,
        generation: int,
        latest_generation: int,
    ) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.STALE_RESPONSE_DISCARDED,
            severity=SyncSeverity.WARNING,
            entity_type="snapshot",
            description="Discarded a response for a superseded view",
            details={
                "fetch_key": _key(fetch_key),
                "generation": generation,
                "latest_generation": latest_generation,
            },
        )

    @staticmethod
    def entry_added(kind: str, entry_id: Optional[str]) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.ENTRY_ADDED,
            entity_type=kind,
            entity_id=entry_id,
            description=f"Added {kind} entry",
        )

    @staticmethod
    def entry_deleted(kind: str, entry_id: str) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.ENTRY_DELETED,
            entity_type=kind,
            entity_id=entry_id,
            description=f"Deleted {kind} entry",
        )

    @staticmethod
    def command_failed(
        command: str,
        entity_type: str,
        error_message: str,
        entity_id: Optional[str] = None,
    ) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.COMMAND_FAILED,
            severity=SyncSeverity.ERROR,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{command} failed",
            error_message=error_message,
        )

    @staticmethod
    def command_refused(command: str, reason: str) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.COMMAND_REFUSED,
            severity=SyncSeverity.WARNING,
            description=f"{command} refused: {reason}",
        )

    @staticmethod
    def funds_fetched() -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.FUNDS_FETCHED,
            entity_type="funds",
            description="Fetched fund goals",
        )

    @staticmethod
    def funds_saved(enabled_goals: list[str]) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.FUNDS_SAVED,
            entity_type="funds",
            description="Saved fund goals",
            details={"enabled_goals": enabled_goals},
        )

    @staticmethod
    def funds_save_failed(error_message: str) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.FUNDS_SAVE_FAILED,
            severity=SyncSeverity.ERROR,
            entity_type="funds",
            description="Saving fund goals failed, keeping previous goals",
            error_message=error_message,
        )

    @staticmethod
    def members_fetched(count: int) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.MEMBERS_FETCHED,
            entity_type="member",
            description=f"Fetched {count} members",
        )

    @staticmethod
    def member_added(member_id: str, name: str) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.MEMBER_ADDED,
            entity_type="member",
            entity_id=member_id,
            description=f"Added member {name}",
        )

    @staticmethod
    def member_removed(member_id: str) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.MEMBER_REMOVED,
            entity_type="member",
            entity_id=member_id,
            description="Removed member",
        )

    @staticmethod
    def signed_in(user_id: str, via: str) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.SIGNED_IN,
            entity_type="user",
            entity_id=user_id,
            description=f"User signed in via {via}",
        )

    @staticmethod
    def signed_out() -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.SIGNED_OUT,
            entity_type="user",
            description="User signed out",
        )

    @staticmethod
    def auth_failed(via: str, error_message: str) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.AUTH_FAILED,
            severity=SyncSeverity.WARNING,
            entity_type="user",
            description=f"{via} failed",
            error_message=error_message,
        )

    @staticmethod
    def view_changed(fetch_key: tuple, scope: str) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.VIEW_CHANGED,
            severity=SyncSeverity.DEBUG,
            entity_type="view",
            description="View configuration changed",
            details={"fetch_key": _key(fetch_key), "scope": scope},
        )

    @staticmethod
    def navigation_blocked(dialog: str) -> SyncEvent:
        return SyncEvent(
            event_type=SyncEventType.NAVIGATION_BLOCKED,
            severity=SyncSeverity.WARNING,
            entity_type="view",
            description=f"View change blocked while '{dialog}' dialog is open",
        )
