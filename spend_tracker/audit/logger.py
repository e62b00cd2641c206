"""
Sync Event Logger

DESIGN DECISION: Every call across the backend boundary is logged.
This provides:
1. Traceability of fetches and commands
2. Visibility into discarded stale responses
3. Debugging capability when the backend rejects a command

The logger:
- Logs locally through structlog only (nothing is persisted)
- Never raises; a logging problem must not interrupt a user action
- Binds a session id so events from one browser session can be grouped
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from spend_tracker.models.events import SyncEvent, SyncEventBuilder, SyncSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(debug: bool = False) -> None:
    """Set the level for every spend_tracker logger (DEBUG in debug mode)."""
    logging.basicConfig(format="%(message)s")
    logging.getLogger("spend_tracker").setLevel(logging.DEBUG if debug else logging.INFO)


def create_correlation_id() -> UUID:
    """Create an id that ties together the events of one session."""
    return uuid4()


class SyncEventLogger:
    """
    Central sync event logger.

    Usage:
        events = SyncEventLogger()
        events.log_entry_added("expense", "e1")
    """

    def __init__(self, session_id: Optional[UUID] = None):
        self.session_id = session_id or create_correlation_id()
        self._logger = structlog.get_logger("spend_tracker.sync").bind(
            session_id=str(self.session_id),
        )

    def log(self, event: SyncEvent) -> None:
        """Log a sync event at the level matching its severity."""
        log_dict = event.to_log_dict()

        if event.severity is SyncSeverity.ERROR:
            self._logger.error("sync_event", **log_dict)
        elif event.severity is SyncSeverity.WARNING:
            self._logger.warning("sync_event", **log_dict)
        elif event.severity is SyncSeverity.DEBUG:
            self._logger.debug("sync_event", **log_dict)
        else:
            self._logger.info("sync_event", **log_dict)

    def log_snapshot_fetched(self, fetch_key: tuple, entry_count: int) -> None:
        self.log(SyncEventBuilder.snapshot_fetched(fetch_key, entry_count))

    def log_snapshot_fetch_failed(self, fetch_key: tuple, error_message: str) -> None:
        self.log(SyncEventBuilder.snapshot_fetch_failed(fetch_key, error_message))

    def log_stale_response_discarded(
        self,
        fetch_key: tuple,
        generation: int,
        latest_generation: int,
    ) -> None:
        self.log(SyncEventBuilder.stale_response_discarded(
            fetch_key, generation, latest_generation,
        ))

    def log_entry_added(self, kind: str, entry_id: Optional[str]) -> None:
        self.log(SyncEventBuilder.entry_added(kind, entry_id))

    def log_entry_deleted(self, kind: str, entry_id: str) -> None:
        self.log(SyncEventBuilder.entry_deleted(kind, entry_id))

    def log_command_failed(
        self,
        command: str,
        entity_type: str,
        error_message: str,
        entity_id: Optional[str] = None,
    ) -> None:
        self.log(SyncEventBuilder.command_failed(
            command, entity_type, error_message, entity_id,
        ))

    def log_command_refused(self, command: str, reason: str) -> None:
        self.log(SyncEventBuilder.command_refused(command, reason))

    def log_funds_fetched(self) -> None:
        self.log(SyncEventBuilder.funds_fetched())

    def log_funds_saved(self, enabled_goals: list[str]) -> None:
        self.log(SyncEventBuilder.funds_saved(enabled_goals))

    def log_funds_save_failed(self, error_message: str) -> None:
        self.log(SyncEventBuilder.funds_save_failed(error_message))

    def log_members_fetched(self, count: int) -> None:
        self.log(SyncEventBuilder.members_fetched(count))

    def log_member_added(self, member_id: str, name: str) -> None:
        self.log(SyncEventBuilder.member_added(member_id, name))

    def log_member_removed(self, member_id: str) -> None:
        self.log(SyncEventBuilder.member_removed(member_id))

    def log_signed_in(self, user_id: str, via: str) -> None:
        self.log(SyncEventBuilder.signed_in(user_id, via))

    def log_signed_out(self) -> None:
        self.log(SyncEventBuilder.signed_out())

    def log_auth_failed(self, via: str, error_message: str) -> None:
        self.log(SyncEventBuilder.auth_failed(via, error_message))

    def log_view_changed(self, fetch_key: tuple, scope: str) -> None:
        self.log(SyncEventBuilder.view_changed(fetch_key, scope))

    def log_navigation_blocked(self, dialog: str) -> None:
        self.log(SyncEventBuilder.navigation_blocked(dialog))
