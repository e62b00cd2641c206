"""
Session Layer for Spend Tracker

This module ties the backend, the preferences and the aggregation engine
together and defines the flows the screens use:
1. Authentication (sign in / sign up / sign out, token restore)
2. Household data (view changes → fetch → scope → aggregate)
3. Commands (add/delete entry, members, funds) followed by a refetch

DESIGN DECISION: The session enforces the ordering rules:
- A command fully resolves before the refetch it triggers is issued
- A snapshot is replaced in one assignment, never patched
- A response for a superseded view is discarded, not applied
- A failed fetch keeps the previous snapshot
- Fund edits are only committed after the backend accepts them

The view configuration is held here and passed explicitly to the engine.
Nothing is stored in module-level state.
"""

from decimal import Decimal
from typing import Optional

from pydantic import ValidationError

from spend_tracker.audit import SyncEventLogger, configure_logging
from spend_tracker.config import Settings, get_settings
from spend_tracker.engine import compute_dashboard, filter_by_scope, merge_fund_update
from spend_tracker.models.account import AuthUser, GoldValuation
from spend_tracker.models.dashboard import DashboardView
from spend_tracker.models.entities import AnyEntry, EntitySnapshot, EntryKind, Member
from spend_tracker.models.funds import Funds, FundsPatch
from spend_tracker.models.view import ViewConfig, ViewMode, ViewScope
from spend_tracker.services.backend import (
    AuthenticationError,
    BackendError,
    BackendInterface,
    HttpBackend,
    InMemoryBackend,
)
from spend_tracker.services.preferences import Preferences, PreferencesStore

AUTH_FALLBACK_MESSAGE = "Something went wrong. Please try again."
MIN_PASSWORD_LENGTH = 6


# =============================================================================
# EXCEPTIONS
# =============================================================================

class SessionError(Exception):
    """Base exception for session operations."""
    pass


class SyncError(SessionError):
    """A backend call failed. Local state is unchanged."""

    def __init__(self, operation: str, message: str):
        super().__init__(message)
        self.operation = operation
        self.message = message


class EmptyRosterError(SessionError):
    """Entries cannot be added before the household has a member."""
    pass


class RefreshAfterCommandError(SessionError):
    """
    The command was accepted but the refetch that follows it failed.

    The change is stored. The previous snapshot is still shown, so the
    caller should close its form and not resubmit.
    """

    def __init__(self, operation: str, message: str):
        super().__init__(message)
        self.operation = operation
        self.message = message


class NavigationBlockedError(SessionError):
    """The view cannot change while a dialog is open."""

    def __init__(self, dialog: str):
        super().__init__(f"Close the {dialog} dialog before changing the view")
        self.dialog = dialog


# =============================================================================
# AUTHENTICATION
# =============================================================================

class AuthSession:
    """
    Holds the signed-in user and their token.

    The token is restored from preferences at startup and attached to the
    backend for every subsequent request.
    """

    def __init__(
        self,
        backend: BackendInterface,
        preferences: Optional[PreferencesStore] = None,
        events: Optional[SyncEventLogger] = None,
    ):
        self._backend = backend
        self._preferences = preferences
        self._events = events or SyncEventLogger()
        self._user: Optional[AuthUser] = None
        self._token: Optional[str] = None

    @property
    def user(self) -> Optional[AuthUser]:
        return self._user

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    def restore(self) -> Optional[AuthUser]:
        """Pick up a previously stored token, if there is one."""
        if self._preferences is None:
            return None
        stored = self._preferences.load().auth
        if stored is not None:
            self._set(stored.token, stored.user)
        return self._user

    async def sign_in(self, email: str, password: str) -> AuthUser:
        """
        Sign in with email and password.

        Raises:
            AuthenticationError: With a message suitable for display
        """
        self._check_password(password)
        return await self._authenticate("sign_in", email, password)

    async def sign_up(
        self,
        email: str,
        password: str,
        confirm_password: Optional[str] = None,
    ) -> AuthUser:
        """
        Create an account and sign in to it.

        Raises:
            AuthenticationError: With a message suitable for display
        """
        if confirm_password is not None and password != confirm_password:
            raise AuthenticationError("Passwords do not match")
        self._check_password(password)
        return await self._authenticate("sign_up", email, password)

    def sign_out(self) -> None:
        self._user = None
        self._token = None
        self._backend.set_token(None)
        if self._preferences is not None:
            self._preferences.update(auth=None)
        self._events.log_signed_out()

    @staticmethod
    def _check_password(password: str) -> None:
        if len(password) < MIN_PASSWORD_LENGTH:
            raise AuthenticationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )

    async def _authenticate(self, via: str, email: str, password: str) -> AuthUser:
        call = self._backend.sign_in if via == "sign_in" else self._backend.sign_up
        try:
            result = await call(email.strip(), password)
        except BackendError as e:
            message = e.message or AUTH_FALLBACK_MESSAGE
            self._events.log_auth_failed(via, message)
            raise AuthenticationError(message, e.status_code) from e
        except ValidationError as e:
            self._events.log_auth_failed(via, str(e))
            raise AuthenticationError(AUTH_FALLBACK_MESSAGE) from e

        self._set(result.token, result.user)
        if self._preferences is not None:
            self._preferences.update(auth=result.model_dump())
        self._events.log_signed_in(result.user.id, via)
        return result.user

    def _set(self, token: str, user: AuthUser) -> None:
        self._token = token
        self._user = user
        self._backend.set_token(token)


# =============================================================================
# HOUSEHOLD DATA
# =============================================================================

class HouseholdSession:
    """
    Owns the view configuration, the roster, the snapshot and the funds.

    Usage:
        session = HouseholdSession(backend)
        await session.load()
        view = session.dashboard()
    """

    def __init__(
        self,
        backend: BackendInterface,
        preferences: Optional[PreferencesStore] = None,
        events: Optional[SyncEventLogger] = None,
        view: Optional[ViewConfig] = None,
        investment_ratio_threshold: Decimal = Decimal("20"),
        currency_symbol: str = "₹",
    ):
        self._backend = backend
        self._preferences = preferences
        self._events = events or SyncEventLogger()
        self.investment_ratio_threshold = investment_ratio_threshold
        self.currency_symbol = currency_symbol

        stored = preferences.load() if preferences is not None else Preferences()
        self._view = view or ViewConfig(
            view_mode=stored.view_mode,
            view_scope=stored.view_scope,
            active_member_name=stored.my_member_name,
        )
        self._dark_mode = stored.dark_mode

        self._snapshot = EntitySnapshot.empty()
        self._funds = Funds()
        self._members: tuple[Member, ...] = ()
        self._generation = 0
        self._dialog: Optional[str] = None

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def view(self) -> ViewConfig:
        return self._view

    @property
    def snapshot(self) -> EntitySnapshot:
        return self._snapshot

    @property
    def funds(self) -> Funds:
        return self._funds

    @property
    def members(self) -> tuple[Member, ...]:
        return self._members

    @property
    def member_names(self) -> list[str]:
        return [member.name for member in self._members]

    @property
    def dark_mode(self) -> bool:
        return self._dark_mode

    @property
    def open_dialog_name(self) -> Optional[str]:
        return self._dialog

    def set_dark_mode(self, enabled: bool) -> None:
        self._dark_mode = enabled
        self._remember(dark_mode=enabled)

    async def load(self) -> None:
        """Initial load: roster first, then funds and the active snapshot."""
        await self.refresh_members()
        await self.refresh_funds()
        await self.refresh_data()

    # -------------------------------------------------------------------------
    # Dialogs and navigation
    # -------------------------------------------------------------------------

    def open_dialog(self, name: str) -> None:
        """Mark an add/edit dialog as open. The view is frozen until it closes."""
        self._dialog = name

    def close_dialog(self) -> None:
        self._dialog = None

    def _ensure_navigable(self) -> None:
        if self._dialog is not None:
            self._events.log_navigation_blocked(self._dialog)
            raise NavigationBlockedError(self._dialog)

    async def _apply_view(self, view: ViewConfig) -> ViewConfig:
        previous = self._view
        self._view = view
        self._events.log_view_changed(view.fetch_key, view.view_scope.value)
        if view.fetch_key != previous.fetch_key:
            try:
                await self.refresh_data()
            except SyncError:
                # Keep the view matching the snapshot that is still shown
                if self._view is view:
                    self._view = previous
                raise
        return self._view

    async def set_view_mode(self, mode: ViewMode) -> ViewConfig:
        """Switch month/year. Year view always refetches the whole year."""
        self._ensure_navigable()
        view = await self._apply_view(self._view.model_copy(update={"view_mode": mode}))
        self._remember(view_mode=mode)
        return view

    async def set_period(self, month: int, year: int) -> ViewConfig:
        """Select a month and year (the month is ignored in year view)."""
        self._ensure_navigable()
        view = ViewConfig.model_validate({
            **self._view.model_dump(),
            "selected_month": month,
            "selected_year": year,
        })
        return await self._apply_view(view)

    async def set_view_scope(self, scope: ViewScope) -> ViewConfig:
        """
        Switch household/personal.

        Personal scope without a chosen member picks the first roster member.
        Going back to household keeps the chosen member for next time.
        """
        self._ensure_navigable()
        update: dict = {"view_scope": scope}
        if (
            scope is ViewScope.PERSONAL
            and not self._view.active_member_name
            and self._members
        ):
            update["active_member_name"] = self._members[0].name
            self._remember(my_member_name=self._members[0].name)
        self._remember(view_scope=scope)
        return await self._apply_view(self._view.model_copy(update=update))

    async def set_my_member_name(self, name: str) -> ViewConfig:
        self._ensure_navigable()
        self._remember(my_member_name=name)
        return await self._apply_view(
            self._view.model_copy(update={"active_member_name": name})
        )

    def _remember(self, **changes) -> None:
        if self._preferences is not None:
            self._preferences.update(**changes)

    # -------------------------------------------------------------------------
    # Snapshot
    # -------------------------------------------------------------------------

    async def refresh_data(self) -> bool:
        """
        Fetch the snapshot for the current view and replace the old one.

        Returns:
            True if the snapshot was applied, False if a newer request
            superseded this one and the response was discarded.

        Raises:
            SyncError: If the fetch failed. The previous snapshot is kept.
        """
        self._generation += 1
        generation = self._generation
        view = self._view

        try:
            if view.is_year_view:
                snapshot = await self._backend.fetch_year_snapshot(view.selected_year)
            else:
                snapshot = await self._backend.fetch_month_snapshot(
                    view.selected_year, view.selected_month,
                )
        except (BackendError, ValidationError) as e:
            if generation != self._generation:
                self._events.log_stale_response_discarded(
                    view.fetch_key, generation, self._generation,
                )
                return False
            self._events.log_snapshot_fetch_failed(view.fetch_key, str(e))
            raise SyncError("fetch_snapshot", _message(e)) from e

        if generation != self._generation:
            self._events.log_stale_response_discarded(
                view.fetch_key, generation, self._generation,
            )
            return False

        self._snapshot = snapshot
        self._events.log_snapshot_fetched(view.fetch_key, snapshot.entry_count)
        return True

    def dashboard(self) -> DashboardView:
        """Derived view model for the current snapshot, scope and funds."""
        scoped = filter_by_scope(
            self._snapshot,
            self._view.view_scope,
            self._view.active_member_name,
        )
        return compute_dashboard(
            scoped,
            self._funds,
            self._view,
            investment_ratio_threshold=self.investment_ratio_threshold,
            currency_symbol=self.currency_symbol,
        )

    def scoped_snapshot(self) -> EntitySnapshot:
        """The snapshot as the current scope sees it (for entry lists)."""
        return filter_by_scope(
            self._snapshot,
            self._view.view_scope,
            self._view.active_member_name,
        )

    # -------------------------------------------------------------------------
    # Entry commands
    # -------------------------------------------------------------------------

    async def add_entry(self, kind: EntryKind, entry: AnyEntry) -> None:
        """
        Create an entry, wait for the backend, then refetch.

        Raises:
            EmptyRosterError: If there are no members to attribute it to
            SyncError: If the backend rejected the entry
            RefreshAfterCommandError: If the entry was stored but the refetch failed
        """
        if not self._members:
            self._events.log_command_refused(f"add_{kind.value}", "empty roster")
            raise EmptyRosterError("Add a household member before adding entries")

        try:
            await self._backend.add_entry(kind, entry)
        except BackendError as e:
            self._events.log_command_failed(f"add_{kind.value}", kind.value, e.message)
            raise SyncError(f"add_{kind.value}", e.message) from e

        self._events.log_entry_added(kind.value, entry.id)
        await self._refresh_after_command(f"add_{kind.value}", "Saved")

    async def delete_entry(self, kind: EntryKind, entry_id: str) -> None:
        """
        Delete an entry, wait for the backend, then refetch.

        Raises:
            SyncError: If the backend refused
            RefreshAfterCommandError: If the entry was deleted but the refetch failed
        """
        try:
            await self._backend.delete_entry(kind, entry_id)
        except BackendError as e:
            self._events.log_command_failed(
                f"delete_{kind.value}", kind.value, e.message, entry_id,
            )
            raise SyncError(f"delete_{kind.value}", e.message) from e

        self._events.log_entry_deleted(kind.value, entry_id)
        await self._refresh_after_command(f"delete_{kind.value}", "Deleted")

    async def _refresh_after_command(self, operation: str, done: str) -> None:
        try:
            await self.refresh_data()
        except SyncError as e:
            raise RefreshAfterCommandError(
                operation, f"{done}, but the data could not be refreshed: {e.message}",
            ) from e

    # -------------------------------------------------------------------------
    # Members
    # -------------------------------------------------------------------------

    async def refresh_members(self) -> tuple[Member, ...]:
        try:
            members = await self._backend.list_members()
        except (BackendError, ValidationError) as e:
            self._events.log_command_failed("list_members", "member", str(e))
            raise SyncError("list_members", _message(e)) from e
        self._members = tuple(members)
        self._events.log_members_fetched(len(self._members))
        return self._members

    async def add_member(self, name: str) -> Optional[Member]:
        """Add a member by name. Blank names are ignored."""
        trimmed = name.strip()
        if not trimmed:
            return None
        try:
            member = await self._backend.add_member(trimmed)
        except (BackendError, ValidationError) as e:
            self._events.log_command_failed("add_member", "member", str(e))
            raise SyncError("add_member", _message(e)) from e
        self._members = (*self._members, member)
        self._events.log_member_added(member.id, member.name)
        return member

    async def remove_member(self, member_id: str) -> None:
        """Remove a member. Their past entries keep their name."""
        try:
            await self._backend.remove_member(member_id)
        except BackendError as e:
            self._events.log_command_failed("remove_member", "member", e.message, member_id)
            raise SyncError("remove_member", e.message) from e
        self._members = tuple(m for m in self._members if m.id != member_id)
        self._events.log_member_removed(member_id)

    # -------------------------------------------------------------------------
    # Funds
    # -------------------------------------------------------------------------

    async def refresh_funds(self) -> Funds:
        try:
            funds = await self._backend.fetch_funds()
        except (BackendError, ValidationError) as e:
            self._events.log_command_failed("fetch_funds", "funds", str(e))
            raise SyncError("fetch_funds", _message(e)) from e
        self._funds = funds
        self._events.log_funds_fetched()
        return funds

    async def update_funds(self, patch: FundsPatch) -> Funds:
        """
        Merge ``patch`` over the current goals and save both.

        The in-memory goals change only after the backend accepts the save.

        Raises:
            SyncError: If the save failed (the edit dialog should stay open)
        """
        merged = merge_fund_update(self._funds, patch)
        try:
            saved = await self._backend.save_funds(merged)
        except (BackendError, ValidationError) as e:
            self._events.log_funds_save_failed(str(e))
            raise SyncError("save_funds", _message(e)) from e

        self._funds = saved
        self._events.log_funds_saved(
            [name for name, goal in saved.goals().items() if goal.enabled]
        )
        return saved

    # -------------------------------------------------------------------------
    # Valuation
    # -------------------------------------------------------------------------

    async def gold_valuation(self) -> GoldValuation:
        try:
            return await self._backend.gold_valuation()
        except (BackendError, ValidationError) as e:
            self._events.log_command_failed("gold_valuation", "investment", str(e))
            raise SyncError("gold_valuation", _message(e)) from e


def _message(error: Exception) -> str:
    if isinstance(error, BackendError):
        return error.message
    return "Unexpected response from backend"


# =============================================================================
# FACTORY
# =============================================================================

def create_app_components(
    settings: Optional[Settings] = None,
    backend: Optional[BackendInterface] = None,
) -> tuple[AuthSession, HouseholdSession]:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to use. Defaults to the cached global settings.
        backend: Backend to use. If None, the REST client is created, or
                 the in-memory backend when offline mode is on.

    Returns:
        (auth_session, household_session) sharing one backend
    """
    settings = settings or get_settings()
    app_settings = settings.app
    configure_logging(app_settings.debug_mode)

    if backend is None:
        if app_settings.offline_mode:
            backend = InMemoryBackend()
        else:
            backend = HttpBackend(settings.backend)

    preferences = PreferencesStore(app_settings.preferences_path)
    events = SyncEventLogger()

    auth = AuthSession(backend, preferences=preferences, events=events)
    household = HouseholdSession(
        backend,
        preferences=preferences,
        events=events,
        investment_ratio_threshold=Decimal(str(app_settings.investment_ratio_threshold)),
        currency_symbol=app_settings.currency_symbol,
    )
    return auth, household
