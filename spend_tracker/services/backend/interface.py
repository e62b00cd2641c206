"""
Abstract Backend Interface

DESIGN DECISION: The REST backend is an external collaborator.
We define an abstract interface for it so that:
1. The session never knows whether it talks HTTP or memory
2. Tests and the offline demo use an in-process implementation
3. Swapping the transport never touches the aggregation engine

Every method maps to one row of the backend contract. Snapshots are
returned whole; there is no incremental patching.
"""

from abc import ABC, abstractmethod
from typing import Optional

from spend_tracker.models.account import AuthResult, GoldValuation
from spend_tracker.models.entities import AnyEntry, EntitySnapshot, EntryKind, Member
from spend_tracker.models.funds import Funds


class BackendInterface(ABC):
    """
    Abstract interface for the household finance backend.

    Any implementation (REST, in-memory) must implement these methods.
    """

    @abstractmethod
    def set_token(self, token: Optional[str]) -> None:
        """Attach (or clear) the bearer token used on API requests."""
        pass

    # =========================================================================
    # SNAPSHOTS
    # =========================================================================

    @abstractmethod
    async def fetch_month_snapshot(self, year: int, month: int) -> EntitySnapshot:
        """
        Fetch every entry for one calendar month.

        Raises:
            BackendError: If the fetch fails
        """
        pass

    @abstractmethod
    async def fetch_year_snapshot(self, year: int) -> EntitySnapshot:
        """
        Fetch every entry for one calendar year.

        Raises:
            BackendError: If the fetch fails
        """
        pass

    # =========================================================================
    # ENTRIES
    # =========================================================================

    @abstractmethod
    async def add_entry(self, kind: EntryKind, entry: AnyEntry) -> None:
        """
        Create an entry. The entry id, if any, is ignored.

        Raises:
            BackendError: If the backend rejects the entry
        """
        pass

    @abstractmethod
    async def delete_entry(self, kind: EntryKind, entry_id: str) -> None:
        """
        Delete an entry by id.

        Raises:
            NotFoundError: If the entry doesn't exist
        """
        pass

    # =========================================================================
    # FUNDS
    # =========================================================================

    @abstractmethod
    async def fetch_funds(self) -> Funds:
        """Fetch both fund goals."""
        pass

    @abstractmethod
    async def save_funds(self, funds: Funds) -> Funds:
        """Replace both fund goals and return what was stored."""
        pass

    # =========================================================================
    # MEMBERS
    # =========================================================================

    @abstractmethod
    async def list_members(self) -> list[Member]:
        """List the household roster."""
        pass

    @abstractmethod
    async def add_member(self, name: str) -> Member:
        """Add a member and return it with its backend-assigned id."""
        pass

    @abstractmethod
    async def remove_member(self, member_id: str) -> None:
        """Remove a member. Entries naming them are left untouched."""
        pass

    # =========================================================================
    # VALUATION AND AUTH
    # =========================================================================

    @abstractmethod
    async def gold_valuation(self) -> GoldValuation:
        """Mark gold investments to the current price per gram."""
        pass

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthResult:
        """
        Exchange credentials for a token.

        Raises:
            AuthenticationError: If the credentials are rejected
        """
        pass

    @abstractmethod
    async def sign_up(self, email: str, password: str) -> AuthResult:
        """
        Create an account and return its token.

        Raises:
            AuthenticationError: If the account cannot be created
        """
        pass


class BackendError(Exception):
    """Base exception for backend operations."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ConnectionError(BackendError):
    """Raised when the backend cannot be reached."""
    pass


class NotFoundError(BackendError):
    """Raised when a requested item doesn't exist."""
    pass


class AuthenticationError(BackendError):
    """Raised when credentials or the token are rejected."""
    pass
