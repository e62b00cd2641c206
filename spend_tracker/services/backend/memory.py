"""
In-Memory Backend

A complete in-process implementation of the backend contract. Used by
the tests and by the offline demo mode (the ``offline_mode`` setting).

Nothing is persisted; restarting the process starts an empty household.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
from uuid import uuid4

from spend_tracker.models.account import (
    AuthResult,
    AuthUser,
    GoldValuation,
    GoldValuationItem,
)
from spend_tracker.models.entities import (
    ENTRY_MODELS,
    AnyEntry,
    EntitySnapshot,
    EntryKind,
    InvestmentEntry,
    InvestmentType,
    Member,
)
from spend_tracker.models.funds import Funds
from spend_tracker.services.backend.interface import (
    AuthenticationError,
    BackendError,
    BackendInterface,
    NotFoundError,
)

DEFAULT_GOLD_PRICE_PER_GRAM = Decimal("7000")


def _new_id() -> str:
    return uuid4().hex


class InMemoryBackend(BackendInterface):
    """
    Backend held entirely in process memory.

    Usage:
        backend = InMemoryBackend()
        await backend.add_member("Asha")
    """

    def __init__(
        self,
        gold_price_per_gram: Decimal = DEFAULT_GOLD_PRICE_PER_GRAM,
        require_token: bool = False,
    ):
        self.gold_price_per_gram = gold_price_per_gram
        self.require_token = require_token
        self._entries: dict[EntryKind, list[AnyEntry]] = {kind: [] for kind in EntryKind}
        self._members: list[Member] = []
        self._funds = Funds()
        self._users: dict[str, tuple[str, AuthUser]] = {}
        self._tokens: dict[str, AuthUser] = {}
        self._token: Optional[str] = None

    def set_token(self, token: Optional[str]) -> None:
        self._token = token

    def _check_token(self) -> None:
        if self.require_token and self._token not in self._tokens:
            raise AuthenticationError("Unauthorized", 401)

    # =========================================================================
    # SNAPSHOTS
    # =========================================================================

    def _snapshot(self, year: int, month: Optional[int] = None) -> EntitySnapshot:
        def select(kind: EntryKind) -> tuple:
            return tuple(
                entry for entry in self._entries[kind]
                if entry.year == year and (month is None or entry.month == month)
            )

        return EntitySnapshot(
            salaries=select(EntryKind.SALARY),
            expenses=select(EntryKind.EXPENSE),
            investments=select(EntryKind.INVESTMENT),
            activities=select(EntryKind.ACTIVITY),
        )

    async def fetch_month_snapshot(self, year: int, month: int) -> EntitySnapshot:
        self._check_token()
        return self._snapshot(year, month)

    async def fetch_year_snapshot(self, year: int) -> EntitySnapshot:
        self._check_token()
        return self._snapshot(year)

    # =========================================================================
    # ENTRIES
    # =========================================================================

    async def add_entry(self, kind: EntryKind, entry: AnyEntry) -> None:
        self._check_token()
        if not isinstance(entry, ENTRY_MODELS[kind]):
            raise BackendError(
                f"Cannot store {type(entry).__name__} as {kind.value}", 400,
            )
        self._entries[kind].append(entry.model_copy(update={"id": _new_id()}))

    async def delete_entry(self, kind: EntryKind, entry_id: str) -> None:
        self._check_token()
        entries = self._entries[kind]
        remaining = [entry for entry in entries if entry.id != entry_id]
        if len(remaining) == len(entries):
            raise NotFoundError(f"{kind.value.capitalize()} not found", 404)
        self._entries[kind] = remaining

    # =========================================================================
    # FUNDS
    # =========================================================================

    async def fetch_funds(self) -> Funds:
        self._check_token()
        return self._funds

    async def save_funds(self, funds: Funds) -> Funds:
        self._check_token()
        self._funds = funds
        return funds

    # =========================================================================
    # MEMBERS
    # =========================================================================

    async def list_members(self) -> list[Member]:
        self._check_token()
        return list(self._members)

    async def add_member(self, name: str) -> Member:
        self._check_token()
        member = Member(id=_new_id(), name=name)
        self._members.append(member)
        return member

    async def remove_member(self, member_id: str) -> None:
        self._check_token()
        remaining = [member for member in self._members if member.id != member_id]
        if len(remaining) == len(self._members):
            raise NotFoundError("Member not found", 404)
        self._members = remaining

    # =========================================================================
    # VALUATION AND AUTH
    # =========================================================================

    async def gold_valuation(self) -> GoldValuation:
        """
        Value every gold holding at the configured price per gram.

        Holdings without a purchase price are carried at cost.
        """
        self._check_token()
        items = []
        for entry in self._entries[EntryKind.INVESTMENT]:
            if not isinstance(entry, InvestmentEntry) or entry.type is not InvestmentType.GOLD:
                continue
            grams = None
            current_value = entry.amount
            if entry.price_per_gram_at_purchase:
                grams = (entry.amount / entry.price_per_gram_at_purchase).quantize(
                    Decimal("0.001"), rounding=ROUND_HALF_UP,
                )
                current_value = (grams * self.gold_price_per_gram).quantize(
                    Decimal("0.01"), rounding=ROUND_HALF_UP,
                )
            items.append(GoldValuationItem(
                id=entry.id,
                owner=entry.owner,
                amount=entry.amount,
                grams=grams,
                price_per_gram_at_purchase=entry.price_per_gram_at_purchase,
                current_value=current_value,
            ))

        return GoldValuation(
            current_price_per_gram=self.gold_price_per_gram,
            items=tuple(items),
            total_invested=sum((item.amount for item in items), Decimal("0")),
            total_current_value=sum(
                (item.current_value or Decimal("0") for item in items),
                Decimal("0"),
            ),
        )

    def _issue_token(self, user: AuthUser) -> AuthResult:
        token = _new_id()
        self._tokens[token] = user
        return AuthResult(token=token, user=user)

    async def sign_in(self, email: str, password: str) -> AuthResult:
        stored = self._users.get(email.strip().lower())
        if stored is None or stored[0] != password:
            raise AuthenticationError("Invalid email or password", 401)
        return self._issue_token(stored[1])

    async def sign_up(self, email: str, password: str) -> AuthResult:
        key = email.strip().lower()
        if key in self._users:
            raise AuthenticationError("Email already registered", 409)
        user = AuthUser(id=_new_id(), email=key)
        self._users[key] = (password, user)
        return self._issue_token(user)
