"""
Core Entity Models for Spend Tracker

These models define the schemas for the raw collections the backend hands
us: salaries, expenses, investments, other activities and the member roster.
They are designed to:
1. Enforce type safety at the form boundary
2. Be immutable once fetched (a refresh replaces them, nothing patches them)
3. Serialize to the backend's camelCase JSON

DESIGN DECISION: Every entry carries the member's NAME, not the member's id.
Joins against the roster are exact, case-sensitive name matches. Renaming a
member therefore does not relabel history, and old names show up as their
own aggregation buckets.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Optional, Union

import structlog
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    model_validator,
)
from pydantic.alias_generators import to_camel

from spend_tracker.models.events import SyncEventType
from spend_tracker.utils.amounts import coerce_amount


logger = structlog.get_logger(__name__)


# Decimal in Python, plain JSON number on the wire
Amount = Annotated[
    Decimal,
    Field(ge=0),
    PlainSerializer(lambda v: float(v), return_type=float, when_used="json"),
]


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ExpenseCategory(str, Enum):
    """Closed set of expense categories."""
    FOOD = "Food"
    RENT = "Rent"
    TRAVEL = "Travel"
    SHOPPING = "Shopping"
    BILLS = "Bills"
    MEDICAL = "Medical"
    OTHER = "Other"


class InvestmentType(str, Enum):
    """Closed set of investment types."""
    MUTUAL_FUND = "Mutual Fund"
    FD = "FD"
    STOCKS = "Stocks"
    GOLD = "Gold"
    CRYPTO = "Crypto"
    OTHER = "Other"


class ActivityType(str, Enum):
    """
    Miscellaneous cash activity types.

    Income and Gift are credits, Loan is a debit.
    Transfer and Other are neutral and never reach income or spending totals.
    """
    INCOME = "Income"
    GIFT = "Gift"
    LOAN = "Loan"
    TRANSFER = "Transfer"
    OTHER = "Other"

    @property
    def is_credit(self) -> bool:
        return self in (ActivityType.INCOME, ActivityType.GIFT)

    @property
    def is_debit(self) -> bool:
        return self is ActivityType.LOAN


class EntryKind(str, Enum):
    """The four transactional collections, named after their REST resources."""
    SALARY = "salary"
    EXPENSE = "expense"
    INVESTMENT = "investment"
    ACTIVITY = "activity"

    @property
    def resource(self) -> str:
        """REST collection path segment, e.g. ``salaries``."""
        return {
            EntryKind.SALARY: "salaries",
            EntryKind.EXPENSE: "expenses",
            EntryKind.INVESTMENT: "investments",
            EntryKind.ACTIVITY: "activities",
        }[self]


# =============================================================================
# TRANSACTIONAL ENTRIES
# =============================================================================

class _Entry(BaseModel):
    """Fields shared by every dated, member-owned entry."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        str_strip_whitespace=True,
        coerce_numbers_to_str=True,
    )

    id: Optional[str] = Field(
        default=None,
        description="Backend-assigned identifier (absent before creation)"
    )
    amount: Amount
    entry_date: date = Field(
        ...,
        alias="date",
        description="Calendar date of the entry"
    )
    month: int = Field(
        ...,
        ge=1,
        le=12,
        description="Month the entry is filed under"
    )
    year: int = Field(
        ...,
        ge=1000,
        le=9999,
        description="Year the entry is filed under"
    )

    def to_payload(self) -> dict[str, Any]:
        """Request body for creation: camelCase, no id."""
        return self.model_dump(mode="json", by_alias=True, exclude={"id"})


class SalaryEntry(_Entry):
    """A salary credit for one member."""

    person: str = Field(
        ...,
        min_length=1,
        description="Member name (join key)"
    )


class ExpenseEntry(_Entry):
    """An expense paid by one member."""

    title: str = Field(
        ...,
        min_length=1,
        max_length=200,
    )
    category: ExpenseCategory
    paid_by: str = Field(
        ...,
        min_length=1,
        description="Member name (join key)"
    )
    notes: Optional[str] = Field(
        default=None,
        max_length=1000,
    )


class InvestmentEntry(_Entry):
    """An amount moved into an investment by one member."""

    type: InvestmentType
    owner: str = Field(
        ...,
        min_length=1,
        description="Member name (join key)"
    )
    return_percent: Optional[float] = Field(
        default=None,
        description="Expected or realised return, informational only"
    )
    notes: Optional[str] = Field(
        default=None,
        max_length=1000,
    )
    price_per_gram_at_purchase: Optional[Amount] = Field(
        default=None,
        description="Gold only: purchase price per gram, used by the valuation service"
    )

    @model_validator(mode='after')
    def validate_gold_fields(self) -> 'InvestmentEntry':
        """Only gold holdings carry a per-gram purchase price."""
        if (
            self.price_per_gram_at_purchase is not None
            and self.type is not InvestmentType.GOLD
        ):
            raise ValueError("Price per gram only applies to Gold investments")
        return self


class ActivityEntry(_Entry):
    """A miscellaneous cash activity (income, gift, loan, transfer, other)."""

    title: str = Field(
        ...,
        min_length=1,
        max_length=200,
    )
    type: ActivityType
    person: str = Field(
        ...,
        min_length=1,
        description="Member name (join key)"
    )
    notes: Optional[str] = Field(
        default=None,
        max_length=1000,
    )


AnyEntry = Union[SalaryEntry, ExpenseEntry, InvestmentEntry, ActivityEntry]

ENTRY_MODELS: dict[EntryKind, type[_Entry]] = {
    EntryKind.SALARY: SalaryEntry,
    EntryKind.EXPENSE: ExpenseEntry,
    EntryKind.INVESTMENT: InvestmentEntry,
    EntryKind.ACTIVITY: ActivityEntry,
}


def member_key(entry: AnyEntry) -> str:
    """
    Return the member name an entry belongs to.

    This is the single place that knows which field is the join key for
    each entity type. Moving to id-based joins only changes this function.
    """
    if isinstance(entry, ExpenseEntry):
        return entry.paid_by
    if isinstance(entry, InvestmentEntry):
        return entry.owner
    return entry.person


# =============================================================================
# MEMBERS
# =============================================================================

class Member(BaseModel):
    """
    A household member.

    Name uniqueness is assumed but not enforced: two members with the
    same name merge in every aggregation.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        str_strip_whitespace=True,
        coerce_numbers_to_str=True,
    )

    id: str
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
    )
    created_at: Optional[Any] = None


# =============================================================================
# SNAPSHOT
# =============================================================================

class EntitySnapshot(BaseModel):
    """
    The complete set of entries for one month or one year.

    Replaced wholesale on every fetch. Never mutated in place.
    """
    model_config = ConfigDict(frozen=True)

    salaries: tuple[SalaryEntry, ...] = ()
    expenses: tuple[ExpenseEntry, ...] = ()
    investments: tuple[InvestmentEntry, ...] = ()
    activities: tuple[ActivityEntry, ...] = ()

    @classmethod
    def empty(cls) -> 'EntitySnapshot':
        return cls()

    @property
    def entry_count(self) -> int:
        return (
            len(self.salaries)
            + len(self.expenses)
            + len(self.investments)
            + len(self.activities)
        )


_SNAPSHOT_COLLECTIONS = ("salaries", "expenses", "investments", "activities")


def parse_snapshot(payload: dict[str, Any]) -> EntitySnapshot:
    """
    Build a snapshot from a backend response body.

    Amounts that are not finite numbers are replaced with zero before
    validation so one malformed row cannot break the whole dashboard.
    Each replacement is logged. Any other malformation raises
    ``pydantic.ValidationError``.
    """
    cleaned: dict[str, list[dict]] = {}
    for collection in _SNAPSHOT_COLLECTIONS:
        rows = payload.get(collection) or []
        cleaned_rows = []
        for row in rows:
            row = dict(row)
            raw_amount = row.get("amount")
            amount = coerce_amount(raw_amount)
            if not _same_number(raw_amount, amount):
                logger.warning(
                    SyncEventType.AMOUNT_COERCED.value,
                    collection=collection,
                    entry_id=row.get("id"),
                    raw_amount=repr(raw_amount),
                )
            row["amount"] = amount
            cleaned_rows.append(row)
        cleaned[collection] = cleaned_rows
    return EntitySnapshot.model_validate(cleaned)


def _same_number(raw: Any, amount: Decimal) -> bool:
    """True when ``raw`` already denotes ``amount`` (e.g. int 5 vs Decimal 5)."""
    if raw is None or isinstance(raw, bool):
        return False
    try:
        return Decimal(str(raw)) == amount
    except ArithmeticError:
        return False
