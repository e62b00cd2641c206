"""
Aggregation Engine

Pure reducers that turn a snapshot into dashboard figures.

GUARANTEES:
- Never raises on snapshot data
- Every amount passes through coerce_amount, so totals are always finite
- Input order is irrelevant to totals; grouped results keep the order in
  which each key was first seen
- Money moved into investments counts as spending: it is no longer
  available, so savings = income - (expenses + investments + loans)
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Iterable, TypeVar

from spend_tracker.models.dashboard import (
    ContributionRow,
    DashboardTotals,
    MonthSeriesRow,
)
from spend_tracker.models.entities import (
    ActivityEntry,
    EntitySnapshot,
    member_key,
)
from spend_tracker.models.view import MONTH_NAMES
from spend_tracker.utils.amounts import ZERO, coerce_amount

T = TypeVar("T")

HUNDRED = Decimal("100")
ONE_DP = Decimal("0.1")


def sum_amounts(entries: Iterable) -> Decimal:
    """Sum the ``amount`` of every entry, treating bad amounts as zero."""
    return sum(
        (coerce_amount(getattr(e, "amount", None)) for e in entries),
        ZERO,
    )


def group_amounts(
    entries: Iterable[T],
    key: Callable[[T], str],
) -> dict[str, Decimal]:
    """Sum amounts per key, in first-seen key order."""
    totals: dict[str, Decimal] = {}
    for entry in entries:
        name = key(entry)
        totals[name] = totals.get(name, ZERO) + coerce_amount(entry.amount)
    return totals


def percent_of(part: Decimal, whole: Decimal) -> Decimal:
    """``part / whole * 100`` to one decimal place, or 0 when whole <= 0."""
    if whole <= 0:
        return Decimal("0.0")
    return (part / whole * HUNDRED).quantize(ONE_DP, rounding=ROUND_HALF_UP)


def _credits(activities: Iterable[ActivityEntry]) -> list[ActivityEntry]:
    return [a for a in activities if a.type.is_credit]


def _debits(activities: Iterable[ActivityEntry]) -> list[ActivityEntry]:
    return [a for a in activities if a.type.is_debit]


# =============================================================================
# TOTALS
# =============================================================================

def compute_totals(snapshot: EntitySnapshot) -> DashboardTotals:
    """Compute the headline figures for a (possibly scoped) snapshot."""
    total_salary = sum_amounts(snapshot.salaries)
    total_expenses = sum_amounts(snapshot.expenses)
    total_investments = sum_amounts(snapshot.investments)
    other_income = sum_amounts(_credits(snapshot.activities))
    other_outflow = sum_amounts(_debits(snapshot.activities))

    total_income = total_salary + other_income
    total_spending = total_expenses + total_investments + other_outflow
    savings = total_income - total_spending

    return DashboardTotals(
        total_salary=total_salary,
        total_expenses=total_expenses,
        total_investments=total_investments,
        other_income=other_income,
        other_outflow=other_outflow,
        total_income=total_income,
        total_spending=total_spending,
        savings=savings,
        savings_percent=percent_of(savings, total_income),
        investment_ratio=percent_of(total_investments, total_income),
    )


# =============================================================================
# GROUPED BREAKDOWNS
# =============================================================================

def expenses_by_category(snapshot: EntitySnapshot) -> dict[str, Decimal]:
    return group_amounts(snapshot.expenses, lambda e: e.category.value)


def investments_by_type(snapshot: EntitySnapshot) -> dict[str, Decimal]:
    return group_amounts(snapshot.investments, lambda i: i.type.value)


def activities_by_type(snapshot: EntitySnapshot) -> dict[str, Decimal]:
    return group_amounts(snapshot.activities, lambda a: a.type.value)


def salary_by_person(snapshot: EntitySnapshot) -> dict[str, Decimal]:
    return group_amounts(snapshot.salaries, member_key)


def expenses_by_person(snapshot: EntitySnapshot) -> dict[str, Decimal]:
    return group_amounts(snapshot.expenses, member_key)


def investments_by_owner(snapshot: EntitySnapshot) -> dict[str, Decimal]:
    return group_amounts(snapshot.investments, member_key)


def contribution_table(snapshot: EntitySnapshot) -> tuple[ContributionRow, ...]:
    """
    One row per member name seen in salaries, expenses or investments.

    The name set is the union over those three collections, not the
    roster: names of renamed or removed members still get a row.
    """
    salary = salary_by_person(snapshot)
    expenses = expenses_by_person(snapshot)
    investments = investments_by_owner(snapshot)

    names = dict.fromkeys([*salary, *expenses, *investments])
    return tuple(
        ContributionRow(
            name=name,
            salary=salary.get(name, ZERO),
            expenses=expenses.get(name, ZERO),
            investments=investments.get(name, ZERO),
        )
        for name in names
    )


# =============================================================================
# MONTH SERIES
# =============================================================================

def month_series(snapshot: EntitySnapshot) -> tuple[MonthSeriesRow, ...]:
    """
    Twelve rows, January to December, for a year snapshot.

    Rows are selected by each entry's ``month`` field. Months without
    entries are zero-filled. Loans do not enter the monthly savings.
    """
    rows = []
    for month in range(1, 13):
        def in_month(entries):
            return [e for e in entries if e.month == month]

        income = (
            sum_amounts(in_month(snapshot.salaries))
            + sum_amounts(_credits(in_month(snapshot.activities)))
        )
        expenses = sum_amounts(in_month(snapshot.expenses))
        investments = sum_amounts(in_month(snapshot.investments))
        rows.append(MonthSeriesRow(
            month=month,
            label=MONTH_NAMES[month - 1][:3],
            income=income,
            expenses=expenses,
            investments=investments,
            savings=income - expenses - investments,
        ))
    return tuple(rows)


__all__ = [
    "activities_by_type",
    "compute_totals",
    "contribution_table",
    "expenses_by_category",
    "expenses_by_person",
    "group_amounts",
    "investments_by_owner",
    "investments_by_type",
    "month_series",
    "percent_of",
    "salary_by_person",
    "sum_amounts",
]
