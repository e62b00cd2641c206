"""
Scope Filter

Projects a snapshot onto the household (everything) or onto one member.
Each collection is filtered independently on its own join key, so an
expense belongs to whoever paid it and an investment to whoever owns it.
"""

from typing import Iterable, Optional

from spend_tracker.models.entities import (
    EntitySnapshot,
    ExpenseCategory,
    ExpenseEntry,
    member_key,
)
from spend_tracker.models.view import ViewScope


def filter_by_scope(
    snapshot: EntitySnapshot,
    scope: ViewScope,
    member_name: str,
) -> EntitySnapshot:
    """Return the part of ``snapshot`` visible in ``scope``.

    Household scope, or personal scope without a member name, returns the
    snapshot unchanged. Personal scope keeps entries whose member key equals
    ``member_name`` exactly. No matches give empty collections.
    """
    if scope is not ViewScope.PERSONAL or not member_name:
        return snapshot

    def mine(entries):
        return tuple(e for e in entries if member_key(e) == member_name)

    return EntitySnapshot(
        salaries=mine(snapshot.salaries),
        expenses=mine(snapshot.expenses),
        investments=mine(snapshot.investments),
        activities=mine(snapshot.activities),
    )


def filter_expenses(
    expenses: Iterable[ExpenseEntry],
    category: Optional[ExpenseCategory] = None,
    paid_by: Optional[str] = None,
) -> tuple[ExpenseEntry, ...]:
    """Narrow an expense list by category and payer. None means all."""
    return tuple(
        e for e in expenses
        if (category is None or e.category == category)
        and (paid_by is None or e.paid_by == paid_by)
    )


__all__ = ["filter_by_scope", "filter_expenses"]
