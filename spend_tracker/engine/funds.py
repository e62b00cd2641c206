"""
Fund Ledger

Composes the fund goals with computed savings:

    reserved  = sum of current for enabled goals
    available = savings - reserved

Disabled goals reserve nothing. Saving goals is handled by the session,
which merges, persists and only then commits (see merge_fund_update).
"""

from decimal import Decimal

from spend_tracker.models.dashboard import FundProgress, FundSummary
from spend_tracker.models.funds import FundGoal, Funds, FundsPatch
from spend_tracker.utils.amounts import ZERO, coerce_amount

HUNDRED = Decimal("100")


def reserved_amount(funds: Funds) -> Decimal:
    """Money held back in enabled fund goals."""
    return sum(
        (coerce_amount(goal.current) for goal in funds.goals().values() if goal.enabled),
        ZERO,
    )


def total_available(savings: Decimal, funds: Funds) -> Decimal:
    """Savings left after reserved funds (may be negative)."""
    return coerce_amount(savings) - reserved_amount(funds)


def funds_enabled(funds: Funds) -> bool:
    """Whether any goal is enabled. Gates the "Total available" card."""
    return any(goal.enabled for goal in funds.goals().values())


def fund_progress(goal: FundGoal) -> Decimal:
    """Percent of target reached, capped at 100; 0 without a target."""
    target = coerce_amount(goal.target)
    if target <= 0:
        return ZERO
    return min(HUNDRED, coerce_amount(goal.current) / target * HUNDRED)


def merge_fund_update(current: Funds, patch: FundsPatch) -> Funds:
    """
    Apply a partial update on top of the last fetched funds.

    Goals absent from the patch keep their current value, so updating
    only the emergency fund never erases the vacation fund.
    """
    return Funds(
        emergency=patch.emergency if patch.emergency is not None else current.emergency,
        vacation=patch.vacation if patch.vacation is not None else current.vacation,
    )


def summarize_funds(savings: Decimal, funds: Funds) -> FundSummary:
    """Everything the funds section and the available card need."""
    return FundSummary(
        funds_enabled=funds_enabled(funds),
        reserved_amount=reserved_amount(funds),
        total_available=total_available(savings, funds),
        goals=tuple(
            FundProgress(
                name=name,
                enabled=goal.enabled,
                target=goal.target,
                current=goal.current,
                progress=fund_progress(goal),
            )
            for name, goal in funds.goals().items()
        ),
    )


__all__ = [
    "fund_progress",
    "funds_enabled",
    "merge_fund_update",
    "reserved_amount",
    "summarize_funds",
    "total_available",
]
