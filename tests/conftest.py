"""Shared fixtures for Spend Tracker tests."""

import pytest

from spend_tracker.models import (
    ActivityType,
    EntitySnapshot,
    ExpenseCategory,
    InvestmentType,
)
from tests.builders import activity, expense, investment, salary


@pytest.fixture
def household_snapshot() -> EntitySnapshot:
    """Two members with a bit of everything in January 2025."""
    return EntitySnapshot(
        salaries=(
            salary("Asha", "50000"),
            salary("Ravi", "40000"),
        ),
        expenses=(
            expense("Asha", "20000", ExpenseCategory.RENT, title="Rent"),
            expense("Ravi", "3000", ExpenseCategory.FOOD),
            expense("Asha", "2000", ExpenseCategory.FOOD),
        ),
        investments=(
            investment("Ravi", "10000", InvestmentType.MUTUAL_FUND),
            investment("Asha", "5000", InvestmentType.GOLD),
        ),
        activities=(
            activity(ActivityType.GIFT, "1000", "Ravi", title="Birthday"),
            activity(ActivityType.TRANSFER, "7000", "Asha", title="To savings"),
        ),
    )
