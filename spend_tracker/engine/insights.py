"""
Insight Rules

A small ordered rule list. Each rule is a (condition, message builder)
pair over the dashboard totals; rules run in registration order and
every rule whose condition holds contributes one insight.

To add advice, append an InsightRule. Nothing else changes.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, NamedTuple, Sequence

from spend_tracker.models.dashboard import DashboardTotals, Insight, InsightKind
from spend_tracker.models.view import ViewMode
from spend_tracker.utils.amounts import format_currency

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class InsightContext:
    """Everything a rule may look at."""

    totals: DashboardTotals
    view_mode: ViewMode = ViewMode.MONTH
    investment_ratio_threshold: Decimal = Decimal("20")
    currency_symbol: str = "₹"

    @property
    def period_phrase(self) -> str:
        return "this year" if self.view_mode is ViewMode.YEAR else "this month"

    @property
    def raw_investment_ratio(self) -> Decimal:
        """Unrounded percent of income invested (0 without income)."""
        income = self.totals.total_income
        if income <= 0:
            return Decimal("0")
        return self.totals.total_investments / income * HUNDRED

    def money(self, amount: Decimal) -> str:
        return format_currency(amount, self.currency_symbol)


class InsightRule(NamedTuple):
    name: str
    kind: InsightKind
    condition: Callable[[InsightContext], bool]
    build: Callable[[InsightContext], str]


DEFAULT_RULES: tuple[InsightRule, ...] = (
    InsightRule(
        name="saved",
        kind=InsightKind.SUCCESS,
        condition=lambda ctx: ctx.totals.savings > 0,
        build=lambda ctx: (
            f"You saved {ctx.money(ctx.totals.savings)} {ctx.period_phrase} "
            f"({ctx.totals.savings_percent_label}% of income)"
        ),
    ),
    InsightRule(
        name="overspent",
        kind=InsightKind.WARNING,
        condition=lambda ctx: ctx.totals.savings < 0,
        build=lambda ctx: (
            f"Spending exceeded income by {ctx.money(abs(ctx.totals.savings))}. "
            "Time to cut back."
        ),
    ),
    InsightRule(
        name="investing_more_than_spending",
        kind=InsightKind.SUCCESS,
        condition=lambda ctx: ctx.totals.total_investments > ctx.totals.total_expenses,
        build=lambda ctx: "Investments are higher than expenses",
    ),
    InsightRule(
        name="investment_ratio",
        kind=InsightKind.SUCCESS,
        condition=lambda ctx: (
            ctx.totals.total_income > 0
            and ctx.raw_investment_ratio >= ctx.investment_ratio_threshold
        ),
        build=lambda ctx: f"{ctx.raw_investment_ratio:.1f}% of income invested",
    ),
)


def generate_insights(
    context: InsightContext,
    rules: Sequence[InsightRule] = DEFAULT_RULES,
) -> tuple[Insight, ...]:
    """Evaluate ``rules`` in order and collect the insights that apply."""
    return tuple(
        Insight(rule=rule.name, kind=rule.kind, message=rule.build(context))
        for rule in rules
        if rule.condition(context)
    )


__all__ = [
    "DEFAULT_RULES",
    "InsightContext",
    "InsightRule",
    "generate_insights",
]
