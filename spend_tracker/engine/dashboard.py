"""
Dashboard Composition

One entry point that turns a scoped snapshot, the funds and the view
configuration into the full view model. Pure and synchronous: safe to
call from any thread, and it never raises on snapshot data.
"""

from decimal import Decimal
from typing import Optional, Sequence

from spend_tracker.engine.aggregation import (
    activities_by_type,
    compute_totals,
    contribution_table,
    expenses_by_category,
    expenses_by_person,
    investments_by_owner,
    investments_by_type,
    month_series,
    salary_by_person,
)
from spend_tracker.engine.funds import summarize_funds
from spend_tracker.engine.insights import (
    DEFAULT_RULES,
    InsightContext,
    InsightRule,
    generate_insights,
)
from spend_tracker.models.dashboard import ComparisonBar, DashboardView
from spend_tracker.models.entities import EntitySnapshot
from spend_tracker.models.funds import Funds
from spend_tracker.models.view import ViewConfig
from spend_tracker.utils.amounts import ZERO


def compute_dashboard(
    snapshot: EntitySnapshot,
    funds: Funds,
    view: ViewConfig,
    *,
    investment_ratio_threshold: Decimal = Decimal("20"),
    currency_symbol: str = "₹",
    rules: Optional[Sequence[InsightRule]] = None,
) -> DashboardView:
    """Compute the derived view model for one render.

    Args:
        snapshot: Entries already projected to the active scope.
        funds: Current fund goals.
        view: Active view configuration.
        investment_ratio_threshold: Percent of income invested that earns
            a positive insight.
        currency_symbol: Symbol used in insight messages.
        rules: Insight rules to evaluate, defaults to DEFAULT_RULES.

    Returns:
        DashboardView: Totals, breakdowns, series, insights and funds.
    """
    totals = compute_totals(snapshot)
    context = InsightContext(
        totals=totals,
        view_mode=view.view_mode,
        investment_ratio_threshold=investment_ratio_threshold,
        currency_symbol=currency_symbol,
    )

    return DashboardView(
        heading=view.period_label,
        totals=totals,
        expenses_by_category=expenses_by_category(snapshot),
        investments_by_type=investments_by_type(snapshot),
        salary_by_person=salary_by_person(snapshot),
        expenses_by_person=expenses_by_person(snapshot),
        investments_by_owner=investments_by_owner(snapshot),
        activities_by_type=activities_by_type(snapshot),
        contribution=contribution_table(snapshot),
        month_series=month_series(snapshot) if view.is_year_view else (),
        income_vs_spending=(
            ComparisonBar(name="Income", amount=totals.total_income),
            ComparisonBar(name="Spending", amount=totals.total_spending),
            ComparisonBar(name="Savings", amount=max(totals.savings, ZERO)),
        ),
        insights=generate_insights(
            context,
            DEFAULT_RULES if rules is None else rules,
        ),
        funds=summarize_funds(totals.savings, funds),
    )


__all__ = ["compute_dashboard"]
