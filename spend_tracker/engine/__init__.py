"""
Aggregation engine package.

Pure functions only: no I/O, no shared state, no exceptions on snapshot data.
"""

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
from spend_tracker.engine.dashboard import compute_dashboard
from spend_tracker.engine.funds import (
    fund_progress,
    funds_enabled,
    merge_fund_update,
    reserved_amount,
    summarize_funds,
    total_available,
)
from spend_tracker.engine.insights import (
    DEFAULT_RULES,
    InsightContext,
    InsightRule,
    generate_insights,
)
from spend_tracker.engine.scope import filter_by_scope, filter_expenses

__all__ = [
    # Scope
    "filter_by_scope",
    "filter_expenses",
    # Aggregation
    "activities_by_type",
    "compute_totals",
    "contribution_table",
    "expenses_by_category",
    "expenses_by_person",
    "investments_by_owner",
    "investments_by_type",
    "month_series",
    "salary_by_person",
    # Insights
    "DEFAULT_RULES",
    "InsightContext",
    "InsightRule",
    "generate_insights",
    # Funds
    "fund_progress",
    "funds_enabled",
    "merge_fund_update",
    "reserved_amount",
    "summarize_funds",
    "total_available",
    # Composition
    "compute_dashboard",
]
