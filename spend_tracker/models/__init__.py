"""
Data Models Package

This package contains all Pydantic models used in Spend Tracker.
All data flowing between the backend, the engine and the screens must
conform to these schemas.
"""

from spend_tracker.models.account import (
    AuthResult,
    AuthUser,
    GoldValuation,
    GoldValuationItem,
)
from spend_tracker.models.dashboard import (
    ComparisonBar,
    ContributionRow,
    DashboardTotals,
    DashboardView,
    FundProgress,
    FundSummary,
    Insight,
    InsightKind,
    MonthSeriesRow,
)
from spend_tracker.models.entities import (
    ENTRY_MODELS,
    ActivityEntry,
    ActivityType,
    AnyEntry,
    EntitySnapshot,
    EntryKind,
    ExpenseCategory,
    ExpenseEntry,
    InvestmentEntry,
    InvestmentType,
    Member,
    SalaryEntry,
    member_key,
    parse_snapshot,
)
from spend_tracker.models.events import (
    SyncEvent,
    SyncEventBuilder,
    SyncEventType,
    SyncSeverity,
)
from spend_tracker.models.funds import FundGoal, Funds, FundsPatch
from spend_tracker.models.view import MONTH_NAMES, ViewConfig, ViewMode, ViewScope

__all__ = [
    # Entities
    "ENTRY_MODELS",
    "ActivityEntry",
    "ActivityType",
    "AnyEntry",
    "EntitySnapshot",
    "EntryKind",
    "ExpenseCategory",
    "ExpenseEntry",
    "InvestmentEntry",
    "InvestmentType",
    "Member",
    "SalaryEntry",
    "member_key",
    "parse_snapshot",
    # Funds
    "FundGoal",
    "Funds",
    "FundsPatch",
    # View
    "MONTH_NAMES",
    "ViewConfig",
    "ViewMode",
    "ViewScope",
    # Account
    "AuthResult",
    "AuthUser",
    "GoldValuation",
    "GoldValuationItem",
    # Sync events
    "SyncEvent",
    "SyncEventBuilder",
    "SyncEventType",
    "SyncSeverity",
    # Derived
    "ComparisonBar",
    "ContributionRow",
    "DashboardTotals",
    "DashboardView",
    "FundProgress",
    "FundSummary",
    "Insight",
    "InsightKind",
    "MonthSeriesRow",
]
