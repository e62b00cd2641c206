"""
Derived View Models

Everything the screens render is computed from a snapshot into these
models. They carry no behaviour beyond presentation helpers.
"""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class DashboardTotals(BaseModel):
    """Headline figures for the active scope and period."""
    model_config = ConfigDict(frozen=True)

    total_salary: Decimal
    total_expenses: Decimal
    total_investments: Decimal
    other_income: Decimal = Field(description="Income and Gift activities")
    other_outflow: Decimal = Field(description="Loan activities")
    total_income: Decimal
    total_spending: Decimal = Field(description="Expenses + investments + loans")
    savings: Decimal = Field(description="Income minus spending, may be negative")
    savings_percent: Decimal = Field(description="Savings as percent of income, 1 dp")
    investment_ratio: Decimal = Field(description="Investments as percent of income, 1 dp")

    @property
    def savings_percent_label(self) -> str:
        return f"{self.savings_percent:.1f}"


class ContributionRow(BaseModel):
    """One member's salary, expenses and investments."""
    model_config = ConfigDict(frozen=True)

    name: str
    salary: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")
    investments: Decimal = Decimal("0")


class MonthSeriesRow(BaseModel):
    """One calendar month of a year view."""
    model_config = ConfigDict(frozen=True)

    month: int = Field(ge=1, le=12)
    label: str
    income: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")
    investments: Decimal = Decimal("0")
    savings: Decimal = Decimal("0")


class InsightKind(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"


class Insight(BaseModel):
    """An advisory message produced by an insight rule."""
    model_config = ConfigDict(frozen=True)

    rule: str
    kind: InsightKind
    message: str


class FundProgress(BaseModel):
    """Display state of one fund goal."""
    model_config = ConfigDict(frozen=True)

    name: str
    enabled: bool
    target: Decimal
    current: Decimal
    progress: Decimal = Field(ge=0, le=100)


class FundSummary(BaseModel):
    """How the fund goals combine with savings."""
    model_config = ConfigDict(frozen=True)

    funds_enabled: bool
    reserved_amount: Decimal
    total_available: Decimal
    goals: tuple[FundProgress, ...] = ()


class ComparisonBar(BaseModel):
    """A bar in the income vs spending chart."""
    model_config = ConfigDict(frozen=True)

    name: str
    amount: Decimal


class DashboardView(BaseModel):
    """The complete derived view model for one render."""
    model_config = ConfigDict(frozen=True)

    heading: str
    totals: DashboardTotals
    expenses_by_category: dict[str, Decimal] = Field(default_factory=dict)
    investments_by_type: dict[str, Decimal] = Field(default_factory=dict)
    salary_by_person: dict[str, Decimal] = Field(default_factory=dict)
    expenses_by_person: dict[str, Decimal] = Field(default_factory=dict)
    investments_by_owner: dict[str, Decimal] = Field(default_factory=dict)
    activities_by_type: dict[str, Decimal] = Field(default_factory=dict)
    contribution: tuple[ContributionRow, ...] = ()
    month_series: tuple[MonthSeriesRow, ...] = ()
    income_vs_spending: tuple[ComparisonBar, ...] = ()
    insights: tuple[Insight, ...] = ()
    funds: FundSummary
