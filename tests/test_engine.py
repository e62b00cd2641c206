"""Tests for the aggregation engine, insights and dashboard composition."""

from decimal import Decimal

import pytest

from spend_tracker.engine import (
    DEFAULT_RULES,
    InsightContext,
    InsightRule,
    activities_by_type,
    compute_dashboard,
    compute_totals,
    contribution_table,
    expenses_by_category,
    expenses_by_person,
    generate_insights,
    investments_by_owner,
    investments_by_type,
    month_series,
    salary_by_person,
)
from spend_tracker.models import (
    ActivityType,
    EntitySnapshot,
    ExpenseCategory,
    ExpenseEntry,
    Funds,
    FundGoal,
    InsightKind,
    InvestmentType,
    ViewConfig,
    ViewMode,
)
from spend_tracker.utils import format_currency
from tests.builders import activity, expense, investment, salary


class TestTotals:
    """Tests for the headline totals."""

    def test_basic_household(self):
        """Salary 50000, food 20000, stocks 10000 gives 40.0% saved."""
        snapshot = EntitySnapshot(
            salaries=(salary("A", "50000"),),
            expenses=(expense("A", "20000", ExpenseCategory.FOOD),),
            investments=(investment("A", "10000", InvestmentType.STOCKS),),
        )
        totals = compute_totals(snapshot)
        assert totals.total_income == Decimal("50000")
        assert totals.total_spending == Decimal("30000")
        assert totals.savings == Decimal("20000")
        assert totals.savings_percent_label == "40.0"

    def test_loans_are_spending_and_income_activities_are_income(self):
        """A 5000 loan and 2000 income leaves -3000 savings."""
        snapshot = EntitySnapshot(activities=(
            activity(ActivityType.LOAN, "5000"),
            activity(ActivityType.INCOME, "2000"),
        ))
        totals = compute_totals(snapshot)
        assert totals.total_income == Decimal("2000")
        assert totals.other_outflow == Decimal("5000")
        assert totals.total_spending == Decimal("5000")
        assert totals.savings == Decimal("-3000")

    def test_transfers_and_other_are_neutral(self):
        """Transfer and Other activities never move the totals."""
        snapshot = EntitySnapshot(activities=(
            activity(ActivityType.TRANSFER, "9000"),
            activity(ActivityType.OTHER, "100"),
        ))
        totals = compute_totals(snapshot)
        assert totals.total_income == Decimal("0")
        assert totals.total_spending == Decimal("0")

    def test_gifts_count_as_income(self):
        totals = compute_totals(EntitySnapshot(activities=(activity(ActivityType.GIFT, "750"),)))
        assert totals.other_income == Decimal("750")
        assert totals.total_income == Decimal("750")

    def test_savings_percent_zero_without_income(self):
        """No income means 0% saved, never a division error."""
        snapshot = EntitySnapshot(expenses=(expense(amount="500"),))
        totals = compute_totals(snapshot)
        assert totals.savings_percent == Decimal("0")
        assert totals.savings_percent_label == "0.0"
        assert totals.investment_ratio == Decimal("0")

    def test_empty_snapshot(self):
        totals = compute_totals(EntitySnapshot.empty())
        assert totals.savings == Decimal("0")
        assert totals.total_income == Decimal("0")

    def test_savings_identity_is_exact(self, household_snapshot):
        """income - spending == savings with no drift on paise amounts."""
        snapshot = EntitySnapshot(
            salaries=(salary(amount="0.10"), salary(amount="0.20")),
            expenses=(expense(amount="0.30"),),
        )
        for snap in (snapshot, household_snapshot):
            totals = compute_totals(snap)
            assert totals.total_income - totals.total_spending == totals.savings
        assert compute_totals(snapshot).savings == Decimal("0.00")

    def test_household_fixture_totals(self, household_snapshot):
        totals = compute_totals(household_snapshot)
        assert totals.total_salary == Decimal("90000")
        assert totals.total_income == Decimal("91000")
        assert totals.total_spending == Decimal("40000")
        assert totals.savings == Decimal("51000")
        assert totals.savings_percent == Decimal("56.0")

    def test_bad_amounts_are_treated_as_zero(self):
        """Entries that bypassed validation still sum to a finite total."""
        broken = ExpenseEntry.model_construct(
            title="Broken",
            amount=Decimal("NaN"),
            category=ExpenseCategory.FOOD,
            paid_by="A",
            month=1,
            year=2025,
        )
        snapshot = EntitySnapshot(expenses=(broken, expense("A", "100")))
        totals = compute_totals(snapshot)
        assert totals.total_expenses == Decimal("100")
        assert expenses_by_category(snapshot) == {"Food": Decimal("100")}


class TestBreakdowns:
    """Tests for grouped breakdowns."""

    def test_expenses_by_category_first_seen_order(self, household_snapshot):
        """Keys keep the order they first appear in, not sorted order."""
        result = expenses_by_category(household_snapshot)
        assert list(result) == ["Rent", "Food"]
        assert result["Food"] == Decimal("5000")

    def test_breakdowns_sum_to_totals(self, household_snapshot):
        """Every grouped mapping adds back up to its ungrouped total."""
        totals = compute_totals(household_snapshot)
        assert sum(expenses_by_category(household_snapshot).values()) == totals.total_expenses
        assert sum(expenses_by_person(household_snapshot).values()) == totals.total_expenses
        assert sum(investments_by_type(household_snapshot).values()) == totals.total_investments
        assert sum(investments_by_owner(household_snapshot).values()) == totals.total_investments
        assert sum(salary_by_person(household_snapshot).values()) == totals.total_salary

    def test_per_member_mappings(self, household_snapshot):
        assert salary_by_person(household_snapshot) == {
            "Asha": Decimal("50000"),
            "Ravi": Decimal("40000"),
        }
        assert expenses_by_person(household_snapshot)["Asha"] == Decimal("22000")
        assert investments_by_owner(household_snapshot) == {
            "Ravi": Decimal("10000"),
            "Asha": Decimal("5000"),
        }
        assert investments_by_type(household_snapshot) == {
            "Mutual Fund": Decimal("10000"),
            "Gold": Decimal("5000"),
        }

    def test_activities_by_type_includes_neutral_types(self, household_snapshot):
        """The activity breakdown shows everything, neutral types included."""
        assert activities_by_type(household_snapshot) == {
            "Gift": Decimal("1000"),
            "Transfer": Decimal("7000"),
        }

    def test_contribution_uses_union_of_names(self):
        """A name that only invests still gets a zero-filled row."""
        snapshot = EntitySnapshot(
            salaries=(salary("A", "100"),),
            expenses=(expense("B", "40"),),
            investments=(investment("C", "25"),),
        )
        rows = contribution_table(snapshot)
        assert [row.name for row in rows] == ["A", "B", "C"]
        assert rows[1].salary == Decimal("0")
        assert rows[1].expenses == Decimal("40")
        assert rows[2].investments == Decimal("25")

    def test_contribution_ignores_activity_only_names(self):
        snapshot = EntitySnapshot(activities=(activity(person="Guest"),))
        assert contribution_table(snapshot) == ()

    def test_renamed_member_keeps_old_bucket(self):
        """Entries filed under an old name are aggregated under that name."""
        snapshot = EntitySnapshot(salaries=(
            salary("Asha", "100"),
            salary("Asha K", "50"),
        ))
        assert salary_by_person(snapshot) == {
            "Asha": Decimal("100"),
            "Asha K": Decimal("50"),
        }

    def test_duplicate_member_names_merge(self):
        """Two members called the same thing share one bucket."""
        snapshot = EntitySnapshot(salaries=(salary("Asha", "100"), salary("Asha", "50")))
        assert salary_by_person(snapshot) == {"Asha": Decimal("150")}


class TestMonthSeries:
    """Tests for the year month-by-month rollup."""

    def test_always_twelve_rows(self):
        rows = month_series(EntitySnapshot.empty())
        assert len(rows) == 12
        assert [row.month for row in rows] == list(range(1, 13))
        assert rows[0].label == "Jan"
        assert rows[11].label == "Dec"

    def test_single_month_leaves_others_zero(self):
        """Entries only in March fill March and zero every other month."""
        snapshot = EntitySnapshot(
            salaries=(salary(amount="1000", month=3),),
            expenses=(expense(amount="300", month=3),),
            investments=(investment(amount="200", month=3),),
            activities=(activity(ActivityType.GIFT, "50", month=3),),
        )
        rows = month_series(snapshot)
        march = rows[2]
        assert march.income == Decimal("1050")
        assert march.expenses == Decimal("300")
        assert march.investments == Decimal("200")
        assert march.savings == Decimal("550")
        for row in rows:
            if row.month != 3:
                assert (row.income, row.expenses, row.investments, row.savings) == (0, 0, 0, 0)

    def test_loans_not_in_monthly_savings(self):
        """Monthly savings are income minus expenses and investments only."""
        snapshot = EntitySnapshot(
            salaries=(salary(amount="1000", month=5),),
            activities=(activity(ActivityType.LOAN, "400", month=5),),
        )
        assert month_series(snapshot)[4].savings == Decimal("1000")


class TestInsights:
    """Tests for the insight rules."""

    def context(self, snapshot, view_mode=ViewMode.MONTH):
        return InsightContext(totals=compute_totals(snapshot), view_mode=view_mode)

    def test_positive_savings_message(self):
        snapshot = EntitySnapshot(
            salaries=(salary(amount="50000"),),
            expenses=(expense(amount="20000"),),
            investments=(investment(amount="10000"),),
        )
        insights = generate_insights(self.context(snapshot))
        assert insights[0].rule == "saved"
        assert insights[0].kind is InsightKind.SUCCESS
        assert insights[0].message == "You saved ₹20,000 this month (40.0% of income)"

    def test_year_view_wording(self):
        snapshot = EntitySnapshot(salaries=(salary(amount="1000"),))
        insights = generate_insights(self.context(snapshot, ViewMode.YEAR))
        assert "this year" in insights[0].message

    def test_overspending_warning(self):
        snapshot = EntitySnapshot(
            salaries=(salary(amount="1000"),),
            expenses=(expense(amount="4000"),),
        )
        insights = generate_insights(self.context(snapshot))
        assert [i.rule for i in insights] == ["overspent"]
        assert insights[0].kind is InsightKind.WARNING
        assert insights[0].message == "Spending exceeded income by ₹3,000. Time to cut back."

    def test_zero_savings_gives_neither_message(self):
        snapshot = EntitySnapshot(
            salaries=(salary(amount="1000"),),
            expenses=(expense(amount="1000"),),
        )
        assert generate_insights(self.context(snapshot)) == ()

    def test_all_four_in_fixed_order(self):
        """Saved, investing more than spending, then the investment ratio."""
        snapshot = EntitySnapshot(
            salaries=(salary(amount="100000"),),
            expenses=(expense(amount="10000"),),
            investments=(investment(amount="30000"),),
        )
        insights = generate_insights(self.context(snapshot))
        assert [i.rule for i in insights] == [
            "saved",
            "investing_more_than_spending",
            "investment_ratio",
        ]
        assert insights[2].message == "30.0% of income invested"

    def test_ratio_threshold_is_inclusive(self):
        """Exactly 20% invested earns the ratio insight."""
        snapshot = EntitySnapshot(
            salaries=(salary(amount="1000"),),
            expenses=(expense(amount="500"),),
            investments=(investment(amount="200"),),
        )
        rules = [i.rule for i in generate_insights(self.context(snapshot))]
        assert "investment_ratio" in rules

    def test_ratio_below_threshold(self):
        snapshot = EntitySnapshot(
            salaries=(salary(amount="1000"),),
            investments=(investment(amount="199"),),
        )
        rules = [i.rule for i in generate_insights(self.context(snapshot))]
        assert "investment_ratio" not in rules

    def test_no_ratio_without_income(self):
        """Investments with no income never divide by zero."""
        snapshot = EntitySnapshot(investments=(investment(amount="500"),))
        rules = [i.rule for i in generate_insights(self.context(snapshot))]
        assert rules == ["overspent", "investing_more_than_spending"]

    def test_custom_rule_appended(self):
        """New advice is one more rule in the list."""
        big_rent = InsightRule(
            name="rent_heavy",
            kind=InsightKind.WARNING,
            condition=lambda ctx: ctx.totals.total_expenses > 0,
            build=lambda ctx: "Rent check",
        )
        snapshot = EntitySnapshot(expenses=(expense(amount="10"),))
        insights = generate_insights(self.context(snapshot), (*DEFAULT_RULES, big_rent))
        assert insights[-1].rule == "rent_heavy"


class TestComputeDashboard:
    """Tests for the full view model."""

    def test_month_view_has_no_series(self, household_snapshot):
        view = ViewConfig(selected_month=1, selected_year=2025)
        dashboard = compute_dashboard(household_snapshot, Funds(), view)
        assert dashboard.heading == "January overview"
        assert dashboard.month_series == ()
        assert dashboard.totals.savings == Decimal("51000")

    def test_year_view_has_twelve_rows(self, household_snapshot):
        view = ViewConfig(view_mode=ViewMode.YEAR, selected_year=2025)
        dashboard = compute_dashboard(household_snapshot, Funds(), view)
        assert dashboard.heading == "2025 overview"
        assert len(dashboard.month_series) == 12

    def test_income_vs_spending_clamps_negative_savings(self):
        snapshot = EntitySnapshot(expenses=(expense(amount="300"),))
        dashboard = compute_dashboard(snapshot, Funds(), ViewConfig())
        bars = {bar.name: bar.amount for bar in dashboard.income_vs_spending}
        assert bars == {
            "Income": Decimal("0"),
            "Spending": Decimal("300"),
            "Savings": Decimal("0"),
        }

    def test_funds_compose_with_savings(self, household_snapshot):
        funds = Funds(emergency=FundGoal(enabled=True, target=Decimal("100000"), current=Decimal("1000")))
        dashboard = compute_dashboard(household_snapshot, funds, ViewConfig())
        assert dashboard.funds.funds_enabled
        assert dashboard.funds.total_available == Decimal("50000")

    def test_currency_symbol_in_messages(self):
        snapshot = EntitySnapshot(salaries=(salary(amount="1500"),))
        dashboard = compute_dashboard(snapshot, Funds(), ViewConfig(), currency_symbol="Rs ")
        assert dashboard.insights[0].message.startswith("You saved Rs 1,500")


class TestFormatCurrency:
    """Tests for amount display."""

    @pytest.mark.parametrize("amount,expected", [
        (Decimal("0"), "₹0"),
        (Decimal("999"), "₹999"),
        (Decimal("1000"), "₹1,000"),
        (Decimal("123456"), "₹1,23,456"),
        (Decimal("12345678"), "₹1,23,45,678"),
        (Decimal("-3000"), "-₹3,000"),
        (Decimal("10.5"), "₹11"),
    ])
    def test_indian_grouping(self, amount, expected):
        assert format_currency(amount) == expected

    def test_garbage_formats_as_zero(self):
        assert format_currency("not a number") == "₹0"
