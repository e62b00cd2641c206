"""Tests for the scope filter and the expense list filter."""

from spend_tracker.engine import filter_by_scope, filter_expenses
from spend_tracker.models import EntitySnapshot, ExpenseCategory, ViewScope
from tests.builders import expense


class TestFilterByScope:
    """Tests for household/personal projection."""

    def test_household_returns_snapshot_unchanged(self, household_snapshot):
        result = filter_by_scope(household_snapshot, ViewScope.HOUSEHOLD, "Asha")
        assert result is household_snapshot

    def test_personal_without_name_is_household(self, household_snapshot):
        """No member chosen yet means nothing is filtered out."""
        result = filter_by_scope(household_snapshot, ViewScope.PERSONAL, "")
        assert result is household_snapshot

    def test_personal_filters_each_collection_on_its_key(self, household_snapshot):
        result = filter_by_scope(household_snapshot, ViewScope.PERSONAL, "Ravi")
        assert [s.person for s in result.salaries] == ["Ravi"]
        assert [e.paid_by for e in result.expenses] == ["Ravi"]
        assert [i.owner for i in result.investments] == ["Ravi"]
        assert [a.person for a in result.activities] == ["Ravi"]

    def test_match_is_exact_and_case_sensitive(self, household_snapshot):
        result = filter_by_scope(household_snapshot, ViewScope.PERSONAL, "asha")
        assert result.entry_count == 0

    def test_unknown_member_gives_empty_collections(self, household_snapshot):
        result = filter_by_scope(household_snapshot, ViewScope.PERSONAL, "Nobody")
        assert result == EntitySnapshot.empty()

    def test_idempotent(self, household_snapshot):
        """Filtering twice by the same member changes nothing."""
        once = filter_by_scope(household_snapshot, ViewScope.PERSONAL, "Asha")
        twice = filter_by_scope(once, ViewScope.PERSONAL, "Asha")
        assert twice == once

    def test_input_not_modified(self, household_snapshot):
        before = household_snapshot.entry_count
        filter_by_scope(household_snapshot, ViewScope.PERSONAL, "Asha")
        assert household_snapshot.entry_count == before


class TestFilterExpenses:
    """Tests for the expense list filter."""

    def test_no_filters_keeps_everything(self, household_snapshot):
        assert filter_expenses(household_snapshot.expenses) == household_snapshot.expenses

    def test_by_category(self, household_snapshot):
        result = filter_expenses(household_snapshot.expenses, category=ExpenseCategory.FOOD)
        assert {e.paid_by for e in result} == {"Asha", "Ravi"}
        assert all(e.category is ExpenseCategory.FOOD for e in result)

    def test_by_category_and_member(self, household_snapshot):
        result = filter_expenses(
            household_snapshot.expenses,
            category=ExpenseCategory.FOOD,
            paid_by="Asha",
        )
        assert len(result) == 1
        assert result[0].amount == 2000

    def test_no_matches(self):
        assert filter_expenses([expense()], paid_by="Ravi") == ()
