"""
Tests for query execution.

Sample state (see conftest): lunch 12.50 (03-13, food), train 40.00
(03-10, transport), weekly shop 80.00 (02-20, grocery); overall monthly
budget 400.00.
"""

from datetime import datetime

import pytest

from spendtalk.models.command import BudgetPeriod, CurrencyCode, QueryFilters
from spendtalk.models.state import AppState, BudgetRule
from spendtalk.queries import (
    budget_progress,
    filter_expenses,
    format_money,
    monthly_summary,
    total_cents,
    total_currency,
)

from tests.conftest import make_expense


def _ids(expenses):
    return [e.id for e in expenses]


class TestFilterExpenses:
    """Tests for filter_expenses."""

    def test_no_filters(self, sample_state):
        """Test that None and empty filters keep everything."""
        assert len(filter_expenses(sample_state.expenses, None)) == 3
        assert len(filter_expenses(sample_state.expenses, QueryFilters())) == 3

    def test_category_case_insensitive(self, sample_state):
        """Test category equality ignores case."""
        result = filter_expenses(sample_state.expenses, QueryFilters(category="FOOD"))
        assert _ids(result) == ["exp_c_000003"]

    def test_text_matches_description_or_category(self, sample_state):
        """Test the substring axis."""
        assert _ids(filter_expenses(sample_state.expenses, QueryFilters(text="TRAIN"))) == ["exp_b_000002"]
        assert _ids(filter_expenses(sample_state.expenses, QueryFilters(text="grocer"))) == ["exp_a_000001"]

    def test_date_range_inclusive(self, sample_state):
        """Test that both ends of the range are inclusive."""
        filters = QueryFilters(
            start=datetime(2024, 3, 10, 9, 0),
            end=datetime(2024, 3, 13, 12, 0),
        )
        assert _ids(filter_expenses(sample_state.expenses, filters)) == ["exp_c_000003", "exp_b_000002"]

    def test_amount_bounds_inclusive(self, sample_state):
        """Test that amount bounds are inclusive."""
        assert len(filter_expenses(sample_state.expenses, QueryFilters(min_cents=4000))) == 2
        assert len(filter_expenses(sample_state.expenses, QueryFilters(max_cents=4000))) == 2
        assert _ids(filter_expenses(
            sample_state.expenses, QueryFilters(min_cents=2000, max_cents=5000)
        )) == ["exp_b_000002"]


class TestTotals:
    """Tests for totals and their currency label."""

    def test_total_cents(self, sample_state):
        """Test summing cents."""
        assert total_cents(sample_state.expenses) == 13250
        assert total_cents([]) == 0

    def test_total_currency(self, sample_state):
        """Test the currency label fallbacks."""
        euro = make_expense("exp_e_000005", 100, currency=CurrencyCode.EUR)
        assert total_currency([euro], sample_state.expenses) == CurrencyCode.EUR
        assert total_currency([], (euro,) + sample_state.expenses) == CurrencyCode.EUR
        assert total_currency([], []) == CurrencyCode.USD


class TestBudgets:
    """Tests for budget progress."""

    def test_overall_monthly(self, sample_state, now):
        """Test that only this month's expenses count."""
        [status] = budget_progress(sample_state, now=now)
        assert status.spent_cents == 5250
        assert status.remaining_cents == 34750
        assert status.percent_used == 13
        assert not status.is_exceeded

    def test_weekly_exceeded(self, sample_state, now):
        """Test a weekly budget that is overspent."""
        rule = BudgetRule(id="food-weekly", category="food", amount_cents=1000, period=BudgetPeriod.WEEKLY)
        state = sample_state.upsert_budget(rule)
        status = budget_progress(state, now=now)[0]
        assert status.period_start == datetime(2024, 3, 10)
        assert status.spent_cents == 1250
        assert status.remaining_cents == 0
        assert status.percent_used == 100
        assert status.is_exceeded

    def test_category_outside_window(self, sample_state, now):
        """Test that last month's spending does not count."""
        rule = BudgetRule(id="grocery-monthly", category="Grocery", amount_cents=10000)
        state = sample_state.upsert_budget(rule)
        status = budget_progress(state, now=now)[0]
        assert status.spent_cents == 0
        assert status.percent_used == 0


class TestMonthlySummary:
    """Tests for monthly_summary."""

    def test_summary(self, sample_state, now):
        """Test the headline numbers."""
        summary = monthly_summary(sample_state, now=now)
        assert summary.this_month_cents == 5250
        assert summary.all_time_cents == 13250
        assert summary.overall_remaining_cents == 34750
        assert summary.currency == CurrencyCode.USD

    def test_summary_without_budget(self, now):
        """Test that no overall budget means no remaining figure."""
        summary = monthly_summary(AppState(), now=now)
        assert summary.overall_budget is None
        assert summary.overall_remaining_cents is None
        assert summary.this_month_cents == 0


class TestFormatMoney:
    """Tests for format_money."""

    @pytest.mark.parametrize("cents, currency, expected", [
        (123450, CurrencyCode.USD, "$1,234.50"),
        (0, CurrencyCode.USD, "$0.00"),
        (-500, CurrencyCode.EUR, "-€5.00"),
        (999, CurrencyCode.GBP, "£9.99"),
        (1500, CurrencyCode.JPY, "¥15"),
    ])
    def test_format(self, cents, currency, expected):
        """Test symbols, separators and minor units."""
        assert format_money(cents, currency) == expected
