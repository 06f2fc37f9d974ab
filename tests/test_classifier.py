"""
Tests for the command classifier.

Covers every rule of the cascade, the priority ordering between them,
and the never-raises guarantee.
"""

from datetime import datetime

import pytest

from spendtalk.interpreter.classifier import (
    COMMAND_RULES,
    CommandRule,
    describe,
    parse_command,
)
from spendtalk.models.command import (
    AddExpense,
    BudgetPeriod,
    ClearAll,
    CurrencyCode,
    DeleteById,
    DeleteLast,
    Help,
    SetBudget,
    Show,
    Total,
    Undo,
)
from spendtalk.models.state import generate_id


class TestRuleTable:
    """Tests for the shape of the rule table."""

    def test_rule_order(self):
        """Test that the cascade is in priority order."""
        assert [rule.name for rule in COMMAND_RULES] == [
            "empty",
            "help",
            "undo",
            "clear_all",
            "delete_last",
            "delete_by_id",
            "show",
            "total",
            "set_budget",
            "add_expense",
            "bare_amount",
            "temporal_show",
            "fallback",
        ]

    def test_custom_table(self, now):
        """Test that callers can pass their own table."""
        rules = (CommandRule(name="always_undo", applies=lambda ctx: True, build=lambda ctx: Undo()),)
        assert parse_command("spent 20 on lunch", now=now, rules=rules) == Undo()


class TestSimpleCommands:
    """Tests for the keyword commands."""

    @pytest.mark.parametrize("text, expected", [
        ("", Help()),
        ("   ", Help()),
        ("help", Help()),
        ("What can I say?", Help()),
        ("undo", Undo()),
        ("Undo that please", Undo()),
        ("clear all", ClearAll()),
        ("delete last", DeleteLast()),
        ("remove last one", DeleteLast()),
    ])
    def test_keywords(self, now, text, expected):
        """Test keyword-only commands."""
        assert parse_command(text, now=now) == expected

    def test_delete_by_id(self, now):
        """Test deleting by a generated id."""
        expense_id = generate_id("exp")
        assert parse_command(f"delete {expense_id}", now=now) == DeleteById(id=expense_id)

    def test_delete_without_id_shape_is_not_delete(self, now):
        """Test that "delete lunch" is not a delete-by-id."""
        assert not isinstance(parse_command("delete lunch", now=now), DeleteById)


class TestQueries:
    """Tests for show and total."""

    def test_show_beats_add(self, now):
        """Test that "show" is checked before the add verbs."""
        command = parse_command("show food spent this week", now=now)
        assert isinstance(command, Show)
        assert command.filters.category == "food"
        assert command.filters.start == datetime(2024, 3, 10)

    def test_total(self, now):
        """Test a total with a date range."""
        command = parse_command("total this month", now=now)
        assert isinstance(command, Total)
        assert command.filters.start == datetime(2024, 3, 1)

    def test_how_much(self, now):
        """Test the "how much" phrasing."""
        command = parse_command("how much did I spend on coffee", now=now)
        assert isinstance(command, Total)
        assert command.filters.category == "coffee"

    def test_spent_in_total_is_total(self, now):
        """Test that "spent in total" is not an add."""
        assert isinstance(parse_command("spent in total last week", now=now), Total)

    def test_impossible_year_still_shows(self, now):
        """Test that an out-of-range year is ignored rather than failing."""
        command = parse_command("show march 0000", now=now)
        assert isinstance(command, Show)
        assert command.filters.start is None

    def test_temporal_keyword_shows(self, now):
        """Test that a bare temporal phrase lists expenses."""
        command = parse_command("yesterday", now=now)
        assert isinstance(command, Show)
        assert command.filters.start == datetime(2024, 3, 12)


class TestSetBudget:
    """Tests for budget commands."""

    def test_set_budget_normalizes_category(self, now):
        """Test "-ies" folding so budgets match expense categories."""
        assert parse_command("set budget 300 for groceries", now=now) == SetBudget(
            category="grocery",
            amount_cents=30000,
            period=BudgetPeriod.MONTHLY,
            currency=CurrencyCode.USD,
        )

    def test_weekly(self, now):
        """Test an explicit period."""
        command = parse_command("set budget 50 for coffee weekly", now=now)
        assert command.period == BudgetPeriod.WEEKLY
        assert command.amount_cents == 5000

    def test_currency_from_amount(self, now):
        """Test that the currency comes from the amount substring."""
        assert parse_command("set budget €200 for travel", now=now).currency == CurrencyCode.EUR
        assert parse_command("set budget 100 CAD for travel", now=now).currency == CurrencyCode.CAD

    def test_lowercase_currency_code(self, now):
        """Test that a lowercase code is part of the amount, not the category."""
        command = parse_command("set budget 300 usd for food", now=now)
        assert command.category == "food"
        assert command.amount_cents == 30000
        assert parse_command("set budget 100 cad for travel", now=now) == SetBudget(
            category="travel",
            amount_cents=10000,
            period=BudgetPeriod.MONTHLY,
            currency=CurrencyCode.CAD,
        )

    def test_overall(self, now):
        """Test the overall budget without "for"."""
        command = parse_command("set budget 1,500 overall", now=now)
        assert command.category == "overall"
        assert command.amount_cents == 150000


class TestAddExpense:
    """Tests for adding expenses."""

    def test_spent_on_lunch(self, now):
        """Test the canonical add sentence."""
        assert parse_command("spent 20 on lunch", now=now) == AddExpense(
            description="lunch",
            category="lunch",
            amount_cents=2000,
            currency=CurrencyCode.USD,
            spent_at=now,
        )

    def test_add_with_date_and_currency(self, now):
        """Test currency detection and date resolution together."""
        command = parse_command("bought book for 15 EUR yesterday", now=now)
        assert isinstance(command, AddExpense)
        assert command.description == "book"
        assert command.amount_cents == 1500
        assert command.currency == CurrencyCode.EUR
        assert command.spent_at == datetime(2024, 3, 12, 15, 30)

    def test_date_before_connective(self, now):
        """Test that a weekday between connectives is not the category."""
        command = parse_command("spent 20 on friday for lunch", now=now)
        assert isinstance(command, AddExpense)
        assert command.category == "lunch"
        assert command.description == "lunch"
        assert command.spent_at.date() == datetime(2024, 3, 15).date()

    def test_description_falls_back_to_category(self, now):
        """Test that an empty description becomes the category."""
        command = parse_command("spent 20", now=now)
        assert command.description == "general"
        assert command.category == "general"

    def test_add_without_amount_falls_through(self, now):
        """Test that an add verb without an amount is not an add."""
        assert parse_command("add coffee", now=now) == Help()

    def test_bare_amount(self, now):
        """Test an amount with no verb at all."""
        command = parse_command("12.50 coffee", now=now)
        assert isinstance(command, AddExpense)
        assert command.amount_cents == 1250
        assert command.description == "coffee"
        assert command.category == "coffee"


class TestDescribe:
    """Tests for the description cleaner."""

    @pytest.mark.parametrize("text, expected", [
        ("spent 20 on lunch", "lunch"),
        ("add $12.50 for team pizza", "team pizza"),
        ("bought 30 EUR train ticket last friday", "train ticket"),
    ])
    def test_describe(self, text, expected):
        """Test verb, amount, currency and date words are removed."""
        assert describe(text, "general") == expected


class TestGuarantees:
    """Tests for never-raises and idempotence."""

    @pytest.mark.parametrize("text", [
        "🙂",
        "$$$",
        "9" * 400,
        "delete",
        "set budget",
        "set budget for food",
        "from to",
        "between 99/99 and 3/1",
        "spent 5 on 31st of february",
        "nan",
        "show march 0000",
        "\n\t",
    ])
    def test_never_raises(self, now, text):
        """Test odd inputs still produce exactly one command."""
        command = parse_command(text, now=now)
        assert command.kind in {
            "add", "delete_last", "delete_id", "clear_all", "undo",
            "show", "total", "set_budget", "help",
        }

    def test_failing_rule_degrades_to_help(self, now):
        """Test that an exception inside a rule becomes Help."""
        def explode(ctx):
            raise RuntimeError("boom")

        rules = (CommandRule(name="broken", applies=lambda ctx: True, build=explode),)
        assert parse_command("spent 20 on lunch", now=now, rules=rules) == Help()

    @pytest.mark.parametrize("text", [
        "spent 20 on lunch yesterday",
        "show over 20 under 50 today",
        "set budget 300 for groceries",
    ])
    def test_idempotent(self, now, text):
        """Test that the same text at the same instant gives equal commands."""
        assert parse_command(text, now=now) == parse_command(text, now=now)
