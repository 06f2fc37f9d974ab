"""
Application State Models

The whole application state is one immutable value:

    AppState = {expenses, budgets, undo_stack}

Every change produces a NEW AppState. The undo stack holds full
snapshots of {expenses, budgets}; undoing replaces the current state
wholesale with the most recent snapshot (no diffs).

Persisted JSON keeps the camelCase keys the front end has always used
(``undoStack``, ``amountCents``, ``dateISO``). Python code uses the
snake_case field names.
"""

import time
from datetime import datetime
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from spendtalk.models.command import BudgetPeriod, CurrencyCode, DEFAULT_CURRENCY


_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_id(prefix: str = "id", now: Optional[datetime] = None) -> str:
    """
    Generate an id of the shape ``<prefix>_<base36 millis>_<6 hex chars>``.

    The three underscore-separated segments are what "delete <id>"
    recognises, so keep the prefix lowercase alphabetic.
    """
    seconds = now.timestamp() if now is not None else time.time()
    millis = int(seconds * 1000)
    return f"{prefix}_{_to_base36(millis)}_{uuid4().hex[:6]}"


class _StateModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Expense(_StateModel):
    """A recorded expense."""

    id: str = Field(default_factory=lambda: generate_id("exp"))
    description: str
    category: str
    amount_cents: int
    currency: CurrencyCode = DEFAULT_CURRENCY
    spent_at: datetime = Field(..., alias="dateISO")

    @field_validator("spent_at")
    @classmethod
    def validate_spent_at(cls, v: datetime) -> datetime:
        """Store naive local time; documents written as "...Z" carry an offset."""
        if v.tzinfo is not None:
            return v.astimezone().replace(tzinfo=None)
        return v


class BudgetRule(_StateModel):
    """
    Spending limit for one category and period.

    Category ``"overall"`` applies to every expense.
    """

    id: str
    category: str
    amount_cents: int
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    currency: CurrencyCode = DEFAULT_CURRENCY

    def covers(self, category: str, period: BudgetPeriod) -> bool:
        """Same slot: category (case-insensitive) and period."""
        return (
            self.category.lower() == category.lower()
            and self.period == period
        )


class StateSnapshot(_StateModel):
    """What the undo stack stores."""

    expenses: tuple[Expense, ...] = ()
    budgets: tuple[BudgetRule, ...] = ()


class AppState(_StateModel):
    """
    Complete application state.

    Expenses are kept newest-first. All mutators return a new state.
    """

    expenses: tuple[Expense, ...] = ()
    budgets: tuple[BudgetRule, ...] = ()
    undo_stack: tuple[StateSnapshot, ...] = ()

    @property
    def can_undo(self) -> bool:
        return len(self.undo_stack) > 0

    @property
    def latest_expense(self) -> Optional[Expense]:
        return self.expenses[0] if self.expenses else None

    def find_expense(self, expense_id: str) -> Optional[Expense]:
        for expense in self.expenses:
            if expense.id == expense_id:
                return expense
        return None

    def snapshot(self) -> StateSnapshot:
        return StateSnapshot(expenses=self.expenses, budgets=self.budgets)

    def with_undo_point(self, max_depth: int = 0) -> "AppState":
        """
        Push the current {expenses, budgets} onto the undo stack.

        ``max_depth`` > 0 keeps only the most recent snapshots.
        """
        stack = self.undo_stack + (self.snapshot(),)
        if max_depth > 0 and len(stack) > max_depth:
            stack = stack[-max_depth:]
        return self.model_copy(update={"undo_stack": stack})

    def undo(self) -> "AppState":
        """Pop the most recent snapshot. No-op on an empty stack."""
        if not self.undo_stack:
            return self
        snapshot = self.undo_stack[-1]
        return AppState(
            expenses=snapshot.expenses,
            budgets=snapshot.budgets,
            undo_stack=self.undo_stack[:-1],
        )

    def upsert_expense(self, expense: Expense) -> "AppState":
        """Replace an expense with the same id, or prepend a new one."""
        if self.find_expense(expense.id) is not None:
            expenses = tuple(
                expense if e.id == expense.id else e for e in self.expenses
            )
        else:
            expenses = (expense,) + self.expenses
        return self.model_copy(update={"expenses": expenses})

    def remove_expense(self, expense_id: str) -> "AppState":
        expenses = tuple(e for e in self.expenses if e.id != expense_id)
        return self.model_copy(update={"expenses": expenses})

    def upsert_budget(self, rule: BudgetRule) -> "AppState":
        """Replace the budget in the same (category, period) slot, or prepend."""
        if any(b.covers(rule.category, rule.period) for b in self.budgets):
            budgets = tuple(
                rule if b.covers(rule.category, rule.period) else b
                for b in self.budgets
            )
        else:
            budgets = (rule,) + self.budgets
        return self.model_copy(update={"budgets": budgets})

    def cleared(self) -> "AppState":
        """Drop expenses and budgets, keep the undo stack."""
        return self.model_copy(update={"expenses": (), "budgets": ()})
