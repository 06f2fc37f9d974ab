"""Shared fixtures. The clock is always frozen and passed explicitly."""

from datetime import datetime

import pytest

from spendtalk.models.state import AppState, BudgetRule, Expense
from spendtalk.models.command import BudgetPeriod, CurrencyCode


# Wednesday, mid-afternoon
FROZEN_NOW = datetime(2024, 3, 13, 15, 30)


@pytest.fixture
def now() -> datetime:
    return FROZEN_NOW


def make_expense(
    expense_id: str,
    amount_cents: int,
    category: str = "food",
    description: str = "lunch",
    spent_at: datetime = FROZEN_NOW,
    currency: CurrencyCode = CurrencyCode.USD,
) -> Expense:
    return Expense(
        id=expense_id,
        description=description,
        category=category,
        amount_cents=amount_cents,
        currency=currency,
        spent_at=spent_at,
    )


@pytest.fixture
def sample_state() -> AppState:
    """Three expenses (newest first) and one overall budget."""
    return AppState(
        expenses=(
            make_expense("exp_c_000003", 1250, "food", "lunch", datetime(2024, 3, 13, 12, 0)),
            make_expense("exp_b_000002", 4000, "transport", "train", datetime(2024, 3, 10, 9, 0)),
            make_expense("exp_a_000001", 8000, "grocery", "weekly shop", datetime(2024, 2, 20, 18, 0)),
        ),
        budgets=(
            BudgetRule(
                id="overall-monthly",
                category="overall",
                amount_cents=40000,
                period=BudgetPeriod.MONTHLY,
            ),
        ),
    )
