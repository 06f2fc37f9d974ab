"""
Query Execution

DESIGN DECISION: Query execution is DETERMINISTIC and PURE.
The interpreter turns a sentence into QueryFilters; this module applies
those filters to the expenses actually stored. Nothing here estimates
or invents data, and nothing here touches storage: callers pass the
state in.

All sums are integer cents. Formatting to a display string happens
only at the edge (format_money).
"""

from datetime import datetime
from typing import Iterable, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from spendtalk.interpreter.dates import month_range, week_range
from spendtalk.models.command import (
    DEFAULT_CURRENCY,
    BudgetPeriod,
    CurrencyCode,
    QueryFilters,
)
from spendtalk.models.state import AppState, BudgetRule, Expense


OVERALL_CATEGORY = "overall"

_CURRENCY_SYMBOLS = {
    CurrencyCode.USD: "$",
    CurrencyCode.EUR: "€",
    CurrencyCode.GBP: "£",
    CurrencyCode.CAD: "CA$",
    CurrencyCode.AUD: "A$",
    CurrencyCode.INR: "₹",
    CurrencyCode.JPY: "¥",
}

# Currencies displayed without minor units
_ZERO_DECIMAL = {CurrencyCode.JPY}


# =============================================================================
# RESULT MODELS
# =============================================================================

class BudgetStatus(BaseModel):
    """Progress of one budget within its current period."""
    model_config = ConfigDict(frozen=True)

    budget: BudgetRule
    period_start: datetime
    period_end: datetime
    spent_cents: int
    remaining_cents: int    # never negative
    percent_used: int       # 0..100

    @property
    def is_exceeded(self) -> bool:
        return self.spent_cents > self.budget.amount_cents


class MonthlySummary(BaseModel):
    """The three headline numbers shown above the expense list."""
    model_config = ConfigDict(frozen=True)

    currency: CurrencyCode
    this_month_cents: int
    all_time_cents: int
    overall_budget: Optional[BudgetRule] = None
    overall_remaining_cents: Optional[int] = None


# =============================================================================
# FILTERING AND TOTALS
# =============================================================================

def matches_filters(expense: Expense, filters: QueryFilters) -> bool:
    """True when ``expense`` satisfies every constrained axis of ``filters``."""
    if filters.text:
        haystack = f"{expense.description} {expense.category}".lower()
        if filters.text.lower() not in haystack:
            return False
    if filters.category and expense.category.lower() != filters.category.lower():
        return False
    if filters.start and expense.spent_at < filters.start:
        return False
    if filters.end and expense.spent_at > filters.end:
        return False
    if filters.min_cents is not None and expense.amount_cents < filters.min_cents:
        return False
    if filters.max_cents is not None and expense.amount_cents > filters.max_cents:
        return False
    return True


def filter_expenses(
    expenses: Iterable[Expense],
    filters: Optional[QueryFilters],
) -> list[Expense]:
    """Expenses matching ``filters``, order preserved. None means no filter."""
    if filters is None:
        return list(expenses)
    return [e for e in expenses if matches_filters(e, filters)]


def total_cents(expenses: Iterable[Expense]) -> int:
    return sum(e.amount_cents for e in expenses)


def total_currency(
    subset: Sequence[Expense],
    expenses: Sequence[Expense],
) -> CurrencyCode:
    """
    Currency to report a total in.

    Mixed currencies are not converted; the first matching expense sets
    the label, then the newest expense overall, then USD.
    """
    if subset:
        return subset[0].currency
    if expenses:
        return expenses[0].currency
    return DEFAULT_CURRENCY


# =============================================================================
# BUDGETS
# =============================================================================

def budget_window(period: BudgetPeriod, now: datetime) -> tuple[datetime, datetime]:
    """Calendar window a budget of ``period`` is measured over at ``now``."""
    if period == BudgetPeriod.WEEKLY:
        return week_range(now)
    return month_range(now)


def _in_budget_scope(expense: Expense, budget: BudgetRule) -> bool:
    if budget.category.lower() == OVERALL_CATEGORY:
        return True
    return expense.category.lower() == budget.category.lower()


def budget_status(
    budget: BudgetRule,
    expenses: Iterable[Expense],
    now: datetime,
) -> BudgetStatus:
    start, end = budget_window(budget.period, now)
    spent = total_cents(
        e for e in expenses
        if _in_budget_scope(e, budget) and start <= e.spent_at <= end
    )

    if budget.amount_cents > 0:
        percent = min(100, round(spent * 100 / budget.amount_cents))
    else:
        percent = 100 if spent > 0 else 0

    return BudgetStatus(
        budget=budget,
        period_start=start,
        period_end=end,
        spent_cents=spent,
        remaining_cents=max(0, budget.amount_cents - spent),
        percent_used=max(0, percent),
    )


def budget_progress(state: AppState, now: Optional[datetime] = None) -> list[BudgetStatus]:
    """Status of every budget in ``state``, in stored order."""
    now = now or datetime.now()
    return [budget_status(b, state.expenses, now) for b in state.budgets]


def find_overall_budget(budgets: Iterable[BudgetRule]) -> Optional[BudgetRule]:
    for budget in budgets:
        if budget.category.lower() == OVERALL_CATEGORY and budget.period == BudgetPeriod.MONTHLY:
            return budget
    return None


def monthly_summary(state: AppState, now: Optional[datetime] = None) -> MonthlySummary:
    """This-month total, all-time total and what is left of the overall budget."""
    now = now or datetime.now()
    start, end = month_range(now)

    this_month = total_cents(e for e in state.expenses if start <= e.spent_at <= end)
    overall = find_overall_budget(state.budgets)

    if state.expenses:
        currency = state.expenses[0].currency
    elif overall is not None:
        currency = overall.currency
    else:
        currency = DEFAULT_CURRENCY

    return MonthlySummary(
        currency=currency,
        this_month_cents=this_month,
        all_time_cents=total_cents(state.expenses),
        overall_budget=overall,
        overall_remaining_cents=(
            max(0, overall.amount_cents - this_month) if overall is not None else None
        ),
    )


# =============================================================================
# FORMATTING
# =============================================================================

def format_money(cents: int, currency: CurrencyCode = DEFAULT_CURRENCY) -> str:
    """
    Format integer cents for display.

    Examples:
        format_money(123450, CurrencyCode.USD) -> "$1,234.50"
        format_money(-500, CurrencyCode.EUR)   -> "-€5.00"
        format_money(1500, CurrencyCode.JPY)   -> "¥15"
    """
    currency = CurrencyCode(currency)
    symbol = _CURRENCY_SYMBOLS.get(currency, f"{currency.value} ")
    sign = "-" if cents < 0 else ""
    amount = abs(cents) / 100

    if currency in _ZERO_DECIMAL:
        formatted_num = f"{amount:,.0f}"
    else:
        formatted_num = f"{amount:,.2f}"
    return f"{sign}{symbol}{formatted_num}"
