"""Query execution over stored expenses."""

from spendtalk.queries.executor import (
    OVERALL_CATEGORY,
    BudgetStatus,
    MonthlySummary,
    budget_progress,
    budget_status,
    budget_window,
    filter_expenses,
    find_overall_budget,
    format_money,
    matches_filters,
    monthly_summary,
    total_cents,
    total_currency,
)

__all__ = [
    "OVERALL_CATEGORY",
    "BudgetStatus",
    "MonthlySummary",
    "budget_progress",
    "budget_status",
    "budget_window",
    "filter_expenses",
    "find_overall_budget",
    "format_money",
    "matches_filters",
    "monthly_summary",
    "total_cents",
    "total_currency",
]
