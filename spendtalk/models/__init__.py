"""
Data Models Package

This package contains all Pydantic models used in SpendTalk.
Commands, filters and persisted state all conform to these schemas.
"""

from spendtalk.models.command import (
    DEFAULT_CURRENCY,
    AddExpense,
    BudgetPeriod,
    ClearAll,
    Command,
    CurrencyCode,
    DeleteById,
    DeleteLast,
    Help,
    QueryFilters,
    SetBudget,
    Show,
    Total,
    Undo,
)
from spendtalk.models.state import (
    AppState,
    BudgetRule,
    Expense,
    StateSnapshot,
    generate_id,
)
from spendtalk.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Command models
    "DEFAULT_CURRENCY",
    "AddExpense",
    "BudgetPeriod",
    "ClearAll",
    "Command",
    "CurrencyCode",
    "DeleteById",
    "DeleteLast",
    "Help",
    "QueryFilters",
    "SetBudget",
    "Show",
    "Total",
    "Undo",
    # State models
    "AppState",
    "BudgetRule",
    "Expense",
    "StateSnapshot",
    "generate_id",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
