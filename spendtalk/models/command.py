"""
Command Models for SpendTalk

Every sentence typed into the command box becomes exactly ONE of these
values. The interpreter builds it, the orchestrator consumes it, and
nothing ever persists or mutates it.

DESIGN DECISION: Commands are a closed, tagged union of frozen Pydantic
models discriminated on ``kind``. Callers branch on the concrete class
(or on ``kind``), never on loosely-typed dicts.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class CurrencyCode(str, Enum):
    """Currencies the interpreter can recognise in free text."""
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    CAD = "CAD"
    AUD = "AUD"
    INR = "INR"
    JPY = "JPY"


DEFAULT_CURRENCY = CurrencyCode.USD


class BudgetPeriod(str, Enum):
    """How often a budget resets."""
    MONTHLY = "monthly"
    WEEKLY = "weekly"


# =============================================================================
# FILTERS
# =============================================================================

class QueryFilters(BaseModel):
    """
    Constraints for listing or totalling expenses.

    Every field is optional. A missing field means "no constraint on
    this axis". ``end`` already points at the last instant of the
    covered day, so comparisons are inclusive on both sides.
    """
    model_config = ConfigDict(frozen=True)

    text: Optional[str] = Field(
        default=None,
        description="Substring matched against description and category"
    )
    category: Optional[str] = Field(
        default=None,
        description="Category, compared case-insensitively"
    )
    start: Optional[datetime] = Field(
        default=None,
        description="Inclusive lower bound on the expense date"
    )
    end: Optional[datetime] = Field(
        default=None,
        description="Inclusive upper bound on the expense date"
    )
    min_cents: Optional[int] = Field(
        default=None,
        description="Inclusive lower bound on the amount"
    )
    max_cents: Optional[int] = Field(
        default=None,
        description="Inclusive upper bound on the amount"
    )

    @property
    def is_empty(self) -> bool:
        """True when no axis is constrained."""
        return all(
            value is None
            for value in (
                self.text, self.category, self.start,
                self.end, self.min_cents, self.max_cents,
            )
        )


# =============================================================================
# COMMAND VARIANTS
# =============================================================================

class _CommandBase(BaseModel):
    model_config = ConfigDict(frozen=True)


class AddExpense(_CommandBase):
    """Record a new expense."""
    kind: Literal["add"] = "add"

    description: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    amount_cents: int
    currency: CurrencyCode = DEFAULT_CURRENCY
    spent_at: datetime = Field(
        ...,
        description="Resolved date of the expense"
    )


class DeleteLast(_CommandBase):
    """Remove the most recently added expense."""
    kind: Literal["delete_last"] = "delete_last"


class DeleteById(_CommandBase):
    """Remove one expense by its generated id."""
    kind: Literal["delete_id"] = "delete_id"

    id: str = Field(..., min_length=1)


class ClearAll(_CommandBase):
    """Remove every expense and every budget."""
    kind: Literal["clear_all"] = "clear_all"


class Undo(_CommandBase):
    """Restore the previous snapshot."""
    kind: Literal["undo"] = "undo"


class Show(_CommandBase):
    """List expenses matching the filters."""
    kind: Literal["show"] = "show"

    filters: QueryFilters = Field(default_factory=QueryFilters)


class Total(_CommandBase):
    """Sum expenses matching the filters."""
    kind: Literal["total"] = "total"

    filters: QueryFilters = Field(default_factory=QueryFilters)


class SetBudget(_CommandBase):
    """Create or replace the budget for a category and period."""
    kind: Literal["set_budget"] = "set_budget"

    category: str = Field(..., min_length=1)
    amount_cents: int
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    currency: CurrencyCode = DEFAULT_CURRENCY


class Help(_CommandBase):
    """Fallback when nothing else matched."""
    kind: Literal["help"] = "help"


Command = Annotated[
    Union[
        AddExpense,
        DeleteLast,
        DeleteById,
        ClearAll,
        Undo,
        Show,
        Total,
        SetBudget,
        Help,
    ],
    Field(discriminator="kind"),
]
