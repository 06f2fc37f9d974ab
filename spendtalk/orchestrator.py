"""
Main Orchestrator for SpendTalk

This module ties the interpreter, the state model and storage together
and defines the end-to-end command flow:

    text -> parse_command -> apply_command -> (persist) -> Outcome

DESIGN DECISION: Applying a command is a PURE function of
(command, state, now). It returns a new AppState and a message; it never
touches storage, and reads the clock only when no ``now`` is given. CommandFlow is the thin async
shell that adds persistence and auditing around it.

The orchestrator enforces the boundaries:
- Every state-changing command pushes an undo snapshot first
- State is persisted only when it actually changed
- Every submission is audited under one correlation id
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from spendtalk.audit import AuditLogger, create_correlation_id, get_logger
from spendtalk.config import get_settings
from spendtalk.interpreter import parse_command
from spendtalk.models.command import (
    AddExpense,
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
from spendtalk.models.state import AppState, BudgetRule, Expense, generate_id
from spendtalk.queries import filter_expenses, format_money, total_cents, total_currency
from spendtalk.services.storage import (
    InMemoryStateStorage,
    JsonFileStateStorage,
    StateStorageInterface,
    StorageError,
)


logger = get_logger(__name__)


HELP_TEXT = (
    "Commands: add/spent ..., show/list ..., total/sum ..., "
    "set budget X for CATEGORY, delete last, undo, clear all"
)


class Outcome(BaseModel):
    """
    Result of applying one command.

    ``filters`` is set for Show (the view to apply). ``clear_filters``
    asks the view to drop any active filter (after adding an expense).
    ``total_cents``/``currency`` are set for Total.
    """
    model_config = ConfigDict(frozen=True)

    kind: str
    state: AppState
    message: str
    state_changed: bool = False
    entity_id: Optional[str] = None
    filters: Optional[QueryFilters] = None
    clear_filters: bool = False
    total_cents: Optional[int] = None
    currency: Optional[CurrencyCode] = None


# =============================================================================
# PURE APPLICATION
# =============================================================================

def apply_command(
    command: Command,
    state: AppState,
    now: Optional[datetime] = None,
    max_undo_depth: int = 0,
) -> Outcome:
    """
    Apply ``command`` to ``state``.

    Args:
        command: The interpreted command
        state: Current state (never modified)
        now: Reference instant, used to timestamp generated ids
        max_undo_depth: Bound on the undo stack, 0 for unbounded

    Returns:
        Outcome carrying the next state and a user-facing message
    """
    kind = command.kind
    now = now or datetime.now()

    if isinstance(command, Help):
        return Outcome(kind=kind, state=state, message=HELP_TEXT)

    if isinstance(command, Undo):
        if not state.can_undo:
            return Outcome(kind=kind, state=state, message="Nothing to undo")
        return Outcome(
            kind=kind,
            state=state.undo(),
            message="Undid last change",
            state_changed=True,
        )

    if isinstance(command, ClearAll):
        next_state = state.with_undo_point(max_undo_depth).cleared()
        return Outcome(
            kind=kind,
            state=next_state,
            message="Cleared all data",
            state_changed=True,
        )

    if isinstance(command, DeleteLast):
        last = state.latest_expense
        if last is None:
            return Outcome(kind=kind, state=state, message="No expenses to delete")
        next_state = state.with_undo_point(max_undo_depth).remove_expense(last.id)
        return Outcome(
            kind=kind,
            state=next_state,
            message=f"Deleted last expense {last.description}",
            state_changed=True,
            entity_id=last.id,
        )

    if isinstance(command, DeleteById):
        if state.find_expense(command.id) is None:
            return Outcome(kind=kind, state=state, message=f"No expense with id {command.id}")
        next_state = state.with_undo_point(max_undo_depth).remove_expense(command.id)
        return Outcome(
            kind=kind,
            state=next_state,
            message=f"Deleted {command.id}",
            state_changed=True,
            entity_id=command.id,
        )

    if isinstance(command, AddExpense):
        expense = Expense(
            id=generate_id("exp", now=now),
            description=command.description,
            category=command.category,
            amount_cents=command.amount_cents,
            currency=command.currency,
            spent_at=command.spent_at,
        )
        next_state = state.with_undo_point(max_undo_depth).upsert_expense(expense)
        return Outcome(
            kind=kind,
            state=next_state,
            message=(
                f"Added {expense.description} for "
                f"{expense.amount_cents / 100:.2f} {expense.currency.value}"
            ),
            state_changed=True,
            entity_id=expense.id,
            clear_filters=True,
        )

    if isinstance(command, SetBudget):
        category = command.category.lower()
        rule = BudgetRule(
            id=f"{category}-{command.period.value}",
            category=category,
            amount_cents=command.amount_cents,
            period=command.period,
            currency=command.currency,
        )
        next_state = state.with_undo_point(max_undo_depth).upsert_budget(rule)
        return Outcome(
            kind=kind,
            state=next_state,
            message=f"Budget set for {rule.category} ({rule.period.value})",
            state_changed=True,
            entity_id=rule.id,
        )

    if isinstance(command, Show):
        return Outcome(
            kind=kind,
            state=state,
            message="Applied filters",
            filters=command.filters,
        )

    if isinstance(command, Total):
        subset = filter_expenses(state.expenses, command.filters)
        cents = total_cents(subset)
        currency = total_currency(subset, state.expenses)
        return Outcome(
            kind=kind,
            state=state,
            message=f"Total: {format_money(cents, currency)}",
            total_cents=cents,
            currency=currency,
        )

    # Unreachable while Command stays a closed union
    return Outcome(kind=kind, state=state, message=HELP_TEXT)


# =============================================================================
# ASYNC FLOW
# =============================================================================

class CommandFlow:
    """
    Orchestrates one submitted sentence end to end.

    Flow:
    1. Receive text -> audit
    2. Parse -> audit what it was understood as
    3. Apply (pure)
    4. Persist if the state changed
    5. Audit applied / no-op

    Storage failures propagate as StateWriteError; the in-memory
    Outcome is still valid and the caller decides what to show.
    """

    def __init__(
        self,
        storage: Optional[StateStorageInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
        max_undo_depth: Optional[int] = None,
    ):
        self._audit_logger = audit_logger or AuditLogger()
        self._storage = storage or JsonFileStateStorage(audit_logger=self._audit_logger)
        if max_undo_depth is None:
            max_undo_depth = get_settings().storage.max_undo_depth
        self._max_undo_depth = max_undo_depth

    @property
    def storage(self) -> StateStorageInterface:
        return self._storage

    async def load(self) -> AppState:
        """Load the persisted state (empty when nothing usable is stored)."""
        return await self._storage.load_state()

    async def apply(
        self,
        command: Command,
        state: AppState,
        now: Optional[datetime] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Outcome:
        """
        Apply an already-built command and persist the result.

        Used directly by buttons (undo, delete) that skip the interpreter.
        """
        correlation_id = correlation_id or create_correlation_id()

        outcome = apply_command(
            command,
            state,
            now=now,
            max_undo_depth=self._max_undo_depth,
        )

        if outcome.state_changed:
            try:
                await self._storage.save_state(outcome.state)
            except StorageError as e:
                await self._audit_logger.log_error(
                    error_type=type(e).__name__,
                    error_message=str(e),
                    details={"kind": outcome.kind, "location": self._storage.location},
                    correlation_id=correlation_id,
                )
                raise
            if isinstance(command, Undo):
                await self._audit_logger.log_undo_applied(
                    remaining_depth=len(outcome.state.undo_stack),
                    correlation_id=correlation_id,
                )
            else:
                await self._audit_logger.log_command_applied(
                    kind=outcome.kind,
                    message=outcome.message,
                    entity_id=outcome.entity_id,
                    correlation_id=correlation_id,
                )
        elif isinstance(command, (Undo, DeleteLast, DeleteById)):
            await self._audit_logger.log_command_noop(
                kind=outcome.kind,
                message=outcome.message,
                correlation_id=correlation_id,
            )

        return outcome

    async def submit(
        self,
        text: str,
        state: AppState,
        now: Optional[datetime] = None,
    ) -> Outcome:
        """
        Interpret ``text`` and apply it to ``state``.

        Returns:
            The Outcome of the interpreted command
        """
        correlation_id = create_correlation_id()
        now = now or datetime.now()

        await self._audit_logger.log_command_received(
            text=text,
            correlation_id=correlation_id,
        )

        command = parse_command(text, now=now)
        await self._audit_logger.log_command_parsed(
            kind=command.kind,
            command=command.model_dump(mode="json"),
            correlation_id=correlation_id,
        )
        logger.debug("command_submitted", kind=command.kind, correlation_id=str(correlation_id))

        return await self.apply(command, state, now=now, correlation_id=correlation_id)


def create_app_components(
    use_storage: bool = True,
) -> tuple[CommandFlow, StateStorageInterface]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to persist to the JSON state file.
                    Set to False for throwaway in-memory sessions.

    Returns:
        (command_flow, storage)
    """
    audit_logger = AuditLogger()

    if use_storage:
        storage: StateStorageInterface = JsonFileStateStorage(audit_logger=audit_logger)
    else:
        storage = InMemoryStateStorage()

    flow = CommandFlow(storage=storage, audit_logger=audit_logger)
    return flow, storage
