"""
Tests for command application and the async command flow.

apply_command is pure, so most cases need no storage at all. The flow
tests use InMemoryStateStorage to observe when state is persisted.
"""

import pytest

from spendtalk.audit import AuditLogger
from spendtalk.models.audit import AuditEventType
from spendtalk.models.command import (
    AddExpense,
    BudgetPeriod,
    ClearAll,
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
from spendtalk.models.state import AppState, generate_id
from spendtalk.orchestrator import HELP_TEXT, CommandFlow, apply_command
from spendtalk.services.storage import (
    InMemoryStateStorage,
    StateStorageInterface,
    StateWriteError,
)


def _add(now, amount_cents=2000, description="lunch", category="lunch"):
    return AddExpense(
        description=description,
        category=category,
        amount_cents=amount_cents,
        currency=CurrencyCode.USD,
        spent_at=now,
    )


class TestApplyCommand:
    """Tests for the pure apply_command."""

    def test_help(self, sample_state):
        """Test that help leaves state untouched."""
        outcome = apply_command(Help(), sample_state)
        assert outcome.message == HELP_TEXT
        assert outcome.state is sample_state
        assert not outcome.state_changed

    def test_add_expense(self, now):
        """Test adding an expense."""
        outcome = apply_command(_add(now), AppState(), now=now)
        assert outcome.message == "Added lunch for 20.00 USD"
        assert outcome.state_changed
        assert outcome.clear_filters
        expense = outcome.state.latest_expense
        assert expense.id.startswith("exp_")
        assert expense.id == outcome.entity_id
        assert expense.spent_at == now
        assert len(outcome.state.undo_stack) == 1

    def test_add_expense_id_uses_clock(self, now):
        """Test that the generated id is stamped with ``now``."""
        outcome = apply_command(_add(now), AppState(), now=now)
        assert outcome.entity_id.split("_")[1] == generate_id("exp", now=now).split("_")[1]

    def test_add_then_undo(self, sample_state, now):
        """Test that undo returns to the state before the add."""
        added = apply_command(_add(now), sample_state, now=now).state
        outcome = apply_command(Undo(), added)
        assert outcome.message == "Undid last change"
        assert outcome.state.expenses == sample_state.expenses
        assert outcome.state_changed

    def test_undo_with_nothing(self, sample_state):
        """Test undo on an empty stack."""
        outcome = apply_command(Undo(), sample_state)
        assert outcome.message == "Nothing to undo"
        assert not outcome.state_changed

    def test_delete_last(self, sample_state):
        """Test removing the newest expense."""
        outcome = apply_command(DeleteLast(), sample_state)
        assert outcome.message == "Deleted last expense lunch"
        assert [e.id for e in outcome.state.expenses] == ["exp_b_000002", "exp_a_000001"]
        assert outcome.state.can_undo

    def test_delete_last_when_empty(self):
        """Test delete last with no expenses."""
        outcome = apply_command(DeleteLast(), AppState())
        assert outcome.message == "No expenses to delete"
        assert not outcome.state_changed
        assert not outcome.state.can_undo

    def test_delete_by_id(self, sample_state):
        """Test removing one expense by id."""
        outcome = apply_command(DeleteById(id="exp_b_000002"), sample_state)
        assert outcome.message == "Deleted exp_b_000002"
        assert outcome.state.find_expense("exp_b_000002") is None
        assert len(outcome.state.expenses) == 2

    def test_delete_unknown_id(self, sample_state):
        """Test that an unknown id changes nothing, undo stack included."""
        outcome = apply_command(DeleteById(id="exp_zz_999999"), sample_state)
        assert outcome.message == "No expense with id exp_zz_999999"
        assert outcome.state is sample_state
        assert not outcome.state_changed

    def test_clear_all_is_undoable(self, sample_state):
        """Test that clear all can be undone."""
        cleared = apply_command(ClearAll(), sample_state)
        assert cleared.message == "Cleared all data"
        assert cleared.state.expenses == ()
        assert cleared.state.budgets == ()

        restored = apply_command(Undo(), cleared.state).state
        assert restored.expenses == sample_state.expenses
        assert restored.budgets == sample_state.budgets

    def test_set_budget_upserts(self, sample_state):
        """Test that setting the same budget twice keeps one rule."""
        first = apply_command(
            SetBudget(category="Food", amount_cents=5000, period=BudgetPeriod.WEEKLY),
            sample_state,
        )
        assert first.message == "Budget set for food (weekly)"
        assert first.entity_id == "food-weekly"

        second = apply_command(
            SetBudget(category="food", amount_cents=7000, period=BudgetPeriod.WEEKLY),
            first.state,
        )
        food = [b for b in second.state.budgets if b.category == "food"]
        assert len(food) == 1
        assert food[0].amount_cents == 7000
        assert len(second.state.undo_stack) == 2

    def test_show_returns_filters(self, sample_state):
        """Test that show only hands back the filters."""
        filters = QueryFilters(category="food")
        outcome = apply_command(Show(filters=filters), sample_state)
        assert outcome.filters == filters
        assert outcome.message == "Applied filters"
        assert outcome.state is sample_state

    def test_total(self, sample_state):
        """Test totalling a filtered subset."""
        outcome = apply_command(Total(filters=QueryFilters(category="food")), sample_state)
        assert outcome.total_cents == 1250
        assert outcome.currency == CurrencyCode.USD
        assert outcome.message == "Total: $12.50"
        assert not outcome.state_changed

    def test_bounded_undo(self, now):
        """Test that max_undo_depth limits the stack."""
        state = AppState()
        for amount in (100, 200, 300):
            state = apply_command(_add(now, amount), state, now=now, max_undo_depth=2).state
        assert len(state.undo_stack) == 2
        assert len(state.expenses) == 3


class _FailingStorage(StateStorageInterface):
    @property
    def location(self) -> str:
        return "nowhere"

    async def load_state(self) -> AppState:
        return AppState()

    async def save_state(self, state: AppState) -> bool:
        raise StateWriteError("disk full")


class _RecordingAuditLogger(AuditLogger):
    def __init__(self):
        super().__init__()
        self.events = []

    async def log(self, event):
        self.events.append(event)
        return True


class TestCommandFlow:
    """Tests for the async CommandFlow."""

    @pytest.mark.asyncio
    async def test_submit_persists_changes(self, now):
        """Test that a state change is saved."""
        storage = InMemoryStateStorage()
        flow = CommandFlow(storage=storage, max_undo_depth=10)

        state = await flow.load()
        outcome = await flow.submit("spent 20 on lunch", state, now=now)

        assert outcome.kind == "add"
        assert storage.save_count == 1
        assert await storage.load_state() == outcome.state

    @pytest.mark.asyncio
    async def test_queries_are_not_persisted(self, sample_state, now):
        """Test that show and total do not write state."""
        storage = InMemoryStateStorage(sample_state)
        flow = CommandFlow(storage=storage, max_undo_depth=10)

        shown = await flow.submit("show food this week", sample_state, now=now)
        total = await flow.submit("how much this month", sample_state, now=now)

        assert shown.filters.category == "food"
        assert total.total_cents == 5250
        assert storage.save_count == 0

    @pytest.mark.asyncio
    async def test_undo_round_trip(self, now):
        """Test add then undo through the flow."""
        storage = InMemoryStateStorage()
        flow = CommandFlow(storage=storage, max_undo_depth=10)

        added = await flow.submit("spent 20 on lunch", AppState(), now=now)
        undone = await flow.submit("undo", added.state, now=now)

        assert undone.state == AppState()
        assert storage.save_count == 2

    @pytest.mark.asyncio
    async def test_button_commands_skip_parsing(self, sample_state):
        """Test applying a command directly."""
        storage = InMemoryStateStorage(sample_state)
        flow = CommandFlow(storage=storage, max_undo_depth=10)

        outcome = await flow.apply(DeleteById(id="exp_a_000001"), sample_state)
        assert outcome.state_changed
        assert storage.save_count == 1

    @pytest.mark.asyncio
    async def test_save_failure_propagates(self, now):
        """Test that a failed save surfaces to the caller."""
        flow = CommandFlow(storage=_FailingStorage(), max_undo_depth=10)
        with pytest.raises(StateWriteError):
            await flow.submit("spent 20 on lunch", AppState(), now=now)

    @pytest.mark.asyncio
    async def test_save_failure_is_audited(self, now):
        """Test that a failed save is recorded as a system error for the submission."""
        audit = _RecordingAuditLogger()
        flow = CommandFlow(storage=_FailingStorage(), audit_logger=audit, max_undo_depth=10)

        with pytest.raises(StateWriteError):
            await flow.submit("spent 20 on lunch", AppState(), now=now)

        [error] = [e for e in audit.events if e.event_type == AuditEventType.SYSTEM_ERROR]
        assert error.error_message == "disk full"
        assert error.details == {"kind": "add", "location": "nowhere"}
        assert error.correlation_id == audit.events[0].correlation_id
        assert AuditEventType.COMMAND_APPLIED not in {e.event_type for e in audit.events}
