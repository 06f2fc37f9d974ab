"""
Streamlit Frontend for SpendTalk

Type what you spent the way you would say it ("spent 12.50 on lunch
yesterday", "show food this week", "set budget 300 for groceries") and
the app keeps the books.

DESIGN PRINCIPLES:
1. One text box drives everything
2. Every change can be undone
3. Clear feedback for every command
4. The list always shows what the current filter selects

State lives in st.session_state between reruns; every change goes
through CommandFlow so it is persisted and audited.
"""

import asyncio
import html

import streamlit as st

from spendtalk.audit import configure_logging
from spendtalk.config import get_settings, validate_all_settings
from spendtalk.models.command import DeleteById, DeleteLast, Undo
from spendtalk.models.state import AppState
from spendtalk.orchestrator import CommandFlow, Outcome, create_app_components
from spendtalk.queries import budget_progress, filter_expenses, format_money, monthly_summary
from spendtalk.services.storage import StorageError


# Page configuration
st.set_page_config(
    page_title="SpendTalk",
    page_icon="💬",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .info-box {
        padding: 14px 20px;
        background-color: #cce5ff;
        border-radius: 10px;
        border-left: 5px solid #004085;
        margin: 10px 0;
    }
    .error-box {
        padding: 14px 20px;
        background-color: #f8d7da;
        border-radius: 10px;
        border-left: 5px solid #dc3545;
        margin: 10px 0;
    }
    .expense-meta {
        color: #6c757d;
        font-size: 0.85em;
    }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    configure_logging(get_settings().app.effective_log_level)
    try:
        return create_app_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to initialize storage: {e}")
        return create_app_components(use_storage=False)


def init_session(flow: CommandFlow) -> None:
    if "app_state" not in st.session_state:
        st.session_state.app_state = run_async(flow.load())
    if "last_message" not in st.session_state:
        st.session_state.last_message = ""
    if "active_filters" not in st.session_state:
        st.session_state.active_filters = None


def record_outcome(outcome: Outcome) -> None:
    """Copy an Outcome into session state."""
    st.session_state.app_state = outcome.state
    st.session_state.last_message = outcome.message
    if outcome.filters is not None:
        st.session_state.active_filters = outcome.filters
    elif outcome.clear_filters:
        st.session_state.active_filters = None


def run_command(flow: CommandFlow, command) -> None:
    """Apply a button's command directly, skipping the interpreter."""
    try:
        outcome = run_async(flow.apply(command, st.session_state.app_state))
    except StorageError as e:
        st.session_state.last_message = f"Could not save: {e}"
        return
    record_outcome(outcome)


def main():
    """Main application entry point."""
    flow, _ = get_components()
    init_session(flow)

    # Sidebar navigation
    st.sidebar.title("💬 SpendTalk")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["💸 Expenses", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **Try saying:**
        - "spent 12.50 on lunch yesterday"
        - "add 40 EUR for train tickets"
        - "show food over 20 this week"
        - "how much last month"
        - "set budget 500 for overall"
        - "undo"
        """
    )

    if page == "💸 Expenses":
        render_expenses_page(flow)
    elif page == "⚙️ Settings":
        render_settings_page()


def render_expenses_page(flow: CommandFlow):
    """Render the command box, summary, expense list and budgets."""
    st.title("💸 Expenses")

    with st.form("command_form", clear_on_submit=True):
        text = st.text_input(
            "What did you spend?",
            placeholder='e.g. "spent 20 on lunch" or "show groceries this month"',
        )
        submitted = st.form_submit_button("Go", type="primary")

    if submitted and text.strip():
        try:
            outcome = run_async(flow.submit(text, st.session_state.app_state))
            record_outcome(outcome)
        except StorageError as e:
            st.markdown(f"""
            <div class="error-box">
                <p>Could not save your change: {html.escape(str(e))}</p>
            </div>
            """, unsafe_allow_html=True)

    state: AppState = st.session_state.app_state

    # Last message + clear filter
    if st.session_state.last_message:
        col1, col2 = st.columns([5, 1])
        with col1:
            st.markdown(f"""
            <div class="info-box">
                <p>{html.escape(st.session_state.last_message)}</p>
            </div>
            """, unsafe_allow_html=True)
        with col2:
            if st.session_state.active_filters is not None:
                if st.button("Clear filter"):
                    st.session_state.active_filters = None
                    st.rerun()

    render_summary(state)

    st.markdown("---")
    render_expense_list(flow, state)

    st.markdown("---")
    render_budgets(state)


def render_summary(state: AppState):
    summary = monthly_summary(state)

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("This month", format_money(summary.this_month_cents, summary.currency))
    with col2:
        st.metric("All time", format_money(summary.all_time_cents, summary.currency))
    with col3:
        if summary.overall_budget is not None:
            st.metric(
                "Budget left",
                format_money(summary.overall_remaining_cents, summary.overall_budget.currency),
            )
        else:
            st.metric("Budget left", "?")


def render_expense_list(flow: CommandFlow, state: AppState):
    visible = filter_expenses(state.expenses, st.session_state.active_filters)

    col1, col2, col3 = st.columns([4, 1, 1])
    with col1:
        st.subheader(f"{len(visible)} items")
    with col2:
        if st.button("↩️ Undo", disabled=not state.can_undo):
            run_command(flow, Undo())
            st.rerun()
    with col3:
        if st.button("🗑️ Delete last", disabled=not state.expenses):
            run_command(flow, DeleteLast())
            st.rerun()

    if not visible:
        st.info('No expenses yet. Try "spent 12.50 on lunch".')
        return

    for expense in visible:
        col1, col2, col3 = st.columns([5, 2, 1])
        with col1:
            st.markdown(f"**{expense.description}**")
            st.markdown(
                f'<span class="expense-meta">{html.escape(expense.category)} · '
                f'{expense.spent_at.strftime("%b %d, %Y %H:%M")} · {html.escape(expense.id)}</span>',
                unsafe_allow_html=True,
            )
        with col2:
            st.markdown(f"**{format_money(expense.amount_cents, expense.currency)}**")
        with col3:
            if st.button("Delete", key=f"delete_{expense.id}"):
                run_command(flow, DeleteById(id=expense.id))
                st.rerun()


def render_budgets(state: AppState):
    st.subheader("Budgets")

    if not state.budgets:
        st.info('No budgets set. Try "set budget 500 for overall".')
        return

    for status in budget_progress(state):
        budget = status.budget
        col1, col2 = st.columns([3, 2])
        with col1:
            st.markdown(f"**{budget.category}** ({budget.period.value})")
            st.caption(f"Budget: {format_money(budget.amount_cents, budget.currency)}")
            st.progress(status.percent_used / 100)
        with col2:
            st.markdown(f"**{status.percent_used}% used**")
            st.caption(f"Left {format_money(status.remaining_cents, budget.currency)}")


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Configuration Status")

    status = validate_all_settings()

    sections = [
        ("Storage", "storage"),
        ("Application", "app"),
    ]

    for name, key in sections:
        if status.get(key, False):
            st.success(f"✅ {name} - OK")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    if status.get("storage", False):
        storage = get_settings().storage
        st.markdown(f"**State file:** `{storage.state_path}`")
        st.markdown(f"**Undo depth:** {storage.max_undo_depth or 'unbounded'}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
