"""
Streamlit Frontend for TrackWise

This is the user interface for tracking income and expenses and
asking the AI helpers about them.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. The expense list updates the moment an expense is added
3. Clear error messages in simple language
4. A failed AI call never breaks a page

Every Streamlit session has its own store; nothing is persisted.
Streamlit reruns the script on every interaction, so model-backed views
are cached per store version instead of being debounced.
"""

import asyncio

import streamlit as st

from trackwise.config import get_settings, validate_all_settings
from trackwise.formatting import format_currency
from trackwise.models import FinancialAction
from trackwise.orchestrator import FinanceOrchestrator, create_app_components
from trackwise.planning import PathLimitExceededError
from trackwise.state import category_totals, remaining_budget, total_spent


# Page configuration
st.set_page_config(
    page_title="TrackWise",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .info-box {
        padding: 20px;
        background-color: #cce5ff;
        border-radius: 10px;
        border-left: 5px solid #004085;
        margin: 10px 0;
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


def get_components():
    """Get or create this session's orchestrator and audit logger."""
    if "orchestrator" not in st.session_state:
        orchestrator, audit_logger = create_app_components()
        st.session_state.orchestrator = orchestrator
        st.session_state.audit_logger = audit_logger
        st.session_state.chat_history = []
        st.session_state.view_cache = {}
    return st.session_state.orchestrator, st.session_state.audit_logger


def cached_view(name: str, orchestrator: FinanceOrchestrator, load):
    """Run ``load()`` once per store version and view name."""
    key = (name, orchestrator.state.version)
    cache = st.session_state.view_cache
    if key not in cache:
        # Older versions of this view are never shown again
        for old in [k for k in cache if k[0] == name]:
            del cache[old]
        cache[key] = run_async(load())
    return cache[key]


def main():
    """Main application entry point."""
    orchestrator, audit_logger = get_components()

    # Sidebar navigation
    st.sidebar.title("💰 TrackWise")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["🏠 Dashboard", "💬 Assistant", "🧭 Action Paths", "📜 Activity", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **How to use:**
        1. Set your monthly income
        2. Add expenses as you spend
        3. Check the summary, patterns and prediction

        **Ask questions like:**
        - "Where does most of my money go?"
        - "How much have I spent on food?"
        """
    )

    if page == "🏠 Dashboard":
        render_dashboard_page(orchestrator)
    elif page == "💬 Assistant":
        render_assistant_page(orchestrator)
    elif page == "🧭 Action Paths":
        render_paths_page(orchestrator)
    elif page == "📜 Activity":
        render_activity_page(audit_logger)
    elif page == "⚙️ Settings":
        render_settings_page()


def render_dashboard_page(orchestrator: FinanceOrchestrator):
    """Income, expenses and the three AI views."""
    st.title("🏠 Dashboard")
    symbol = get_settings().app.currency_symbol

    col1, col2 = st.columns(2)

    with col1:
        st.markdown("### Monthly Income")
        with st.form("income_form"):
            income_text = st.text_input(
                "Income",
                value="" if orchestrator.state.income is None else str(orchestrator.state.income),
                placeholder="e.g., 5000",
            )
            if st.form_submit_button("Set Income"):
                result = run_async(orchestrator.set_income(income_text))
                if result.has_errors:
                    for message in result.messages_for("income"):
                        st.error(message)
                else:
                    st.success("Income updated")

    with col2:
        st.markdown("### Add Expense")
        with st.form("expense_form", clear_on_submit=True):
            description = st.text_input("Description", placeholder="e.g., Groceries")
            amount_text = st.text_input("Amount", placeholder="e.g., 42.50")
            if st.form_submit_button("Add Expense", type="primary"):
                with st.spinner("Categorizing..."):
                    expense, message = run_async(
                        orchestrator.add_expense(description, amount_text)
                    )
                if expense is None:
                    st.error(message)
                else:
                    st.success(message)

    state = orchestrator.state
    st.markdown("---")

    m1, m2, m3 = st.columns(3)
    m1.metric("Income", format_currency(state.income, symbol))
    m2.metric("Spent", format_currency(total_spent(state), symbol))
    m3.metric("Remaining", format_currency(remaining_budget(state), symbol))

    render_expense_list(orchestrator, symbol)

    summary_tab, patterns_tab, prediction_tab = st.tabs(
        ["📊 Summary", "🔍 Patterns", "🔮 Prediction"]
    )

    with summary_tab:
        totals = category_totals(state)
        if not totals:
            st.info("Add expenses to see a summary.")
        else:
            st.bar_chart(totals)
            with st.spinner("Generating insights..."):
                insights = cached_view("insights", orchestrator, orchestrator.spending_insights)
            for insight in insights:
                st.markdown(f"- {insight}")

    with patterns_tab:
        with st.spinner("Analyzing patterns..."):
            view = cached_view("patterns", orchestrator, orchestrator.spending_patterns)
        if view.status == "error":
            st.error(view.message)
        elif view.ok:
            for pattern in view.items:
                st.markdown(f"- {pattern}")
        else:
            st.info(view.message)

    with prediction_tab:
        with st.spinner("Predicting..."):
            view = cached_view("prediction", orchestrator, orchestrator.budget_prediction)
        if view.status == "error":
            st.error(view.message)
        elif view.ok:
            prediction = view.prediction
            st.metric(
                "Predicted Total Spending",
                format_currency(prediction.predicted_total_spending, symbol),
            )
            for item in prediction.category_predictions:
                st.markdown(
                    f"- **{item.category}**: "
                    f"{format_currency(item.predicted_amount, symbol)}"
                )
            if prediction.confidence_note:
                st.caption(prediction.confidence_note)
            if view.message:
                st.caption(view.message)
        else:
            st.info(view.message)


def render_expense_list(orchestrator: FinanceOrchestrator, symbol: str):
    """Expenses, newest first, with a delete button each."""
    st.markdown("### Expenses")
    expenses = list(reversed(orchestrator.state.expenses))
    if not expenses:
        st.info("No expenses yet.")
        return

    for expense in expenses:
        c1, c2, c3, c4 = st.columns([4, 2, 2, 1])
        c1.markdown(f"**{expense.description}**  \n{expense.date:%Y-%m-%d %H:%M}")
        c2.markdown(expense.category or "_Categorizing..._")
        c3.markdown(format_currency(expense.amount, symbol))
        if c4.button("🗑️", key=f"delete_{expense.id}"):
            run_async(orchestrator.delete_expense(expense.id))
            st.rerun()


def render_assistant_page(orchestrator: FinanceOrchestrator):
    """Chat with the finance assistant."""
    st.title("💬 Finance Assistant")
    st.markdown("Ask anything about your income and expenses.")

    for role, text in st.session_state.chat_history:
        with st.chat_message(role):
            st.markdown(text)

    question = st.chat_input("Your question")
    if question and question.strip():
        st.session_state.chat_history.append(("user", question))
        with st.chat_message("user"):
            st.markdown(question)

        with st.chat_message("assistant"):
            with st.spinner("Thinking..."):
                answer = run_async(orchestrator.ask(question))
            st.markdown(answer)
        st.session_state.chat_history.append(("assistant", answer))


def render_paths_page(orchestrator: FinanceOrchestrator):
    """Enumerate every selection of candidate actions."""
    st.title("🧭 Action Paths")
    st.markdown(
        "List candidate financial actions, one per line as `name: description`. "
        "Every combination is listed, keeping your order."
    )

    text = st.text_area(
        "Actions",
        placeholder="Pay off card: Clear the credit card balance\nOpen ISA: Start saving monthly",
    )

    if st.button("🧭 Explore Paths", type="primary"):
        actions = []
        for line in text.splitlines():
            if not line.strip():
                continue
            name, _, description = line.partition(":")
            actions.append(FinancialAction(
                name=name.strip(),
                description=description.strip(),
            ))

        try:
            output = run_async(orchestrator.explore_action_paths(actions))
        except PathLimitExceededError as e:
            st.error(str(e))
            return

        st.markdown(f"**{len(output.paths)} paths**")
        for i, path in enumerate(output.paths, start=1):
            label = " → ".join(a.name for a in path) if path else "(do nothing)"
            st.markdown(f"{i}. {label}")


def render_activity_page(audit_logger):
    """Recent audit events for this session."""
    st.title("📜 Activity")

    events = run_async(audit_logger.recent_events(limit=50))
    if not events:
        st.info("No activity yet.")
        return

    for event in events:
        line = f"`{event.timestamp:%H:%M:%S}` **{event.event_type.value}** {event.description}"
        if event.error_message:
            line += f"  \n⚠️ {event.error_message}"
        st.markdown(line)


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()

    services = [
        ("Gemini (AI)", "gemini"),
        ("App Settings", "app"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - OK")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your API key. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
