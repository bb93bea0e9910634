"""
Tests for the orchestrator flows.

Every agent shares one scripted client, so each test lists the replies
the model would give in the order the calls are made.
"""

import asyncio

import pytest

from trackwise.agents import (
    ActionPathAgent,
    ChatAgent,
    EmptyResponseError,
    ExpenseAgent,
    InsightAgent,
    ModelServiceError,
    PromptAdapter,
)
from trackwise.audit import AuditLogger
from trackwise.models import AuditEventType, Expense, FinancialAction
from trackwise.orchestrator import (
    CHAT_ERROR,
    INSIGHTS_ERROR,
    PATTERNS_ERROR,
    PREDICTION_ERROR,
    PREDICTION_ZERO_HINT,
    FinanceOrchestrator,
    ViewResult,
    create_app_components,
)
from trackwise.planning import PathLimitExceededError
from trackwise.services.storage import InMemoryAuditStorage
from trackwise.state import AddExpense, ExpenseNotFoundError, FinanceState, FinanceStore


@pytest.fixture
def storage():
    return InMemoryAuditStorage()


@pytest.fixture
def orchestrator(adapter, storage):
    return FinanceOrchestrator(
        expense_agent=ExpenseAgent(adapter),
        insight_agent=InsightAgent(adapter),
        chat_agent=ChatAgent(adapter),
        path_agent=ActionPathAgent(max_actions=3),
        audit_logger=AuditLogger(storage),
    )


def seed(orchestrator, count):
    for i in range(count):
        orchestrator.store.dispatch(AddExpense(expense=Expense(
            description=f"Item {i}",
            amount=10 + i,
            category="Food" if i % 2 else "Transport",
        )))


def event_types(storage):
    events = asyncio.run(storage.get_recent_events())
    return [e.event_type for e in reversed(events)]


class TestIncome:
    """Tests for setting income."""

    def test_set_income(self, orchestrator, storage):
        """Test that a valid income is stored and audited."""
        result = asyncio.run(orchestrator.set_income("4500"))
        assert result.is_valid
        assert orchestrator.state.income == 4500
        assert event_types(storage) == [AuditEventType.INCOME_UPDATED]

    def test_invalid_income_not_stored(self, orchestrator, storage):
        """Test that an invalid income leaves the store untouched."""
        result = asyncio.run(orchestrator.set_income("-1"))
        assert result.has_errors
        assert orchestrator.state.income == 10000
        assert orchestrator.state.version == 0
        assert event_types(storage) == [AuditEventType.VALIDATION_FAILED]

    def test_starts_with_default_income(self):
        """Test that a new session starts from the configured income."""
        orchestrator = FinanceOrchestrator()
        assert orchestrator.state.income == 10000
        assert orchestrator.state.expenses == ()
        assert orchestrator.state.version == 0


class TestAddExpense:
    """Tests for the add-expense flow."""

    def test_categorized(self, orchestrator, fake_client, storage):
        """Test that the model's category is applied."""
        fake_client.replies.append({"category": "Groceries"})
        expense, message = asyncio.run(orchestrator.add_expense("Milk", "3.20"))
        assert expense.category == "Groceries"
        assert expense.amount == 3.2
        assert orchestrator.state.expenses == (expense,)
        assert "Groceries" in message
        assert event_types(storage) == [
            AuditEventType.EXPENSE_ADDED,
            AuditEventType.EXPENSE_CATEGORIZED,
        ]

    def test_empty_category_becomes_other(self, orchestrator, fake_client):
        """Test that an empty suggestion falls back to Other."""
        fake_client.replies.append({"category": "  "})
        expense, _ = asyncio.run(orchestrator.add_expense("Widget", 5))
        assert expense.category == "Other"

    def test_failure_becomes_uncategorized(self, orchestrator, fake_client, storage):
        """Test that a failed call keeps the expense as Uncategorized."""
        fake_client.replies.append(ModelServiceError("down"))
        expense, message = asyncio.run(orchestrator.add_expense("Widget", 5))
        assert expense.category == "Uncategorized"
        assert orchestrator.state.expenses[0].category == "Uncategorized"
        assert "could not be categorized" in message
        assert event_types(storage)[-1] == AuditEventType.EXPENSE_CATEGORIZATION_FAILED

    def test_malformed_reply_becomes_uncategorized(self, orchestrator, fake_client):
        """Test that a reply without JSON is treated like a failure."""
        fake_client.replies.append("no idea")
        expense, _ = asyncio.run(orchestrator.add_expense("Widget", 5))
        assert expense.category == "Uncategorized"

    def test_expense_visible_before_category(self, storage):
        """Test that the expense is stored before the model answers."""
        seen = []
        store = FinanceStore()

        class PeekingClient:
            async def complete(self, prompt):
                seen.append(store.state.expenses)
                return '{"category": "Food"}'

        orchestrator = FinanceOrchestrator(
            store=store,
            expense_agent=ExpenseAgent(PromptAdapter(client=PeekingClient())),
            audit_logger=AuditLogger(storage),
        )
        asyncio.run(orchestrator.add_expense("Bagel", 2))
        assert len(seen[0]) == 1
        assert seen[0][0].category is None
        assert store.state.expenses[0].category == "Food"

    def test_invalid_form(self, orchestrator, fake_client, storage):
        """Test that an invalid form never reaches the store or the model."""
        expense, message = asyncio.run(orchestrator.add_expense("", "abc"))
        assert expense is None
        assert "Please enter a description" in message
        assert orchestrator.state.expenses == ()
        assert fake_client.prompts == []
        assert event_types(storage) == [AuditEventType.VALIDATION_FAILED]

    def test_warning_included_in_message(self, orchestrator, fake_client):
        """Test that a large expense is added with a warning."""
        asyncio.run(orchestrator.set_income(100))
        fake_client.replies.append({"category": "Travel"})
        expense, message = asyncio.run(orchestrator.add_expense("Flight", 500))
        assert expense is not None
        assert "larger than your monthly income" in message


class TestEditAndDelete:
    """Tests for changing stored expenses."""

    def test_delete(self, orchestrator, storage):
        """Test that delete removes the expense and audits it."""
        seed(orchestrator, 2)
        target = orchestrator.state.expenses[0]
        deleted = asyncio.run(orchestrator.delete_expense(target.id))
        assert deleted == target
        assert orchestrator.state.find(target.id) is None
        assert event_types(storage)[-1] == AuditEventType.EXPENSE_DELETED

    def test_delete_unknown(self, orchestrator):
        """Test that deleting an unknown expense raises."""
        with pytest.raises(ExpenseNotFoundError):
            asyncio.run(orchestrator.delete_expense("missing"))

    def test_set_category(self, orchestrator, storage):
        """Test a manual category override."""
        seed(orchestrator, 1)
        target = orchestrator.state.expenses[0]
        updated = asyncio.run(orchestrator.set_expense_category(target.id, "Gifts"))
        assert updated.category == "Gifts"
        assert orchestrator.state.expenses[0].category == "Gifts"
        assert event_types(storage)[-1] == AuditEventType.EXPENSE_UPDATED


class TestViews:
    """Tests for the read-only views."""

    def test_insights(self, orchestrator, fake_client):
        """Test that insights are returned as given."""
        seed(orchestrator, 2)
        fake_client.replies.append({"insights": ["Food is growing"]})
        assert asyncio.run(orchestrator.spending_insights()) == ["Food is growing"]

    def test_insights_use_default_income(self, orchestrator, fake_client):
        """Test that the configured income is used before one is set."""
        fake_client.replies.append({"insights": []})
        asyncio.run(orchestrator.spending_insights())
        assert "10000" in fake_client.prompts[0]

    def test_insights_failure(self, orchestrator, fake_client, storage):
        """Test the single fallback insight."""
        fake_client.replies.append(EmptyResponseError("blocked"))
        assert asyncio.run(orchestrator.spending_insights()) == [INSIGHTS_ERROR]
        assert event_types(storage)[-1] == AuditEventType.FLOW_FAILED

    def test_patterns_need_five_expenses(self, orchestrator, fake_client):
        """Test that fewer than five expenses skip the model."""
        seed(orchestrator, 4)
        view = asyncio.run(orchestrator.spending_patterns())
        assert view.status == "not_enough_data"
        assert view.message == "Add more expenses (at least 5) for pattern analysis."
        assert fake_client.prompts == []

    def test_patterns(self, orchestrator, fake_client):
        """Test a successful pattern analysis."""
        seed(orchestrator, 5)
        fake_client.replies.append({"patterns": ["Transport every other day"]})
        view = asyncio.run(orchestrator.spending_patterns())
        assert view.ok
        assert view.items == ["Transport every other day"]

    def test_patterns_empty(self, orchestrator, fake_client):
        """Test that no patterns is not an error."""
        seed(orchestrator, 5)
        fake_client.replies.append({"patterns": []})
        view = asyncio.run(orchestrator.spending_patterns())
        assert view.status == "empty"

    def test_patterns_failure(self, orchestrator, fake_client):
        """Test the patterns error message."""
        seed(orchestrator, 5)
        fake_client.replies.append(ModelServiceError("down"))
        view = asyncio.run(orchestrator.spending_patterns())
        assert view.status == "error"
        assert view.message == PATTERNS_ERROR

    def test_prediction_needs_ten_expenses(self, orchestrator, fake_client):
        """Test that fewer than ten expenses skip the model."""
        seed(orchestrator, 9)
        view = asyncio.run(orchestrator.budget_prediction())
        assert view.status == "not_enough_data"
        assert "at least 10" in view.message
        assert fake_client.prompts == []

    def test_prediction_sorted(self, orchestrator, fake_client):
        """Test that category predictions come back largest first."""
        seed(orchestrator, 10)
        fake_client.replies.append({
            "predictedTotalSpending": 300,
            "categoryPredictions": [
                {"category": "Transport", "predictedAmount": 100},
                {"category": "Food", "predictedAmount": 200},
            ],
        })
        view = asyncio.run(orchestrator.budget_prediction("next week"))
        assert view.ok
        assert [c.category for c in view.prediction.category_predictions] == [
            "Food",
            "Transport",
        ]
        assert "next week" in fake_client.prompts[0]

    def test_prediction_default_period(self, orchestrator, fake_client):
        """Test that the configured period is used by default."""
        seed(orchestrator, 10)
        fake_client.replies.append({"predictedTotalSpending": 50})
        asyncio.run(orchestrator.budget_prediction())
        assert "next month" in fake_client.prompts[0]

    def test_prediction_failure(self, orchestrator, fake_client):
        """Test the prediction error message."""
        seed(orchestrator, 10)
        fake_client.replies.append({"predictedTotalSpending": "lots"})
        view = asyncio.run(orchestrator.budget_prediction())
        assert view.status == "error"
        assert view.message == PREDICTION_ERROR

    def test_zero_prediction_hint(self, orchestrator, fake_client):
        """Test that a zero forecast is shown with a hint next to its note."""
        seed(orchestrator, 10)
        fake_client.replies.append({
            "predictedTotalSpending": 0,
            "confidenceNote": "Spending varies a lot",
        })
        view = asyncio.run(orchestrator.budget_prediction())
        assert view.ok
        assert view.prediction.predicted_total_spending == 0
        assert view.prediction.confidence_note == "Spending varies a lot"
        assert view.message == PREDICTION_ZERO_HINT

    def test_zero_prediction_with_insufficient_data_note(self, orchestrator, fake_client):
        """Test that no hint is added when the note already explains it."""
        seed(orchestrator, 10)
        fake_client.replies.append({
            "predictedTotalSpending": 0,
            "confidenceNote": "Insufficient data for a forecast",
        })
        view = asyncio.run(orchestrator.budget_prediction())
        assert view.ok
        assert view.message is None

    def test_nonzero_prediction_has_no_hint(self, orchestrator, fake_client):
        """Test that a normal forecast carries no message."""
        seed(orchestrator, 10)
        fake_client.replies.append({"predictedTotalSpending": 50})
        view = asyncio.run(orchestrator.budget_prediction())
        assert view.message is None

    def test_views_do_not_write(self, orchestrator, fake_client):
        """Test that reading views leaves the store version alone."""
        seed(orchestrator, 5)
        version = orchestrator.state.version
        fake_client.replies.append({"patterns": ["x"]})
        asyncio.run(orchestrator.spending_patterns())
        assert orchestrator.state.version == version


class TestAssistant:
    """Tests for the chat assistant."""

    def test_answer(self, orchestrator, fake_client):
        """Test a normal answer."""
        fake_client.replies.append({"response": "You are on track."})
        assert asyncio.run(orchestrator.ask("Am I on track?")) == "You are on track."

    def test_blank_question_ignored(self, orchestrator, fake_client):
        """Test that blank questions are not sent."""
        assert asyncio.run(orchestrator.ask("   ")) is None
        assert fake_client.prompts == []

    def test_failure_reply(self, orchestrator, fake_client):
        """Test the apology reply on failure."""
        fake_client.replies.append(ModelServiceError("down"))
        assert asyncio.run(orchestrator.ask("Hello?")) == CHAT_ERROR


class TestActionPaths:
    """Tests for action path exploration."""

    def test_explore(self, orchestrator, storage):
        """Test that all paths are returned and audited."""
        actions = [
            FinancialAction(name="A", description="a"),
            FinancialAction(name="B", description="b"),
        ]
        output = asyncio.run(orchestrator.explore_action_paths(actions))
        assert len(output.paths) == 4
        assert event_types(storage) == [AuditEventType.PATHS_EXPLORED]

    def test_limit(self, orchestrator, storage):
        """Test that the ceiling is enforced and audited."""
        actions = [FinancialAction(name=str(i), description="x") for i in range(4)]
        with pytest.raises(PathLimitExceededError):
            asyncio.run(orchestrator.explore_action_paths(actions))
        assert event_types(storage) == [AuditEventType.PATH_LIMIT_EXCEEDED]


class TestDebouncedRefresh:
    """Tests for scheduled view refreshes."""

    def test_patterns_refresh_delivers_latest(self, orchestrator, fake_client):
        """Test that rapid refreshes call the model once."""
        seed(orchestrator, 5)
        fake_client.replies.append({"patterns": ["latest"]})
        results = []

        async def scenario():
            for _ in range(3):
                orchestrator.schedule_patterns_refresh(results.append, delay=0.01)
            await orchestrator.dispatcher.drain()

        asyncio.run(scenario())
        assert len(fake_client.prompts) == 1
        assert [r.items for r in results] == [["latest"]]

    def test_prediction_refresh(self, orchestrator, fake_client):
        """Test a scheduled prediction refresh."""
        seed(orchestrator, 10)
        fake_client.replies.append({"predictedTotalSpending": 10})
        results = []

        async def scenario():
            orchestrator.schedule_prediction_refresh(results.append, delay=0)
            await orchestrator.dispatcher.drain()

        asyncio.run(scenario())
        assert isinstance(results[0], ViewResult)
        assert results[0].prediction.predicted_total_spending == 10

    def test_auto_refresh_on_expense_change(self, orchestrator, fake_client):
        """Test that changing expenses schedules both refreshes."""
        seed(orchestrator, 10)
        patterns, predictions = [], []

        async def scenario():
            stop = orchestrator.enable_auto_refresh(patterns.append, predictions.append)
            seed(orchestrator, 1)
            # Both views run; queue one reply each, in firing order
            fake_client.replies.extend([
                {"patterns": ["p"]},
                {"predictedTotalSpending": 1},
            ])
            await asyncio.sleep(0)
            await orchestrator.dispatcher.drain()
            stop()

        asyncio.run(scenario())
        assert patterns[0].items == ["p"]
        assert predictions[0].prediction.predicted_total_spending == 1

    def test_income_change_does_not_refresh(self, orchestrator, fake_client):
        """Test that only expense changes trigger a refresh."""

        async def scenario():
            stop = orchestrator.enable_auto_refresh(lambda v: None, lambda v: None)
            await orchestrator.set_income(100)
            await asyncio.sleep(0)
            pending = orchestrator.dispatcher.has_pending("analyze_spending_patterns")
            stop()
            return pending

        assert asyncio.run(scenario()) is False


class TestFactory:
    """Tests for create_app_components."""

    def test_components(self):
        """Test that the factory wires an audit trail into the orchestrator."""
        orchestrator, audit_logger = create_app_components()
        assert isinstance(orchestrator, FinanceOrchestrator)
        assert isinstance(audit_logger.storage, InMemoryAuditStorage)
        assert orchestrator.state == FinanceState(income=10000)
        assert isinstance(orchestrator.store, FinanceStore)

    def test_factory_records_activity(self):
        """Test that flows run through the factory land in the audit trail."""
        orchestrator, audit_logger = create_app_components()

        async def scenario():
            await orchestrator.set_income("4500")
            return await audit_logger.recent_events()

        events = asyncio.run(scenario())
        assert [e.event_type for e in events] == [AuditEventType.INCOME_UPDATED]
