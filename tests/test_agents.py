"""
Tests for the AI agents and their prompts.
"""

import asyncio

import pytest

from trackwise.agents import (
    ChatAgent,
    ExpenseAgent,
    InsightAgent,
    ModelServiceError,
    SchemaValidationError,
)
from trackwise.agents import prompts
from trackwise.models import (
    AnalyzeSpendingPatternsInput,
    CategorizeExpenseInput,
    CategoryAmount,
    Expense,
    FinanceChatbotInput,
    FlowExpense,
    PredictBudgetInput,
    SpendingInsightsInput,
)


def flow_expense(description="Coffee", amount=3.5, category="Food"):
    return FlowExpense.from_expense(
        Expense(description=description, amount=amount, category=category)
    )


class TestExpenseAgent:
    """Tests for categorization."""

    def test_categorize(self, adapter, fake_client):
        """Test that the suggested category is returned."""
        fake_client.replies.append({"category": "Transport"})
        agent = ExpenseAgent(adapter)
        output = asyncio.run(agent.categorize(CategorizeExpenseInput(description="Bus ticket")))
        assert output.category == "Transport"
        assert '"Bus ticket"' in fake_client.prompts[0]

    def test_missing_category_defaults_to_empty(self, adapter, fake_client):
        """Test that a reply without a category gives an empty string."""
        fake_client.replies.append({})
        output = asyncio.run(
            ExpenseAgent(adapter).categorize(CategorizeExpenseInput(description="Thing"))
        )
        assert output.category == ""

    def test_failure_propagates(self, adapter, fake_client):
        """Test that agents raise FlowError and leave the fallback to the caller."""
        fake_client.replies.append(ModelServiceError("down"))
        with pytest.raises(ModelServiceError):
            asyncio.run(
                ExpenseAgent(adapter).categorize(CategorizeExpenseInput(description="Thing"))
            )


class TestInsightAgent:
    """Tests for insights, patterns and prediction."""

    def test_spending_insights(self, adapter, fake_client):
        """Test that income, spending and goals reach the prompt."""
        fake_client.replies.append({"insights": ["Food is over goal"]})
        data = SpendingInsightsInput(
            income=5000,
            expenses=[CategoryAmount(category="Food", amount=500)],
            budget_goals=[CategoryAmount(category="Food", amount=400)],
        )
        output = asyncio.run(InsightAgent(adapter).spending_insights(data))
        assert output.insights == ["Food is over goal"]
        prompt = fake_client.prompts[0]
        assert "5000" in prompt
        assert '"Food"' in prompt

    def test_analyze_patterns(self, adapter, fake_client):
        """Test that expenses are sent with ISO dates."""
        fake_client.replies.append({"patterns": ["Coffee every day"]})
        expense = flow_expense()
        output = asyncio.run(
            InsightAgent(adapter).analyze_patterns(AnalyzeSpendingPatternsInput(expenses=[expense]))
        )
        assert output.patterns == ["Coffee every day"]
        assert expense.date in fake_client.prompts[0]

    def test_predict_budget(self, adapter, fake_client):
        """Test that the period reaches the prompt and the reply is parsed."""
        fake_client.replies.append({
            "predictedTotalSpending": 1200,
            "categoryPredictions": [
                {"category": "Rent", "predictedAmount": 100},
                {"category": "Food", "predictedAmount": 300},
            ],
            "confidenceNote": "Based on 2 weeks",
        })
        data = PredictBudgetInput(expenses=[flow_expense()], prediction_period="next quarter")
        output = asyncio.run(InsightAgent(adapter).predict_budget(data))
        assert output.predicted_total_spending == 1200
        assert [c.category for c in output.sorted_categories()] == ["Food", "Rent"]
        assert "next quarter" in fake_client.prompts[0]


class TestChatAgent:
    """Tests for the assistant."""

    def test_answer(self, adapter, fake_client):
        """Test that the question and data reach the prompt."""
        fake_client.replies.append({"response": "You spent $3.50 on coffee."})
        data = FinanceChatbotInput(
            user_query="How much on coffee?",
            income=4000,
            expenses=[flow_expense()],
        )
        output = asyncio.run(ChatAgent(adapter).answer(data))
        assert output.response == "You spent $3.50 on coffee."
        assert "How much on coffee?" in fake_client.prompts[0]

    def test_income_not_set(self):
        """Test that a missing income is stated in the prompt."""
        prompt = prompts.finance_chatbot_prompt(FinanceChatbotInput(user_query="Hi"))
        assert "monthly income: not set" in prompt

    def test_empty_response_rejected(self, adapter, fake_client):
        """Test that an empty answer fails validation."""
        fake_client.replies.append({"response": ""})
        with pytest.raises(SchemaValidationError):
            asyncio.run(ChatAgent(adapter).answer(FinanceChatbotInput(user_query="Hi")))
