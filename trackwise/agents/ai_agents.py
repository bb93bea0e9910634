"""
AI Agents for TrackWise

Each agent owns one area of the app and turns validated input records into
validated output records through the PromptAdapter.

BOUNDARIES:

1. EXPENSE AGENT:
   - CAN: Suggest a category from the expense description
   - CANNOT: Change amounts, dates, or descriptions

2. INSIGHT AGENT:
   - CAN: Describe, compare and forecast FROM the expenses it is given
   - CANNOT: Write anything back to the store

3. CHAT AGENT:
   - CAN: Answer questions using the income and expense list it is given

4. ACTION PATH AGENT:
   - Enumerates paths locally. The model is not involved; enumeration is
     exact and a model asked to list 2^n paths would get it wrong.

Agents raise FlowError on any model failure. Deciding what the user sees
when that happens is the orchestrator's job.
"""

from typing import Optional

from trackwise.agents import prompts
from trackwise.agents.llm import PromptAdapter
from trackwise.config import get_settings
from trackwise.models.flows import (
    AnalyzeSpendingPatternsInput,
    AnalyzeSpendingPatternsOutput,
    CategorizeExpenseInput,
    CategorizeExpenseOutput,
    ExploreActionPathsInput,
    ExploreActionPathsOutput,
    FinanceChatbotInput,
    FinanceChatbotOutput,
    PredictBudgetInput,
    PredictBudgetOutput,
    SpendingInsightsInput,
    SpendingInsightsOutput,
)
from trackwise.planning import explore_action_paths


class ExpenseAgent:
    """
    AI agent for the add-expense flow.

    The suggested category is applied directly; the user can still edit
    the expense afterwards.
    """

    def __init__(self, adapter: Optional[PromptAdapter] = None):
        self._adapter = adapter or PromptAdapter()

    async def categorize(
        self,
        data: CategorizeExpenseInput,
    ) -> CategorizeExpenseOutput:
        """Suggest a category for one expense description."""
        return await self._adapter.run(
            prompts.categorize_expense_prompt(data),
            CategorizeExpenseOutput,
            flow="categorize_expense",
        )


class InsightAgent:
    """
    AI agent behind the Summary, Patterns and Prediction views.

    All three are read-only: they receive a snapshot of the expenses
    and return text or numbers for display.
    """

    def __init__(self, adapter: Optional[PromptAdapter] = None):
        self._adapter = adapter or PromptAdapter()

    async def spending_insights(
        self,
        data: SpendingInsightsInput,
    ) -> SpendingInsightsOutput:
        return await self._adapter.run(
            prompts.spending_insights_prompt(data),
            SpendingInsightsOutput,
            flow="spending_insights",
        )

    async def analyze_patterns(
        self,
        data: AnalyzeSpendingPatternsInput,
    ) -> AnalyzeSpendingPatternsOutput:
        return await self._adapter.run(
            prompts.spending_patterns_prompt(data),
            AnalyzeSpendingPatternsOutput,
            flow="analyze_spending_patterns",
        )

    async def predict_budget(
        self,
        data: PredictBudgetInput,
    ) -> PredictBudgetOutput:
        """
        Forecast spending for ``data.prediction_period``.

        The model's category breakdown is returned as-is; it is not forced
        to sum to the predicted total.
        """
        return await self._adapter.run(
            prompts.predict_budget_prompt(data),
            PredictBudgetOutput,
            flow="predict_budget",
        )


class ChatAgent:
    """AI agent for the Assistant tab."""

    def __init__(self, adapter: Optional[PromptAdapter] = None):
        self._adapter = adapter or PromptAdapter()

    async def answer(
        self,
        data: FinanceChatbotInput,
    ) -> FinanceChatbotOutput:
        return await self._adapter.run(
            prompts.finance_chatbot_prompt(data),
            FinanceChatbotOutput,
            flow="finance_chatbot",
        )


class ActionPathAgent:
    """Enumerates every path through a list of candidate actions."""

    def __init__(self, max_actions: Optional[int] = None):
        if max_actions is None:
            max_actions = get_settings().app.max_path_actions
        self._max_actions = max_actions

    @property
    def max_actions(self) -> Optional[int]:
        return self._max_actions

    def explore(
        self,
        data: ExploreActionPathsInput,
    ) -> ExploreActionPathsOutput:
        """
        Return all 2^n order-preserving paths through ``data.actions``.

        Raises:
            PathLimitExceededError: More actions than the configured ceiling
        """
        paths = explore_action_paths(data.actions, max_actions=self._max_actions)
        return ExploreActionPathsOutput(paths=paths)
