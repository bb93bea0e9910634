"""
Flow Schemas

Input and output records for every language-model flow.

Each flow is a pair of models: the input is rendered into a prompt,
the output is what the model's JSON reply must validate against.
A reply that does not fit the output schema is a failed call; nothing
is salvaged from it.

Field names are snake_case in Python and camelCase on the wire
(``predictedTotalSpending``, ``userQuery``) so the prompts and the
replies keep the vocabulary the model is asked to use.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from trackwise.models.expense import Expense, FinancialAction


class FlowModel(BaseModel):
    """Base for flow payloads: camelCase aliases, snake_case attributes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    def to_prompt_dict(self) -> dict:
        """Dump using wire names and JSON-safe values."""
        return self.model_dump(mode="json", by_alias=True)


class FlowExpense(FlowModel):
    """An expense as the model sees it (date as an ISO string)."""

    id: str
    description: str
    amount: float
    category: Optional[str] = None
    date: str = Field(
        ...,
        description="ISO 8601 timestamp"
    )

    @classmethod
    def from_expense(cls, expense: Expense) -> "FlowExpense":
        return cls(
            id=expense.id,
            description=expense.description,
            amount=expense.amount,
            category=expense.category,
            date=expense.date.isoformat(),
        )


class CategoryAmount(FlowModel):
    """A category with an amount attached (spend or budget goal)."""

    category: str
    amount: float = Field(ge=0)


# =============================================================================
# CATEGORIZE EXPENSE
# =============================================================================

class CategorizeExpenseInput(FlowModel):
    description: str = Field(
        ...,
        min_length=1,
        description="The description of the expense"
    )


class CategorizeExpenseOutput(FlowModel):
    category: str = Field(
        default="",
        description="The category the expense belongs to"
    )


# =============================================================================
# SPENDING INSIGHTS
# =============================================================================

class SpendingInsightsInput(FlowModel):
    income: float = Field(
        ...,
        ge=0,
        description="Monthly income"
    )
    expenses: list[CategoryAmount] = Field(
        default_factory=list,
        description="Spending per category"
    )
    budget_goals: list[CategoryAmount] = Field(
        default_factory=list,
        description="Budget goal per category"
    )


class SpendingInsightsOutput(FlowModel):
    insights: list[str] = Field(
        default_factory=list,
        description="Short observations and suggestions"
    )


# =============================================================================
# SPENDING PATTERNS
# =============================================================================

class AnalyzeSpendingPatternsInput(FlowModel):
    expenses: list[FlowExpense] = Field(
        default_factory=list,
        description="All recorded expenses"
    )


class AnalyzeSpendingPatternsOutput(FlowModel):
    patterns: list[str] = Field(
        default_factory=list,
        description="Trends detected in the spending"
    )


# =============================================================================
# BUDGET PREDICTION
# =============================================================================

class PredictBudgetInput(FlowModel):
    expenses: list[FlowExpense] = Field(
        default_factory=list,
        description="Historical expenses"
    )
    prediction_period: str = Field(
        default="next month",
        min_length=1,
        description="Period to predict, e.g. 'next month'"
    )


class CategoryPrediction(FlowModel):
    category: str
    predicted_amount: float = Field(ge=0)


class PredictBudgetOutput(FlowModel):
    predicted_total_spending: float = Field(
        ...,
        ge=0,
        description="Predicted total spending for the period"
    )
    category_predictions: list[CategoryPrediction] = Field(
        default_factory=list,
        description="Predicted spending per category"
    )
    confidence_note: Optional[str] = Field(
        default=None,
        description="How much to trust the prediction"
    )

    def sorted_categories(self) -> list[CategoryPrediction]:
        """Category predictions, largest first."""
        return sorted(
            self.category_predictions,
            key=lambda c: c.predicted_amount,
            reverse=True,
        )


# =============================================================================
# FINANCE CHATBOT
# =============================================================================

class FinanceChatbotInput(FlowModel):
    user_query: str = Field(
        ...,
        min_length=1,
        description="The user's question"
    )
    income: Optional[float] = Field(
        default=None,
        description="Monthly income if set"
    )
    expenses: list[FlowExpense] = Field(
        default_factory=list,
        description="All recorded expenses"
    )


class FinanceChatbotOutput(FlowModel):
    response: str = Field(
        ...,
        min_length=1,
        description="The assistant's answer"
    )


# =============================================================================
# EXPLORE ACTION PATHS
# =============================================================================

class ExploreActionPathsInput(FlowModel):
    actions: list[FinancialAction] = Field(
        default_factory=list,
        description="A list of financial actions."
    )


class ExploreActionPathsOutput(FlowModel):
    paths: list[list[FinancialAction]] = Field(
        default_factory=list,
        description="All the possible combination of paths."
    )
