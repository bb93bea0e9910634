"""
Prompt Templates

One builder per flow. Each takes the flow's validated input record and
returns the prompt text. Data is embedded as JSON produced from the
input model, so the model sees exactly the field names its reply is
validated against.

Every prompt ends by spelling out the JSON shape of the reply.
"""

import json

from trackwise.models.flows import (
    AnalyzeSpendingPatternsInput,
    CategorizeExpenseInput,
    FinanceChatbotInput,
    PredictBudgetInput,
    SpendingInsightsInput,
)

SUGGESTED_CATEGORIES = [
    "Food",
    "Groceries",
    "Transportation",
    "Housing",
    "Utilities",
    "Entertainment",
    "Shopping",
    "Health",
    "Education",
    "Travel",
    "Other",
]


def _as_json(payload) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)


def categorize_expense_prompt(data: CategorizeExpenseInput) -> str:
    return f"""You are categorizing a personal expense for a spending tracker.

Expense description: "{data.description}"

Pick the single best category. Prefer one of: {', '.join(SUGGESTED_CATEGORIES)}.
Use "Other" if nothing fits.

Respond with ONLY a JSON object in this exact format:
{{"category": "Category name"}}"""


def spending_insights_prompt(data: SpendingInsightsInput) -> str:
    payload = data.to_prompt_dict()
    return f"""You are a personal finance advisor reviewing one month of spending.

Monthly income: {payload['income']}

Spending by category:
{_as_json(payload['expenses'])}

Budget goals by category:
{_as_json(payload['budgetGoals'])}

Give 3 to 5 short, specific insights. Compare spending against the budget
goals and against income, point out the categories that are over goal, and
suggest one concrete saving per problem area. Use ONLY the numbers above.

Respond with ONLY a JSON object in this exact format:
{{"insights": ["first insight", "second insight"]}}"""


def spending_patterns_prompt(data: AnalyzeSpendingPatternsInput) -> str:
    payload = data.to_prompt_dict()
    return f"""You are analyzing a user's expense history to find spending patterns.

Expenses (amount, category, ISO date):
{_as_json(payload['expenses'])}

Identify trends such as recurring purchases, categories that dominate
spending, changes over time, or unusually large expenses. Each pattern
should be one sentence and refer to the data. If there are no clear
patterns return an empty list.

Respond with ONLY a JSON object in this exact format:
{{"patterns": ["first pattern", "second pattern"]}}"""


def predict_budget_prompt(data: PredictBudgetInput) -> str:
    payload = data.to_prompt_dict()
    return f"""You are forecasting a user's spending for {payload['predictionPeriod']}.

Historical expenses (amount, category, ISO date):
{_as_json(payload['expenses'])}

Predict the total spending for the period and the spending per category,
based only on the history above. Amounts are non-negative numbers. Add a
short confidence note; say "Insufficient data" in it if the history is too
thin to predict from.

Respond with ONLY a JSON object in this exact format:
{{"predictedTotalSpending": 1234.5,
  "categoryPredictions": [{{"category": "Food", "predictedAmount": 400.0}}],
  "confidenceNote": "short note"}}"""


def finance_chatbot_prompt(data: FinanceChatbotInput) -> str:
    payload = data.to_prompt_dict()
    income = payload["income"]
    income_line = f"{income}" if income is not None else "not set"
    return f"""You are a friendly personal finance assistant inside a spending tracker.

The user's monthly income: {income_line}

The user's recorded expenses:
{_as_json(payload['expenses'])}

User question: "{payload['userQuery']}"

Answer in a few sentences. When the question is about the user's own
money, base the answer on the data above and say so if the data does not
cover it.

Respond with ONLY a JSON object in this exact format:
{{"response": "your answer"}}"""
