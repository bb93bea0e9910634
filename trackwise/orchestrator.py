"""
Main Orchestrator for TrackWise

This module ties together all the components and defines the
end-to-end flows for:
1. Income and expense entry (form → validate → store → categorize)
2. Read-only views (summary insights, spending patterns, budget prediction)
3. The finance assistant (question → answer)
4. Action path exploration

DESIGN DECISION: The orchestrator enforces the boundaries:
- Only this module dispatches commands to the store
- A failed model call never raises into the UI; it becomes a message
- Every step is audited

Agents raise FlowError when the model misbehaves. Everything else
(store errors, path limit errors, programming errors) propagates.
"""

import asyncio
from typing import Callable, Optional, Union

from pydantic import BaseModel, Field

from trackwise.agents import (
    ActionPathAgent,
    ChatAgent,
    ExpenseAgent,
    FlowError,
    InsightAgent,
)
from trackwise.audit import AuditLogger, create_correlation_id
from trackwise.config import get_settings
from trackwise.dispatch import LatestOnlyDispatcher
from trackwise.models import (
    FALLBACK_CATEGORY,
    UNCATEGORIZED,
    AnalyzeSpendingPatternsInput,
    CategorizeExpenseInput,
    Expense,
    ExploreActionPathsInput,
    ExploreActionPathsOutput,
    FinanceChatbotInput,
    FinancialAction,
    PredictBudgetInput,
    PredictBudgetOutput,
    SpendingInsightsInput,
    ValidationResult,
)
from trackwise.planning import PathLimitExceededError
from trackwise.services.storage import InMemoryAuditStorage
from trackwise.state import (
    AddExpense,
    DeleteExpense,
    ExpenseNotFoundError,
    FinanceState,
    FinanceStore,
    SetIncome,
    UpdateExpense,
    budget_goals,
    category_amounts,
    serialized_expenses,
)
from trackwise.validation import FormValidator, parse_amount


INSIGHTS_ERROR = "Failed to generate insights. Please try again later."
PATTERNS_ERROR = "Could not analyze spending patterns. Please try again later."
PATTERNS_EMPTY = "No specific spending patterns detected yet."
PREDICTION_ERROR = "Could not generate budget prediction. Please try again later."
PREDICTION_ZERO_HINT = "Prediction might be zero due to limited or inconsistent historical data."
CHAT_ERROR = "Sorry, I encountered an error. Please try again."

PATTERNS_KEY = "analyze_spending_patterns"
PREDICTION_KEY = "predict_budget"


class ViewResult(BaseModel):
    """
    What a read-only view should render.

    status is one of:
    - "ok": items and/or prediction are filled in
    - "empty": the model answered but had nothing to say
    - "not_enough_data": too few expenses, message says how many are needed
    - "error": the model call failed, message is user-facing
    """

    status: str = Field(
        ...,
        pattern="^(ok|empty|not_enough_data|error)$",
    )
    message: Optional[str] = None
    items: list[str] = Field(default_factory=list)
    prediction: Optional[PredictBudgetOutput] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


class FinanceOrchestrator:
    """
    Orchestrates every user-facing TrackWise flow.

    Add-expense flow:
    1. Validate → form errors go back to the user, nothing is stored
    2. Store → the expense appears immediately with no category
    3. Categorize → the model suggests a category
    4. Update → the suggestion (or "Uncategorized" on failure) is stored

    Views read a snapshot of the store and never write to it.
    """

    def __init__(
        self,
        store: Optional[FinanceStore] = None,
        expense_agent: Optional[ExpenseAgent] = None,
        insight_agent: Optional[InsightAgent] = None,
        chat_agent: Optional[ChatAgent] = None,
        path_agent: Optional[ActionPathAgent] = None,
        validator: Optional[FormValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        dispatcher: Optional[LatestOnlyDispatcher] = None,
    ):
        self._settings = get_settings().app
        self._store = store or FinanceStore(
            FinanceState(income=self._settings.default_income)
        )
        self._expense_agent = expense_agent or ExpenseAgent()
        self._insight_agent = insight_agent or InsightAgent()
        self._chat_agent = chat_agent or ChatAgent()
        self._path_agent = path_agent or ActionPathAgent()
        self._validator = validator or FormValidator()
        self._audit_logger = audit_logger
        self._dispatcher = dispatcher or LatestOnlyDispatcher(
            on_discard=self._on_response_discarded
        )

    @property
    def store(self) -> FinanceStore:
        return self._store

    @property
    def state(self) -> FinanceState:
        return self._store.state

    @property
    def dispatcher(self) -> LatestOnlyDispatcher:
        return self._dispatcher

    # =========================================================================
    # INCOME & EXPENSES
    # =========================================================================

    async def set_income(
        self,
        value: Union[int, float, str, None],
    ) -> ValidationResult:
        """
        Validate and store the monthly income.

        The store is untouched when the result has errors.
        """
        result = self._validator.validate_income(value)
        if result.has_errors:
            await self._log_validation_failed(result)
            return result

        previous = self.state.income
        income = parse_amount(value)
        self._store.dispatch(SetIncome(income=income))

        if self._audit_logger is not None:
            await self._audit_logger.log_income_updated(income, previous)

        return result

    async def add_expense(
        self,
        description: Optional[str],
        amount: Union[int, float, str, None],
    ) -> tuple[Optional[Expense], str]:
        """
        Add an expense and categorize it.

        Returns:
            (expense, message)

        expense is None when the form did not validate; message then
        holds the validation summary. It is also None if the expense was
        deleted before its category arrived. Otherwise expense is the
        stored record with its final category.
        """
        result = self._validator.validate_expense(
            description, amount, income=self.state.income
        )
        if result.has_errors:
            await self._log_validation_failed(result)
            return None, self._validator.get_user_friendly_summary(result)

        correlation_id = create_correlation_id()
        expense = Expense(
            description=description,
            amount=parse_amount(amount),
        )

        # Visible straight away; the category follows
        self._store.dispatch(AddExpense(expense=expense))

        if self._audit_logger is not None:
            await self._audit_logger.log_expense_added(
                expense_id=expense.id,
                description=expense.description,
                amount=expense.amount,
                correlation_id=correlation_id,
            )

        try:
            output = await self._expense_agent.categorize(
                CategorizeExpenseInput(description=expense.description)
            )
        except FlowError as e:
            if self._audit_logger is not None:
                await self._audit_logger.log_categorization_failed(
                    expense_id=expense.id,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            categorized = self._apply_category(expense.id, UNCATEGORIZED)
            return categorized, (
                "Expense added, but it could not be categorized automatically."
            )

        category = output.category.strip() or FALLBACK_CATEGORY
        categorized = self._apply_category(expense.id, category)

        if self._audit_logger is not None:
            await self._audit_logger.log_expense_categorized(
                expense_id=expense.id,
                category=category,
                correlation_id=correlation_id,
            )

        message = f"Added {expense.description} under {category}."
        warnings = [i.message for i in result.issues if i.severity == "warning"]
        if warnings:
            message = " ".join([message] + warnings)
        return categorized, message

    def _apply_category(self, expense_id: str, category: str) -> Optional[Expense]:
        # The expense may have been deleted while the model was answering
        current = self.state.find(expense_id)
        if current is None:
            return None
        updated = current.with_category(category)
        self._store.dispatch(UpdateExpense(expense=updated))
        return updated

    async def set_expense_category(
        self,
        expense_id: str,
        category: str,
    ) -> Expense:
        """
        Let the user override a category.

        Raises:
            ExpenseNotFoundError: No expense with that ID
        """
        current = self.state.find(expense_id)
        if current is None:
            raise ExpenseNotFoundError(expense_id)

        updated = current.with_category(category)
        self._store.dispatch(UpdateExpense(expense=updated))

        if self._audit_logger is not None:
            await self._audit_logger.log_expense_updated(
                expense_id,
                {"category": {"from": current.category, "to": updated.category}},
            )
        return updated

    async def delete_expense(self, expense_id: str) -> Expense:
        """
        Remove an expense.

        Raises:
            ExpenseNotFoundError: No expense with that ID
        """
        current = self.state.find(expense_id)
        if current is None:
            raise ExpenseNotFoundError(expense_id)

        self._store.dispatch(DeleteExpense(expense_id=expense_id))

        if self._audit_logger is not None:
            await self._audit_logger.log_expense_deleted(
                expense_id, current.description
            )
        return current

    # =========================================================================
    # READ-ONLY VIEWS
    # =========================================================================

    async def spending_insights(self) -> list[str]:
        """
        Insights for the Summary view.

        Budget goals are set at a fixed ratio of current spending per
        category. Without an income the configured default is used.
        """
        state = self.state
        income = state.income if state.income is not None else self._settings.default_income

        data = SpendingInsightsInput(
            income=income,
            expenses=category_amounts(state),
            budget_goals=budget_goals(state, ratio=self._settings.budget_goal_ratio),
        )

        try:
            output = await self._insight_agent.spending_insights(data)
        except FlowError as e:
            await self._log_flow_failed("spending_insights", e)
            return [INSIGHTS_ERROR]

        await self._log_flow_completed(
            "spending_insights", {"insight_count": len(output.insights)}
        )
        return output.insights

    async def spending_patterns(self) -> ViewResult:
        """Patterns for the Patterns view."""
        state = self.state
        minimum = self._settings.patterns_min_expenses
        if state.expense_count < minimum:
            return ViewResult(
                status="not_enough_data",
                message=f"Add more expenses (at least {minimum}) for pattern analysis.",
            )

        data = AnalyzeSpendingPatternsInput(expenses=serialized_expenses(state))

        try:
            output = await self._insight_agent.analyze_patterns(data)
        except FlowError as e:
            await self._log_flow_failed(PATTERNS_KEY, e)
            return ViewResult(status="error", message=PATTERNS_ERROR)

        await self._log_flow_completed(
            PATTERNS_KEY, {"pattern_count": len(output.patterns)}
        )
        if not output.patterns:
            return ViewResult(status="empty", message=PATTERNS_EMPTY)
        return ViewResult(status="ok", items=output.patterns)

    async def budget_prediction(self, period: Optional[str] = None) -> ViewResult:
        """
        Forecast for the Prediction view.

        Category predictions come back sorted largest first. A zero
        forecast carries a hint in message unless the model already said
        the data was insufficient.
        """
        state = self.state
        minimum = self._settings.prediction_min_expenses
        if state.expense_count < minimum:
            return ViewResult(
                status="not_enough_data",
                message=f"Add more expenses (at least {minimum}) for budget prediction.",
            )

        data = PredictBudgetInput(
            expenses=serialized_expenses(state),
            prediction_period=period or self._settings.default_prediction_period,
        )

        try:
            output = await self._insight_agent.predict_budget(data)
        except FlowError as e:
            await self._log_flow_failed(PREDICTION_KEY, e)
            return ViewResult(status="error", message=PREDICTION_ERROR)

        await self._log_flow_completed(
            PREDICTION_KEY,
            {
                "period": data.prediction_period,
                "predicted_total": output.predicted_total_spending,
            },
        )

        prediction = output.model_copy(
            update={"category_predictions": output.sorted_categories()}
        )
        message = None
        note = prediction.confidence_note or ""
        if prediction.predicted_total_spending == 0 and "Insufficient data" not in note:
            message = PREDICTION_ZERO_HINT
        return ViewResult(status="ok", message=message, prediction=prediction)

    # =========================================================================
    # ASSISTANT
    # =========================================================================

    async def ask(self, question: Optional[str]) -> Optional[str]:
        """
        Answer one assistant question.

        Returns None for a blank question (nothing is sent).
        """
        text = (question or "").strip()
        if not text:
            return None

        state = self.state
        data = FinanceChatbotInput(
            user_query=text,
            income=state.income,
            expenses=serialized_expenses(state),
        )

        try:
            output = await self._chat_agent.answer(data)
        except FlowError as e:
            await self._log_flow_failed("finance_chatbot", e)
            return CHAT_ERROR

        await self._log_flow_completed("finance_chatbot")
        return output.response

    # =========================================================================
    # ACTION PATHS
    # =========================================================================

    async def explore_action_paths(
        self,
        actions: list[FinancialAction],
    ) -> ExploreActionPathsOutput:
        """
        Every order-preserving selection of ``actions``.

        Raises:
            PathLimitExceededError: Too many actions to enumerate
        """
        try:
            output = self._path_agent.explore(ExploreActionPathsInput(actions=actions))
        except PathLimitExceededError as e:
            if self._audit_logger is not None:
                await self._audit_logger.log_path_limit_exceeded(e.action_count, e.limit)
            raise

        if self._audit_logger is not None:
            await self._audit_logger.log_paths_explored(len(actions), len(output.paths))
        return output

    # =========================================================================
    # DEBOUNCED REFRESH
    # =========================================================================

    def schedule_patterns_refresh(
        self,
        on_result: Callable[[ViewResult], None],
        delay: Optional[float] = None,
    ) -> asyncio.Task:
        """Re-run the Patterns view once the expenses stop changing."""
        return self._dispatcher.schedule(
            PATTERNS_KEY,
            self.spending_patterns,
            delay=self._settings.patterns_debounce_seconds if delay is None else delay,
            on_result=on_result,
        )

    def schedule_prediction_refresh(
        self,
        on_result: Callable[[ViewResult], None],
        period: Optional[str] = None,
        delay: Optional[float] = None,
    ) -> asyncio.Task:
        """Re-run the Prediction view once the expenses stop changing."""
        return self._dispatcher.schedule(
            PREDICTION_KEY,
            lambda: self.budget_prediction(period),
            delay=self._settings.prediction_debounce_seconds if delay is None else delay,
            on_result=on_result,
        )

    def enable_auto_refresh(
        self,
        on_patterns: Callable[[ViewResult], None],
        on_prediction: Callable[[ViewResult], None],
    ) -> Callable[[], None]:
        """
        Refresh Patterns and Prediction whenever the expense list changes.

        Must be called from inside the event loop that should run the
        refreshes. Returns a function that turns auto refresh off.
        """
        loop = asyncio.get_running_loop()
        last_expenses = [self.state.expenses]

        def on_state(state: FinanceState) -> None:
            if state.expenses == last_expenses[0]:
                return
            last_expenses[0] = state.expenses

            def schedule() -> None:
                self.schedule_patterns_refresh(on_patterns)
                self.schedule_prediction_refresh(on_prediction)

            loop.call_soon_threadsafe(schedule)

        return self._store.subscribe(on_state)

    # =========================================================================
    # AUDIT HELPERS
    # =========================================================================

    async def _on_response_discarded(self, key: str, sequence: int, latest: int) -> None:
        if self._audit_logger is not None:
            await self._audit_logger.log_response_discarded(key, sequence, latest)

    async def _log_validation_failed(self, result: ValidationResult) -> None:
        if self._audit_logger is not None:
            await self._audit_logger.log_validation_failed(
                result.form,
                [issue.model_dump() for issue in result.issues],
            )

    async def _log_flow_completed(self, flow: str, details: Optional[dict] = None) -> None:
        if self._audit_logger is not None:
            await self._audit_logger.log_flow_completed(flow, details=details)

    async def _log_flow_failed(self, flow: str, error: Exception) -> None:
        if self._audit_logger is not None:
            await self._audit_logger.log_flow_failed(flow, error)


def create_app_components(
    max_audit_events: int = 1000,
) -> tuple[FinanceOrchestrator, AuditLogger]:
    """
    Factory function to create all application components.

    The audit trail is kept in memory for the session.

    Returns:
        (orchestrator, audit_logger)
    """
    audit_logger = AuditLogger(InMemoryAuditStorage(max_events=max_audit_events))
    orchestrator = FinanceOrchestrator(audit_logger=audit_logger)
    return orchestrator, audit_logger
