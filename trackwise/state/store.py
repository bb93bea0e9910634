"""
Finance State Store

Income and the expense list live in one place and change in one way:
a command is dispatched, a pure reducer builds the next snapshot, and the
store swaps it in. Views never mutate state; they read projections of a
snapshot.

Snapshots are immutable, so a view holding an old snapshot sees a
consistent (if stale) picture while a new one is being built.
"""

import threading
from typing import Callable, Optional, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field

from trackwise.models.expense import UNCATEGORIZED, Expense
from trackwise.models.flows import CategoryAmount, FlowExpense

logger = structlog.get_logger(__name__)


class StoreError(Exception):
    """Base exception for store operations."""
    pass


class ExpenseNotFoundError(StoreError):
    """No expense with the given ID exists."""

    def __init__(self, expense_id: str):
        self.expense_id = expense_id
        super().__init__(f"Expense not found: {expense_id}")


class DuplicateExpenseError(StoreError):
    """An expense with the given ID already exists."""

    def __init__(self, expense_id: str):
        self.expense_id = expense_id
        super().__init__(f"Expense already exists: {expense_id}")


# =============================================================================
# STATE
# =============================================================================

class FinanceState(BaseModel):
    """One immutable snapshot of the user's finances."""
    model_config = ConfigDict(frozen=True)

    income: Optional[float] = Field(
        default=None,
        gt=0,
        description="Monthly income, None until set"
    )
    expenses: tuple[Expense, ...] = Field(
        default=(),
        description="Expenses in the order they were added"
    )
    version: int = Field(
        default=0,
        ge=0,
        description="Bumped by every dispatched command"
    )

    def find(self, expense_id: str) -> Optional[Expense]:
        for expense in self.expenses:
            if expense.id == expense_id:
                return expense
        return None

    @property
    def expense_count(self) -> int:
        return len(self.expenses)


# =============================================================================
# COMMANDS
# =============================================================================

class SetIncome(BaseModel):
    model_config = ConfigDict(frozen=True)

    income: float = Field(gt=0)


class AddExpense(BaseModel):
    model_config = ConfigDict(frozen=True)

    expense: Expense


class UpdateExpense(BaseModel):
    """Replace the expense with the same ID."""
    model_config = ConfigDict(frozen=True)

    expense: Expense


class DeleteExpense(BaseModel):
    model_config = ConfigDict(frozen=True)

    expense_id: str


Command = Union[SetIncome, AddExpense, UpdateExpense, DeleteExpense]


def reduce(state: FinanceState, command: Command) -> FinanceState:
    """
    Build the snapshot that follows ``state`` once ``command`` is applied.

    Raises:
        ExpenseNotFoundError: Update or delete of an unknown ID
        DuplicateExpenseError: Add with an ID already in use
        StoreError: Unknown command type
    """
    if isinstance(command, SetIncome):
        return state.model_copy(update={
            "income": command.income,
            "version": state.version + 1,
        })

    if isinstance(command, AddExpense):
        if state.find(command.expense.id) is not None:
            raise DuplicateExpenseError(command.expense.id)
        return state.model_copy(update={
            "expenses": state.expenses + (command.expense,),
            "version": state.version + 1,
        })

    if isinstance(command, UpdateExpense):
        if state.find(command.expense.id) is None:
            raise ExpenseNotFoundError(command.expense.id)
        expenses = tuple(
            command.expense if e.id == command.expense.id else e
            for e in state.expenses
        )
        return state.model_copy(update={
            "expenses": expenses,
            "version": state.version + 1,
        })

    if isinstance(command, DeleteExpense):
        if state.find(command.expense_id) is None:
            raise ExpenseNotFoundError(command.expense_id)
        expenses = tuple(e for e in state.expenses if e.id != command.expense_id)
        return state.model_copy(update={
            "expenses": expenses,
            "version": state.version + 1,
        })

    raise StoreError(f"Unknown command: {type(command).__name__}")


class FinanceStore:
    """
    Holds the current FinanceState and is its only writer.

    Dispatch is serialized with a lock; Streamlit may serve one session
    from more than one script thread.
    """

    def __init__(self, initial: Optional[FinanceState] = None):
        self._state = initial or FinanceState()
        self._lock = threading.Lock()
        self._listeners: list[Callable[[FinanceState], None]] = []

    @property
    def state(self) -> FinanceState:
        return self._state

    def subscribe(self, listener: Callable[[FinanceState], None]) -> Callable[[], None]:
        """
        Call ``listener`` with every new snapshot.

        Returns a function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, command: Command) -> FinanceState:
        """Apply ``command`` and return the new snapshot."""
        with self._lock:
            self._state = reduce(self._state, command)
            state = self._state

        # A failing listener must not hide a change that already happened
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.error(
                    "store_listener_failed",
                    version=state.version,
                    error=str(e),
                    exc_info=True,
                )
        return state


# =============================================================================
# PROJECTIONS (read-only views of a snapshot)
# =============================================================================

def total_spent(state: FinanceState) -> float:
    return sum(e.amount for e in state.expenses)


def remaining_budget(state: FinanceState) -> Optional[float]:
    """Income minus spending, or None when no income is set."""
    if state.income is None:
        return None
    return state.income - total_spent(state)


def category_totals(state: FinanceState) -> dict[str, float]:
    """
    Spending per category, largest first.

    Expenses still waiting for a category are counted as Uncategorized.
    """
    totals: dict[str, float] = {}
    for expense in state.expenses:
        key = expense.category or UNCATEGORIZED
        totals[key] = totals.get(key, 0.0) + expense.amount
    return dict(sorted(totals.items(), key=lambda kv: kv[1], reverse=True))


def category_amounts(state: FinanceState) -> list[CategoryAmount]:
    return [
        CategoryAmount(category=category, amount=round(amount, 2))
        for category, amount in category_totals(state).items()
    ]


def budget_goals(state: FinanceState, ratio: float = 0.8) -> list[CategoryAmount]:
    """A goal per category at ``ratio`` of what was spent in it."""
    return [
        CategoryAmount(category=category, amount=round(amount * ratio, 2))
        for category, amount in category_totals(state).items()
    ]


def serialized_expenses(state: FinanceState) -> list[FlowExpense]:
    """Expenses with ISO-string dates, ready for a flow input."""
    return [FlowExpense.from_expense(e) for e in state.expenses]
