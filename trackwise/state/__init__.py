"""Finance state package."""

from trackwise.state.store import (
    AddExpense,
    Command,
    DeleteExpense,
    DuplicateExpenseError,
    ExpenseNotFoundError,
    FinanceState,
    FinanceStore,
    SetIncome,
    StoreError,
    UpdateExpense,
    budget_goals,
    category_amounts,
    category_totals,
    reduce,
    remaining_budget,
    serialized_expenses,
    total_spent,
)

__all__ = [
    "AddExpense",
    "Command",
    "DeleteExpense",
    "DuplicateExpenseError",
    "ExpenseNotFoundError",
    "FinanceState",
    "FinanceStore",
    "SetIncome",
    "StoreError",
    "UpdateExpense",
    "budget_goals",
    "category_amounts",
    "category_totals",
    "reduce",
    "remaining_budget",
    "serialized_expenses",
    "total_spent",
]
