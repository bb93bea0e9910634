"""
Data Models Package

This package contains all Pydantic models used in TrackWise.
All data flowing through the system must conform to these schemas.
"""

from trackwise.models.expense import (
    FALLBACK_CATEGORY,
    UNCATEGORIZED,
    Expense,
    FinancialAction,
    ValidationIssue,
    ValidationResult,
    new_expense_id,
)
from trackwise.models.flows import (
    AnalyzeSpendingPatternsInput,
    AnalyzeSpendingPatternsOutput,
    CategorizeExpenseInput,
    CategorizeExpenseOutput,
    CategoryAmount,
    CategoryPrediction,
    ExploreActionPathsInput,
    ExploreActionPathsOutput,
    FinanceChatbotInput,
    FinanceChatbotOutput,
    FlowExpense,
    PredictBudgetInput,
    PredictBudgetOutput,
    SpendingInsightsInput,
    SpendingInsightsOutput,
)
from trackwise.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Expense models
    "FALLBACK_CATEGORY",
    "UNCATEGORIZED",
    "Expense",
    "FinancialAction",
    "ValidationIssue",
    "ValidationResult",
    "new_expense_id",
    # Flow models
    "AnalyzeSpendingPatternsInput",
    "AnalyzeSpendingPatternsOutput",
    "CategorizeExpenseInput",
    "CategorizeExpenseOutput",
    "CategoryAmount",
    "CategoryPrediction",
    "ExploreActionPathsInput",
    "ExploreActionPathsOutput",
    "FinanceChatbotInput",
    "FinanceChatbotOutput",
    "FlowExpense",
    "PredictBudgetInput",
    "PredictBudgetOutput",
    "SpendingInsightsInput",
    "SpendingInsightsOutput",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
