"""
Core Data Models for TrackWise

These models define the schemas for the data the user enters and the
records derived from it. They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Serialize cleanly into language-model prompts

Records are frozen. An edit produces a new record, never a mutation,
so snapshots handed to a view cannot change underneath it.
"""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Category assigned when the model answers with an empty category
FALLBACK_CATEGORY = "Other"

# Category assigned when the categorization call itself fails
UNCATEGORIZED = "Uncategorized"


def new_expense_id() -> str:
    """Generate an expense identifier."""
    return uuid4().hex


# =============================================================================
# EXPENSES
# =============================================================================

class Expense(BaseModel):
    """
    A single recorded expense.

    The category starts as None and is filled in by the
    categorization flow once the model has answered.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(
        default_factory=new_expense_id,
        min_length=1,
        description="Unique expense ID"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="What the money was spent on"
    )
    amount: float = Field(
        ...,
        gt=0,
        description="Amount spent"
    )
    category: Optional[str] = Field(
        default=None,
        max_length=50,
        description="Spending category, None until categorized"
    )
    date: datetime = Field(
        default_factory=datetime.now,
        description="When the expense was recorded"
    )

    @field_validator('category')
    @classmethod
    def blank_category_is_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat an empty category as not yet assigned."""
        if v is not None and not v.strip():
            return None
        return v

    @property
    def is_categorized(self) -> bool:
        return self.category is not None

    def with_category(self, category: Optional[str]) -> "Expense":
        """Return a copy of this expense with a new category."""
        return self.model_copy(update={"category": category})


# =============================================================================
# ACTION PATHS
# =============================================================================

class FinancialAction(BaseModel):
    """
    A candidate financial decision, e.g. "Pay off card" or "Open ISA".

    Actions have no identity beyond their content: two actions with the
    same name and description are the same action.
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(
        ...,
        description="The name of the financial action"
    )
    description: str = Field(
        ...,
        description="A description of the action"
    )


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """Result of validating one submitted form."""

    form: str = Field(
        ...,
        description="Which form was validated (income, expense)"
    )
    validated_at: datetime = Field(
        default_factory=datetime.now
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def is_valid(self) -> bool:
        """A form is valid when it has no error-level issues."""
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    def messages_for(self, field: str) -> list[str]:
        """Messages attached to one form field."""
        return [issue.message for issue in self.issues if issue.field == field]
