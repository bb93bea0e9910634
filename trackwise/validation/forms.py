"""
Form Validation

Income and expense forms are checked before anything reaches the store.

Two kinds of findings are reported:

ERRORS block the submission:
- Missing or unparseable amount
- Zero or negative amount
- Empty description

WARNINGS let the submission through but are shown to the user:
- An expense larger than the whole monthly income

IMPORTANT: Validation never silently fixes a value.
It reports what is wrong and the form keeps the user's input.
"""

import math
from typing import Optional, Union

from trackwise.models.expense import ValidationIssue, ValidationResult

DESCRIPTION_MAX_LENGTH = 200


def parse_amount(value: Union[int, float, str, None]) -> Optional[float]:
    """
    Read a form amount as a float.

    Accepts numbers and numeric strings (thousands separators allowed).
    Returns None for anything that is not a finite number.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    elif isinstance(value, (int, float)):
        number = float(value)
    else:
        return None

    if math.isnan(number) or math.isinf(number):
        return None
    return number


class FormValidator:
    """Validates the income and add-expense forms."""

    def validate_income(
        self,
        value: Union[int, float, str, None],
    ) -> ValidationResult:
        issues = []
        income = parse_amount(value)

        if income is None:
            issues.append(ValidationIssue(
                field="income",
                issue_type="missing" if value in (None, "") else "invalid_value",
                message="Please enter a valid income amount",
                severity="error",
            ))
        elif income <= 0:
            issues.append(ValidationIssue(
                field="income",
                issue_type="invalid_value",
                message="Income must be greater than zero",
                severity="error",
            ))

        return ValidationResult(form="income", issues=issues)

    def validate_expense(
        self,
        description: Optional[str],
        amount: Union[int, float, str, None],
        income: Optional[float] = None,
    ) -> ValidationResult:
        """
        Check an expense before it is added.

        Args:
            description: What the money was spent on
            amount: Raw amount from the form
            income: Current monthly income, used only for the size warning
        """
        issues = []
        text = (description or "").strip()

        if not text:
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Please enter a description",
                severity="error",
            ))
        elif len(text) > DESCRIPTION_MAX_LENGTH:
            issues.append(ValidationIssue(
                field="description",
                issue_type="too_long",
                message=f"Description must be at most {DESCRIPTION_MAX_LENGTH} characters",
                severity="error",
            ))

        value = parse_amount(amount)
        if value is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing" if amount in (None, "") else "invalid_value",
                message="Please enter a valid amount",
                severity="error",
            ))
        elif value <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
            ))
        elif income is not None and value > income:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message="This expense is larger than your monthly income",
                severity="warning",
            ))

        return ValidationResult(form="expense", issues=issues)

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a user-friendly summary of validation results.

        This is what the forms show under the submit button.
        """
        if not result.issues:
            return "✅ Looks good!"

        lines = []
        errors = [i for i in result.issues if i.severity == "error"]
        warnings = [i for i in result.issues if i.severity == "warning"]

        if errors:
            lines.append("❌ Please fix the following:")
            for issue in errors:
                lines.append(f"   • {issue.message}")

        if warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please double-check:")
            for issue in warnings:
                lines.append(f"   • {issue.message}")

        return "\n".join(lines)
