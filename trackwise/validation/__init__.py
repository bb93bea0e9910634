"""Form validation for user-entered income and expenses."""

from trackwise.validation.forms import FormValidator, parse_amount

__all__ = ["FormValidator", "parse_amount"]
