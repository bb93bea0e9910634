"""
Display formatting helpers.
"""

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Union

PLACEHOLDER = "$--.--"

Amount = Union[int, float, Decimal, str, None]


def _to_decimal(amount: Amount) -> Optional[Decimal]:
    if amount is None or isinstance(amount, bool):
        return None
    if isinstance(amount, float):
        if math.isnan(amount) or math.isinf(amount):
            return None
        # str() keeps 2.675 as 2.675 instead of its binary expansion
        return Decimal(str(amount))
    if isinstance(amount, str):
        text = amount.strip().replace(",", "")
        if not text:
            return None
        try:
            value = Decimal(text)
        except InvalidOperation:
            return None
        return value if value.is_finite() else None
    if isinstance(amount, Decimal):
        return amount if amount.is_finite() else None
    if isinstance(amount, int):
        return Decimal(amount)
    return None


def format_currency(amount: Amount, symbol: str = "$") -> str:
    """
    Format an amount as US-style currency, e.g. ``$1,234.56``.

    Numeric strings are parsed. None, NaN and anything unparseable
    render as ``$--.--``. Rounding is half-up to cents and negative
    amounts keep the sign in front of the symbol (``-$5.00``).
    """
    value = _to_decimal(amount)
    if value is None:
        return PLACEHOLDER if symbol == "$" else f"{symbol}--.--"

    cents = value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if cents < 0 else ""
    return f"{sign}{symbol}{abs(cents):,.2f}"
