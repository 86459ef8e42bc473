from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from ..core.constants import CENT, ZERO
from ..core.exceptions import ValidationError


def to_money(value: Any) -> Decimal:
    """Coerce a DB/JSON value into a cent-quantized Decimal.

    mysql-connector returns DECIMAL columns as Decimal, SUM() over an empty set
    as None, and JSON payloads may carry ints, floats or strings. Floats go
    through str() so 0.1 stays 0.10 instead of its binary expansion.
    """

    if value is None or value == "":
        return ZERO
    if isinstance(value, bool):
        raise ValidationError(f"Invalid amount: {value!r}")
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Invalid amount: {value!r}") from None
    if not amount.is_finite():
        raise ValidationError(f"Invalid amount: {value!r}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(value: Decimal) -> str:
    return f"{value.quantize(CENT, rounding=ROUND_HALF_UP):.2f}"
