from __future__ import annotations

import math
from decimal import Decimal
from typing import Any

from ..core.enums import PaymentMode
from ..core.exceptions import ValidationError
from .money import to_money


def require_positive_id(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {field_name}")
    # int() truncates, so 1.9 would otherwise address patient 1
    if isinstance(value, float) and not (math.isfinite(value) and value.is_integer()):
        raise ValidationError(f"Invalid {field_name}")
    if isinstance(value, Decimal) and not (value.is_finite() and value == value.to_integral_value()):
        raise ValidationError(f"Invalid {field_name}")
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field_name}") from None
    if parsed <= 0:
        raise ValidationError(f"Invalid {field_name}")
    return parsed


def require_non_negative_amount(value: Any, field_name: str = "payment_amount") -> Decimal:
    amount = to_money(value)
    if amount < 0:
        raise ValidationError(f"{field_name} must not be negative")
    return amount


def require_payment_mode(value: Any) -> PaymentMode:
    if value is not None and not isinstance(value, str):
        raise ValidationError("Payment mode must be text.")
    mode = (value or "").strip().lower()
    if not mode:
        raise ValidationError("Payment mode is required.")
    try:
        return PaymentMode(mode)
    except ValueError:
        allowed = ", ".join(m.value for m in PaymentMode)
        raise ValidationError(f"Unsupported payment mode {value!r} (expected one of: {allowed})") from None


def optional_text(value: Any, field_name: str) -> str:
    """Strip free-text input; None means empty, anything but str is rejected."""

    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be text.")
    return value.strip()
