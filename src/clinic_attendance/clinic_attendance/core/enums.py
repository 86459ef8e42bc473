from __future__ import annotations

from enum import Enum


class TreatmentType(str, Enum):
    """Treatment plan type; decides how a visit is priced."""

    PACKAGE = "package"
    DAILY = "daily"
    ADVANCE = "advance"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str | None) -> "TreatmentType":
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.OTHER


class PatientStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    COMPLETED = "completed"


class PaymentMode(str, Enum):
    """Accepted payment channels at the front desk."""

    CASH = "cash"
    UPI = "upi"
    CARD = "card"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str | None) -> "PaymentMode":
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.OTHER
