from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import PatientStatus, PaymentMode, TreatmentType


@dataclass(frozen=True)
class Patient:
    """Patient snapshot as read (and locked) inside a ledger transaction.

    `advance_payment` and `due_amount` are a cached projection of the payment
    ledger; they are rewritten after every attendance marking.
    """

    patient_id: int
    branch_id: int
    treatment_type: TreatmentType
    treatment_cost_per_day: Decimal
    package_cost: Decimal
    treatment_days: int
    start_date: Optional[date]
    status: PatientStatus
    total_amount: Decimal
    advance_payment: Decimal
    due_amount: Decimal


@dataclass(frozen=True)
class Payment:
    payment_id: int
    patient_id: int
    payment_date: date
    amount: Decimal
    mode: PaymentMode
    remarks: Optional[str]
    created_at: datetime
    processed_by_employee_id: int


@dataclass(frozen=True)
class AttendanceEntry:
    attendance_id: int
    patient_id: int
    attendance_date: date
    remarks: Optional[str]
    payment_id: Optional[int]
    marked_by_employee_id: int
