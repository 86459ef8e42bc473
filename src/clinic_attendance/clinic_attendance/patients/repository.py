from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import ContextManager, Optional, Protocol, Sequence

from ..core.enums import PatientStatus, PaymentMode
from .model import Patient, Payment


class LedgerSession(Protocol):
    """Store operations bound to one open transaction.

    Every read observes writes made earlier in the same session.
    """

    def lock_patient(self, patient_id: int) -> Optional[Patient]:
        """Read the patient row with an exclusive lock held until commit/rollback."""

        raise NotImplementedError

    def get_patient(self, patient_id: int) -> Optional[Patient]:
        raise NotImplementedError

    def has_attendance_on(self, patient_id: int, attendance_date: date) -> bool:
        raise NotImplementedError

    def count_attendance_since(self, patient_id: int, since: Optional[date]) -> int:
        """Count attendance rows with attendance_date >= since (all rows when since is None)."""

        raise NotImplementedError

    def sum_payments(self, patient_id: int, *, on: Optional[date] = None) -> Decimal:
        raise NotImplementedError

    def list_payments(self, patient_id: int) -> Sequence[Payment]:
        raise NotImplementedError

    def insert_payment(
        self,
        *,
        patient_id: int,
        payment_date: date,
        amount: Decimal,
        mode: PaymentMode,
        remarks: Optional[str],
        created_at: datetime,
        employee_id: int,
    ) -> int:
        raise NotImplementedError

    def insert_attendance(
        self,
        *,
        patient_id: int,
        attendance_date: date,
        remarks: Optional[str],
        payment_id: Optional[int],
        employee_id: int,
    ) -> int:
        raise NotImplementedError

    def update_patient_summary(
        self,
        *,
        patient_id: int,
        advance_payment: Decimal,
        due_amount: Decimal,
        status: PatientStatus,
    ) -> None:
        raise NotImplementedError


class PatientStore(Protocol):
    def transaction(self) -> ContextManager[LedgerSession]:
        """Open a transaction; commit on normal exit, roll back on any exception."""

        raise NotImplementedError
