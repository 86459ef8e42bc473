from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from ..billing.factory import CostStrategyFactory, cost_per_day
from ..billing.ledger import read_ledger
from ..common.datetime_utils import now_local
from ..common.validators import (
    optional_text,
    require_non_negative_amount,
    require_payment_mode,
    require_positive_id,
)
from ..core.constants import DEFAULT_ATTENDANCE_REMARKS, DEFERRAL_MARKERS, DEFERRED_REMARKS, ZERO
from ..core.enums import PatientStatus, PaymentMode
from ..core.exceptions import (
    DomainError,
    DuplicateAttendanceError,
    InsufficientBalanceError,
    LockTimeoutError,
    PatientNotFoundError,
    PersistenceError,
)
from ..patients.model import Patient
from ..patients.repository import PatientStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MarkAttendanceResult:
    attendance_id: int
    new_balance: Decimal
    payment_id: Optional[int]
    cost_per_day: Decimal
    patient_status: PatientStatus


def is_deferral_remark(remarks: Optional[str]) -> bool:
    text = (remarks or "").lower()
    return any(marker in text for marker in DEFERRAL_MARKERS)


def default_remarks(patient: Patient) -> str:
    return DEFAULT_ATTENDANCE_REMARKS.format(treatment=patient.treatment_type.value.capitalize())


class AttendanceReconciler:
    """Marks a patient's daily visit and settles it against their ledger.

    One call is one transaction with the patient row locked for its whole
    duration: the duplicate check, the balance check, the optional payment, the
    attendance row and the cached summary fields either all land or none do.
    Concurrent calls for the same patient queue on the row lock; calls for other
    patients are unaffected.
    """

    def __init__(
        self,
        store: PatientStore,
        *,
        cost_factory: CostStrategyFactory | None = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._store = store
        self._cost_factory = cost_factory or CostStrategyFactory()
        self._clock = clock

    def mark_attendance(
        self,
        patient_id: int,
        employee_id: int,
        payment_amount: Decimal | int | str | None = ZERO,
        mode: Optional[str] = None,
        remarks: Optional[str] = None,
        *,
        defer_payment: bool = False,
        now: datetime | None = None,
    ) -> MarkAttendanceResult:
        # Input problems are rejected before a transaction is opened.
        patient_id = require_positive_id(patient_id, "patient ID")
        employee_id = require_positive_id(employee_id, "employee ID")
        amount = require_non_negative_amount(payment_amount)
        payment_mode: Optional[PaymentMode] = require_payment_mode(mode) if amount > 0 else None
        remarks = optional_text(remarks, "remarks")

        now = now or self._clock()
        today = now.date()

        try:
            with self._store.transaction() as session:
                patient = session.lock_patient(patient_id)
                if patient is None:
                    raise PatientNotFoundError(patient_id)

                if session.has_attendance_on(patient_id, today):
                    raise DuplicateAttendanceError(patient_id)

                daily_cost = cost_per_day(patient, factory=self._cost_factory)
                before = read_ledger(session, patient, daily_cost)

                payment_id: Optional[int] = None
                if amount > 0:
                    payment_id = session.insert_payment(
                        patient_id=patient_id,
                        payment_date=today,
                        amount=amount,
                        mode=payment_mode,
                        remarks=remarks or None,
                        created_at=now,
                        employee_id=employee_id,
                    )
                elif not (defer_payment or is_deferral_remark(remarks)) and before.effective_balance < daily_cost:
                    raise InsufficientBalanceError(
                        shortfall=max(ZERO, daily_cost - before.effective_balance),
                        cost_per_day=daily_cost,
                        effective_balance=before.effective_balance,
                    )

                if not remarks:
                    remarks = DEFERRED_REMARKS if defer_payment and amount == 0 else default_remarks(patient)

                attendance_id = session.insert_attendance(
                    patient_id=patient_id,
                    attendance_date=today,
                    remarks=remarks,
                    payment_id=payment_id,
                    employee_id=employee_id,
                )

                paid_total = session.sum_payments(patient_id)
                # A visit reactivates a paused plan.
                status = PatientStatus.ACTIVE if patient.status == PatientStatus.INACTIVE else patient.status
                session.update_patient_summary(
                    patient_id=patient_id,
                    advance_payment=paid_total,
                    due_amount=patient.total_amount - paid_total,
                    status=status,
                )

                after = read_ledger(session, patient, daily_cost)
        except InsufficientBalanceError as exc:
            logger.warning(
                "attendance refused for patient %s: balance %s below cost %s (shortfall %s)",
                patient_id, exc.effective_balance, exc.cost_per_day, exc.shortfall,
            )
            raise
        except DomainError as exc:
            logger.warning("attendance refused for patient %s: %s", patient_id, exc)
            raise
        except LockTimeoutError:
            logger.warning("patient %s is locked by another request; caller should retry", patient_id)
            raise
        except PersistenceError:
            logger.exception("attendance for patient %s rolled back after a storage failure", patient_id)
            raise

        logger.info(
            "attendance %s marked for patient %s by employee %s (payment=%s, balance=%s)",
            attendance_id, patient_id, employee_id, payment_id, after.effective_balance,
        )
        return MarkAttendanceResult(
            attendance_id=attendance_id,
            new_balance=after.effective_balance,
            payment_id=payment_id,
            cost_per_day=daily_cost,
            patient_status=status,
        )
