from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import require_positive_id
from ..core.enums import PatientStatus, TreatmentType
from ..core.exceptions import PatientNotFoundError
from ..patients.model import Payment
from ..patients.repository import PatientStore
from .factory import CostStrategyFactory, cost_per_day
from .ledger import LedgerSummary, read_ledger


@dataclass(frozen=True)
class BillingDetails:
    """Read-model for the billing screen."""

    patient_id: int
    status: PatientStatus
    treatment_type: TreatmentType
    total_amount: Decimal
    total_paid: Decimal
    today_paid: Decimal
    due_amount: Decimal
    ledger: LedgerSummary
    payments: Sequence[Payment]


class BillingService:
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

    def get_billing_details(self, patient_id: int, *, today: date | None = None) -> BillingDetails:
        patient_id = require_positive_id(patient_id, "patient ID")
        today = today or self._clock().date()

        with self._store.transaction() as session:
            patient = session.get_patient(patient_id)
            if patient is None:
                raise PatientNotFoundError(patient_id)

            ledger = read_ledger(session, patient, cost_per_day(patient, factory=self._cost_factory))
            today_paid = session.sum_payments(patient_id, on=today)
            payments = list(session.list_payments(patient_id))

        # due is recomputed from the ledger rather than trusting the cached column
        return BillingDetails(
            patient_id=patient.patient_id,
            status=patient.status,
            treatment_type=patient.treatment_type,
            total_amount=patient.total_amount,
            total_paid=ledger.paid_total,
            today_paid=today_paid,
            due_amount=patient.total_amount - ledger.paid_total,
            ledger=ledger,
            payments=payments,
        )
