from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ..patients.model import Patient
from ..patients.repository import LedgerSession


@dataclass(frozen=True)
class LedgerSummary:
    paid_total: Decimal
    consumed_total: Decimal
    effective_balance: Decimal
    cost_per_day: Decimal
    attendance_count: int


def read_ledger(session: LedgerSession, patient: Patient, cost_per_day: Decimal) -> LedgerSummary:
    """Derive the patient's balance from payment and attendance history.

    Must run on the same session as any write that depends on the result.
    Payments count all-time; consumption counts visits since the current plan's
    start_date at the current rate, so a mid-plan rate change reprices earlier
    visits of that plan.
    """

    paid_total = session.sum_payments(patient.patient_id)
    attendance_count = session.count_attendance_since(patient.patient_id, patient.start_date)
    consumed_total = cost_per_day * attendance_count
    return LedgerSummary(
        paid_total=paid_total,
        consumed_total=consumed_total,
        effective_balance=paid_total - consumed_total,
        cost_per_day=cost_per_day,
        attendance_count=attendance_count,
    )
