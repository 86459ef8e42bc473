from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import pytest

from src.clinic_attendance.clinic_attendance.core.enums import PatientStatus, PaymentMode, TreatmentType
from src.clinic_attendance.clinic_attendance.core.exceptions import LockTimeoutError, PersistenceError
from src.clinic_attendance.clinic_attendance.patients.model import AttendanceEntry, Patient, Payment


class InMemoryLedgerSession:
    """Transaction over InMemoryPatientStore.

    Writes are buffered and only published on commit; reads see committed
    state plus this session's own writes.
    """

    def __init__(self, store: "InMemoryPatientStore"):
        self._store = store
        self._held: list[int] = []
        self.payments: list[Payment] = []
        self.attendance: list[AttendanceEntry] = []
        self.patients: dict[int, Patient] = {}

    def _maybe_fail(self, op: str) -> None:
        if op in self._store.fail_on:
            raise PersistenceError(f"injected failure in {op}")

    def lock_patient(self, patient_id: int) -> Optional[Patient]:
        self._maybe_fail("lock_patient")
        if patient_id not in self._held:
            lock = self._store.row_lock(patient_id)
            if not lock.acquire(timeout=self._store.lock_wait_timeout):
                raise LockTimeoutError(f"lock wait timeout on patient {patient_id}")
            self._held.append(patient_id)
        return self.get_patient(patient_id)

    def release(self) -> None:
        for patient_id in self._held:
            self._store.row_lock(patient_id).release()
        self._held.clear()

    def get_patient(self, patient_id: int) -> Optional[Patient]:
        if patient_id in self.patients:
            return self.patients[patient_id]
        return self._store.patients.get(patient_id)

    def _all_attendance(self, patient_id: int):
        return [a for a in self._store.attendance + self.attendance if a.patient_id == patient_id]

    def _all_payments(self, patient_id: int):
        return [p for p in self._store.payments + self.payments if p.patient_id == patient_id]

    def has_attendance_on(self, patient_id: int, attendance_date: date) -> bool:
        return any(a.attendance_date == attendance_date for a in self._all_attendance(patient_id))

    def count_attendance_since(self, patient_id: int, since: Optional[date]) -> int:
        return sum(1 for a in self._all_attendance(patient_id) if since is None or a.attendance_date >= since)

    def sum_payments(self, patient_id: int, *, on: Optional[date] = None) -> Decimal:
        return sum(
            (p.amount for p in self._all_payments(patient_id) if on is None or p.payment_date == on),
            Decimal("0.00"),
        )

    def list_payments(self, patient_id: int):
        return sorted(self._all_payments(patient_id), key=lambda p: (p.payment_date, p.created_at), reverse=True)

    def insert_payment(self, *, patient_id, payment_date, amount, mode, remarks, created_at, employee_id) -> int:
        self._maybe_fail("insert_payment")
        payment_id = self._store.next_id()
        self.payments.append(
            Payment(
                payment_id=payment_id,
                patient_id=patient_id,
                payment_date=payment_date,
                amount=amount,
                mode=mode,
                remarks=remarks,
                created_at=created_at,
                processed_by_employee_id=employee_id,
            )
        )
        return payment_id

    def insert_attendance(self, *, patient_id, attendance_date, remarks, payment_id, employee_id) -> int:
        self._maybe_fail("insert_attendance")
        attendance_id = self._store.next_id()
        self.attendance.append(
            AttendanceEntry(
                attendance_id=attendance_id,
                patient_id=patient_id,
                attendance_date=attendance_date,
                remarks=remarks,
                payment_id=payment_id,
                marked_by_employee_id=employee_id,
            )
        )
        return attendance_id

    def update_patient_summary(self, *, patient_id, advance_payment, due_amount, status) -> None:
        self._maybe_fail("update_patient_summary")
        current = self.get_patient(patient_id)
        self.patients[patient_id] = replace(current, advance_payment=advance_payment, due_amount=due_amount, status=status)


class InMemoryPatientStore:
    def __init__(self, *, lock_wait_timeout: float = 2.0):
        self.patients: dict[int, Patient] = {}
        self.payments: list[Payment] = []
        self.attendance: list[AttendanceEntry] = []
        self.fail_on: set[str] = set()
        self.lock_wait_timeout = lock_wait_timeout
        self.commits = 0
        self._guard = threading.Lock()
        self._row_locks: dict[int, threading.Lock] = {}
        self._id = 0

    def next_id(self) -> int:
        with self._guard:
            self._id += 1
            return self._id

    def row_lock(self, patient_id: int) -> threading.Lock:
        with self._guard:
            return self._row_locks.setdefault(patient_id, threading.Lock())

    @contextmanager
    def transaction(self):
        session = InMemoryLedgerSession(self)
        try:
            yield session
            with self._guard:
                self.payments.extend(session.payments)
                self.attendance.extend(session.attendance)
                self.patients.update(session.patients)
                self.commits += 1
        finally:
            session.release()

    def add_patient(self, patient_id: int = 1, **overrides) -> Patient:
        values = dict(
            patient_id=patient_id,
            branch_id=1,
            treatment_type=TreatmentType.DAILY,
            treatment_cost_per_day=Decimal("300.00"),
            package_cost=Decimal("0.00"),
            treatment_days=0,
            start_date=date(2026, 3, 1),
            status=PatientStatus.ACTIVE,
            total_amount=Decimal("3000.00"),
            advance_payment=Decimal("0.00"),
            due_amount=Decimal("3000.00"),
        )
        values.update(overrides)
        patient = Patient(**values)
        self.patients[patient_id] = patient
        return patient

    def add_payment(self, patient_id: int, amount: str, *, on: date, mode: PaymentMode = PaymentMode.CASH) -> Payment:
        payment = Payment(
            payment_id=self.next_id(),
            patient_id=patient_id,
            payment_date=on,
            amount=Decimal(amount),
            mode=mode,
            remarks=None,
            created_at=datetime.combine(on, datetime.min.time()),
            processed_by_employee_id=1,
        )
        self.payments.append(payment)
        return payment

    def add_attendance(self, patient_id: int, *, on: date) -> AttendanceEntry:
        entry = AttendanceEntry(
            attendance_id=self.next_id(),
            patient_id=patient_id,
            attendance_date=on,
            remarks=None,
            payment_id=None,
            marked_by_employee_id=1,
        )
        self.attendance.append(entry)
        return entry

    def attendance_for(self, patient_id: int) -> list[AttendanceEntry]:
        return [a for a in self.attendance if a.patient_id == patient_id]

    def payments_for(self, patient_id: int) -> list[Payment]:
        return [p for p in self.payments if p.patient_id == patient_id]


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 5, 10, 30, 0)


@pytest.fixture
def store() -> InMemoryPatientStore:
    return InMemoryPatientStore()
