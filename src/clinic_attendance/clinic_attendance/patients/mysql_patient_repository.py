from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterator, Optional, Sequence

import mysql.connector

from ..common.money import to_money
from ..core.enums import PatientStatus, PaymentMode, TreatmentType
from ..core.exceptions import DuplicateAttendanceError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_transaction, fetchall, fetchone
from .model import Patient, Payment
from .repository import LedgerSession, PatientStore

MYSQL_DUPLICATE_KEY = 1062

_PATIENT_COLUMNS = """
    patient_id, branch_id, treatment_type, treatment_cost_per_day, package_cost,
    treatment_days, start_date, status, total_amount, advance_payment, due_amount
"""


def _to_patient(r: Dict[str, Any]) -> Patient:
    return Patient(
        patient_id=int(r["patient_id"]),
        branch_id=int(r.get("branch_id") or 0),
        treatment_type=TreatmentType.parse(r.get("treatment_type")),
        treatment_cost_per_day=to_money(r.get("treatment_cost_per_day")),
        package_cost=to_money(r.get("package_cost")),
        treatment_days=int(r.get("treatment_days") or 0),
        start_date=r.get("start_date"),
        status=PatientStatus(r["status"]),
        total_amount=to_money(r.get("total_amount")),
        advance_payment=to_money(r.get("advance_payment")),
        due_amount=to_money(r.get("due_amount")),
    )


def _to_payment(r: Dict[str, Any]) -> Payment:
    return Payment(
        payment_id=int(r["payment_id"]),
        patient_id=int(r["patient_id"]),
        payment_date=r["payment_date"],
        amount=to_money(r["amount"]),
        mode=PaymentMode.parse(r.get("mode")),
        remarks=r.get("remarks"),
        created_at=r["created_at"],
        processed_by_employee_id=int(r.get("processed_by_employee_id") or 0),
    )


class MySQLLedgerSession(LedgerSession):
    """LedgerSession over a single mysql-connector cursor inside an open transaction."""

    def __init__(self, cur):
        self._cur = cur

    def lock_patient(self, patient_id: int) -> Optional[Patient]:
        self._cur.execute(
            f"SELECT {_PATIENT_COLUMNS} FROM patients WHERE patient_id=%s FOR UPDATE",
            (int(patient_id),),
        )
        r = fetchone(self._cur)
        return _to_patient(r) if r else None

    def get_patient(self, patient_id: int) -> Optional[Patient]:
        self._cur.execute(
            f"SELECT {_PATIENT_COLUMNS} FROM patients WHERE patient_id=%s",
            (int(patient_id),),
        )
        r = fetchone(self._cur)
        return _to_patient(r) if r else None

    def has_attendance_on(self, patient_id: int, attendance_date: date) -> bool:
        self._cur.execute(
            "SELECT COUNT(*) AS cnt FROM attendance WHERE patient_id=%s AND attendance_date=%s",
            (int(patient_id), attendance_date),
        )
        r = fetchone(self._cur) or {}
        return int(r.get("cnt") or 0) > 0

    def count_attendance_since(self, patient_id: int, since: Optional[date]) -> int:
        if since is None:
            self._cur.execute(
                "SELECT COUNT(*) AS cnt FROM attendance WHERE patient_id=%s",
                (int(patient_id),),
            )
        else:
            self._cur.execute(
                "SELECT COUNT(*) AS cnt FROM attendance WHERE patient_id=%s AND attendance_date >= %s",
                (int(patient_id), since),
            )
        r = fetchone(self._cur) or {}
        return int(r.get("cnt") or 0)

    def sum_payments(self, patient_id: int, *, on: Optional[date] = None) -> Decimal:
        clauses = ["patient_id=%s"]
        params: list[object] = [int(patient_id)]
        if on is not None:
            clauses.append("payment_date=%s")
            params.append(on)

        self._cur.execute(
            f"SELECT COALESCE(SUM(amount), 0) AS total FROM payments WHERE {' AND '.join(clauses)}",
            tuple(params),
        )
        r = fetchone(self._cur) or {}
        return to_money(r.get("total"))

    def list_payments(self, patient_id: int) -> Sequence[Payment]:
        self._cur.execute(
            """
            SELECT payment_id, patient_id, payment_date, amount, mode, remarks, created_at, processed_by_employee_id
            FROM payments
            WHERE patient_id=%s
            ORDER BY payment_date DESC, created_at DESC
            """,
            (int(patient_id),),
        )
        return [_to_payment(r) for r in fetchall(self._cur)]

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
        self._cur.execute(
            """
            INSERT INTO payments(patient_id, payment_date, amount, mode, remarks, created_at, processed_by_employee_id)
            VALUES(%s,%s,%s,%s,%s,%s,%s)
            """,
            (int(patient_id), payment_date, amount, mode.value, remarks, created_at, int(employee_id)),
        )
        return int(self._cur.lastrowid)

    def insert_attendance(
        self,
        *,
        patient_id: int,
        attendance_date: date,
        remarks: Optional[str],
        payment_id: Optional[int],
        employee_id: int,
    ) -> int:
        try:
            self._cur.execute(
                """
                INSERT INTO attendance(patient_id, attendance_date, remarks, payment_id, marked_by_employee_id)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (int(patient_id), attendance_date, remarks, payment_id, int(employee_id)),
            )
        except mysql.connector.IntegrityError as exc:
            # uq_attendance_patient_day; unreachable while callers hold the patient lock
            if exc.errno == MYSQL_DUPLICATE_KEY:
                raise DuplicateAttendanceError(int(patient_id)) from exc
            raise
        return int(self._cur.lastrowid)

    def update_patient_summary(
        self,
        *,
        patient_id: int,
        advance_payment: Decimal,
        due_amount: Decimal,
        status: PatientStatus,
    ) -> None:
        self._cur.execute(
            "UPDATE patients SET advance_payment=%s, due_amount=%s, status=%s WHERE patient_id=%s",
            (advance_payment, due_amount, status.value, int(patient_id)),
        )


class MySQLPatientStore(PatientStore):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @contextmanager
    def transaction(self) -> Iterator[MySQLLedgerSession]:
        with db_transaction(self._conn_factory) as (_, cur):
            yield MySQLLedgerSession(cur)
