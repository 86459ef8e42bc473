from __future__ import annotations

from dataclasses import dataclass

from .attendance.service import AttendanceReconciler
from .billing.factory import CostStrategyFactory
from .billing.service import BillingService
from .database.connection import DBConfig, DatabaseConnection
from .patients.mysql_patient_repository import MySQLPatientStore
from .patients.repository import PatientStore


@dataclass(frozen=True)
class Container:
    patient_store: PatientStore

    attendance_reconciler: AttendanceReconciler
    billing_service: BillingService


def build_services(patient_store: PatientStore) -> Container:
    cost_factory = CostStrategyFactory()
    return Container(
        patient_store=patient_store,
        attendance_reconciler=AttendanceReconciler(patient_store, cost_factory=cost_factory),
        billing_service=BillingService(patient_store, cost_factory=cost_factory),
    )


def build_container(*, db_config: dict, lock_wait_timeout: int = 10) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
        lock_wait_timeout=int(lock_wait_timeout),
    )
    conn = DatabaseConnection.get_instance(config)
    return build_services(MySQLPatientStore(conn))
