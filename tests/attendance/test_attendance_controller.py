from __future__ import annotations

from datetime import date

import pytest

from src.clinic_attendance.clinic_attendance.attendance.service import AttendanceReconciler
from src.clinic_attendance.clinic_attendance.billing.service import BillingService
from src.clinic_attendance.clinic_attendance.container import Container
from src.clinic_attendance.clinic_attendance.main import create_app


@pytest.fixture
def client(monkeypatch, store, fixed_now):
    monkeypatch.setenv("APP_ENV", "testing")
    container = Container(
        patient_store=store,
        attendance_reconciler=AttendanceReconciler(store, clock=lambda: fixed_now),
        billing_service=BillingService(store, clock=lambda: fixed_now),
    )
    app = create_app(container=container)
    return app.test_client()


def test_mark_attendance_success(client, store):
    store.add_patient(1)
    store.add_payment(1, "600.00", on=date(2026, 3, 1))

    resp = client.post("/api/attendance/mark", json={"patient_id": 1, "employee_id": 7})

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "success"
    assert body["attendance_id"] == store.attendance_for(1)[0].attendance_id
    assert body["new_balance"] == "300.00"
    assert body["payment_id"] is None


def test_insufficient_balance_returns_shortfall(client, store):
    store.add_patient(1)
    store.add_payment(1, "120.00", on=date(2026, 3, 1))

    resp = client.post("/api/attendance/mark", json={"patient_id": 1, "employee_id": 7, "payment_amount": 0})

    assert resp.status_code == 400
    body = resp.get_json()
    assert body["status"] == "error"
    assert body["code"] == "insufficient_balance"
    assert body["shortfall"] == "180.00"


def test_payment_with_session_identity(client, store):
    store.add_patient(1)
    with client.session_transaction() as sess:
        sess["employee_id"] = 42

    resp = client.post(
        "/api/attendance/mark",
        json={"patient_id": 1, "payment_amount": "300", "mode": "upi", "employee_id": 7},
    )

    assert resp.status_code == 200
    assert store.payments_for(1)[0].processed_by_employee_id == 42
    assert resp.get_json()["new_balance"] == "0.00"


def test_user_id_is_accepted_as_caller_identity(client, store):
    store.add_patient(1)

    resp = client.post("/api/attendance/mark", json={"patient_id": 1, "user_id": 5, "defer_payment": "true"})

    assert resp.status_code == 200
    assert store.attendance_for(1)[0].marked_by_employee_id == 5


@pytest.mark.parametrize(
    "payload,message",
    [
        ({"patient_id": 1}, "Unauthorized: caller identification missing."),
        ({"patient_id": 0, "employee_id": 7}, "Invalid patient ID"),
        ({"patient_id": 1, "employee_id": 7, "payment_amount": 50}, "Payment mode is required."),
        ({"patient_id": 1, "employee_id": 7, "payment_amount": "50", "mode": 5}, "Payment mode must be text."),
        ({"patient_id": 1, "employee_id": 7, "remarks": 123}, "remarks must be text."),
        ({"patient_id": 1, "employee_id": 7, "remarks": ["pay later"]}, "remarks must be text."),
        ({"patient_id": 1.9, "employee_id": 7}, "Invalid patient ID"),
        ({"patient_id": 1, "employee_id": 7.5}, "Invalid employee ID"),
    ],
)
def test_validation_errors(client, store, payload, message):
    store.add_patient(1)

    resp = client.post("/api/attendance/mark", json=payload)

    assert resp.status_code == 400
    assert resp.get_json() == {"status": "error", "message": message}
    assert store.attendance_for(1) == []
    assert store.payments_for(1) == []


def test_invalid_json(client):
    resp = client.post("/api/attendance/mark", data="not json", content_type="application/json")

    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Invalid JSON data received."


def test_duplicate_and_not_found(client, store):
    store.add_patient(1)
    store.add_payment(1, "3000.00", on=date(2026, 3, 1))

    assert client.post("/api/attendance/mark", json={"patient_id": 1, "employee_id": 7}).status_code == 200
    dup = client.post("/api/attendance/mark", json={"patient_id": 1, "employee_id": 7})
    assert dup.status_code == 400
    assert dup.get_json()["message"] == "Attendance already marked for today"

    missing = client.post("/api/attendance/mark", json={"patient_id": 404, "employee_id": 7})
    assert missing.status_code == 400
    assert missing.get_json()["code"] == "patient_not_found"


def test_storage_failure_is_a_500(client, store):
    store.add_patient(1)
    store.fail_on.add("insert_attendance")

    resp = client.post("/api/attendance/mark", json={"patient_id": 1, "employee_id": 7, "payment_amount": 300, "mode": "cash"})

    assert resp.status_code == 500
    assert resp.get_json()["status"] == "error"
    assert store.payments_for(1) == []


def test_lock_timeout_is_retryable(client, store):
    store.add_patient(1)
    store.lock_wait_timeout = 0.05

    with store.transaction() as other:
        other.lock_patient(1)
        resp = client.post("/api/attendance/mark", json={"patient_id": 1, "employee_id": 7, "defer_payment": True})

    assert resp.status_code == 503
    assert resp.get_json()["retryable"] is True


def test_billing_details(client, store, fixed_now):
    store.add_patient(1)
    store.add_payment(1, "500.00", on=date(2026, 3, 1))
    store.add_payment(1, "250.00", on=fixed_now.date())
    store.add_attendance(1, on=date(2026, 3, 2))

    resp = client.get("/api/patients/1/billing")

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["total_paid"] == "750.00"
    assert data["today_paid"] == "250.00"
    assert data["due_amount"] == "2250.00"
    assert data["ledger"]["effective_balance"] == "450.00"
    assert [p["amount"] for p in data["payments"]] == ["250.00", "500.00"]


def test_billing_details_errors(client):
    assert client.get("/api/patients/abc/billing").status_code == 400
    assert client.get("/api/patients/9/billing").status_code == 404
