from __future__ import annotations

import logging

from flask import Flask, jsonify, request, session

from ..common.money import format_money
from ..container import Container
from ..core.exceptions import (
    DomainError,
    InsufficientBalanceError,
    LockTimeoutError,
    PatientNotFoundError,
    PersistenceError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def _error(message: str, status_code: int, **extra):
    return jsonify({"status": "error", "message": message, **extra}), status_code


def resolve_employee_id(payload: dict):
    """Caller identity: session first, then the explicit payload fields."""

    employee_id = session.get("employee_id") or payload.get("employee_id") or payload.get("user_id")
    if not employee_id:
        raise ValidationError("Unauthorized: caller identification missing.")
    return employee_id


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/mark", methods=["POST"], endpoint="api_mark_attendance")
    def api_mark_attendance():
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return _error("Invalid JSON data received.", 400)

        try:
            result = container.attendance_reconciler.mark_attendance(
                payload.get("patient_id"),
                resolve_employee_id(payload),
                payload.get("payment_amount", 0),
                mode=payload.get("mode"),
                remarks=payload.get("remarks"),
                defer_payment=_as_bool(payload.get("defer_payment", False)),
            )
        except InsufficientBalanceError as e:
            return _error(
                str(e),
                400,
                code="insufficient_balance",
                shortfall=format_money(e.shortfall),
                cost_per_day=format_money(e.cost_per_day),
                effective_balance=format_money(e.effective_balance),
            )
        except PatientNotFoundError as e:
            return _error(str(e), 400, code="patient_not_found")
        except DomainError as e:
            return _error(str(e), 400)
        except LockTimeoutError:
            return _error("Patient record is busy, please retry.", 503, retryable=True)
        except PersistenceError:
            return _error("Could not save attendance, nothing was recorded.", 500)
        except Exception:
            logger.exception("unexpected error while marking attendance")
            return _error("Internal server error", 500)

        return jsonify({
            "status": "success",
            "message": "Attendance marked",
            "attendance_id": result.attendance_id,
            "payment_id": result.payment_id,
            "new_balance": format_money(result.new_balance),
            "cost_per_day": format_money(result.cost_per_day),
            "patient_status": result.patient_status.value,
        }), 200
