from __future__ import annotations

import logging

from flask import Flask, jsonify

from ..common.money import format_money
from ..container import Container
from ..core.exceptions import PatientNotFoundError, PersistenceError, ValidationError
from .service import BillingDetails

logger = logging.getLogger(__name__)


def _to_json(details: BillingDetails) -> dict:
    ledger = details.ledger
    return {
        "patient_id": details.patient_id,
        "patient_status": details.status.value,
        "treatment_type": details.treatment_type.value,
        "total_amount": format_money(details.total_amount),
        "total_paid": format_money(details.total_paid),
        "today_paid": format_money(details.today_paid),
        "due_amount": format_money(details.due_amount),
        "ledger": {
            "cost_per_day": format_money(ledger.cost_per_day),
            "attendance_count": ledger.attendance_count,
            "consumed_total": format_money(ledger.consumed_total),
            "effective_balance": format_money(ledger.effective_balance),
        },
        "payments": [
            {
                "payment_id": p.payment_id,
                "payment_date": p.payment_date.strftime("%Y-%m-%d"),
                "amount": format_money(p.amount),
                "mode": p.mode.value,
                "remarks": p.remarks,
            }
            for p in details.payments
        ],
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/patients/<patient_id>/billing", methods=["GET"], endpoint="api_billing_details")
    def api_billing_details(patient_id: str):
        try:
            details = container.billing_service.get_billing_details(patient_id)
        except ValidationError:
            return jsonify({"status": "error", "message": "Invalid Patient ID"}), 400
        except PatientNotFoundError as e:
            return jsonify({"status": "error", "message": str(e)}), 404
        except PersistenceError:
            logger.exception("billing details failed for patient %s", patient_id)
            return jsonify({"status": "error", "message": "Could not load billing details"}), 500

        return jsonify({"status": "success", "data": _to_json(details)}), 200
