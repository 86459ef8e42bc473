from __future__ import annotations

from decimal import Decimal

from ...core.constants import ZERO
from ...patients.model import Patient
from .base import CostStrategy


class PerDayCostStrategy(CostStrategy):
    """Daily and advance plans charge the configured per-day rate."""

    def cost_per_day(self, patient: Patient) -> Decimal:
        return max(ZERO, patient.treatment_cost_per_day)
