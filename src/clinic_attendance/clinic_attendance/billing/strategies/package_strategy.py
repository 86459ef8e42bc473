from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from ...core.constants import CENT, ZERO
from ...patients.model import Patient
from .base import CostStrategy


class PackageCostStrategy(CostStrategy):
    """Package price spread evenly over the planned number of days.

    A package with no days has no defined daily cost and is treated as free.
    """

    def cost_per_day(self, patient: Patient) -> Decimal:
        if patient.treatment_days <= 0:
            return ZERO
        cost = patient.package_cost / Decimal(patient.treatment_days)
        return max(ZERO, cost.quantize(CENT, rounding=ROUND_HALF_UP))
