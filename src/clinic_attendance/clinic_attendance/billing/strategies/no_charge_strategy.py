from __future__ import annotations

from decimal import Decimal

from ...core.constants import ZERO
from ...patients.model import Patient
from .base import CostStrategy


class NoChargeStrategy(CostStrategy):
    """Unknown plan types."""

    def cost_per_day(self, patient: Patient) -> Decimal:
        return ZERO
