from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ..core.enums import TreatmentType
from ..patients.model import Patient
from .strategies.base import CostStrategy
from .strategies.no_charge_strategy import NoChargeStrategy
from .strategies.package_strategy import PackageCostStrategy
from .strategies.per_day_strategy import PerDayCostStrategy


@dataclass
class CostStrategyFactory:
    """Factory Pattern: choose the pricing strategy from the patient's plan type."""

    def for_patient(self, patient: Patient) -> CostStrategy:
        if patient.treatment_type == TreatmentType.PACKAGE:
            return PackageCostStrategy()
        if patient.treatment_type in (TreatmentType.DAILY, TreatmentType.ADVANCE):
            return PerDayCostStrategy()
        return NoChargeStrategy()


def cost_per_day(patient: Patient, *, factory: CostStrategyFactory | None = None) -> Decimal:
    """Non-negative charge for one attendance, a pure function of the snapshot."""

    return (factory or CostStrategyFactory()).for_patient(patient).cost_per_day(patient)
