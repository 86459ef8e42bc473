from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal

from ...patients.model import Patient


class CostStrategy(ABC):
    """Strategy Pattern: encapsulate how a single visit is priced for a plan type."""

    @abstractmethod
    def cost_per_day(self, patient: Patient) -> Decimal:
        raise NotImplementedError
