from __future__ import annotations

from decimal import Decimal


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class PatientNotFoundError(DomainError):
    def __init__(self, patient_id: int):
        super().__init__("Patient not found")
        self.patient_id = patient_id


class DuplicateAttendanceError(DomainError):
    def __init__(self, patient_id: int):
        super().__init__("Attendance already marked for today")
        self.patient_id = patient_id


class InsufficientBalanceError(DomainError):
    """Raised when a visit is not covered and no payment or deferral was given.

    `shortfall` is the exact amount the caller should collect before retrying.
    """

    def __init__(self, *, shortfall: Decimal, cost_per_day: Decimal, effective_balance: Decimal):
        super().__init__(f"Insufficient balance. Need {shortfall:.2f}.")
        self.shortfall = shortfall
        self.cost_per_day = cost_per_day
        self.effective_balance = effective_balance


class PersistenceError(Exception):
    """Raised when the store fails; the surrounding transaction is rolled back."""


class LockTimeoutError(PersistenceError):
    """Lock wait on a patient row timed out (or deadlocked). Safe to retry the whole call."""

    retryable = True
