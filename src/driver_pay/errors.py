"""Exception hierarchy for the payment engine."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Any
from uuid import UUID

if TYPE_CHECKING:
    from driver_pay.calculators.types import HistoryRecord, PaymentConfiguration


class PaymentEngineError(Exception):
    """Base class for all payment engine errors."""


class ConfigurationError(PaymentEngineError):
    """Raised when a configuration fails its kind-specific invariant."""

    def __init__(
        self,
        message: str,
        configuration: PaymentConfiguration | None = None,
        employee_id: UUID | None = None,
    ):
        self.message = message
        self.configuration = configuration
        self.employee_id = employee_id
        if employee_id is not None:
            message = f"Employee {employee_id}: {message}"
        super().__init__(message)


class TemporalError(PaymentEngineError):
    """Raised when an effective date conflicts with existing history."""

    def __init__(
        self,
        employee_id: UUID,
        effective_date: date,
        reason: str,
        conflicting_record: HistoryRecord | None = None,
    ):
        self.employee_id = employee_id
        self.effective_date = effective_date
        self.reason = reason
        self.conflicting_record = conflicting_record
        super().__init__(
            f"Employee {employee_id}: cannot apply configuration effective "
            f"{effective_date.isoformat()}: {reason}"
        )


class AggregateValidationError(PaymentEngineError):
    """Raised when a change request is applied with blocking errors."""

    def __init__(self, errors: list[str], warnings: list[str] | None = None):
        self.errors = list(errors)
        self.warnings = list(warnings or [])
        super().__init__("Change request is invalid: " + "; ".join(self.errors))


class NoActiveConfigurationError(PaymentEngineError):
    """Raised when no configuration is active for an employee on a date."""

    def __init__(self, employee_id: UUID, as_of_date: date):
        self.employee_id = employee_id
        self.as_of_date = as_of_date
        super().__init__(
            f"No active payment configuration for employee {employee_id} "
            f"on {as_of_date.isoformat()}"
        )


class InternalConsistencyError(PaymentEngineError):
    """Raised for states that are unreachable by construction.

    These indicate a defect and are never handled inside the engine.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        self.context = context or {}
        super().__init__(message)
