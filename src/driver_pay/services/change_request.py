"""Batch payment method change requests."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Any
from uuid import UUID

from driver_pay.calculators.payment_method import rate_warning, validation_error
from driver_pay.calculators.types import HistoryRecord, PaymentConfiguration
from driver_pay.clock import Clock, SystemClock
from driver_pay.config import get_settings
from driver_pay.errors import (
    AggregateValidationError,
    ConfigurationError,
    InternalConsistencyError,
    TemporalError,
)
from driver_pay.services.history_ledger import HistoryLedger, LedgerMutation

logger = logging.getLogger(__name__)


class ChangeRequestStatus(str, Enum):
    """Change request status values."""

    DRAFT = "draft"
    VALIDATED = "validated"


@dataclass
class ValidationResult:
    """Outcome of validating a change request."""

    valid: bool = True
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        self.errors.append(message)
        self.valid = False

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    def raise_for_errors(self) -> None:
        """Raise AggregateValidationError if there are blocking errors."""
        if self.errors:
            raise AggregateValidationError(self.errors, self.warnings)


class ChangeRequest:
    """Apply one payment configuration to many employees at once.

    Status flow:
    - draft → validated (validate)
    - validated → draft (any field edit)

    Applying is done by the caller once validated; the request itself
    does not track whether it has been applied.
    """

    _FIELDS = ("configuration", "effective_date", "notes", "target_employee_ids")

    def __init__(
        self,
        configuration: PaymentConfiguration | None = None,
        effective_date: date | None = None,
        target_employee_ids: Iterable[UUID] = (),
        notes: str | None = None,
        clock: Clock | None = None,
        past_warning_days: int | None = None,
        future_warning_days: int | None = None,
    ):
        settings = get_settings()
        self.clock = clock or SystemClock()
        self.past_warning_days = (
            settings.past_warning_days if past_warning_days is None else past_warning_days
        )
        self.future_warning_days = (
            settings.future_warning_days if future_warning_days is None else future_warning_days
        )
        self.configuration = configuration
        self.effective_date = effective_date
        self.notes = notes
        self.target_employee_ids = frozenset(target_employee_ids)
        self.status = ChangeRequestStatus.DRAFT
        self.validation_result = ValidationResult()

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "target_employee_ids":
            value = frozenset(value)
        super().__setattr__(name, value)
        if name in self._FIELDS:
            super().__setattr__("status", ChangeRequestStatus.DRAFT)

    def add_employee(self, employee_id: UUID) -> None:
        self.target_employee_ids = self.target_employee_ids | {employee_id}

    def remove_employee(self, employee_id: UUID) -> None:
        self.target_employee_ids = self.target_employee_ids - {employee_id}

    @property
    def is_validated(self) -> bool:
        return self.status == ChangeRequestStatus.VALIDATED

    def validate(self) -> ValidationResult:
        """Validate the request, replacing any previous result.

        Warnings never affect validity.
        """
        result = ValidationResult()

        if self.configuration is None:
            result.add_error("Payment configuration is required")

        if self.effective_date is None:
            result.add_error("Effective date is required")
        else:
            today = self.clock.today()
            if self.effective_date < today - timedelta(days=self.past_warning_days):
                result.add_warning(
                    f"Effective date is more than {self.past_warning_days} days in the past"
                )
            elif self.effective_date > today + timedelta(days=self.future_warning_days):
                result.add_warning(
                    f"Effective date is more than {self.future_warning_days} days in the future"
                )

        if not self.target_employee_ids:
            result.add_error("No employees selected for payment method change")

        if self.configuration is not None:
            error = validation_error(self.configuration)
            if error is not None:
                result.add_error(error)

            warning = rate_warning(self.configuration)
            if warning is not None:
                result.add_warning(warning)

        self.validation_result = result
        super().__setattr__("status", ChangeRequestStatus.VALIDATED)
        logger.debug(
            "Validated change request: valid=%s errors=%d warnings=%d",
            result.valid,
            len(result.errors),
            len(result.warnings),
        )
        return result

    def plan(self, ledger: HistoryLedger, actor: str) -> list[LedgerMutation]:
        """Stage an append for every target employee without committing.

        Raises:
            AggregateValidationError: If the request is invalid
            ConfigurationError: If an employee's append is rejected
            TemporalError: If an employee's history conflicts
        """
        if not self.is_validated:
            self.validate()
        self.validation_result.raise_for_errors()
        if self.configuration is None or self.effective_date is None:
            raise InternalConsistencyError("Validated change request is missing required fields")

        mutations: list[LedgerMutation] = []
        for employee_id in sorted(self.target_employee_ids, key=str):
            try:
                mutations.append(
                    ledger.plan_append(
                        employee_id,
                        self.configuration,
                        self.effective_date,
                        self.notes,
                        actor,
                    )
                )
            except (ConfigurationError, TemporalError) as exc:
                logger.warning(
                    "Change request rejected for employee %s; nothing committed: %s",
                    employee_id,
                    exc,
                )
                raise
        return mutations

    def apply(self, ledger: HistoryLedger, actor: str) -> list[HistoryRecord]:
        """Append the configuration for every target employee, all or nothing."""
        records = ledger.commit(self.plan(ledger, actor))
        logger.info(
            "Applied %s configuration effective %s to %d employee(s) by %s",
            self.configuration.kind.value if self.configuration else None,
            self.effective_date,
            len(records),
            actor,
        )
        return records

    def summary(self) -> str:
        """Human-readable description of the change."""
        if self.configuration is None:
            return "No payment method selected"

        config = self.configuration
        parts = [f"Change to {config.kind.display_name}"]
        detail = config.describe().split(": ", 1)[1]
        parts.append(f"({detail})")
        if self.effective_date is not None:
            parts.append(f"effective {self.effective_date.isoformat()}")
        if self.target_employee_ids:
            parts.append(f"for {len(self.target_employee_ids)} employee(s)")
        return " ".join(parts)
