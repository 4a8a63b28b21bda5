"""Load payment calculation against the configuration history."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from uuid import UUID

from driver_pay.calculators.payment_method import method_for
from driver_pay.calculators.types import (
    ZERO,
    DriverPayrollResult,
    LoadInput,
    LoadPaymentResult,
    to_decimal,
)
from driver_pay.errors import NoActiveConfigurationError
from driver_pay.services.history_ledger import HistoryLedger


class PaymentCalculator:
    """Resolves the configuration in effect on a date and pays loads with it."""

    def __init__(self, ledger: HistoryLedger):
        self.ledger = ledger

    def calculate_load_payment(
        self,
        employee_id: UUID,
        as_of_date: date,
        gross_amount: Decimal | float = ZERO,
        miles: Decimal | float = ZERO,
    ) -> Decimal:
        """Compute the driver payment for a load delivered on a date.

        Raises:
            NoActiveConfigurationError: If no configuration covers the date
        """
        record = self.ledger.active_on(employee_id, as_of_date)
        if record is None:
            raise NoActiveConfigurationError(employee_id, as_of_date)
        method = method_for(record.configuration.kind)
        return method.calculate_payment(
            record.configuration, to_decimal(gross_amount), to_decimal(miles)
        )

    def calculate_load(self, load: LoadInput) -> LoadPaymentResult:
        """Pay a single load, collecting errors and warnings instead of raising."""
        result = LoadPaymentResult(load_id=load.load_id, employee_id=load.employee_id)

        record = self.ledger.active_on(load.employee_id, load.delivery_date)
        if record is None:
            result.errors.append(
                f"No payment method configured for employee on {load.delivery_date.isoformat()}"
            )
            return result
        result.record = record

        method = method_for(record.configuration.kind)
        gross = to_decimal(load.gross_amount) if load.gross_amount is not None else ZERO
        miles = to_decimal(load.miles) if load.miles is not None else ZERO

        if method.requires_gross_amount() and gross <= ZERO:
            result.errors.append("Load gross amount is required for percentage payment")
        if method.requires_zip_codes() and miles <= ZERO:
            result.errors.append("Miles must be calculated before per-mile payment")
        if result.errors:
            return result

        breakdown = method.split_payment(record.configuration, gross, miles)
        result.breakdown = breakdown

        warning = method.payment_warning(breakdown.driver_payment, miles)
        if warning is not None:
            result.warnings.append(warning)
        if not method.is_reasonable_payment(breakdown.driver_payment, miles):
            result.warnings.append(
                f"Payment ${breakdown.driver_payment:.2f} is outside the typical range "
                f"for {record.configuration.kind.display_name}"
            )

        return result

    def calculate_driver_payroll(
        self,
        employee_id: UUID,
        loads: Iterable[LoadInput],
    ) -> DriverPayrollResult:
        """Total a driver's loads; loads for other employees are skipped."""
        payroll = DriverPayrollResult(employee_id=employee_id)

        for load in loads:
            if load.employee_id != employee_id:
                continue
            result = self.calculate_load(load)
            payroll.loads.append(result)
            if result.success and result.breakdown is not None:
                payroll.total_driver_payment += result.breakdown.driver_payment
                payroll.total_company_payment += result.breakdown.company_payment
                payroll.total_service_fee += result.breakdown.service_fee_payment

        return payroll
