"""Tests for load payment calculation against history."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from driver_pay.calculators.types import LoadInput, PaymentConfiguration
from driver_pay.errors import NoActiveConfigurationError
from driver_pay.services.payment_calculator import PaymentCalculator


@pytest.fixture
def driver(ledger, percentage_config, per_mile_config):
    """Driver on 70% until May, per mile at $2.00 from June."""
    employee_id = uuid4()
    ledger.append(employee_id, percentage_config, date(2024, 1, 1), None, "ops")
    ledger.append(employee_id, per_mile_config, date(2024, 6, 1), None, "ops")
    return employee_id


class TestCalculateLoadPayment:
    """Resolve the active configuration, then dispatch."""

    def test_uses_configuration_active_on_date(self, ledger, driver):
        calculator = PaymentCalculator(ledger)

        assert calculator.calculate_load_payment(driver, date(2024, 3, 1), 1000, 500) == 700
        assert calculator.calculate_load_payment(driver, date(2024, 7, 1), 1000, 500) == 1000

    def test_no_active_configuration(self, ledger, driver):
        calculator = PaymentCalculator(ledger)

        with pytest.raises(NoActiveConfigurationError) as exc_info:
            calculator.calculate_load_payment(driver, date(2023, 12, 31), 1000, 0)

        assert exc_info.value.employee_id == driver
        assert exc_info.value.as_of_date == date(2023, 12, 31)


class TestCalculateLoad:
    """Per-load results collect errors and warnings."""

    def test_percentage_breakdown(self, ledger, driver):
        result = PaymentCalculator(ledger).calculate_load(
            LoadInput("L-1", driver, date(2024, 2, 1), gross_amount=Decimal("1000"))
        )

        assert result.success
        assert result.breakdown.driver_payment == Decimal("700")
        assert result.breakdown.company_payment == Decimal("250")
        assert result.breakdown.service_fee_payment == Decimal("50")
        assert result.warnings == []

    def test_percentage_requires_gross(self, ledger, driver):
        result = PaymentCalculator(ledger).calculate_load(
            LoadInput("L-2", driver, date(2024, 2, 1))
        )

        assert result.success is False
        assert result.errors == ["Load gross amount is required for percentage payment"]

    def test_per_mile_requires_miles(self, ledger, driver):
        result = PaymentCalculator(ledger).calculate_load(
            LoadInput("L-3", driver, date(2024, 7, 1), gross_amount=Decimal("2500"))
        )

        assert result.success is False
        assert result.errors == ["Miles must be calculated before per-mile payment"]

    def test_low_payment_warns(self, ledger, driver):
        result = PaymentCalculator(ledger).calculate_load(
            LoadInput("L-4", driver, date(2024, 2, 1), gross_amount=Decimal("50"))
        )

        assert result.success
        assert result.driver_payment == Decimal("35")
        assert result.warnings == ["Unusually low percentage payment: $35.00"]

    def test_missing_history_is_an_error(self, ledger):
        result = PaymentCalculator(ledger).calculate_load(
            LoadInput("L-5", uuid4(), date(2024, 2, 1), gross_amount=Decimal("1000"))
        )

        assert result.success is False
        assert result.record is None

    def test_flat_rate_below_reasonable_range(self, ledger):
        employee_id = uuid4()
        ledger.append(
            employee_id, PaymentConfiguration.flat_rate(40), date(2024, 1, 1), None, "ops"
        )

        result = PaymentCalculator(ledger).calculate_load(
            LoadInput("L-6", employee_id, date(2024, 2, 1))
        )

        assert result.success
        assert result.warnings == [
            "Unusually low flat rate payment: $40.00",
            "Payment $40.00 is outside the typical range for Flat Rate per Load",
        ]


class TestDriverPayroll:
    """Totals across a driver's loads."""

    def test_totals(self, ledger, driver):
        loads = [
            LoadInput("L-1", driver, date(2024, 2, 1), gross_amount=Decimal("1000")),
            LoadInput("L-2", driver, date(2024, 3, 1), gross_amount=Decimal("2000")),
            LoadInput("L-3", driver, date(2024, 7, 1), miles=Decimal("500")),
            LoadInput("L-4", driver, date(2024, 7, 2)),
            LoadInput("L-9", uuid4(), date(2024, 3, 1), gross_amount=Decimal("9000")),
        ]

        payroll = PaymentCalculator(ledger).calculate_driver_payroll(driver, loads)

        assert len(payroll.loads) == 4
        assert payroll.load_count == 3
        assert [r.load_id for r in payroll.failed_loads] == ["L-4"]
        assert payroll.total_driver_payment == Decimal("3100")
        assert payroll.total_company_payment == Decimal("750")
        assert payroll.total_service_fee == Decimal("150")
