"""Tests for batch payment method change requests."""

from datetime import date
from uuid import uuid4

import pytest

from driver_pay.calculators.types import PaymentConfiguration, PaymentModelKind
from driver_pay.errors import (
    AggregateValidationError,
    ConfigurationError,
    InternalConsistencyError,
    TemporalError,
)
from driver_pay.services.change_request import ChangeRequest, ChangeRequestStatus


@pytest.fixture
def make_request(clock):
    def _make(**kwargs):
        kwargs.setdefault("past_warning_days", 30)
        kwargs.setdefault("future_warning_days", 90)
        return ChangeRequest(clock=clock, **kwargs)

    return _make


class TestValidate:
    """Test structural errors and advisory warnings."""

    def test_empty_request_has_three_errors(self, make_request):
        result = make_request().validate()

        assert result.valid is False
        assert result.errors == [
            "Payment configuration is required",
            "Effective date is required",
            "No employees selected for payment method change",
        ]
        assert result.warnings == []

    def test_valid_request(self, make_request, percentage_config, employee_ids):
        result = make_request(
            configuration=percentage_config,
            effective_date=date(2024, 6, 1),
            target_employee_ids=employee_ids,
        ).validate()

        assert result.valid is True
        assert result.errors == []
        assert result.warnings == []

    def test_structural_error_blocks(self, make_request, employee_ids):
        result = make_request(
            configuration=PaymentConfiguration.percentage(70, 25, "2.5"),
            effective_date=date(2024, 6, 1),
            target_employee_ids=employee_ids,
        ).validate()

        assert result.valid is False
        assert result.errors == ["Percentages must sum to 100%. Current total: 97.50%"]

    def test_rate_warning_does_not_block(self, make_request, employee_ids):
        result = make_request(
            configuration=PaymentConfiguration.percentage(40, 55, 5),
            effective_date=date(2024, 6, 1),
            target_employee_ids=employee_ids,
        ).validate()

        assert result.valid is True
        assert result.warnings == ["Driver percentage (40.00%) is unusually low"]

    def test_effective_date_far_in_past_warns(self, make_request, percentage_config, employee_ids):
        result = make_request(
            configuration=percentage_config,
            effective_date=date(2024, 5, 1),
            target_employee_ids=employee_ids,
        ).validate()

        assert result.valid is True
        assert result.warnings == ["Effective date is more than 30 days in the past"]

    def test_effective_date_far_in_future_warns(
        self, make_request, percentage_config, employee_ids
    ):
        result = make_request(
            configuration=percentage_config,
            effective_date=date(2024, 10, 1),
            target_employee_ids=employee_ids,
        ).validate()

        assert result.valid is True
        assert result.warnings == ["Effective date is more than 90 days in the future"]

    def test_window_edges_do_not_warn(self, make_request, percentage_config, employee_ids):
        for effective in (date(2024, 5, 16), date(2024, 9, 13)):
            result = make_request(
                configuration=percentage_config,
                effective_date=effective,
                target_employee_ids=employee_ids,
            ).validate()
            assert result.warnings == []

    def test_non_finite_rate_is_an_error(self, make_request, employee_ids):
        result = make_request(
            configuration=PaymentConfiguration.per_mile(float("nan")),
            effective_date=date(2024, 6, 1),
            target_employee_ids=employee_ids,
        ).validate()

        assert result.valid is False
        assert result.errors == ["Per mile rate must be a finite number (got NaN)"]
        assert result.warnings == []

    def test_validate_is_idempotent(self, make_request, employee_ids):
        request = make_request(
            configuration=PaymentConfiguration.per_mile("0.3"),
            effective_date=date(2024, 1, 1),
            target_employee_ids=employee_ids,
        )

        first = request.validate()
        second = request.validate()

        assert first.errors == second.errors
        assert first.warnings == second.warnings
        assert len(second.warnings) == 2


class TestStatus:
    """Draft → validated, and back to draft on edit."""

    def test_validate_moves_to_validated(self, make_request, percentage_config, employee_ids):
        request = make_request(
            configuration=percentage_config,
            effective_date=date(2024, 6, 1),
            target_employee_ids=employee_ids,
        )
        assert request.status == ChangeRequestStatus.DRAFT

        request.validate()
        assert request.status == ChangeRequestStatus.VALIDATED

    def test_edit_returns_to_draft(self, make_request, percentage_config, employee_ids):
        request = make_request(
            configuration=percentage_config,
            effective_date=date(2024, 6, 1),
            target_employee_ids=employee_ids,
        )
        request.validate()

        request.notes = "updated"
        assert request.status == ChangeRequestStatus.DRAFT

        request.validate()
        request.add_employee(uuid4())
        assert request.status == ChangeRequestStatus.DRAFT

    def test_targets_cannot_be_edited_in_place(self, make_request, percentage_config):
        request = make_request(
            configuration=percentage_config,
            effective_date=date(2024, 6, 1),
            target_employee_ids=[uuid4()],
        )
        request.validate()

        with pytest.raises(AttributeError):
            request.target_employee_ids.add(uuid4())
        with pytest.raises(AttributeError):
            request.target_employee_ids.clear()

        assert len(request.target_employee_ids) == 1
        assert request.status == ChangeRequestStatus.VALIDATED

    def test_assigned_target_set_is_frozen(self, make_request, employee_ids):
        request = make_request()
        targets = set(employee_ids)

        request.target_employee_ids = targets
        targets.clear()

        assert request.target_employee_ids == frozenset(employee_ids)
        assert request.status == ChangeRequestStatus.DRAFT

    def test_adding_target_after_empty_validation_allows_apply(
        self, make_request, ledger, percentage_config
    ):
        request = make_request(configuration=percentage_config, effective_date=date(2024, 6, 1))
        assert request.validate().errors == ["No employees selected for payment method change"]

        employee_id = uuid4()
        request.add_employee(employee_id)
        records = request.apply(ledger, actor="ops")

        assert [r.employee_id for r in records] == [employee_id]
        assert request.validation_result.valid is True

    def test_removing_last_target_after_validation_blocks_apply(
        self, make_request, ledger, percentage_config
    ):
        employee_id = uuid4()
        request = make_request(
            configuration=percentage_config,
            effective_date=date(2024, 6, 1),
            target_employee_ids=[employee_id],
        )
        assert request.validate().valid is True

        request.remove_employee(employee_id)

        with pytest.raises(AggregateValidationError) as exc_info:
            request.apply(ledger, actor="ops")
        assert exc_info.value.errors == ["No employees selected for payment method change"]
        assert ledger.employees() == []


class TestApply:
    """Batch application is all or nothing."""

    def test_apply_appends_for_every_employee(
        self, make_request, ledger, per_mile_config, employee_ids
    ):
        request = make_request(
            configuration=per_mile_config,
            effective_date=date(2024, 6, 1),
            target_employee_ids=employee_ids,
            notes="fleet switch",
        )

        records = request.apply(ledger, actor="payroll-admin")

        assert {r.employee_id for r in records} == set(employee_ids)
        for employee_id in employee_ids:
            current = ledger.current(employee_id)
            assert current.configuration.kind is PaymentModelKind.PER_MILE
            assert current.created_by == "payroll-admin"
            assert current.notes == "fleet switch"

    def test_conflict_for_one_employee_commits_nothing(
        self, make_request, ledger, percentage_config, flat_rate_config
    ):
        first, second = uuid4(), uuid4()
        ledger.append(second, percentage_config, date(2024, 7, 1), None, "ops")
        second_before = ledger.history(second)

        request = make_request(
            configuration=flat_rate_config,
            effective_date=date(2024, 6, 1),
            target_employee_ids=[first, second],
        )

        with pytest.raises(TemporalError) as exc_info:
            request.apply(ledger, actor="ops")

        assert exc_info.value.employee_id == second
        assert ledger.history(first) == ()
        assert ledger.history(second) == second_before

    def test_invalid_request_raises_aggregate_error(self, make_request, ledger, employee_ids):
        request = make_request(
            configuration=PaymentConfiguration.flat_rate(0),
            effective_date=date(2024, 6, 1),
            target_employee_ids=employee_ids,
        )

        with pytest.raises(AggregateValidationError) as exc_info:
            request.apply(ledger, actor="ops")

        assert exc_info.value.errors == [
            "Flat rate must be greater than $0 (got $0.00)"
        ]
        assert all(ledger.history(e) == () for e in employee_ids)

    def test_apply_revalidates_after_edit(
        self, make_request, ledger, percentage_config, employee_ids
    ):
        request = make_request(
            configuration=percentage_config,
            effective_date=date(2024, 6, 1),
            target_employee_ids=employee_ids,
        )
        request.validate()
        request.configuration = PaymentConfiguration.per_mile(50)

        with pytest.raises(AggregateValidationError):
            request.apply(ledger, actor="ops")
        assert request.validation_result.valid is False

    def test_invalid_configuration_error_is_not_swallowed(self, make_request, ledger):
        # A request validated before the configuration went bad still stops at the ledger.
        request = make_request(
            configuration=PaymentConfiguration.percentage(70, 25, 5),
            effective_date=date(2024, 6, 1),
            target_employee_ids=[uuid4()],
        )
        request.validate()
        object.__setattr__(request, "configuration", PaymentConfiguration.percentage(1, 1, 1))
        object.__setattr__(request, "status", ChangeRequestStatus.VALIDATED)

        with pytest.raises(ConfigurationError):
            request.apply(ledger, actor="ops")
        assert ledger.employees() == []


    def test_missing_configuration_on_validated_request_is_internal_error(
        self, make_request, ledger, percentage_config
    ):
        request = make_request(
            configuration=percentage_config,
            effective_date=date(2024, 6, 1),
            target_employee_ids=[uuid4()],
        )
        request.validate()
        object.__setattr__(request, "configuration", None)

        with pytest.raises(InternalConsistencyError):
            request.plan(ledger, actor="ops")
        assert ledger.employees() == []


class TestSummary:
    def test_summary(self, make_request, per_mile_config, employee_ids):
        request = make_request(
            configuration=per_mile_config,
            effective_date=date(2024, 6, 1),
            target_employee_ids=employee_ids,
        )
        assert request.summary() == (
            "Change to Per Mile Rate ($2.00 per mile) effective 2024-06-01 for 2 employee(s)"
        )

    def test_summary_without_configuration(self, make_request):
        assert make_request().summary() == "No payment method selected"
