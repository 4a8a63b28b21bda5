"""Per-employee payment configuration timeline."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from datetime import date, timedelta
from uuid import UUID, uuid4

from driver_pay.calculators.payment_method import require_valid
from driver_pay.calculators.types import HistoryRecord, PaymentConfiguration
from driver_pay.clock import Clock, SystemClock
from driver_pay.errors import ConfigurationError, InternalConsistencyError, TemporalError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerMutation:
    """A staged append, ready to be committed.

    ``previous`` is the timeline the mutation was planned against; commit
    refuses to install a mutation whose base has since changed.
    """

    employee_id: UUID
    previous: tuple[HistoryRecord, ...]
    timeline: tuple[HistoryRecord, ...]
    new_record: HistoryRecord
    closed_record: HistoryRecord | None = None


def check_timeline(employee_id: UUID, records: Iterable[HistoryRecord]) -> None:
    """Verify ordering, non-overlap and the single-open-record rule.

    Raises:
        InternalConsistencyError: If any invariant is violated
    """
    previous: HistoryRecord | None = None
    for record in records:
        if record.employee_id != employee_id:
            raise InternalConsistencyError(
                f"Record {record.id} belongs to {record.employee_id}, not {employee_id}"
            )
        if record.end_date is not None and record.end_date < record.effective_date:
            raise InternalConsistencyError(
                f"Record {record.id} ends before it starts",
                {"effective_date": record.effective_date, "end_date": record.end_date},
            )
        if previous is not None:
            if previous.end_date is None:
                raise InternalConsistencyError(
                    f"Open record {previous.id} is not the last record for {employee_id}"
                )
            if previous.end_date >= record.effective_date:
                raise InternalConsistencyError(
                    f"Records {previous.id} and {record.id} overlap for {employee_id}",
                    {
                        "previous_end": previous.end_date,
                        "next_start": record.effective_date,
                    },
                )
        previous = record


class HistoryLedger:
    """In-memory ledger of payment configuration history.

    Invariants, per employee:
    1. Records are ordered by effective_date
    2. Inclusive [effective_date, end_date] intervals never overlap
    3. At most one record is open (end_date is None) and it is the last one
    4. Records are never removed; superseding only sets end_date
    """

    def __init__(
        self,
        clock: Clock | None = None,
        id_factory: Callable[[], UUID] = uuid4,
    ):
        self.clock = clock or SystemClock()
        self._id_factory = id_factory
        self._timelines: dict[UUID, tuple[HistoryRecord, ...]] = {}

    def load(self, employee_id: UUID, records: Iterable[HistoryRecord]) -> None:
        """Seed an employee's timeline from storage."""
        timeline = tuple(sorted(records, key=lambda r: r.effective_date))
        check_timeline(employee_id, timeline)
        self._timelines[employee_id] = timeline

    def employees(self) -> list[UUID]:
        return [employee_id for employee_id, records in self._timelines.items() if records]

    def history(self, employee_id: UUID) -> tuple[HistoryRecord, ...]:
        return self._timelines.get(employee_id, ())

    def active_on(self, employee_id: UUID, as_of_date: date) -> HistoryRecord | None:
        """Get the record in effect on a date, if any."""
        for record in self.history(employee_id):
            if record.is_active_on(as_of_date):
                return record
        return None

    def active_all_on(self, as_of_date: date) -> dict[UUID, HistoryRecord]:
        """Get every employee's record in effect on a date.

        Employees with no record covering the date are left out.
        """
        active: dict[UUID, HistoryRecord] = {}
        for employee_id in self.employees():
            record = self.active_on(employee_id, as_of_date)
            if record is not None:
                active[employee_id] = record
        return active

    def current(self, employee_id: UUID) -> HistoryRecord | None:
        """Get the open record, if any."""
        timeline = self.history(employee_id)
        if timeline and timeline[-1].is_open:
            return timeline[-1]
        return None

    def plan_append(
        self,
        employee_id: UUID,
        configuration: PaymentConfiguration,
        effective_date: date,
        notes: str | None,
        actor: str,
    ) -> LedgerMutation:
        """Compute the result of an append without changing the ledger.

        Raises:
            ConfigurationError: If the configuration is invalid
            TemporalError: If effective_date does not follow existing history
        """
        try:
            require_valid(configuration)
        except ConfigurationError as exc:
            raise ConfigurationError(exc.message, configuration, employee_id) from exc

        previous = self.history(employee_id)
        timeline = list(previous)
        now = self.clock.now()
        closed_record: HistoryRecord | None = None

        if timeline:
            last = timeline[-1]
            if last.end_date is None:
                if effective_date <= last.effective_date:
                    raise TemporalError(
                        employee_id,
                        effective_date,
                        "must be after the current configuration's effective date "
                        f"{last.effective_date.isoformat()}",
                        last,
                    )
                closed_record = replace(
                    last,
                    end_date=effective_date - timedelta(days=1),
                    modified_at=now,
                )
                timeline[-1] = closed_record
            elif effective_date <= last.end_date:
                # Backfill into closed history is not supported
                raise TemporalError(
                    employee_id,
                    effective_date,
                    "inserting before or between historical records is not supported; "
                    f"history ends {last.end_date.isoformat()}",
                    last,
                )

        new_record = HistoryRecord(
            id=self._id_factory(),
            employee_id=employee_id,
            configuration=configuration,
            effective_date=effective_date,
            end_date=None,
            created_by=actor,
            created_at=now,
            modified_at=now,
            notes=notes,
        )
        timeline.append(new_record)
        check_timeline(employee_id, timeline)

        return LedgerMutation(
            employee_id=employee_id,
            previous=previous,
            timeline=tuple(timeline),
            new_record=new_record,
            closed_record=closed_record,
        )

    def commit(self, mutations: Iterable[LedgerMutation]) -> list[HistoryRecord]:
        """Install staged mutations; all or none.

        Raises:
            InternalConsistencyError: If a mutation is stale or duplicated
        """
        mutations = list(mutations)
        seen: set[UUID] = set()
        for mutation in mutations:
            if mutation.employee_id in seen:
                raise InternalConsistencyError(
                    f"Multiple staged mutations for employee {mutation.employee_id}"
                )
            seen.add(mutation.employee_id)
            if self.history(mutation.employee_id) != mutation.previous:
                raise InternalConsistencyError(
                    f"Ledger for employee {mutation.employee_id} changed since planning"
                )

        for mutation in mutations:
            self._timelines[mutation.employee_id] = mutation.timeline
            if mutation.closed_record is not None:
                logger.info(
                    "Closed payment record %s for employee %s at %s",
                    mutation.closed_record.id,
                    mutation.employee_id,
                    mutation.closed_record.end_date,
                )
            logger.info(
                "Appended %s record %s for employee %s effective %s",
                mutation.new_record.configuration.kind.value,
                mutation.new_record.id,
                mutation.employee_id,
                mutation.new_record.effective_date,
            )

        return [mutation.new_record for mutation in mutations]

    def append(
        self,
        employee_id: UUID,
        configuration: PaymentConfiguration,
        effective_date: date,
        notes: str | None,
        actor: str,
    ) -> HistoryRecord:
        """Append a new open record, closing the current one.

        Raises:
            ConfigurationError: If the configuration is invalid
            TemporalError: If effective_date does not follow existing history
        """
        mutation = self.plan_append(employee_id, configuration, effective_date, notes, actor)
        return self.commit([mutation])[0]
