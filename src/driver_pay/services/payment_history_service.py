"""Payment history orchestration over a storage collaborator."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from uuid import UUID

from driver_pay.calculators.types import ZERO, HistoryRecord, PaymentConfiguration
from driver_pay.clock import Clock, SystemClock
from driver_pay.services.change_request import ChangeRequest
from driver_pay.services.history_ledger import HistoryLedger
from driver_pay.services.history_store import HistoryStore
from driver_pay.services.payment_calculator import PaymentCalculator

logger = logging.getLogger(__name__)


class PaymentHistoryService:
    """Loads timelines, runs ledger operations and persists the result.

    A batch is staged entirely in memory; storage is only written once
    every employee's append has been accepted.
    """

    def __init__(self, store: HistoryStore, clock: Clock | None = None):
        self.store = store
        self.clock = clock or SystemClock()

    async def load_ledger(self, employee_ids: Iterable[UUID]) -> HistoryLedger:
        """Build a ledger holding the stored timelines of the given employees."""
        ledger = HistoryLedger(clock=self.clock)
        for employee_id in employee_ids:
            ledger.load(employee_id, await self.store.load_history(employee_id))
        return ledger

    async def get_history(self, employee_id: UUID) -> list[HistoryRecord]:
        ledger = await self.load_ledger([employee_id])
        return list(ledger.history(employee_id))

    async def get_active_configurations(self, as_of_date: date) -> dict[UUID, HistoryRecord]:
        """Get the record in effect on a date for every stored employee."""
        ledger = await self.load_ledger(await self.store.list_employee_ids())
        return ledger.active_all_on(as_of_date)

    async def append(
        self,
        employee_id: UUID,
        configuration: PaymentConfiguration,
        effective_date: date,
        notes: str | None,
        actor: str,
    ) -> HistoryRecord:
        """Append a configuration to one employee's stored timeline."""
        ledger = await self.load_ledger([employee_id])
        record = ledger.append(employee_id, configuration, effective_date, notes, actor)
        await self.store.save_history(employee_id, ledger.history(employee_id))
        return record

    async def apply_change_request(
        self,
        change_request: ChangeRequest,
        actor: str,
    ) -> list[HistoryRecord]:
        """Apply a change request and save every touched timeline.

        Raises:
            AggregateValidationError: If the request is invalid
            ConfigurationError: If an employee's append is rejected
            TemporalError: If an employee's history conflicts
        """
        ledger = await self.load_ledger(sorted(change_request.target_employee_ids, key=str))
        records = change_request.apply(ledger, actor)

        for record in records:
            await self.store.save_history(record.employee_id, ledger.history(record.employee_id))

        logger.info("Persisted payment history for %d employee(s)", len(records))
        return records

    async def calculate_load_payment(
        self,
        employee_id: UUID,
        as_of_date: date,
        gross_amount: Decimal | float = ZERO,
        miles: Decimal | float = ZERO,
    ) -> Decimal:
        """Compute a load payment using the stored history.

        Raises:
            NoActiveConfigurationError: If no configuration covers the date
        """
        ledger = await self.load_ledger([employee_id])
        return PaymentCalculator(ledger).calculate_load_payment(
            employee_id, as_of_date, gross_amount, miles
        )
