"""Storage collaborators for payment history timelines."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from driver_pay.calculators.types import HistoryRecord
from driver_pay.errors import InternalConsistencyError
from driver_pay.models import PaymentMethodHistoryRow

logger = logging.getLogger(__name__)


class HistoryStore(Protocol):
    """Load/save interface the ledger needs from storage."""

    async def load_history(self, employee_id: UUID) -> list[HistoryRecord]: ...

    async def list_employee_ids(self) -> list[UUID]: ...

    async def save_history(
        self, employee_id: UUID, records: Sequence[HistoryRecord]
    ) -> None: ...


def _check_no_removals(
    employee_id: UUID,
    existing_ids: set[UUID],
    records: Sequence[HistoryRecord],
) -> None:
    missing = existing_ids - {record.id for record in records}
    if missing:
        raise InternalConsistencyError(
            f"Saving history for employee {employee_id} would remove "
            f"{len(missing)} record(s)",
            {"missing": sorted(str(record_id) for record_id in missing)},
        )


class InMemoryHistoryStore:
    """Dictionary-backed store, used in tests and for offline runs."""

    def __init__(self) -> None:
        self._records: dict[UUID, tuple[HistoryRecord, ...]] = {}

    async def load_history(self, employee_id: UUID) -> list[HistoryRecord]:
        return list(self._records.get(employee_id, ()))

    async def list_employee_ids(self) -> list[UUID]:
        return [employee_id for employee_id, records in self._records.items() if records]

    async def save_history(self, employee_id: UUID, records: Sequence[HistoryRecord]) -> None:
        existing = {record.id for record in self._records.get(employee_id, ())}
        _check_no_removals(employee_id, existing, records)
        self._records[employee_id] = tuple(sorted(records, key=lambda r: r.effective_date))


class SqlHistoryStore:
    """SQLAlchemy-backed store.

    Writes go through the given session and are committed by its owner,
    so several employees can be saved in one transaction.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def load_history(self, employee_id: UUID) -> list[HistoryRecord]:
        result = await self.session.execute(
            select(PaymentMethodHistoryRow)
            .where(PaymentMethodHistoryRow.employee_id == employee_id)
            .order_by(PaymentMethodHistoryRow.effective_date)
        )
        return [row.to_record() for row in result.scalars().all()]

    async def list_employee_ids(self) -> list[UUID]:
        result = await self.session.execute(
            select(PaymentMethodHistoryRow.employee_id).distinct()
        )
        return list(result.scalars().all())

    async def save_history(self, employee_id: UUID, records: Sequence[HistoryRecord]) -> None:
        result = await self.session.execute(
            select(PaymentMethodHistoryRow.id).where(
                PaymentMethodHistoryRow.employee_id == employee_id
            )
        )
        _check_no_removals(employee_id, set(result.scalars().all()), records)

        for record in records:
            await self.session.merge(PaymentMethodHistoryRow.from_record(record))
        await self.session.flush()
        logger.debug("Saved %d history record(s) for employee %s", len(records), employee_id)
