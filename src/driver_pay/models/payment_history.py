"""Payment method history persistence model."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, DateTime, Index, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from driver_pay.calculators.types import HistoryRecord, PaymentConfiguration, PaymentModelKind
from driver_pay.models.base import Base


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on round trip
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class PaymentMethodHistoryRow(Base):
    """One row of an employee's payment configuration timeline."""

    __tablename__ = "employee_payment_method_history"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True)
    employee_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    payment_type: Mapped[str] = mapped_column(String(16), nullable=False)

    driver_percent: Mapped[Decimal] = mapped_column(Numeric(7, 4), nullable=False, default=0)
    company_percent: Mapped[Decimal] = mapped_column(Numeric(7, 4), nullable=False, default=0)
    service_fee_percent: Mapped[Decimal] = mapped_column(Numeric(7, 4), nullable=False, default=0)
    flat_rate_amount: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False, default=0)
    per_mile_rate: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False, default=0)

    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    created_by: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    modified_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "payment_type IN ('PERCENTAGE', 'FLAT_RATE', 'PER_MILE')",
            name="payment_history_type_check",
        ),
        CheckConstraint(
            "end_date IS NULL OR end_date >= effective_date",
            name="payment_history_dates_check",
        ),
        CheckConstraint(
            "driver_percent >= 0 AND driver_percent <= 100 "
            "AND company_percent >= 0 AND company_percent <= 100 "
            "AND service_fee_percent >= 0 AND service_fee_percent <= 100",
            name="payment_history_percent_range_check",
        ),
        CheckConstraint(
            "flat_rate_amount >= 0 AND per_mile_rate >= 0",
            name="payment_history_rates_check",
        ),
        Index("idx_payment_history_employee_dates", "employee_id", "effective_date", "end_date"),
    )

    @classmethod
    def from_record(cls, record: HistoryRecord) -> PaymentMethodHistoryRow:
        config = record.configuration
        return cls(
            id=record.id,
            employee_id=record.employee_id,
            payment_type=config.kind.value,
            driver_percent=config.driver_percent,
            company_percent=config.company_percent,
            service_fee_percent=config.service_fee_percent,
            flat_rate_amount=config.flat_rate_amount,
            per_mile_rate=config.per_mile_rate,
            effective_date=record.effective_date,
            end_date=record.end_date,
            created_by=record.created_by,
            created_at=record.created_at,
            modified_at=record.modified_at,
            notes=record.notes,
        )

    def to_record(self) -> HistoryRecord:
        return HistoryRecord(
            id=self.id,
            employee_id=self.employee_id,
            configuration=PaymentConfiguration(
                kind=PaymentModelKind.parse(self.payment_type),
                driver_percent=self.driver_percent,
                company_percent=self.company_percent,
                service_fee_percent=self.service_fee_percent,
                flat_rate_amount=self.flat_rate_amount,
                per_mile_rate=self.per_mile_rate,
            ),
            effective_date=self.effective_date,
            end_date=self.end_date,
            created_by=self.created_by,
            created_at=_as_utc(self.created_at),
            modified_at=_as_utc(self.modified_at),
            notes=self.notes,
        )
