"""Pydantic schemas for records exchanged with collaborators."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from driver_pay.calculators.types import HistoryRecord, PaymentConfiguration, PaymentModelKind
from driver_pay.config import Settings, get_settings
from driver_pay.errors import ConfigurationError


# ============================================================================
# Inbound schemas
# ============================================================================


class PaymentConfigurationIn(BaseModel):
    """Payment fields as supplied by the record-ingestion collaborator.

    When no payment field is given at all, the default percentage split
    from settings is used.
    """

    payment_type: PaymentModelKind | None = None
    driver_percent: Decimal | None = Field(default=None, ge=0, le=100)
    company_percent: Decimal | None = Field(default=None, ge=0, le=100)
    service_fee_percent: Decimal | None = Field(default=None, ge=0, le=100)
    flat_rate_amount: Decimal | None = Field(default=None, ge=0)
    per_mile_rate: Decimal | None = Field(default=None, ge=0)

    @field_validator("payment_type", mode="before")
    @classmethod
    def parse_payment_type(cls, value: object) -> object:
        if value is None or value == "":
            return None
        if isinstance(value, str):
            try:
                return PaymentModelKind.parse(value)
            except ConfigurationError as exc:
                raise ValueError(str(exc)) from exc
        return value

    @property
    def has_payment_fields(self) -> bool:
        return any(
            value is not None
            for value in (
                self.payment_type,
                self.driver_percent,
                self.company_percent,
                self.service_fee_percent,
                self.flat_rate_amount,
                self.per_mile_rate,
            )
        )

    def to_configuration(self, settings: Settings | None = None) -> PaymentConfiguration:
        """Build a configuration; structural validity is checked elsewhere."""
        if not self.has_payment_fields:
            settings = settings or get_settings()
            return PaymentConfiguration.percentage(
                settings.default_driver_percent,
                settings.default_company_percent,
                settings.default_service_fee_percent,
            )

        kind = self.payment_type or PaymentModelKind.PERCENTAGE
        if kind is PaymentModelKind.PERCENTAGE:
            return PaymentConfiguration.percentage(
                self.driver_percent or Decimal("0"),
                self.company_percent or Decimal("0"),
                self.service_fee_percent or Decimal("0"),
            )
        if kind is PaymentModelKind.FLAT_RATE:
            return PaymentConfiguration.flat_rate(self.flat_rate_amount or Decimal("0"))
        return PaymentConfiguration.per_mile(self.per_mile_rate or Decimal("0"))


# ============================================================================
# Outbound schemas
# ============================================================================


class HistoryRecordOut(BaseModel):
    """Flat view of a history record, matching the persisted columns."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    employee_id: UUID
    payment_type: PaymentModelKind
    driver_percent: Decimal
    company_percent: Decimal
    service_fee_percent: Decimal
    flat_rate_amount: Decimal
    per_mile_rate: Decimal
    effective_date: date
    end_date: date | None = None
    created_by: str
    created_at: datetime
    modified_at: datetime
    notes: str | None = None

    @classmethod
    def from_record(cls, record: HistoryRecord) -> HistoryRecordOut:
        config = record.configuration
        return cls(
            id=record.id,
            employee_id=record.employee_id,
            payment_type=config.kind,
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

