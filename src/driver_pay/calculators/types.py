"""Type definitions for payment configurations and history records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from driver_pay.errors import ConfigurationError

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_decimal(value: Decimal | float | int | str) -> Decimal:
    """Coerce a numeric input to Decimal without float noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class PaymentModelKind(str, Enum):
    """Payment model kinds."""

    PERCENTAGE = "PERCENTAGE"
    FLAT_RATE = "FLAT_RATE"
    PER_MILE = "PER_MILE"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self][0]

    @property
    def description(self) -> str:
        return _DISPLAY_NAMES[self][1]

    @classmethod
    def parse(cls, value: str | PaymentModelKind) -> PaymentModelKind:
        """Parse a kind from its member name, ignoring case."""
        if isinstance(value, PaymentModelKind):
            return value
        normalized = value.strip().upper().replace(" ", "_").replace("-", "_")
        try:
            return cls(normalized)
        except ValueError:
            raise ConfigurationError(f"Unknown payment type: {value!r}") from None


_DISPLAY_NAMES: dict[PaymentModelKind, tuple[str, str]] = {
    PaymentModelKind.PERCENTAGE: (
        "Percentage of Load",
        "Driver receives a percentage of the load's gross amount",
    ),
    PaymentModelKind.FLAT_RATE: (
        "Flat Rate per Load",
        "Driver receives a fixed amount for each completed load",
    ),
    PaymentModelKind.PER_MILE: (
        "Per Mile Rate",
        "Driver receives payment based on miles from pickup to delivery",
    ),
}


@dataclass(frozen=True)
class PaymentConfiguration:
    """Parameters of one payment model.

    Only the fields belonging to ``kind`` are meaningful; the factory
    constructors zero the rest.
    """

    kind: PaymentModelKind
    driver_percent: Decimal = ZERO
    company_percent: Decimal = ZERO
    service_fee_percent: Decimal = ZERO
    flat_rate_amount: Decimal = ZERO
    per_mile_rate: Decimal = ZERO

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", PaymentModelKind.parse(self.kind))
        for name in (
            "driver_percent",
            "company_percent",
            "service_fee_percent",
            "flat_rate_amount",
            "per_mile_rate",
        ):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))

    @classmethod
    def percentage(
        cls,
        driver_percent: Decimal | float,
        company_percent: Decimal | float,
        service_fee_percent: Decimal | float = ZERO,
    ) -> PaymentConfiguration:
        return cls(
            kind=PaymentModelKind.PERCENTAGE,
            driver_percent=to_decimal(driver_percent),
            company_percent=to_decimal(company_percent),
            service_fee_percent=to_decimal(service_fee_percent),
        )

    @classmethod
    def flat_rate(cls, amount: Decimal | float) -> PaymentConfiguration:
        return cls(kind=PaymentModelKind.FLAT_RATE, flat_rate_amount=to_decimal(amount))

    @classmethod
    def per_mile(cls, rate: Decimal | float) -> PaymentConfiguration:
        return cls(kind=PaymentModelKind.PER_MILE, per_mile_rate=to_decimal(rate))

    @property
    def percent_total(self) -> Decimal:
        return self.driver_percent + self.company_percent + self.service_fee_percent

    def describe(self) -> str:
        """Human-readable summary of the configuration."""
        name = self.kind.display_name
        if self.kind is PaymentModelKind.PERCENTAGE:
            return (
                f"{name}: Driver {self.driver_percent:.2f}%, "
                f"Company {self.company_percent:.2f}%, "
                f"Service Fee {self.service_fee_percent:.2f}%"
            )
        if self.kind is PaymentModelKind.FLAT_RATE:
            return f"{name}: ${self.flat_rate_amount:.2f} per load"
        return f"{name}: ${self.per_mile_rate:.2f} per mile"


@dataclass(frozen=True)
class HistoryRecord:
    """One validity-bounded configuration in an employee's timeline.

    ``end_date`` is inclusive; ``None`` marks the open (current) record.
    """

    id: UUID
    employee_id: UUID
    configuration: PaymentConfiguration
    effective_date: date
    end_date: date | None
    created_by: str
    created_at: datetime
    modified_at: datetime
    notes: str | None = None

    @property
    def is_open(self) -> bool:
        return self.end_date is None

    def is_active_on(self, as_of_date: date) -> bool:
        """Check if the record covers a given date."""
        if self.effective_date > as_of_date:
            return False
        if self.end_date is not None and self.end_date < as_of_date:
            return False
        return True

    def date_range_description(self) -> str:
        start = self.effective_date.strftime("%m/%d/%Y")
        if self.end_date is None:
            return f"{start} - Current"
        return f"{start} - {self.end_date.strftime('%m/%d/%Y')}"


@dataclass
class PaymentBreakdown:
    """Split of a load's gross between driver, company and service fee."""

    kind: PaymentModelKind
    driver_payment: Decimal
    company_payment: Decimal = ZERO
    service_fee_payment: Decimal = ZERO
    rate: Decimal = ZERO
    miles: Decimal = ZERO
    details: str = ""


@dataclass
class LoadInput:
    """A delivered load to be paid."""

    load_id: str
    employee_id: UUID
    delivery_date: date
    gross_amount: Decimal | None = None
    miles: Decimal | None = None


@dataclass
class LoadPaymentResult:
    """Result of paying a single load."""

    load_id: str
    employee_id: UUID
    record: HistoryRecord | None = None
    breakdown: PaymentBreakdown | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors and self.breakdown is not None

    @property
    def driver_payment(self) -> Decimal:
        return self.breakdown.driver_payment if self.breakdown else ZERO


@dataclass
class DriverPayrollResult:
    """Totals across a driver's loads."""

    employee_id: UUID
    loads: list[LoadPaymentResult] = field(default_factory=list)
    total_driver_payment: Decimal = ZERO
    total_company_payment: Decimal = ZERO
    total_service_fee: Decimal = ZERO

    @property
    def load_count(self) -> int:
        return sum(1 for result in self.loads if result.success)

    @property
    def failed_loads(self) -> list[LoadPaymentResult]:
        return [result for result in self.loads if not result.success]
