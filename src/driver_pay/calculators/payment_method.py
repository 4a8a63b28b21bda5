"""Per-kind payment calculation, validation and warning rules.

Each payment model kind has exactly one ``PaymentMethod`` implementation.
The registry below is checked against ``PaymentModelKind`` at import time,
so every dispatch site is guaranteed to find a method for every kind.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal

from driver_pay.calculators.types import (
    HUNDRED,
    ZERO,
    PaymentBreakdown,
    PaymentConfiguration,
    PaymentModelKind,
    to_decimal,
)
from driver_pay.errors import ConfigurationError, InternalConsistencyError

PERCENT_TOLERANCE = Decimal("0.01")


class PaymentMethod(ABC):
    """Capability set shared by all payment model kinds."""

    kind: PaymentModelKind

    # Rate-sanity range for a configuration (advisory only)
    typical_rate_min: Decimal
    typical_rate_max: Decimal

    def validate(self, config: PaymentConfiguration) -> bool:
        """Check structural correctness of a configuration."""
        return self.validation_error(config) is None

    @abstractmethod
    def validation_error(self, config: PaymentConfiguration) -> str | None:
        """Return the first structural error, or None if valid."""

    @abstractmethod
    def calculate_payment(
        self,
        config: PaymentConfiguration,
        gross_amount: Decimal,
        miles: Decimal,
    ) -> Decimal:
        """Compute the driver payment for one load."""

    @abstractmethod
    def is_reasonable_payment(self, amount: Decimal, miles: Decimal) -> bool:
        """Check whether a computed payment falls in the typical range."""

    @abstractmethod
    def payment_warning(self, amount: Decimal, miles: Decimal) -> str | None:
        """Return a warning if a computed payment looks unusual."""

    @abstractmethod
    def configured_rate(self, config: PaymentConfiguration) -> Decimal:
        """The parameter that rate-sanity checks look at."""

    @abstractmethod
    def rate_warning(self, config: PaymentConfiguration) -> str | None:
        """Return an advisory warning if the configured rate is atypical."""

    def has_reasonable_rates(self, config: PaymentConfiguration) -> bool:
        rate = self.configured_rate(config)
        if not rate.is_finite():
            return False
        return self.typical_rate_min <= rate <= self.typical_rate_max

    def requires_zip_codes(self) -> bool:
        return False

    def requires_gross_amount(self) -> bool:
        return False

    def split_payment(
        self,
        config: PaymentConfiguration,
        gross_amount: Decimal,
        miles: Decimal,
    ) -> PaymentBreakdown:
        """Compute the driver payment with its calculation details."""
        driver_payment = self.calculate_payment(config, gross_amount, miles)
        return PaymentBreakdown(
            kind=self.kind,
            driver_payment=driver_payment,
            rate=self.configured_rate(config),
            miles=miles,
        )

    @staticmethod
    def _non_finite_error(*fields: tuple[str, Decimal]) -> str | None:
        for label, value in fields:
            if not value.is_finite():
                return f"{label} must be a finite number (got {value})"
        return None

    def _check_kind(self, config: PaymentConfiguration) -> None:
        if config.kind is not self.kind:
            raise InternalConsistencyError(
                f"{type(self).__name__} cannot handle {config.kind.value} configuration",
                {"expected": self.kind.value, "actual": config.kind.value},
            )


class PercentagePaymentMethod(PaymentMethod):
    """Driver receives a percentage of the load's gross amount."""

    kind = PaymentModelKind.PERCENTAGE
    typical_rate_min = Decimal("50")
    typical_rate_max = Decimal("90")

    def validation_error(self, config: PaymentConfiguration) -> str | None:
        self._check_kind(config)
        error = self._non_finite_error(
            ("Driver percentage", config.driver_percent),
            ("Company percentage", config.company_percent),
            ("Service fee percentage", config.service_fee_percent),
        )
        if error is not None:
            return error
        total = config.percent_total
        if abs(total - HUNDRED) >= PERCENT_TOLERANCE:
            return f"Percentages must sum to 100%. Current total: {total:.2f}%"
        for label, value in (
            ("Driver", config.driver_percent),
            ("Company", config.company_percent),
            ("Service fee", config.service_fee_percent),
        ):
            if value < ZERO or value > HUNDRED:
                return f"{label} percentage must be between 0 and 100 (got {value:.2f}%)"
        return None

    def calculate_payment(
        self, config: PaymentConfiguration, gross_amount: Decimal, miles: Decimal
    ) -> Decimal:
        self._check_kind(config)
        return gross_amount * config.driver_percent / HUNDRED

    def is_reasonable_payment(self, amount: Decimal, miles: Decimal) -> bool:
        return ZERO <= amount <= Decimal("50000")

    def payment_warning(self, amount: Decimal, miles: Decimal) -> str | None:
        if amount > Decimal("25000"):
            return f"Unusually high percentage payment: ${amount:.2f}"
        if ZERO < amount < Decimal("50"):
            return f"Unusually low percentage payment: ${amount:.2f}"
        return None

    def configured_rate(self, config: PaymentConfiguration) -> Decimal:
        return config.driver_percent

    def rate_warning(self, config: PaymentConfiguration) -> str | None:
        self._check_kind(config)
        if not self.configured_rate(config).is_finite():
            return None
        if config.driver_percent < self.typical_rate_min:
            return f"Driver percentage ({config.driver_percent:.2f}%) is unusually low"
        if config.driver_percent > self.typical_rate_max:
            return f"Driver percentage ({config.driver_percent:.2f}%) is unusually high"
        return None

    def requires_gross_amount(self) -> bool:
        return True

    def split_payment(
        self, config: PaymentConfiguration, gross_amount: Decimal, miles: Decimal
    ) -> PaymentBreakdown:
        driver_payment = self.calculate_payment(config, gross_amount, miles)
        company_payment = gross_amount * config.company_percent / HUNDRED
        service_fee_payment = gross_amount * config.service_fee_percent / HUNDRED
        return PaymentBreakdown(
            kind=self.kind,
            driver_payment=driver_payment,
            company_payment=company_payment,
            service_fee_payment=service_fee_payment,
            rate=config.driver_percent,
            miles=miles,
            details=(
                f"Gross ${gross_amount:.2f} x {config.driver_percent:.2f}% = "
                f"${driver_payment:.2f}"
            ),
        )


class FlatRatePaymentMethod(PaymentMethod):
    """Driver receives a fixed amount for each completed load."""

    kind = PaymentModelKind.FLAT_RATE
    typical_rate_min = Decimal("100")
    typical_rate_max = Decimal("5000")
    max_amount = Decimal("10000")

    def validation_error(self, config: PaymentConfiguration) -> str | None:
        self._check_kind(config)
        error = self._non_finite_error(("Flat rate", config.flat_rate_amount))
        if error is not None:
            return error
        if config.flat_rate_amount <= ZERO:
            return f"Flat rate must be greater than $0 (got ${config.flat_rate_amount:.2f})"
        if config.flat_rate_amount > self.max_amount:
            return (
                f"Flat rate cannot exceed $10,000 per load "
                f"(got ${config.flat_rate_amount:.2f})"
            )
        return None

    def calculate_payment(
        self, config: PaymentConfiguration, gross_amount: Decimal, miles: Decimal
    ) -> Decimal:
        self._check_kind(config)
        return config.flat_rate_amount

    def is_reasonable_payment(self, amount: Decimal, miles: Decimal) -> bool:
        return Decimal("50") <= amount <= Decimal("10000")

    def payment_warning(self, amount: Decimal, miles: Decimal) -> str | None:
        if amount > Decimal("5000"):
            return f"Unusually high flat rate payment: ${amount:.2f}"
        if amount < Decimal("100"):
            return f"Unusually low flat rate payment: ${amount:.2f}"
        return None

    def configured_rate(self, config: PaymentConfiguration) -> Decimal:
        return config.flat_rate_amount

    def rate_warning(self, config: PaymentConfiguration) -> str | None:
        self._check_kind(config)
        if not self.configured_rate(config).is_finite():
            return None
        if config.flat_rate_amount < self.typical_rate_min:
            return f"Flat rate (${config.flat_rate_amount:.2f}) is unusually low"
        if config.flat_rate_amount > self.typical_rate_max:
            return f"Flat rate (${config.flat_rate_amount:.2f}) is unusually high"
        return None

    def split_payment(
        self, config: PaymentConfiguration, gross_amount: Decimal, miles: Decimal
    ) -> PaymentBreakdown:
        breakdown = super().split_payment(config, gross_amount, miles)
        breakdown.details = f"Flat rate ${config.flat_rate_amount:.2f} per load"
        return breakdown


class PerMilePaymentMethod(PaymentMethod):
    """Driver receives payment based on miles from pickup to delivery."""

    kind = PaymentModelKind.PER_MILE
    typical_rate_min = Decimal("0.50")
    typical_rate_max = Decimal("5.00")
    max_rate = Decimal("10")

    def validation_error(self, config: PaymentConfiguration) -> str | None:
        self._check_kind(config)
        error = self._non_finite_error(("Per mile rate", config.per_mile_rate))
        if error is not None:
            return error
        if config.per_mile_rate <= ZERO:
            return f"Per mile rate must be greater than $0 (got ${config.per_mile_rate:.2f})"
        if config.per_mile_rate > self.max_rate:
            return (
                f"Per mile rate cannot exceed $10 per mile "
                f"(got ${config.per_mile_rate:.2f})"
            )
        return None

    def calculate_payment(
        self, config: PaymentConfiguration, gross_amount: Decimal, miles: Decimal
    ) -> Decimal:
        self._check_kind(config)
        return miles * config.per_mile_rate

    def is_reasonable_payment(self, amount: Decimal, miles: Decimal) -> bool:
        return miles > ZERO and ZERO <= amount <= miles * self.max_rate

    def payment_warning(self, amount: Decimal, miles: Decimal) -> str | None:
        if miles <= ZERO:
            return None
        effective_rate = amount / miles
        if effective_rate > self.typical_rate_max:
            return f"Unusually high per-mile rate: ${effective_rate:.2f}/mile"
        if effective_rate < self.typical_rate_min:
            return f"Unusually low per-mile rate: ${effective_rate:.2f}/mile"
        return None

    def configured_rate(self, config: PaymentConfiguration) -> Decimal:
        return config.per_mile_rate

    def rate_warning(self, config: PaymentConfiguration) -> str | None:
        self._check_kind(config)
        if not self.configured_rate(config).is_finite():
            return None
        if config.per_mile_rate < self.typical_rate_min:
            return f"Per mile rate (${config.per_mile_rate:.2f}) is unusually low"
        if config.per_mile_rate > self.typical_rate_max:
            return f"Per mile rate (${config.per_mile_rate:.2f}) is unusually high"
        return None

    def requires_zip_codes(self) -> bool:
        return True

    def split_payment(
        self, config: PaymentConfiguration, gross_amount: Decimal, miles: Decimal
    ) -> PaymentBreakdown:
        breakdown = super().split_payment(config, gross_amount, miles)
        breakdown.details = (
            f"{miles:.1f} miles x ${config.per_mile_rate:.2f} = "
            f"${breakdown.driver_payment:.2f}"
        )
        return breakdown


_METHODS: dict[PaymentModelKind, PaymentMethod] = {
    method.kind: method
    for method in (
        PercentagePaymentMethod(),
        FlatRatePaymentMethod(),
        PerMilePaymentMethod(),
    )
}

_missing = set(PaymentModelKind) - set(_METHODS)
if _missing:
    raise InternalConsistencyError(
        "Payment kinds without a method: " + ", ".join(sorted(k.value for k in _missing))
    )


def method_for(kind: PaymentModelKind) -> PaymentMethod:
    """Get the payment method implementing a kind."""
    try:
        return _METHODS[kind]
    except KeyError:
        raise InternalConsistencyError(f"Unknown payment kind: {kind!r}") from None


def validate_configuration(config: PaymentConfiguration) -> bool:
    return method_for(config.kind).validate(config)


def validation_error(config: PaymentConfiguration) -> str | None:
    return method_for(config.kind).validation_error(config)


def require_valid(config: PaymentConfiguration) -> None:
    """Raise ConfigurationError if the configuration is structurally invalid."""
    error = validation_error(config)
    if error is not None:
        raise ConfigurationError(error, configuration=config)


def rate_warning(config: PaymentConfiguration) -> str | None:
    return method_for(config.kind).rate_warning(config)


def calculate_payment(
    config: PaymentConfiguration,
    gross_amount: Decimal | float = ZERO,
    miles: Decimal | float = ZERO,
) -> Decimal:
    """Compute a driver payment for one load under a configuration."""
    return method_for(config.kind).calculate_payment(
        config, to_decimal(gross_amount), to_decimal(miles)
    )
