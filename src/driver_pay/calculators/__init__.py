"""Payment model calculation and validation rules."""

from driver_pay.calculators.payment_method import (
    FlatRatePaymentMethod,
    PaymentMethod,
    PercentagePaymentMethod,
    PerMilePaymentMethod,
    calculate_payment,
    method_for,
    rate_warning,
    require_valid,
    validate_configuration,
    validation_error,
)
from driver_pay.calculators.types import (
    DriverPayrollResult,
    HistoryRecord,
    LoadInput,
    LoadPaymentResult,
    PaymentBreakdown,
    PaymentConfiguration,
    PaymentModelKind,
)

__all__ = [
    "DriverPayrollResult",
    "FlatRatePaymentMethod",
    "HistoryRecord",
    "LoadInput",
    "LoadPaymentResult",
    "PaymentBreakdown",
    "PaymentConfiguration",
    "PaymentMethod",
    "PaymentModelKind",
    "PercentagePaymentMethod",
    "PerMilePaymentMethod",
    "calculate_payment",
    "method_for",
    "rate_warning",
    "require_valid",
    "validate_configuration",
    "validation_error",
]
