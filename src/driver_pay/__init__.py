"""Driver payment engine: payment models, configuration history and batch changes."""

from driver_pay.calculators import PaymentConfiguration, PaymentModelKind, calculate_payment
from driver_pay.errors import (
    AggregateValidationError,
    ConfigurationError,
    InternalConsistencyError,
    NoActiveConfigurationError,
    PaymentEngineError,
    TemporalError,
)
from driver_pay.services import ChangeRequest, HistoryLedger, PaymentCalculator

__version__ = "1.0.0"

__all__ = [
    "AggregateValidationError",
    "ChangeRequest",
    "ConfigurationError",
    "HistoryLedger",
    "InternalConsistencyError",
    "NoActiveConfigurationError",
    "PaymentCalculator",
    "PaymentConfiguration",
    "PaymentEngineError",
    "PaymentModelKind",
    "TemporalError",
    "calculate_payment",
]
