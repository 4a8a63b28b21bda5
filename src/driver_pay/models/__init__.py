"""ORM models."""

from driver_pay.models.base import Base
from driver_pay.models.payment_history import PaymentMethodHistoryRow

__all__ = ["Base", "PaymentMethodHistoryRow"]
