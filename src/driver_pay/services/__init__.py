"""Payment history services."""

from driver_pay.services.history_ledger import HistoryLedger, LedgerMutation, check_timeline
from driver_pay.services.change_request import (
    ChangeRequest,
    ChangeRequestStatus,
    ValidationResult,
)
from driver_pay.services.payment_calculator import PaymentCalculator
from driver_pay.services.history_store import (
    HistoryStore,
    InMemoryHistoryStore,
    SqlHistoryStore,
)
from driver_pay.services.payment_history_service import PaymentHistoryService

__all__ = [
    "ChangeRequest",
    "ChangeRequestStatus",
    "HistoryLedger",
    "HistoryStore",
    "InMemoryHistoryStore",
    "LedgerMutation",
    "PaymentCalculator",
    "PaymentHistoryService",
    "SqlHistoryStore",
    "ValidationResult",
    "check_timeline",
]
