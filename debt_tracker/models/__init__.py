"""
Data Models Package

This package contains all Pydantic models used in the Debt Tracker.
"""

from debt_tracker.models.ledger import (
    DEFAULT_MAX_HISTORY,
    MS_PER_DAY,
    AccrualResult,
    InvalidAmountError,
    LedgerError,
    LedgerState,
    NoHistoryError,
    Snapshot,
)
from debt_tracker.models.events import (
    BalanceChanged,
    BorrowRecorded,
    CommandResult,
    HistoryAvailabilityChanged,
    InterestAccrued,
    InvalidInput,
    LedgerEvent,
    LedgerEventType,
    NoHistory,
    PaymentSkipped,
    PersistenceFailed,
    UndoApplied,
)
from debt_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "DEFAULT_MAX_HISTORY",
    "MS_PER_DAY",
    "AccrualResult",
    "InvalidAmountError",
    "LedgerError",
    "LedgerState",
    "NoHistoryError",
    "Snapshot",
    # Events
    "BalanceChanged",
    "BorrowRecorded",
    "CommandResult",
    "HistoryAvailabilityChanged",
    "InterestAccrued",
    "InvalidInput",
    "LedgerEvent",
    "LedgerEventType",
    "NoHistory",
    "PaymentSkipped",
    "PersistenceFailed",
    "UndoApplied",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
