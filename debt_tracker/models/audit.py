"""
Audit Models for Debt Tracker

Every command outcome is logged for audit purposes.
This provides:
1. A readable trail of every payment, borrow and undo
2. Debugging information when a save fails
3. The ability to reconstruct how a balance was reached

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Session
    STATE_LOADED = "state_loaded"

    # Transactions
    PAYMENT_RECORDED = "payment_recorded"
    PAYMENT_SKIPPED = "payment_skipped"
    BORROW_RECORDED = "borrow_recorded"
    INTEREST_ACCRUED = "interest_accrued"

    # Undo
    UNDO_APPLIED = "undo_applied"

    # Rejections
    INVALID_AMOUNT = "invalid_amount"
    NO_HISTORY = "no_history"

    # System events
    PERSISTENCE_FAILED = "persistence_failed"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every command creates one or more of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Correlation - all events of one command share this
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate the events of one command"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, correlation_id,
         description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.payment_recorded(5000, 100082.19, 95082.19, cid)
        event = AuditEventBuilder.no_history(cid)
    """

    @staticmethod
    def state_loaded(
        balance: float,
        last_accrual_timestamp: int,
        history_length: int,
        fallbacks: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_LOADED,
            severity=AuditSeverity.WARNING if fallbacks else AuditSeverity.INFO,
            description="Ledger state loaded",
            details={
                "balance": balance,
                "last_accrual_timestamp": last_accrual_timestamp,
                "history_length": history_length,
                "defaulted_fields": fallbacks,
            },
        )

    @staticmethod
    def payment_recorded(
        amount: int,
        from_balance: float,
        to_balance: float,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYMENT_RECORDED,
            correlation_id=correlation_id,
            description=f"Payment recorded: {amount}",
            details={
                "amount": amount,
                "from_balance": from_balance,
                "to_balance": to_balance,
            },
            is_user_action=True,
        )

    @staticmethod
    def payment_skipped(
        amount: int,
        balance: float,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYMENT_SKIPPED,
            correlation_id=correlation_id,
            description="Payment ignored: debt already settled",
            details={
                "amount": amount,
                "balance": balance,
            },
            is_user_action=True,
        )

    @staticmethod
    def borrow_recorded(
        amount: int,
        from_balance: float,
        to_balance: float,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BORROW_RECORDED,
            correlation_id=correlation_id,
            description=f"Borrow recorded: {amount}",
            details={
                "amount": amount,
                "from_balance": from_balance,
                "to_balance": to_balance,
            },
            is_user_action=True,
        )

    @staticmethod
    def interest_accrued(
        days: int,
        amount: float,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INTEREST_ACCRUED,
            correlation_id=correlation_id,
            description=f"Interest accrued for {days} day(s)",
            details={
                "days": days,
                "amount": amount,
            },
        )

    @staticmethod
    def undo_applied(
        from_balance: float,
        to_balance: float,
        restored_timestamp: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.UNDO_APPLIED,
            correlation_id=correlation_id,
            description="Last operation undone",
            details={
                "from_balance": from_balance,
                "to_balance": to_balance,
                "restored_timestamp": restored_timestamp,
            },
            is_user_action=True,
        )

    @staticmethod
    def invalid_amount(
        raw_value: str,
        reason: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVALID_AMOUNT,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description="Rejected amount",
            details={
                "raw_value": raw_value,
                "reason": reason,
            },
            is_user_action=True,
        )

    @staticmethod
    def no_history(correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NO_HISTORY,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description="Undo requested with empty history",
            is_user_action=True,
        )

    @staticmethod
    def persistence_failed(
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERSISTENCE_FAILED,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description="Ledger state could not be saved",
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
