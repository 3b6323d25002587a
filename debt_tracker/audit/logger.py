"""
Audit Logger

DESIGN DECISION: Every command outcome is logged.
This provides:
1. Traceability of how the balance got where it is
2. Debugging capability when a save fails
3. A record that survives even an undo

The audit logger:
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to tie together the events of one command
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from debt_tracker.models.audit import AuditEvent, AuditEventBuilder
from debt_tracker.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit store, when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("debt_tracker.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_state_loaded(
        self,
        balance: float,
        last_accrual_timestamp: int,
        history_length: int,
        fallbacks: list[str],
    ) -> None:
        self.log(AuditEventBuilder.state_loaded(
            balance=balance,
            last_accrual_timestamp=last_accrual_timestamp,
            history_length=history_length,
            fallbacks=fallbacks,
        ))

    def log_payment_recorded(
        self,
        amount: int,
        from_balance: float,
        to_balance: float,
        correlation_id: UUID,
    ) -> None:
        """Log a payment."""
        self.log(AuditEventBuilder.payment_recorded(
            amount=amount,
            from_balance=from_balance,
            to_balance=to_balance,
            correlation_id=correlation_id,
        ))

    def log_payment_skipped(
        self,
        amount: int,
        balance: float,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.payment_skipped(
            amount=amount,
            balance=balance,
            correlation_id=correlation_id,
        ))

    def log_borrow_recorded(
        self,
        amount: int,
        from_balance: float,
        to_balance: float,
        correlation_id: UUID,
    ) -> None:
        """Log a borrow."""
        self.log(AuditEventBuilder.borrow_recorded(
            amount=amount,
            from_balance=from_balance,
            to_balance=to_balance,
            correlation_id=correlation_id,
        ))

    def log_interest_accrued(
        self,
        days: int,
        amount: float,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.interest_accrued(
            days=days,
            amount=amount,
            correlation_id=correlation_id,
        ))

    def log_undo_applied(
        self,
        from_balance: float,
        to_balance: float,
        restored_timestamp: int,
        correlation_id: UUID,
    ) -> None:
        """Log an undo."""
        self.log(AuditEventBuilder.undo_applied(
            from_balance=from_balance,
            to_balance=to_balance,
            restored_timestamp=restored_timestamp,
            correlation_id=correlation_id,
        ))

    def log_invalid_amount(
        self,
        raw_value: object,
        reason: str,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.invalid_amount(
            raw_value=repr(raw_value),
            reason=reason,
            correlation_id=correlation_id,
        ))

    def log_no_history(self, correlation_id: UUID) -> None:
        self.log(AuditEventBuilder.no_history(correlation_id=correlation_id))

    def log_persistence_failed(
        self,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed save."""
        self.log(AuditEventBuilder.persistence_failed(
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of each command and pass it to every
    audit call the command makes.
    """
    return uuid4()
