"""
Ledger Controller

This module owns the one LedgerState of a session and defines the three
commands the UI can issue:
1. record_payment - accrue interest, subtract the payment, floor at zero
2. record_borrow  - accrue interest, add the borrowed amount
3. undo           - restore the state captured before the last command

DESIGN DECISION: Commands never raise for user mistakes. Bad input and an
empty undo stack come back as a failed CommandResult. A failed save is
reported as a PersistenceFailed event while the in-memory state stays
correct for the rest of the session.
"""

import math
import numbers
import re
import time
from decimal import Decimal
from enum import Enum
from typing import Callable, Optional

import structlog

from debt_tracker.audit import AuditLogger, create_correlation_id
from debt_tracker.config import get_settings
from debt_tracker.config.settings import Settings
from debt_tracker.engine import accrue
from debt_tracker.models.events import (
    BalanceChanged,
    BorrowRecorded,
    CommandResult,
    HistoryAvailabilityChanged,
    InterestAccrued,
    InvalidInput,
    NoHistory,
    PaymentSkipped,
    PersistenceFailed,
    UndoApplied,
)
from debt_tracker.models.ledger import (
    InvalidAmountError,
    LedgerState,
    NoHistoryError,
)
from debt_tracker.repository import LedgerRepository
from debt_tracker.services.storage import (
    AuditStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsKeyValueStore,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStoreInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)

_INTEGER_PATTERN = re.compile(r"^\+?\d+$")


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class TransactionKind(str, Enum):
    PAYMENT = "payment"
    BORROW = "borrow"


def parse_amount(raw: object) -> int:
    """
    Validate a payment or borrow amount.

    Accepts integers of any Integral type, integral floats and Decimals,
    and digit strings (surrounding whitespace allowed).

    Raises:
        InvalidAmountError: If the value is not a positive finite integer
    """
    if isinstance(raw, bool):
        raise InvalidAmountError(raw, "not a number")

    if isinstance(raw, numbers.Integral):
        value = int(raw)
    elif isinstance(raw, float):
        if not math.isfinite(raw):
            raise InvalidAmountError(raw, "not finite")
        if not raw.is_integer():
            raise InvalidAmountError(raw, "not a whole amount")
        value = int(raw)
    elif isinstance(raw, Decimal):
        if not raw.is_finite():
            raise InvalidAmountError(raw, "not finite")
        if raw != raw.to_integral_value():
            raise InvalidAmountError(raw, "not a whole amount")
        value = int(raw)
    elif isinstance(raw, str):
        text = raw.strip()
        if not _INTEGER_PATTERN.match(text):
            raise InvalidAmountError(raw, "not a whole number")
        value = int(text)
    else:
        raise InvalidAmountError(raw, "not a number")

    if value <= 0:
        raise InvalidAmountError(raw, "must be greater than zero")
    return value


class LedgerController:
    """
    Runs payment, borrow and undo commands against one LedgerState.

    Flow of a transaction:
    1. Validate amount      (reject → InvalidInput, nothing changes)
    2. Guard settled debt   (payment only → PaymentSkipped, nothing changes)
    3. Snapshot for undo
    4. Accrue interest      (→ InterestAccrued when days passed)
    5. Apply the delta
    6. Stamp the accrual time
    7. Persist              (failure → PersistenceFailed)
    8. Report the transition (→ BalanceChanged, HistoryAvailabilityChanged)
    """

    def __init__(
        self,
        repository: LedgerRepository,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], int] = now_ms,
        annual_rate: float = 0.15,
        days_in_year: int = 365,
    ):
        self._repository = repository
        self._audit_logger = audit_logger or AuditLogger()
        self._clock = clock
        self._annual_rate = annual_rate
        self._days_in_year = days_in_year
        self._state = self._load_state()

    def _load_state(self) -> LedgerState:
        try:
            result = self._repository.load()
        except StorageError as e:
            self._audit_logger.log_error(
                error_type="state_load_failed",
                error_message=str(e),
            )
            return self._repository.default_state()

        state = result.state
        self._audit_logger.log_state_loaded(
            balance=state.balance,
            last_accrual_timestamp=state.last_accrual_timestamp,
            history_length=len(state.history),
            fallbacks=result.defaulted_fields,
        )
        return state

    @property
    def state(self) -> LedgerState:
        """A copy of the current state. Mutating it has no effect."""
        return self._state.model_copy(deep=True)

    @property
    def balance(self) -> float:
        return self._state.balance

    @property
    def can_undo(self) -> bool:
        return self._state.has_history

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def record_payment(self, amount: object) -> CommandResult:
        """Record a repayment. Overpayment is not carried forward."""
        return self._apply_transaction(TransactionKind.PAYMENT, amount)

    def record_borrow(self, amount: object) -> CommandResult:
        """Record additional borrowing."""
        return self._apply_transaction(TransactionKind.BORROW, amount)

    def undo(self) -> CommandResult:
        """
        Restore the state captured before the most recent command.

        Undo is not itself undoable and there is no redo.
        """
        correlation_id = create_correlation_id()

        try:
            snapshot = self._state.pop_snapshot()
        except NoHistoryError as e:
            self._audit_logger.log_no_history(correlation_id)
            return CommandResult(
                success=False,
                events=[NoHistory()],
                balance=self._state.balance,
                error_message=str(e),
            )

        start_balance = self._state.balance
        self._state.restore(snapshot)

        events = self._persist(correlation_id)
        events.extend([
            UndoApplied(restored_timestamp=snapshot.timestamp),
            BalanceChanged(from_balance=start_balance, to_balance=self._state.balance),
            HistoryAvailabilityChanged(has_entries=self._state.has_history),
        ])
        self._audit_logger.log_undo_applied(
            from_balance=start_balance,
            to_balance=self._state.balance,
            restored_timestamp=snapshot.timestamp,
            correlation_id=correlation_id,
        )
        return CommandResult(success=True, events=events, balance=self._state.balance)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _apply_transaction(self, kind: TransactionKind, raw_amount: object) -> CommandResult:
        correlation_id = create_correlation_id()
        state = self._state

        try:
            amount = parse_amount(raw_amount)
        except InvalidAmountError as e:
            self._audit_logger.log_invalid_amount(
                raw_value=raw_amount,
                reason=e.reason,
                correlation_id=correlation_id,
            )
            return CommandResult(
                success=False,
                events=[InvalidInput(reason=e.reason)],
                balance=state.balance,
                error_message=str(e),
            )

        if kind == TransactionKind.PAYMENT and state.is_settled:
            self._audit_logger.log_payment_skipped(
                amount=amount,
                balance=state.balance,
                correlation_id=correlation_id,
            )
            return CommandResult(
                success=True,
                events=[PaymentSkipped(balance=state.balance)],
                balance=state.balance,
            )

        state.push_snapshot(state.snapshot())

        now = self._clock()
        accrual = accrue(
            state.balance,
            state.last_accrual_timestamp,
            now,
            annual_rate=self._annual_rate,
            days_in_year=self._days_in_year,
        )

        events = []
        if accrual.accrued:
            events.append(InterestAccrued(
                days=accrual.elapsed_days,
                amount=accrual.interest_applied,
            ))
            self._audit_logger.log_interest_accrued(
                days=accrual.elapsed_days,
                amount=accrual.interest_applied,
                correlation_id=correlation_id,
            )

        start_balance = accrual.new_balance
        if kind == TransactionKind.PAYMENT:
            end_balance = max(0.0, start_balance - amount)
        else:
            end_balance = start_balance + amount

        state.balance = end_balance
        state.last_accrual_timestamp = now

        events.extend(self._persist(correlation_id))
        if kind == TransactionKind.BORROW:
            events.append(BorrowRecorded(amount=amount))
        events.extend([
            BalanceChanged(from_balance=start_balance, to_balance=end_balance),
            HistoryAvailabilityChanged(has_entries=True),
        ])

        if kind == TransactionKind.PAYMENT:
            self._audit_logger.log_payment_recorded(
                amount=amount,
                from_balance=start_balance,
                to_balance=end_balance,
                correlation_id=correlation_id,
            )
        else:
            self._audit_logger.log_borrow_recorded(
                amount=amount,
                from_balance=start_balance,
                to_balance=end_balance,
                correlation_id=correlation_id,
            )

        return CommandResult(success=True, events=events, balance=end_balance)

    def _persist(self, correlation_id) -> list:
        """Save the state; a failure becomes an event instead of an exception."""
        try:
            self._repository.save(self._state)
        except StorageError as e:
            self._audit_logger.log_persistence_failed(
                error_message=str(e),
                correlation_id=correlation_id,
            )
            return [PersistenceFailed(message=str(e))]
        return []


def create_store(settings: Optional[Settings] = None) -> tuple[KeyValueStoreInterface, Optional[AuditStorageInterface]]:
    """
    Build the configured key/value store and, for Google Sheets, the
    matching audit store.

    Falls back to the JSON file backend if Google Sheets is not configured.
    """
    settings = settings or get_settings()
    storage_settings = settings.storage

    if storage_settings.backend == "memory":
        return InMemoryKeyValueStore(), None

    if storage_settings.backend == "google_sheets":
        try:
            client = GoogleSheetsClient(settings.google_sheets)
            return GoogleSheetsKeyValueStore(client), GoogleSheetsAuditStorage(client)
        except Exception as e:
            # Storage not configured - continue with the local file
            logger.warning("google_sheets_unavailable", error=str(e))

    return JsonFileKeyValueStore(storage_settings.json_path), None


def create_controller(
    settings: Optional[Settings] = None,
    store: Optional[KeyValueStoreInterface] = None,
    audit_storage: Optional[AuditStorageInterface] = None,
    clock: Callable[[], int] = now_ms,
) -> LedgerController:
    """
    Factory function to create a controller wired to configured storage.

    Args:
        settings: Settings to use (defaults to the cached settings)
        store: Key/value store to use instead of the configured one
        audit_storage: Audit store to use instead of the configured one
        clock: Source of "now" in epoch milliseconds
    """
    settings = settings or get_settings()
    ledger_settings = settings.ledger

    if store is None:
        store, configured_audit = create_store(settings)
        audit_storage = audit_storage or configured_audit

    repository = LedgerRepository(
        store=store,
        clock=clock,
        initial_balance=ledger_settings.initial_balance,
        max_history=ledger_settings.max_history,
    )
    return LedgerController(
        repository=repository,
        audit_logger=AuditLogger(audit_storage),
        clock=clock,
        annual_rate=ledger_settings.annual_rate,
        days_in_year=ledger_settings.days_in_year,
    )
