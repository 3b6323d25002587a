"""
Ledger Events and Command Results

Commands never talk to the UI directly. They return a CommandResult carrying
the events the presentation layer should react to (notifications, counter
animation, enabling or disabling the undo button).
"""

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class LedgerEventType(str, Enum):
    """Every event a command can emit."""
    INTEREST_ACCRUED = "interest_accrued"
    BALANCE_CHANGED = "balance_changed"
    HISTORY_AVAILABILITY_CHANGED = "history_availability_changed"
    BORROW_RECORDED = "borrow_recorded"
    PAYMENT_SKIPPED = "payment_skipped"
    UNDO_APPLIED = "undo_applied"
    INVALID_INPUT = "invalid_input"
    NO_HISTORY = "no_history"
    PERSISTENCE_FAILED = "persistence_failed"


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class InterestAccrued(_Event):
    """Interest was added because whole days passed since the last accrual."""
    event_type: Literal[LedgerEventType.INTEREST_ACCRUED] = LedgerEventType.INTEREST_ACCRUED
    days: int = Field(gt=0)
    amount: float


class BalanceChanged(_Event):
    """
    The balance moved. The display animates from `from_balance` to
    `to_balance`.
    """
    event_type: Literal[LedgerEventType.BALANCE_CHANGED] = LedgerEventType.BALANCE_CHANGED
    from_balance: float = Field(alias="from")
    to_balance: float = Field(alias="to")


class HistoryAvailabilityChanged(_Event):
    event_type: Literal[LedgerEventType.HISTORY_AVAILABILITY_CHANGED] = (
        LedgerEventType.HISTORY_AVAILABILITY_CHANGED
    )
    has_entries: bool


class BorrowRecorded(_Event):
    event_type: Literal[LedgerEventType.BORROW_RECORDED] = LedgerEventType.BORROW_RECORDED
    amount: int


class PaymentSkipped(_Event):
    """A payment was ignored because nothing is owed."""
    event_type: Literal[LedgerEventType.PAYMENT_SKIPPED] = LedgerEventType.PAYMENT_SKIPPED
    balance: float


class UndoApplied(_Event):
    event_type: Literal[LedgerEventType.UNDO_APPLIED] = LedgerEventType.UNDO_APPLIED
    restored_timestamp: int


class InvalidInput(_Event):
    event_type: Literal[LedgerEventType.INVALID_INPUT] = LedgerEventType.INVALID_INPUT
    reason: str


class NoHistory(_Event):
    event_type: Literal[LedgerEventType.NO_HISTORY] = LedgerEventType.NO_HISTORY


class PersistenceFailed(_Event):
    """State changed in memory but could not be saved."""
    event_type: Literal[LedgerEventType.PERSISTENCE_FAILED] = LedgerEventType.PERSISTENCE_FAILED
    message: str


LedgerEvent = Annotated[
    Union[
        InterestAccrued,
        BalanceChanged,
        HistoryAvailabilityChanged,
        BorrowRecorded,
        PaymentSkipped,
        UndoApplied,
        InvalidInput,
        NoHistory,
        PersistenceFailed,
    ],
    Field(discriminator="event_type"),
]


class CommandResult(BaseModel):
    """
    Outcome of a payment, borrow or undo command.

    `success` is False only for rejected input and undo with no history.
    A skipped payment is a success that changed nothing.
    """

    success: bool
    events: list[LedgerEvent] = Field(default_factory=list)
    balance: float = Field(
        ...,
        description="Authoritative balance after the command"
    )
    error_message: Optional[str] = None

    @property
    def balance_change(self) -> Optional[BalanceChanged]:
        """The balance transition to animate, if any."""
        for event in self.events:
            if isinstance(event, BalanceChanged):
                return event
        return None

    @property
    def persisted(self) -> bool:
        return not any(isinstance(e, PersistenceFailed) for e in self.events)

    def find(self, event_type: LedgerEventType) -> Optional[BaseModel]:
        for event in self.events:
            if event.event_type == event_type:
                return event
        return None
