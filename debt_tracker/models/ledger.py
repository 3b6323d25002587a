"""
Core Ledger Models for Debt Tracker

These models hold the authoritative debt state:
1. The current balance
2. When interest was last accrued
3. A bounded stack of snapshots for undo

DESIGN DECISION: The state object is pure data. It never reads the clock,
never touches storage and never emits events. The controller owns it and
decides when it changes.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


MS_PER_DAY = 1000 * 60 * 60 * 24
DEFAULT_MAX_HISTORY = 10


# =============================================================================
# ERRORS
# =============================================================================

class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class InvalidAmountError(LedgerError):
    """A payment or borrow amount was not a positive finite integer."""

    def __init__(self, raw_value: object, reason: str):
        self.raw_value = raw_value
        self.reason = reason
        super().__init__(f"Invalid amount {raw_value!r}: {reason}")


class NoHistoryError(LedgerError):
    """Undo was requested with nothing to undo."""

    def __init__(self):
        super().__init__("There is no operation to undo")


# =============================================================================
# SNAPSHOT
# =============================================================================

class Snapshot(BaseModel):
    """
    The (balance, timestamp) pair captured before a mutating operation.

    Serialized with the aliases `debt` and `date` so stored history stays
    readable by older saves.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    balance: float = Field(
        ...,
        alias="debt",
        description="Balance before the operation"
    )
    timestamp: int = Field(
        ...,
        alias="date",
        description="Last accrual time before the operation (epoch ms)"
    )

    def to_storage_dict(self) -> dict:
        return self.model_dump(by_alias=True)


# =============================================================================
# LEDGER STATE
# =============================================================================

class LedgerState(BaseModel):
    """
    Current balance, last accrual instant and the undo stack.

    History is most-recent-first. Its length never exceeds `max_history`;
    pushing onto a full stack drops the oldest entry.
    """

    balance: float = Field(
        ...,
        description="Current balance, unrounded"
    )
    last_accrual_timestamp: int = Field(
        ...,
        description="When interest was last applied (epoch ms)"
    )
    history: list[Snapshot] = Field(
        default_factory=list,
        description="Undo stack, most recent first"
    )
    max_history: int = Field(
        default=DEFAULT_MAX_HISTORY,
        ge=1,
        exclude=True,
        description="Bound on the undo stack"
    )

    @model_validator(mode='after')
    def validate_history_bound(self) -> 'LedgerState':
        if len(self.history) > self.max_history:
            raise ValueError(
                f"History has {len(self.history)} entries, "
                f"bound is {self.max_history}"
            )
        return self

    @property
    def has_history(self) -> bool:
        return len(self.history) > 0

    @property
    def is_settled(self) -> bool:
        """True once nothing is owed."""
        return self.balance <= 0

    def snapshot(self) -> Snapshot:
        """Capture the current (balance, timestamp) pair."""
        return Snapshot(
            balance=self.balance,
            timestamp=self.last_accrual_timestamp,
        )

    def push_snapshot(self, snapshot: Snapshot) -> Optional[Snapshot]:
        """
        Put a snapshot at the head of the history.

        Returns the evicted oldest snapshot when the bound was exceeded.
        """
        self.history.insert(0, snapshot)
        if len(self.history) > self.max_history:
            return self.history.pop()
        return None

    def pop_snapshot(self) -> Snapshot:
        """
        Remove and return the most recent snapshot.

        Raises:
            NoHistoryError: If the history is empty
        """
        if not self.history:
            raise NoHistoryError()
        return self.history.pop(0)

    def restore(self, snapshot: Snapshot) -> None:
        """Set balance and timestamp exactly as captured."""
        self.balance = snapshot.balance
        self.last_accrual_timestamp = snapshot.timestamp


class AccrualResult(BaseModel):
    """Outcome of applying daily interest."""
    model_config = ConfigDict(frozen=True)

    new_balance: float
    interest_applied: float
    elapsed_days: int = Field(ge=0)

    @property
    def accrued(self) -> bool:
        return self.elapsed_days > 0
