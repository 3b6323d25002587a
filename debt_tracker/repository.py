"""
Ledger Repository

Maps LedgerState to and from three string keys:

    debtAmount        decimal string      current balance
    lastInterestDate  integer string      last accrual instant (epoch ms)
    debtHistory       JSON array          [{"debt": ..., "date": ...}, ...], newest first

DESIGN DECISION: Each key is loaded independently. A corrupt history
falls back to an empty history without touching the balance, and a
missing timestamp falls back to "now" without touching the history.
"""

import json
import math
import re
from typing import Callable, Optional

import structlog
from pydantic import BaseModel, Field, ValidationError

from debt_tracker.models.ledger import DEFAULT_MAX_HISTORY, LedgerState, Snapshot
from debt_tracker.services.storage import KeyValueStoreInterface


logger = structlog.get_logger(__name__)

BALANCE_KEY = "debtAmount"
TIMESTAMP_KEY = "lastInterestDate"
HISTORY_KEY = "debtHistory"

DEFAULT_BALANCE = 100000.0

# Plain decimal notation only: no underscores, no "inf"/"nan" words.
_DECIMAL_PATTERN = re.compile(r"^[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?$")
_INTEGER_PATTERN = re.compile(r"^[+-]?[0-9]+$")


def format_balance(value: float) -> str:
    """
    Decimal string for a balance.

    Whole numbers are written without a trailing ".0"; everything else
    uses repr so that parsing it back yields the same float.
    """
    if math.isfinite(value) and value == int(value) and abs(value) < 1e16:
        return str(int(value))
    return repr(float(value))


def parse_balance(raw: Optional[str]) -> Optional[float]:
    """A finite float, or None if the value is missing or unusable."""
    if raw is None:
        return None
    text = raw.strip()
    if not _DECIMAL_PATTERN.match(text):
        return None
    value = float(text)
    if not math.isfinite(value):
        return None
    return value


def parse_timestamp(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    text = raw.strip()
    if not _INTEGER_PATTERN.match(text):
        return None
    return int(text)


def parse_history(raw: Optional[str]) -> Optional[list[Snapshot]]:
    """
    Decode the stored history.

    Returns None when the value is missing or any entry is malformed;
    a half-valid history is never returned.
    """
    if raw is None:
        return None
    try:
        entries = json.loads(raw)
    except json.JSONDecodeError:
        return None
    if not isinstance(entries, list):
        return None
    try:
        snapshots = [Snapshot.model_validate(entry) for entry in entries]
    except ValidationError:
        return None
    if not all(math.isfinite(s.balance) for s in snapshots):
        return None
    return snapshots


def encode_history(history: list[Snapshot]) -> str:
    return json.dumps([snapshot.to_storage_dict() for snapshot in history])


class LoadResult(BaseModel):
    """A loaded state plus the names of the fields that fell back to defaults."""
    state: LedgerState
    defaulted_fields: list[str] = Field(default_factory=list)


class LedgerRepository:
    """
    Reads and writes LedgerState through a key/value store.

    Storage errors are not caught here; the controller decides how to
    report them.
    """

    def __init__(
        self,
        store: KeyValueStoreInterface,
        clock: Callable[[], int],
        initial_balance: float = DEFAULT_BALANCE,
        max_history: int = DEFAULT_MAX_HISTORY,
    ):
        self._store = store
        self._clock = clock
        self._initial_balance = initial_balance
        self._max_history = max_history

    @property
    def store(self) -> KeyValueStoreInterface:
        return self._store

    def load(self) -> LoadResult:
        """
        Load state, falling back per field.

        Raises:
            PersistenceUnavailableError: If the store itself cannot be read
        """
        defaulted = []

        balance = parse_balance(self._store.get(BALANCE_KEY))
        if balance is None:
            balance = self._initial_balance
            defaulted.append("balance")

        timestamp = parse_timestamp(self._store.get(TIMESTAMP_KEY))
        if timestamp is None:
            timestamp = self._clock()
            defaulted.append("last_accrual_timestamp")

        history = parse_history(self._store.get(HISTORY_KEY))
        if history is None:
            history = []
            defaulted.append("history")
        elif len(history) > self._max_history:
            logger.warning(
                "history_truncated",
                stored_length=len(history),
                max_history=self._max_history,
            )
            history = history[:self._max_history]

        state = LedgerState(
            balance=balance,
            last_accrual_timestamp=timestamp,
            history=history,
            max_history=self._max_history,
        )
        return LoadResult(state=state, defaulted_fields=defaulted)

    def default_state(self) -> LedgerState:
        """Fresh state used when the store cannot be read at all."""
        return LedgerState(
            balance=self._initial_balance,
            last_accrual_timestamp=self._clock(),
            max_history=self._max_history,
        )

    def save(self, state: LedgerState) -> None:
        """
        Persist balance, timestamp and history together.

        Raises:
            PersistenceUnavailableError: If the write fails
        """
        self._store.set_many({
            BALANCE_KEY: format_balance(state.balance),
            TIMESTAMP_KEY: str(state.last_accrual_timestamp),
            HISTORY_KEY: encode_history(state.history),
        })
