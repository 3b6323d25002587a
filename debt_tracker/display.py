"""
Display Helpers

Turns ledger state and command events into what the page shows:
rounded balances with thousands separators, the last accrual date,
which buttons are enabled, and notification text.
"""

import math
from datetime import datetime, timezone, tzinfo
from typing import Optional

from pydantic import BaseModel

from debt_tracker.models.events import (
    BorrowRecorded,
    CommandResult,
    InterestAccrued,
    InvalidInput,
    NoHistory,
    PaymentSkipped,
    PersistenceFailed,
    UndoApplied,
)
from debt_tracker.models.ledger import LedgerState


# Grouping characters for locales that do not use ","
_THOUSANDS_SEPARATORS = {
    "de": ".",
    "es": ".",
    "it": ".",
    "nl": ".",
    "pt": ".",
    "fr": " ",
    "ru": " ",
}


def round_half_up(value: float) -> int:
    """Nearest integer, halves rounded towards +infinity."""
    return math.floor(value + 0.5)


def _language(locale: str) -> str:
    return locale.replace("-", "_").split("_")[0].lower()


def format_amount(value: float, locale: str = "ja_JP") -> str:
    """Whole-unit amount with thousands separators, e.g. 95082.19 -> '95,082'."""
    text = f"{round_half_up(value):,}"
    separator = _THOUSANDS_SEPARATORS.get(_language(locale), ",")
    if separator != ",":
        text = text.replace(",", separator)
    return text


def format_date(timestamp_ms: int, locale: str = "ja_JP", tz: Optional[tzinfo] = None) -> str:
    """
    Calendar date of an epoch-ms instant.

    ja_JP renders 2024/1/5, en_US renders 1/5/2024, anything else ISO.
    Uses the local timezone unless `tz` is given.
    """
    moment = datetime.fromtimestamp(timestamp_ms / 1000, tz=tz or timezone.utc)
    if tz is None:
        moment = moment.astimezone()
    normalized = locale.replace("-", "_")
    if normalized == "ja_JP":
        return f"{moment.year}/{moment.month}/{moment.day}"
    if normalized == "en_US":
        return f"{moment.month}/{moment.day}/{moment.year}"
    return moment.date().isoformat()


class DisplayState(BaseModel):
    """What the page renders for a given LedgerState."""

    balance_text: str
    last_accrual_text: str
    settled: bool
    payment_enabled: bool
    borrow_enabled: bool
    undo_enabled: bool

    @classmethod
    def from_ledger(
        cls,
        state: LedgerState,
        locale: str = "ja_JP",
        tz: Optional[tzinfo] = None,
    ) -> "DisplayState":
        # Both transaction buttons lock once the debt is paid off
        settled = state.is_settled
        return cls(
            balance_text=format_amount(state.balance, locale),
            last_accrual_text=format_date(state.last_accrual_timestamp, locale, tz),
            settled=settled,
            payment_enabled=not settled,
            borrow_enabled=not settled,
            undo_enabled=state.has_history,
        )


def interest_message(event: InterestAccrued, locale: str = "ja_JP") -> str:
    return (
        f"{event.days} day(s) have passed, so "
        f"{format_amount(event.amount, locale)} of interest was added."
    )


def notifications(result: CommandResult, locale: str = "ja_JP") -> list[tuple[str, str]]:
    """
    (level, message) pairs for a command result.

    Levels are "info", "success", "warning" and "error".
    """
    messages = []
    for event in result.events:
        if isinstance(event, InterestAccrued):
            messages.append(("info", interest_message(event, locale)))
        elif isinstance(event, BorrowRecorded):
            messages.append((
                "success",
                f"{format_amount(event.amount, locale)} has been added to the debt.",
            ))
        elif isinstance(event, UndoApplied):
            messages.append(("success", "The last operation was undone."))
        elif isinstance(event, PaymentSkipped):
            messages.append(("info", "The debt is already paid off."))
        elif isinstance(event, InvalidInput):
            messages.append(("warning", "Please enter a valid amount."))
        elif isinstance(event, NoHistory):
            messages.append(("warning", "There is nothing to undo."))
        elif isinstance(event, PersistenceFailed):
            messages.append((
                "error",
                "The change could not be saved and will be lost when the app restarts.",
            ))
    return messages
