"""Tests for display formatting and the counter animation."""

from datetime import timezone

import pytest

from debt_tracker.animation import CancellationToken, CounterAnimation, CounterAnimator
from debt_tracker.display import (
    DisplayState,
    format_amount,
    format_date,
    notifications,
    round_half_up,
)
from debt_tracker.models.events import (
    BalanceChanged,
    BorrowRecorded,
    CommandResult,
    InterestAccrued,
    NoHistory,
    PersistenceFailed,
)
from debt_tracker.models.ledger import LedgerState, Snapshot


JAN_5_2024_UTC = 1704412800000


class StepClock:
    """Advances by a fixed step every time it is read."""

    def __init__(self, step_ms: float):
        self.now = 0.0
        self.step_ms = step_ms

    def __call__(self) -> float:
        value = self.now
        self.now += self.step_ms
        return value


def no_sleep(seconds: float) -> None:
    pass


class TestFormatting:
    """Tests for amount and date formatting."""

    @pytest.mark.parametrize("value, expected", [
        (95082.19, 95082),
        (0.5, 1),
        (2.4999, 2),
        (-2.5, -2),
    ])
    def test_round_half_up(self, value, expected):
        """Test halves round towards +infinity."""
        assert round_half_up(value) == expected

    def test_format_amount_thousands(self):
        """Test thousands separators."""
        assert format_amount(95082.19) == "95,082"
        assert format_amount(1234567.5) == "1,234,568"
        assert format_amount(0) == "0"

    def test_format_amount_locale_separator(self):
        """Test locales that group with a dot."""
        assert format_amount(1234567, "de_DE") == "1.234.567"
        assert format_amount(1234567, "en-US") == "1,234,567"

    def test_format_date_locales(self):
        """Test ja_JP, en_US and fallback date formats."""
        assert format_date(JAN_5_2024_UTC, "ja_JP", tz=timezone.utc) == "2024/1/5"
        assert format_date(JAN_5_2024_UTC, "en_US", tz=timezone.utc) == "1/5/2024"
        assert format_date(JAN_5_2024_UTC, "fr_FR", tz=timezone.utc) == "2024-01-05"


class TestDisplayState:
    """Tests for button enablement and rendering values."""

    def test_open_debt(self):
        """Test buttons for an open debt with no history."""
        state = LedgerState(balance=95082.19, last_accrual_timestamp=JAN_5_2024_UTC)
        view = DisplayState.from_ledger(state, tz=timezone.utc)
        assert view.balance_text == "95,082"
        assert view.last_accrual_text == "2024/1/5"
        assert view.payment_enabled is True
        assert view.borrow_enabled is True
        assert view.undo_enabled is False

    def test_settled_debt_disables_transactions(self):
        """Test a paid-off debt locks payment and borrow but not undo."""
        state = LedgerState(
            balance=0.0,
            last_accrual_timestamp=JAN_5_2024_UTC,
            history=[Snapshot(balance=10.0, timestamp=1)],
        )
        view = DisplayState.from_ledger(state, tz=timezone.utc)
        assert view.settled is True
        assert view.payment_enabled is False
        assert view.borrow_enabled is False
        assert view.undo_enabled is True


class TestNotifications:
    """Tests for user-facing messages."""

    def test_interest_and_borrow_messages(self):
        """Test interest and borrow events produce messages."""
        result = CommandResult(
            success=True,
            balance=120082.19,
            events=[
                InterestAccrued(days=2, amount=82.19),
                BorrowRecorded(amount=20000),
                BalanceChanged(from_balance=100082.19, to_balance=120082.19),
            ],
        )
        messages = notifications(result)
        assert messages[0] == ("info", "2 day(s) have passed, so 82 of interest was added.")
        assert messages[1] == ("success", "20,000 has been added to the debt.")
        assert len(messages) == 2

    def test_failure_messages(self):
        """Test failures are surfaced with warning and error levels."""
        result = CommandResult(
            success=False,
            balance=1.0,
            events=[NoHistory(), PersistenceFailed(message="disk full")],
        )
        levels = [level for level, _ in notifications(result)]
        assert levels == ["warning", "error"]


class TestCounterAnimation:
    """Tests for the cancellable counter."""

    def test_runs_to_exact_end(self):
        """Test frames go from start to the rounded end value."""
        animation = CounterAnimation(0, 1000, duration_ms=100, clock=StepClock(25), sleep=no_sleep)
        assert list(animation.frames()) == [250, 500, 750, 1000]
        assert animation.finished is True

    def test_zero_duration_single_frame(self):
        """Test a zero-length animation shows only the end value."""
        animation = CounterAnimation(5, 9.6, duration_ms=0, clock=StepClock(1), sleep=no_sleep)
        assert list(animation.frames()) == [10]

    def test_cancelled_animation_stops(self):
        """Test a cancelled token ends the frame stream."""
        token = CancellationToken()
        animation = CounterAnimation(
            0, 1000, duration_ms=100, token=token, clock=StepClock(10), sleep=no_sleep,
        )
        rendered = []
        frames = animation.frames()
        rendered.append(next(frames))
        rendered.append(next(frames))
        token.cancel()
        rendered.extend(frames)

        assert len(rendered) == 2
        assert animation.finished is False

    def test_run_reports_completion(self):
        """Test run renders every frame and returns True when done."""
        rendered = []
        animation = CounterAnimation(10, 20, duration_ms=50, clock=StepClock(10), sleep=no_sleep)
        assert animation.run(rendered.append) is True
        assert rendered[-1] == 20

    def test_new_animation_cancels_previous_and_continues(self):
        """Test restarting mid-flight continues from the displayed value."""
        animator = CounterAnimator(duration_ms=100, clock=StepClock(10), sleep=no_sleep)
        first = animator.animate(0, 1000)
        frames = first.frames()
        next(frames)
        shown = next(frames)
        assert animator.in_flight is True

        second = animator.animate(1000, 500)

        assert first.token.cancelled is True
        assert list(frames) == []
        assert second.start == shown
        assert list(second.frames())[-1] == 500

    def test_finished_animation_is_not_cancelled(self):
        """Test a completed animation starts the next one from its given start."""
        animator = CounterAnimator(duration_ms=10, clock=StepClock(10), sleep=no_sleep)
        first = animator.animate(0, 100)
        list(first.frames())
        second = animator.animate(100, 50)
        assert first.token.cancelled is False
        assert second.start == 100


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
