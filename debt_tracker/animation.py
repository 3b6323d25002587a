"""
Balance Counter Animation

A purely cosmetic count from the old balance to the new one. It never
reads or writes LedgerState; it only produces numbers to show.

Starting a new animation cancels the one in flight and continues from
whatever value was last displayed. There is no queueing.
"""

import time
from typing import Callable, Iterator, Optional

from debt_tracker.display import round_half_up


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


class CancellationToken:
    """Set once; checked by the animation between frames."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class CounterAnimation:
    """
    Linear interpolation from `start` to `end` over `duration_ms`.

    Frames are whole numbers. The last frame of an animation that runs to
    completion is exactly round(end).
    """

    def __init__(
        self,
        start: float,
        end: float,
        duration_ms: int = 800,
        frame_interval_ms: int = 16,
        token: Optional[CancellationToken] = None,
        clock: Callable[[], float] = _monotonic_ms,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.start = start
        self.end = end
        self.duration_ms = duration_ms
        self.frame_interval_ms = frame_interval_ms
        self.token = token or CancellationToken()
        self._clock = clock
        self._sleep = sleep
        self.last_value: int = round_half_up(start)
        self.finished = False

    def value_at(self, progress: float) -> int:
        """Displayed value at a fraction of the way through (clamped to [0, 1])."""
        progress = min(max(progress, 0.0), 1.0)
        return round_half_up(self.start + (self.end - self.start) * progress)

    def frames(self) -> Iterator[int]:
        started_at = self._clock()
        while not self.token.cancelled:
            if self.duration_ms <= 0:
                progress = 1.0
            else:
                progress = min((self._clock() - started_at) / self.duration_ms, 1.0)

            self.last_value = self.value_at(progress)
            yield self.last_value

            if progress >= 1.0:
                self.finished = True
                return
            self._sleep(self.frame_interval_ms / 1000)

    def run(self, render: Callable[[int], None]) -> bool:
        """
        Render every frame.

        Returns True if the animation completed, False if it was cancelled.
        """
        for value in self.frames():
            render(value)
        return self.finished


class CounterAnimator:
    """
    Hands out animations, cancelling the previous one each time.

    Keeps track of the value on screen so an interrupted animation is
    continued from where it stopped rather than jumping.
    """

    def __init__(
        self,
        duration_ms: int = 800,
        frame_interval_ms: int = 16,
        clock: Callable[[], float] = _monotonic_ms,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._duration_ms = duration_ms
        self._frame_interval_ms = frame_interval_ms
        self._clock = clock
        self._sleep = sleep
        self._current: Optional[CounterAnimation] = None

    @property
    def in_flight(self) -> bool:
        return (
            self._current is not None
            and not self._current.finished
            and not self._current.token.cancelled
        )

    def animate(self, start: float, end: float) -> CounterAnimation:
        """Cancel any running animation and create a new one towards `end`."""
        if self.in_flight:
            self._current.token.cancel()
            start = self._current.last_value

        self._current = CounterAnimation(
            start=start,
            end=end,
            duration_ms=self._duration_ms,
            frame_interval_ms=self._frame_interval_ms,
            clock=self._clock,
            sleep=self._sleep,
        )
        return self._current
