from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class TimerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    EXPIRED = "expired"


@dataclass(frozen=True)
class TickResult:
    """Outcome of syncing the timer with the clock.

    ``ticks`` is the number of whole seconds consumed; ``expired_at`` is the
    instant the countdown reached zero, set only on the call that fired the
    timeout.
    """

    ticks: int = 0
    expired_at: Optional[float] = None

    @property
    def expired(self) -> bool:
        return self.expired_at is not None


class CountdownTimer:
    """
    Per-question countdown.

    The timer does not own a thread: the caller samples the clock and calls
    ``advance_to(now)`` (or ``tick()`` for a single second). The ``armed`` flag
    is the only thing that decides whether a timeout may still fire, so a
    timeout fires at most once between two ``reset()`` calls.
    """

    def __init__(self) -> None:
        self.state = TimerState.IDLE
        self.remaining = 0
        self.armed = False
        self._last_tick_at: Optional[float] = None

    def reset(self, limit: int, now: Optional[float] = None) -> None:
        """Cancel any pending countdown and start over from ``limit``.

        With ``now`` the timer starts running immediately; without it the timer
        stays idle until ``arm()``.
        """
        self.cancel()
        self.remaining = max(0, int(limit))
        if now is not None:
            self.arm(now)

    def load(self, remaining: int) -> None:
        # restored snapshot: keep the value but do not count until resumed
        self.cancel()
        self.remaining = max(0, int(remaining))

    def arm(self, now: float) -> None:
        self.armed = True
        self.state = TimerState.RUNNING
        self._last_tick_at = now

    def cancel(self) -> None:
        self.armed = False
        self.state = TimerState.IDLE
        self._last_tick_at = None

    def tick(self) -> bool:
        """Consume one second. Returns True when this tick fires the timeout."""
        if not self.armed:
            return False
        if self.remaining > 0:
            self.remaining -= 1
            if self._last_tick_at is not None:
                self._last_tick_at += 1
        if self.remaining <= 0:
            self._fire()
            return True
        return False

    def advance_to(self, now: float) -> TickResult:
        """Apply every whole second elapsed since the last tick."""
        if not self.armed or self._last_tick_at is None:
            return TickResult()

        if self.remaining <= 0:
            expired_at = self._last_tick_at
            self._fire()
            return TickResult(expired_at=expired_at)

        elapsed = math.floor(now - self._last_tick_at)
        ticks = 0
        while ticks < elapsed:
            ticks += 1
            if self.tick():
                return TickResult(ticks=ticks, expired_at=self._last_tick_at)
        return TickResult(ticks=ticks)

    def _fire(self) -> None:
        self.armed = False
        self.state = TimerState.EXPIRED
        logger.debug("Question timer expired")
