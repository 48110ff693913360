"""Monotonic clock and deadline arithmetic.

All pacing in settle goes through a ``Clock`` so that retry loops can be
driven by a fake clock in tests. The default clock is ``time.monotonic()``,
which is unaffected by wall-clock adjustments.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Protocol


class Clock(Protocol):
    """Time source used by the retry engines."""

    def now(self) -> float:
        """Return the current monotonic time in seconds."""
        ...

    def sleep(self, seconds: float) -> None:
        """Block the calling thread for ``seconds``."""
        ...


class MonotonicClock:
    """Real clock backed by ``time.monotonic`` and ``time.sleep``."""

    def now(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)


def sleep_ms(clock: Clock, millis: int) -> None:
    """Sleep for a whole number of milliseconds on ``clock``."""
    clock.sleep(millis / 1000.0)


@dataclass(frozen=True)
class Deadline:
    """Absolute point in monotonic time, computed once per session.

    Attributes:
        at: Monotonic timestamp (seconds) after which the deadline has passed.
        timeout: The timeout the deadline was computed from.
    """

    at: float
    timeout: float

    @classmethod
    def after(cls, clock: Clock, timeout: float) -> Deadline:
        """Create a deadline ``timeout`` seconds from ``clock.now()``.

        Raises:
            ValueError: If ``timeout`` is negative.
        """
        if timeout < 0:
            raise ValueError(f"timeout must be >= 0, got {timeout}")
        return cls(at=clock.now() + timeout, timeout=timeout)

    def not_reached(self, clock: Clock) -> bool:
        """True while ``clock.now()`` is strictly before the deadline."""
        return clock.now() < self.at

    def passed(self, clock: Clock) -> bool:
        """True once ``clock.now()`` is strictly after the deadline."""
        return clock.now() > self.at

    def remaining(self, clock: Clock) -> float:
        """Seconds left until the deadline, never negative."""
        return max(0.0, self.at - clock.now())


DEFAULT_CLOCK: Clock = MonotonicClock()
