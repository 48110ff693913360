"""Shared utilities for settle.

Contains cross-cutting utilities used by multiple modules.
"""

from settle.utils.clock import DEFAULT_CLOCK, Clock, Deadline, MonotonicClock, sleep_ms

__all__ = ["DEFAULT_CLOCK", "Clock", "Deadline", "MonotonicClock", "sleep_ms"]
