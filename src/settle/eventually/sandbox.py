"""Failure interception for a single probe execution.

A probe signals failure in two ways:

- raising ``AssertionError`` (or another configured exception type), which
  ends the probe; captured as a fatal ``FailureRecord``;
- calling ``expect(condition, message)``, a soft check that lets the probe
  continue; captured as a non-fatal ``FailureRecord``.

``FailureSandbox.run_captured()`` runs a probe once and returns what it
captured instead of letting the failures reach the caller. Two things are
never captured: ``ProbeAbortedError`` (raised by ``abort()``, or by any
failure while the escalation switch is on), and exceptions outside the
sandbox's ``retry_on`` types.

Capture frames and switch suspension are per thread. Soft failures reported
on another thread see no frame and raise there as usual.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from settle.core.errors import FailureRecord, ProbeAbortedError
from settle.core.logging import get_logger

_logger = get_logger("eventually.sandbox")

Probe = Callable[[], object]


class FailureSwitch:
    """The "abort immediately on first failure" setting.

    While ``break_on_failure`` is on, every reported failure is escalated to
    ``ProbeAbortedError``. ``suspended()`` forces it off for the calling
    thread only and restores the previous state on exit, so concurrent
    sandboxes on different threads do not interfere.
    """

    def __init__(self, break_on_failure: bool = False) -> None:
        self._default = break_on_failure
        self._local = threading.local()

    @property
    def break_on_failure(self) -> bool:
        override: bool | None = getattr(self._local, "override", None)
        return self._default if override is None else override

    @break_on_failure.setter
    def break_on_failure(self, value: bool) -> None:
        self._default = value

    @contextmanager
    def suspended(self) -> Iterator[None]:
        """Force the switch off on this thread for the duration of the block."""
        previous: bool | None = getattr(self._local, "override", None)
        self._local.override = False
        try:
            yield
        finally:
            self._local.override = previous


DEFAULT_SWITCH = FailureSwitch()
"""Process-wide switch used when no other switch is injected."""


@dataclass
class _CaptureFrame:
    switch: FailureSwitch
    records: list[FailureRecord] = field(default_factory=list)


class _CaptureStack(threading.local):
    def __init__(self) -> None:
        self.frames: list[_CaptureFrame] = []


_captures = _CaptureStack()


def _current_frame() -> _CaptureFrame | None:
    return _captures.frames[-1] if _captures.frames else None


@contextmanager
def _capture_frame(switch: FailureSwitch) -> Iterator[_CaptureFrame]:
    frame = _CaptureFrame(switch=switch)
    _captures.frames.append(frame)
    try:
        yield frame
    finally:
        _captures.frames.pop()


def is_capturing() -> bool:
    """True if a FailureSandbox is active on the calling thread."""
    return _current_frame() is not None


def report_failure(message: str, *, switch: FailureSwitch | None = None) -> None:
    """Report a soft failure through the current reporting channel.

    Inside a sandbox on this thread the failure is recorded and execution
    continues. Outside one it raises ``AssertionError``. With the escalation
    switch on it raises ``ProbeAbortedError`` either way.
    """
    frame = _current_frame()
    if switch is None:
        switch = frame.switch if frame is not None else DEFAULT_SWITCH
    if switch.break_on_failure:
        raise ProbeAbortedError(message)
    if frame is None:
        raise AssertionError(message)
    frame.records.append(FailureRecord(message=message, is_fatal=False))


def expect(condition: object, message: str = "expectation failed") -> bool:
    """Soft check: report ``message`` if ``condition`` is falsy.

    Returns:
        True if the condition held, False if a failure was recorded.
    """
    if condition:
        return True
    report_failure(message)
    return False


def abort(message: str) -> None:
    """Fail unconditionally. The failure is never captured or retried."""
    raise ProbeAbortedError(message)


class FailureSandbox:
    """Runs a probe once and captures its recoverable failures.

    Usage:
        sandbox = FailureSandbox()
        records = sandbox.run_captured(lambda: check_replicas(cluster))
        if not records:
            ...  # probe passed
    """

    def __init__(
        self,
        switch: FailureSwitch | None = None,
        retry_on: tuple[type[BaseException], ...] = (AssertionError,),
    ) -> None:
        """Initialize the sandbox.

        Args:
            switch: Escalation switch to suspend while the probe runs.
                Defaults to the process-wide DEFAULT_SWITCH.
            retry_on: Exception types intercepted as recoverable failures.

        Raises:
            ValueError: If retry_on is empty.
        """
        if not retry_on:
            raise ValueError("retry_on must name at least one exception type")
        self.switch = switch if switch is not None else DEFAULT_SWITCH
        self.retry_on = retry_on

    def run_captured(self, probe: Probe) -> list[FailureRecord]:
        """Execute ``probe`` once and return the failures it reported.

        Returns:
            Captured failures in emission order; empty if the probe passed.

        Raises:
            ProbeAbortedError: If the probe aborted.
            BaseException: Anything the probe raised outside ``retry_on``.
        """
        with self.switch.suspended(), _capture_frame(self.switch) as frame:
            try:
                probe()
            except ProbeAbortedError:
                raise
            except self.retry_on as exc:
                frame.records.append(FailureRecord.from_exception(exc))
        if frame.records:
            _logger.debug(
                "probe_failures_captured",
                count=len(frame.records),
                first=frame.records[0].message,
            )
        return list(frame.records)


__all__ = [
    "DEFAULT_SWITCH",
    "FailureSandbox",
    "FailureSwitch",
    "Probe",
    "abort",
    "expect",
    "is_capturing",
    "report_failure",
]
