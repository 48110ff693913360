"""Exception hierarchy and failure records for settle.

Recoverable-by-caller errors inherit from SettleError, enabling callers
to catch broad (SettleError) or narrow (e.g., MalformedOutputError).
Probe aborts, synthetic timeouts and invariant violations sit outside that
hierarchy; ``except SettleError`` never catches them.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from settle.process.runner import ToolInvocationResult


@dataclass(frozen=True)
class FailureRecord:
    """A single failure captured from one sandboxed probe execution.

    Attributes:
        message: Human-readable failure text, preserved from the probe.
        is_fatal: True if the failure ended the probe's execution (a raised
            assertion), False for a soft check that let the probe continue.
    """

    message: str
    is_fatal: bool

    @classmethod
    def from_exception(cls, exc: BaseException) -> FailureRecord:
        """Build a fatal record from an intercepted exception."""
        return cls(message=str(exc) or type(exc).__name__, is_fatal=True)


class SettleError(Exception):
    """Base exception for all settle errors a caller may handle."""


class ToolNotFoundError(SettleError):
    """Raised when an executable is neither in the search paths nor on PATH."""

    def __init__(self, binary: str, search: Sequence[str] = ()) -> None:
        self.binary = binary
        self.search = list(search)
        where = ", ".join(self.search) if self.search else "no extra directories"
        super().__init__(f"Unable to find binary {binary!r} (searched {where} and PATH)")


class ToolInvocationError(SettleError):
    """Raised when a diagnostic tool kept failing until the deadline passed.

    Carries the last ToolInvocationResult verbatim.
    """

    def __init__(self, result: ToolInvocationResult) -> None:
        self.result = result
        detail = result.error or result.stderr.strip() or result.stdout.strip()
        super().__init__(
            f"{' '.join(result.command)} failed (exit {result.returncode}): {detail}"
        )


class MalformedOutputError(SettleError):
    """Raised when a diagnostic tool's output does not match the expected format.

    Never retried: a format mismatch points at an unexpected tool version,
    which waiting will not fix.
    """

    def __init__(self, output: str, reason: str) -> None:
        self.output = output
        self.reason = reason
        super().__init__(f"unexpected lsof output ({reason}): {output!r}")


class ProbeAbortedError(Exception):
    """Unconditional probe failure. Never intercepted by a FailureSandbox."""


class EventuallyTimeoutError(AssertionError):
    """Raised when the deadline passed before a probe was observed passing."""


class InvariantViolationError(RuntimeError):
    """An internal invariant did not hold. Indicates a defect, not a retryable state."""


__all__ = [
    "EventuallyTimeoutError",
    "FailureRecord",
    "InvariantViolationError",
    "MalformedOutputError",
    "ProbeAbortedError",
    "SettleError",
    "ToolInvocationError",
    "ToolNotFoundError",
]
