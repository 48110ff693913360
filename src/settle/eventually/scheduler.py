"""Time-bounded retry of assertion probes ("assert eventually").

Runs a probe repeatedly inside a FailureSandbox until it passes or a
deadline computed once at the start of the session expires. Between
attempts the scheduler backs off exponentially: attempt ``i`` (0-indexed)
sleeps ``min(2**i, 1000)`` milliseconds.

When the deadline passes, the probe runs one final time *without* a sandbox
so that a still-failing probe raises its own, fully detailed exception to
the caller. If that final run passes, the deadline was still missed, and an
``EventuallyTimeoutError`` is raised instead.

Example usage:
    from settle import assert_eventually, expect

    def replicas_caught_up() -> None:
        expect(follower.applied_index() == leader.applied_index(), "follower lagging")
        assert leader.is_healthy()

    assert_eventually(replicas_caught_up, timeout=5.0)
"""

from __future__ import annotations

from settle.core.config import EventuallyConfig
from settle.core.constants import EVENTUALLY_MAX_BACKOFF_MS, EVENTUALLY_TIMEOUT_MESSAGE
from settle.core.errors import EventuallyTimeoutError
from settle.core.logging import WaitContext, get_logger, with_context
from settle.eventually.sandbox import DEFAULT_SWITCH, FailureSandbox, Probe
from settle.utils.clock import DEFAULT_CLOCK, Clock, Deadline, sleep_ms

_logger = get_logger("eventually")


def backoff_delay_ms(attempt: int) -> int:
    """Delay in milliseconds after failed attempt ``attempt`` (0-indexed)."""
    if attempt < 0:
        raise ValueError(f"attempt must be >= 0, got {attempt}")
    # 2**10 already exceeds the cap; avoid building huge ints on long sessions
    if attempt >= 10:
        return EVENTUALLY_MAX_BACKOFF_MS
    return min(1 << attempt, EVENTUALLY_MAX_BACKOFF_MS)


class RetryScheduler:
    """Drives repeated sandboxed probe execution until success or deadline.

    Single-threaded: one probe execution at a time, on the caller's thread,
    with real sleeps between attempts. Cancellation is deadline-based only.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        sandbox: FailureSandbox | None = None,
    ) -> None:
        self.clock = clock if clock is not None else DEFAULT_CLOCK
        self.sandbox = sandbox if sandbox is not None else FailureSandbox()

    def run(self, probe: Probe, timeout: float) -> None:
        """Retry ``probe`` until it passes or ``timeout`` seconds elapse.

        Args:
            probe: Zero-argument check; fails by raising an assertion or via
                ``expect()``.
            timeout: Seconds until the deadline. Zero skips straight to the
                final unguarded attempt.

        The backoff sleep is never shortened to fit the deadline, so for an
        always-failing probe the call can block for up to ``timeout`` plus
        one full backoff delay (at most 1 s) plus two probe executions: the
        last sandboxed attempt and the final unguarded one.

        Raises:
            ValueError: If timeout is negative.
            EventuallyTimeoutError: If the deadline passed and the final
                attempt passed anyway.
            AssertionError: The probe's own failure from the final attempt.
            ProbeAbortedError: If the probe aborted on any attempt.
        """
        deadline = Deadline.after(self.clock, timeout)

        with with_context(WaitContext(operation="assert_eventually")):
            attempt = 0
            while deadline.not_reached(self.clock):
                records = self.sandbox.run_captured(probe)
                if not records:
                    _logger.debug("eventually_passed", attempts=attempt + 1)
                    return

                delay = backoff_delay_ms(attempt)
                _logger.debug(
                    "eventually_retry",
                    attempt=attempt,
                    failures=len(records),
                    last_failure=records[-1].message,
                    delay_ms=delay,
                )
                sleep_ms(self.clock, delay)
                attempt += 1

            _logger.info(
                "eventually_timed_out",
                attempts=attempt,
                timeout_seconds=timeout,
            )

            # Unguarded: failures now reach the caller's normal channel.
            probe()

        raise EventuallyTimeoutError(EVENTUALLY_TIMEOUT_MESSAGE)


def assert_eventually(
    probe: Probe,
    timeout: float | None = None,
    *,
    retry_on: tuple[type[BaseException], ...] = (AssertionError,),
    clock: Clock | None = None,
    config: EventuallyConfig | None = None,
) -> None:
    """Assert that ``probe`` passes before ``timeout`` seconds elapse.

    Args:
        probe: Zero-argument check to retry.
        timeout: Seconds until the deadline; defaults to
            ``config.default_timeout_seconds``.
        retry_on: Exception types treated as recoverable failures.
        clock: Time source (defaults to the monotonic clock).
        config: Eventual-assertion configuration.
    """
    if timeout is None:
        timeout = (config or EventuallyConfig()).default_timeout_seconds
    sandbox = FailureSandbox(retry_on=retry_on)
    RetryScheduler(clock=clock, sandbox=sandbox).run(probe, timeout)


def apply_config(config: EventuallyConfig) -> None:
    """Seed the process-wide escalation switch from configuration."""
    DEFAULT_SWITCH.break_on_failure = config.break_on_failure


__all__ = ["RetryScheduler", "apply_config", "assert_eventually", "backoff_delay_ms"]
