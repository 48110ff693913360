"""Eventual assertions: retry a probe until it passes or a deadline expires.

Key components:
- FailureSandbox: runs a probe once and captures its recoverable failures
- FailureSwitch: the escalate-on-first-failure setting, suspended per thread
- RetryScheduler / assert_eventually: exponential-backoff retry to a deadline
- expect / abort: soft checks and unconditional failures inside probes
"""

from settle.eventually.sandbox import (
    DEFAULT_SWITCH,
    FailureSandbox,
    FailureSwitch,
    Probe,
    abort,
    expect,
    is_capturing,
    report_failure,
)
from settle.eventually.scheduler import (
    RetryScheduler,
    apply_config,
    assert_eventually,
    backoff_delay_ms,
)

__all__ = [
    "DEFAULT_SWITCH",
    "FailureSandbox",
    "FailureSwitch",
    "Probe",
    "RetryScheduler",
    "abort",
    "apply_config",
    "assert_eventually",
    "backoff_delay_ms",
    "expect",
    "is_capturing",
    "report_failure",
]
