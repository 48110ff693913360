"""settle: eventual assertions and bound-port discovery for test harnesses."""

__version__ = "0.1.0"

from settle.core.errors import (
    EventuallyTimeoutError,
    FailureRecord,
    InvariantViolationError,
    MalformedOutputError,
    ProbeAbortedError,
    SettleError,
    ToolInvocationError,
    ToolNotFoundError,
)
from settle.eventually import (
    FailureSandbox,
    RetryScheduler,
    abort,
    assert_eventually,
    expect,
)
from settle.process import (
    BindProtocol,
    BindWaiter,
    count_open_fds,
    find_executable,
    wait_for_tcp_bind,
    wait_for_udp_bind,
)

__all__ = [
    "__version__",
    "BindProtocol",
    "BindWaiter",
    "EventuallyTimeoutError",
    "FailureRecord",
    "FailureSandbox",
    "InvariantViolationError",
    "MalformedOutputError",
    "ProbeAbortedError",
    "RetryScheduler",
    "SettleError",
    "ToolInvocationError",
    "ToolNotFoundError",
    "abort",
    "assert_eventually",
    "count_open_fds",
    "expect",
    "find_executable",
    "wait_for_tcp_bind",
    "wait_for_udp_bind",
]
