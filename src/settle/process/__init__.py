"""External process helpers: tool invocation, executable lookup, bind discovery."""

from settle.process.bind import (
    BindProtocol,
    BindWaiter,
    parse_lsof_bind_output,
    wait_for_tcp_bind,
    wait_for_udp_bind,
)
from settle.process.executables import find_executable
from settle.process.fds import count_open_fds
from settle.process.runner import SubprocessToolRunner, ToolInvocationResult, ToolRunner

__all__ = [
    "BindProtocol",
    "BindWaiter",
    "SubprocessToolRunner",
    "ToolInvocationResult",
    "ToolRunner",
    "count_open_fds",
    "find_executable",
    "parse_lsof_bind_output",
    "wait_for_tcp_bind",
    "wait_for_udp_bind",
]
