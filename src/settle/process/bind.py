"""Discover the network port a running process has bound to.

Processes generally do not expose a dynamically assigned port, and
reimplementing lsof means parsing a lot of files under /proc, so this
module runs ``lsof`` in a loop until the process has bound its socket.
lsof may fail while the process is still starting; such failures are
retried with a linear backoff (attempt ``i`` sleeps ``i * 10`` ms) until
the deadline. Output in an unexpected format fails immediately.

With ``-Ffn`` lsof prints one field per line:

    p19730
    f123
    n*:41254

The pid and file-descriptor records are only checked for presence; the
third record carries the wildcard bind address and the port.
"""

from __future__ import annotations

import re
from enum import Enum

from settle.core.config import BindConfig
from settle.core.constants import (
    BIND_ADDRESS_PREFIX,
    BIND_POLL_STEP_MS,
    BIND_TOOL_FLAGS,
    MAX_PORT,
    TRUNCATE_TOOL_OUTPUT_CHARS,
)
from settle.core.errors import (
    InvariantViolationError,
    MalformedOutputError,
    ToolInvocationError,
)
from settle.core.logging import WaitContext, get_logger, with_context
from settle.process.executables import find_executable
from settle.process.runner import SubprocessToolRunner, ToolInvocationResult, ToolRunner
from settle.utils.clock import DEFAULT_CLOCK, Clock, Deadline, sleep_ms

_logger = get_logger("process.bind")

_BIND_RECORD = re.compile(re.escape(BIND_ADDRESS_PREFIX) + r"([+-]?[0-9]+)")
_INT32_MAX = 2**31 - 1


class BindProtocol(str, Enum):
    """lsof ``-i`` selectors for the supported socket kinds."""

    TCP = "4TCP"
    UDP = "4UDP"


def parse_lsof_bind_output(output: str) -> int:
    """Parse the port out of ``lsof -Ffn`` output for a single socket.

    Args:
        output: Raw lsof stdout.

    Returns:
        The bound port.

    Raises:
        MalformedOutputError: If the output is not exactly a pid, fd and
            ``n*:<port>`` record, or the port is not a positive integer.
        InvariantViolationError: If lsof reported a port above 65535.
    """
    text = output[:-1] if output.endswith("\n") else output
    lines = text.split("\n")
    if len(lines) != 3:
        raise MalformedOutputError(output, f"expected 3 records, got {len(lines)}")

    match = _BIND_RECORD.fullmatch(lines[2])
    if match is None:
        raise MalformedOutputError(output, f"third record is not {BIND_ADDRESS_PREFIX}<port>")

    port = int(match.group(1))
    if port <= 0 or port > _INT32_MAX:
        raise MalformedOutputError(output, f"port {port} out of range")

    if port > MAX_PORT:
        raise InvariantViolationError(f"parsed invalid port: {port}")
    return port


class BindWaiter:
    """Polls lsof until a process's bound port can be determined.

    Usage:
        waiter = BindWaiter()
        port = waiter.wait_for_tcp_bind(server.pid, timeout=30.0)
    """

    def __init__(
        self,
        runner: ToolRunner | None = None,
        clock: Clock | None = None,
        config: BindConfig | None = None,
    ) -> None:
        self.runner = runner if runner is not None else SubprocessToolRunner()
        self.clock = clock if clock is not None else DEFAULT_CLOCK
        self.config = config if config is not None else BindConfig()

    def build_command(self, tool_path: str, pid: int, protocol: BindProtocol) -> list[str]:
        """Build the lsof argument list for ``pid`` and ``protocol``."""
        return [
            tool_path,
            *BIND_TOOL_FLAGS,
            "-p", str(pid),
            "-a", "-i", protocol.value,
        ]

    def wait_for_bind(
        self,
        pid: int,
        protocol: BindProtocol,
        timeout: float | None = None,
    ) -> int:
        """Wait until ``pid`` has bound a ``protocol`` socket and return its port.

        Args:
            pid: Process to inspect.
            protocol: TCP or UDP (IPv4).
            timeout: Seconds to keep retrying failed lsof invocations;
                defaults to ``config.default_timeout_seconds``.

        Raises:
            ToolNotFoundError: If lsof cannot be found.
            ToolInvocationError: If lsof still failed after the deadline.
            MalformedOutputError: If lsof succeeded with unexpected output.
        """
        if timeout is None:
            timeout = self.config.default_timeout_seconds

        tool_path = find_executable(
            self.config.tool, [str(p) for p in self.config.search_paths]
        )
        command = self.build_command(tool_path, pid, protocol)
        deadline = Deadline.after(self.clock, timeout)

        with with_context(WaitContext(operation="wait_for_bind", pid=pid)):
            result = self._poll(command, deadline)
            port = parse_lsof_bind_output(result.stdout)
            _logger.debug("bound_port_discovered", protocol=protocol.name, port=port)
            return port

    def _poll(self, command: list[str], deadline: Deadline) -> ToolInvocationResult:
        attempt = 1
        while True:
            result = self.runner.invoke(command)
            if result.success:
                return result
            if deadline.passed(self.clock):
                _logger.info(
                    "bind_wait_timed_out",
                    attempts=attempt,
                    returncode=result.returncode,
                    stderr=result.stderr[:TRUNCATE_TOOL_OUTPUT_CHARS],
                )
                raise ToolInvocationError(result)

            _logger.debug("bind_tool_failed", attempt=attempt, returncode=result.returncode)
            sleep_ms(self.clock, attempt * BIND_POLL_STEP_MS)
            attempt += 1

    def wait_for_tcp_bind(self, pid: int, timeout: float | None = None) -> int:
        """Return the IPv4 TCP port ``pid`` is bound to."""
        return self.wait_for_bind(pid, BindProtocol.TCP, timeout)

    def wait_for_udp_bind(self, pid: int, timeout: float | None = None) -> int:
        """Return the IPv4 UDP port ``pid`` is bound to."""
        return self.wait_for_bind(pid, BindProtocol.UDP, timeout)


def wait_for_tcp_bind(pid: int, timeout: float | None = None) -> int:
    """Return the IPv4 TCP port ``pid`` is bound to, polling lsof until ``timeout``."""
    return BindWaiter().wait_for_tcp_bind(pid, timeout)


def wait_for_udp_bind(pid: int, timeout: float | None = None) -> int:
    """Return the IPv4 UDP port ``pid`` is bound to, polling lsof until ``timeout``."""
    return BindWaiter().wait_for_udp_bind(pid, timeout)


__all__ = [
    "BindProtocol",
    "BindWaiter",
    "parse_lsof_bind_output",
    "wait_for_tcp_bind",
    "wait_for_udp_bind",
]
