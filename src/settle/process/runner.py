"""Run an external tool and capture its output.

The ``ToolRunner`` protocol is the seam between the bind poller and the
operating system: production code uses ``SubprocessToolRunner``, tests
substitute a scripted fake.

Security Note: commands are passed as an argument list, never through a
shell, so pids and flags cannot be interpolated into shell syntax.
"""

from __future__ import annotations

import subprocess
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from settle.core.constants import TRUNCATE_TOOL_OUTPUT_CHARS
from settle.core.logging import get_logger

_logger = get_logger("process.runner")


@dataclass(frozen=True)
class ToolInvocationResult:
    """Result of running an external tool once.

    Attributes:
        command: The argument list that was run.
        returncode: Exit status, or None if the process could not be spawned.
        stdout: Captured standard output.
        stderr: Captured standard error.
        error: Spawn error description, if the process never ran.
    """

    command: tuple[str, ...]
    returncode: int | None
    stdout: str = ""
    stderr: str = ""
    error: str | None = None

    @property
    def success(self) -> bool:
        """True iff the tool ran and exited with status zero."""
        return self.returncode == 0


class ToolRunner(Protocol):
    """Capability to invoke an external command."""

    def invoke(self, command: Sequence[str]) -> ToolInvocationResult:
        """Run ``command`` to completion and return its captured output."""
        ...


class SubprocessToolRunner:
    """Runs tools with ``subprocess.run``: no stdin, stdout and stderr captured.

    No timeout is enforced here; callers bound the overall wait with their
    own deadline.
    """

    def invoke(self, command: Sequence[str]) -> ToolInvocationResult:
        argv = tuple(command)
        start = time.monotonic()
        try:
            completed = subprocess.run(
                argv,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            _logger.debug("tool_spawn_failed", command=argv[0], error=str(e))
            return ToolInvocationResult(command=argv, returncode=None, error=str(e))

        _logger.debug(
            "tool_invoked",
            command=argv[0],
            returncode=completed.returncode,
            duration_seconds=round(time.monotonic() - start, 3),
            stderr=completed.stderr[:TRUNCATE_TOOL_OUTPUT_CHARS],
        )
        return ToolInvocationResult(
            command=argv,
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )


__all__ = ["SubprocessToolRunner", "ToolInvocationResult", "ToolRunner"]
