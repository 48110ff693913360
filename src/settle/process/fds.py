"""Open file-descriptor counting, for leak checks in tests."""

from __future__ import annotations

import os
import sys

import psutil

from settle.core.logging import get_logger

_logger = get_logger("process.fds")


def count_open_fds(pid: int | None = None) -> int:
    """Count open file descriptors of ``pid`` (default: the current process).

    Compare two counts taken around an operation to detect descriptor leaks.

    Raises:
        psutil.NoSuchProcess: If ``pid`` does not exist.
        psutil.AccessDenied: If the process may not be inspected.
    """
    proc = psutil.Process(pid)
    count: int = proc.num_fds()
    if sys.platform.startswith("linux") and proc.pid == os.getpid():
        # psutil lists /proc/<pid>/fd, which includes its own directory handle
        count -= 1
    _logger.debug("open_fds_counted", pid=proc.pid, count=count)
    return count


__all__ = ["count_open_fds"]
