"""Locate executables, preferring explicit directories over PATH."""

from __future__ import annotations

import shutil
from collections.abc import Sequence
from pathlib import Path

from settle.core.errors import ToolNotFoundError
from settle.core.logging import get_logger

_logger = get_logger("process.executables")


def find_executable(binary: str, search: Sequence[str | Path] = ()) -> str:
    """Resolve ``binary`` to a path.

    Each directory in ``search`` is checked in order first, so that system
    binaries on PATH never shadow the requested locations. Only then is
    PATH consulted.

    Args:
        binary: Executable name, e.g. "lsof".
        search: Directories to check before PATH.

    Returns:
        Path of the executable.

    Raises:
        ToolNotFoundError: If the binary is in none of the directories and
            not on PATH.
    """
    for location in search:
        candidate = Path(location) / binary
        if candidate.exists():
            return str(candidate)

    found = shutil.which(binary)
    if found:
        return found

    _logger.debug("executable_not_found", binary=binary, search=[str(s) for s in search])
    raise ToolNotFoundError(binary, [str(s) for s in search])


__all__ = ["find_executable"]
