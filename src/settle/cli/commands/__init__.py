"""CLI command implementations."""

from .process import fds, wait_bind, which

__all__ = ["fds", "wait_bind", "which"]
