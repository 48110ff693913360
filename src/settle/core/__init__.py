"""Core building blocks: configuration, errors, logging and constants."""

from settle.core.config import BindConfig, EventuallyConfig, LogConfig, SettleConfig
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

__all__ = [
    "BindConfig",
    "EventuallyConfig",
    "LogConfig",
    "SettleConfig",
    "EventuallyTimeoutError",
    "FailureRecord",
    "InvariantViolationError",
    "MalformedOutputError",
    "ProbeAbortedError",
    "SettleError",
    "ToolInvocationError",
    "ToolNotFoundError",
]
