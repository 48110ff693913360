"""Structured logging infrastructure for settle.

Provides structured logging using structlog with settle-specific context
such as the wait operation, session id and target pid. Supports console
and JSON output, with an optional rotating log file.

Example usage:
    from settle.core.logging import get_logger, configure_logging, with_context

    # Configure once at startup
    configure_logging(level="DEBUG", format="console")

    # Get a component-specific logger
    logger = get_logger("eventually")

    # Log with auto-context
    logger.info("eventually_retry", attempt=3)

    # Use a wait context for automatic correlation
    ctx = WaitContext(operation="wait_for_bind", pid=4242)
    with with_context(ctx):
        logger.debug("bind_tool_failed")  # Includes operation, session_id, pid
"""

from __future__ import annotations

import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Literal

import structlog
from structlog.types import EventDict, Processor, WrappedLogger


@dataclass(frozen=True)
class WaitContext:
    """Immutable context for correlating log entries of one wait session.

    Attributes:
        operation: What is being waited on (e.g., "assert_eventually").
        session_id: Unique id of this session (UUID).
        pid: Target process id, for bind discovery sessions.
    """

    operation: str
    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    pid: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert context to a dictionary for logging (excludes None values)."""
        result: dict[str, Any] = {
            "operation": self.operation,
            "session_id": self.session_id,
        }
        if self.pid is not None:
            result["pid"] = self.pid
        return result


_current_context: ContextVar[WaitContext | None] = ContextVar(
    "settle_context", default=None
)


def get_current_context() -> WaitContext | None:
    """Get the current WaitContext, or None outside a context block."""
    return _current_context.get()


@contextmanager
def with_context(ctx: WaitContext) -> Iterator[WaitContext]:
    """Set ``ctx`` as the current WaitContext for the duration of a block.

    Args:
        ctx: The WaitContext to use for the block.

    Yields:
        The WaitContext that was set.
    """
    token = _current_context.set(ctx)
    try:
        yield ctx
    finally:
        _current_context.reset(token)


def _add_timestamp(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that adds an ISO8601 UTC timestamp."""
    event_dict["timestamp"] = datetime.now(UTC).isoformat()
    return event_dict


def _add_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that merges the current WaitContext into the event.

    Explicit bindings take precedence over context fields.
    """
    ctx = get_current_context()
    if ctx is not None:
        for key, value in ctx.to_dict().items():
            if key not in event_dict:
                event_dict[key] = value
    return event_dict


class SettleLogger:
    """settle logger wrapper around structlog.

    Fetches the underlying structlog logger lazily on every call so that
    loggers created at import time respect a later configure_logging().
    """

    def __init__(self, component: str, **initial_context: Any) -> None:
        """Initialize a logger for a component.

        Args:
            component: The component name (e.g., "eventually", "bind").
            **initial_context: Additional context to bind.
        """
        self._component = component
        self._context: dict[str, Any] = {"component": component, **initial_context}

    def _get_logger(self) -> structlog.stdlib.BoundLogger:
        logger: structlog.stdlib.BoundLogger = structlog.get_logger().bind(**self._context)
        return logger

    def bind(self, **context: Any) -> SettleLogger:
        """Create a new logger with additional bound context."""
        new_logger = SettleLogger.__new__(SettleLogger)
        new_logger._component = self._component
        new_logger._context = {**self._context, **context}
        return new_logger

    def debug(self, event: str, **kw: Any) -> None:
        self._get_logger().debug(event, **kw)

    def info(self, event: str, **kw: Any) -> None:
        self._get_logger().info(event, **kw)

    def warning(self, event: str, **kw: Any) -> None:
        self._get_logger().warning(event, **kw)

    def error(self, event: str, **kw: Any) -> None:
        self._get_logger().error(event, **kw)

    def exception(self, event: str, **kw: Any) -> None:
        """Log an exception with traceback. Call from within an exception handler."""
        self._get_logger().exception(event, **kw)


def _get_processors(
    include_timestamps: bool,
    include_context: bool,
) -> list[Processor]:
    """Build the shared structlog chain, handing events to the stdlib formatters."""
    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
    ]

    if include_context:
        processors.append(_add_context)

    if include_timestamps:
        processors.append(_add_timestamp)

    processors.extend([
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ])
    return processors


def _formatter(renderer: Processor) -> structlog.stdlib.ProcessorFormatter:
    """Stdlib formatter that renders structlog events with ``renderer``."""
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO",
    format: Literal["json", "console", "both"] = "console",  # noqa: A002
    file_path: Path | None = None,
    max_file_size_mb: int = 50,
    backup_count: int = 5,
    include_timestamps: bool = True,
    include_context: bool = True,
) -> None:
    """Configure settle structured logging.

    Call once at startup, before any logging occurs. Each handler renders
    events itself: the stderr handler as colored console text, the log file
    as JSON lines (plain console text when format="console").

    Args:
        level: Minimum log level to capture.
        format: "json" for structured, "console" for human-readable, "both"
            for console to stderr and JSON to file (requires file_path).
        file_path: Optional file path for log output.
        max_file_size_mb: Maximum log file size before rotation (MB).
        backup_count: Number of rotated log files to keep.
        include_timestamps: Whether to include ISO8601 timestamps.
        include_context: Whether to merge the current WaitContext into events.

    Raises:
        ValueError: If format="both" but file_path is not provided.
    """
    if format == "both" and file_path is None:
        raise ValueError("file_path is required when format='both'")

    log_level = getattr(logging, level)
    json_renderer = structlog.processors.JSONRenderer()
    handlers: list[logging.Handler] = []

    if format in ("console", "both"):
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(_formatter(structlog.dev.ConsoleRenderer(colors=True)))
        handlers.append(console_handler)

    if file_path is not None:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            file_path,
            maxBytes=max_file_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8",
        )
        if format == "console":
            file_handler.setFormatter(_formatter(structlog.dev.ConsoleRenderer(colors=False)))
        else:
            file_handler.setFormatter(_formatter(json_renderer))
        handlers.append(file_handler)
    elif format == "json":
        json_handler = logging.StreamHandler(sys.stdout)
        json_handler.setFormatter(_formatter(json_renderer))
        handlers.append(json_handler)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in handlers:
        handler.setLevel(log_level)
        root_logger.addHandler(handler)

    # cache_logger_on_first_use=False keeps import-time loggers reconfigurable
    structlog.configure(
        processors=_get_processors(include_timestamps, include_context),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(component: str, **initial_context: Any) -> SettleLogger:
    """Get a settle logger for a component.

    Example:
        logger = get_logger("bind")
        with with_context(WaitContext(operation="wait_for_bind", pid=pid)):
            logger.debug("bind_tool_failed")  # Includes operation, session_id, pid
    """
    return SettleLogger(component, **initial_context)


__all__ = [
    "SettleLogger",
    "WaitContext",
    "configure_logging",
    "get_current_context",
    "get_logger",
    "with_context",
]
