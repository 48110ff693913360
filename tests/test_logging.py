"""Tests for settle.core.logging module."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from settle.core.logging import (
    SettleLogger,
    WaitContext,
    _add_context,
    configure_logging,
    get_current_context,
    get_logger,
    with_context,
)


def _flush_root_handlers() -> None:
    for handler in logging.getLogger().handlers:
        handler.flush()


class TestWaitContext:
    """Tests for WaitContext and the context processor."""

    def test_to_dict_omits_missing_pid(self) -> None:
        ctx = WaitContext(operation="assert_eventually", session_id="abc")
        assert ctx.to_dict() == {"operation": "assert_eventually", "session_id": "abc"}

    def test_to_dict_includes_pid(self) -> None:
        ctx = WaitContext(operation="wait_for_bind", session_id="abc", pid=42)
        assert ctx.to_dict()["pid"] == 42

    def test_session_ids_are_unique(self) -> None:
        assert WaitContext(operation="x").session_id != WaitContext(operation="x").session_id

    def test_with_context_sets_and_resets(self) -> None:
        ctx = WaitContext(operation="wait_for_bind", pid=7)
        assert get_current_context() is None
        with with_context(ctx) as active:
            assert active is ctx
            assert get_current_context() is ctx
        assert get_current_context() is None

    def test_add_context_merges_fields(self) -> None:
        ctx = WaitContext(operation="wait_for_bind", session_id="s-1", pid=7)
        with with_context(ctx):
            event = _add_context(None, "info", {"event": "bind_tool_failed"})
        assert event["operation"] == "wait_for_bind"
        assert event["session_id"] == "s-1"
        assert event["pid"] == 7

    def test_explicit_fields_take_precedence(self) -> None:
        ctx = WaitContext(operation="wait_for_bind", pid=7)
        with with_context(ctx):
            event = _add_context(None, "info", {"event": "x", "pid": 99})
        assert event["pid"] == 99

    def test_no_context_leaves_event_untouched(self) -> None:
        assert _add_context(None, "info", {"event": "x"}) == {"event": "x"}


class TestSettleLogger:
    """Tests for the SettleLogger wrapper."""

    def test_get_logger_returns_settle_logger(self) -> None:
        assert isinstance(get_logger("bind"), SettleLogger)

    def test_bind_does_not_mutate_original(self) -> None:
        logger = get_logger("bind")
        bound = logger.bind(pid=1)
        assert bound._context == {"component": "bind", "pid": 1}
        assert logger._context == {"component": "bind"}


class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_json_file_output(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "settle.log"
        configure_logging(level="DEBUG", format="json", file_path=log_file)

        with with_context(WaitContext(operation="wait_for_bind", session_id="s-9", pid=5)):
            get_logger("bind").debug("bind_tool_failed", attempt=2)
        _flush_root_handlers()

        entry = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert entry["event"] == "bind_tool_failed"
        assert entry["component"] == "bind"
        assert entry["attempt"] == 2
        assert entry["session_id"] == "s-9"
        assert entry["level"] == "debug"
        assert "timestamp" in entry

    def test_level_filters_events(self, tmp_path: Path) -> None:
        log_file = tmp_path / "settle.log"
        configure_logging(level="WARNING", format="json", file_path=log_file)

        logger = get_logger("eventually")
        logger.info("eventually_timed_out")
        logger.warning("kept")
        _flush_root_handlers()

        events = [json.loads(line)["event"] for line in log_file.read_text().splitlines()]
        assert events == ["kept"]

    def test_both_requires_file_path(self) -> None:
        with pytest.raises(ValueError, match="file_path is required"):
            configure_logging(format="both")

    def test_console_replaces_root_handlers(self) -> None:
        configure_logging(level="INFO", format="console")
        configure_logging(level="INFO", format="console")
        assert len(logging.getLogger().handlers) == 1

    def test_both_writes_json_to_file(self, tmp_path: Path) -> None:
        log_file = tmp_path / "settle.log"
        configure_logging(level="DEBUG", format="both", file_path=log_file)

        get_logger("bind").info("bound_port_discovered", port=8080)
        _flush_root_handlers()

        entry = json.loads(log_file.read_text().splitlines()[0])
        assert entry["event"] == "bound_port_discovered"
        assert entry["port"] == 8080
        assert entry["component"] == "bind"

    def test_console_file_has_no_color_codes(self, tmp_path: Path) -> None:
        log_file = tmp_path / "settle.log"
        configure_logging(level="DEBUG", format="console", file_path=log_file)

        get_logger("bind").info("bound_port_discovered", port=8080)
        _flush_root_handlers()

        text = log_file.read_text()
        assert "bound_port_discovered" in text
        assert "\x1b[" not in text
