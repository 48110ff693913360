"""Tests for settle.process.bind.

Covers lsof output parsing and validation, the lsof command line, the
retry loop's linear backoff and deadline, and the fail-fast treatment of
malformed output. lsof itself is replaced by a scripted fake runner.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from settle.core.config import BindConfig
from settle.core.errors import (
    InvariantViolationError,
    MalformedOutputError,
    ToolInvocationError,
    ToolNotFoundError,
)
from settle.process.bind import (
    BindProtocol,
    BindWaiter,
    parse_lsof_bind_output,
    wait_for_tcp_bind,
    wait_for_udp_bind,
)
from settle.process.runner import ToolInvocationResult
from tests.helpers import FakeClock, ScriptedRunner, failed_result, ok_result

LSOF_OUTPUT = "p123\nf4\nn*:8080\n"


@pytest.fixture
def lsof_dir(tmp_path: Path) -> Path:
    """A search directory containing a (never executed) lsof file."""
    (tmp_path / "lsof").write_text("#!/bin/sh\n")
    return tmp_path


def make_waiter(
    runner: ScriptedRunner, clock: FakeClock, lsof_dir: Path
) -> BindWaiter:
    return BindWaiter(
        runner=runner,
        clock=clock,
        config=BindConfig(search_paths=[lsof_dir]),
    )


# ============================================================================
# parse_lsof_bind_output
# ============================================================================


class TestParseLsofBindOutput:
    """Tests for parsing the three-record lsof -Ffn output."""

    def test_parses_port(self) -> None:
        assert parse_lsof_bind_output(LSOF_OUTPUT) == 8080

    def test_without_trailing_newline(self) -> None:
        assert parse_lsof_bind_output("p123\nf4\nn*:41254") == 41254

    def test_highest_port_accepted(self) -> None:
        assert parse_lsof_bind_output("p1\nf2\nn*:65535\n") == 65535

    @pytest.mark.parametrize(
        "output",
        [
            "p123\nf4\n",
            "p123\nf4\nn*:8080\nf5\nn*:8081\n",
            "",
            "p123\nf4\nn127.0.0.1:8080\n",
            "p123\nf4\nn*:http\n",
            "p123\nf4\nn*:\n",
            "p123\nf4\nn*:0\n",
            "p123\nf4\nn*:-80\n",
            "p123\nf4\nn*:99999999999\n",
            "p123\nf4\nn*:8080 \n",
        ],
    )
    def test_malformed_output_rejected(self, output: str) -> None:
        with pytest.raises(MalformedOutputError) as exc_info:
            parse_lsof_bind_output(output)
        assert exc_info.value.output == output

    def test_port_above_range_is_invariant_violation(self) -> None:
        with pytest.raises(InvariantViolationError, match="70000"):
            parse_lsof_bind_output("p123\nf4\nn*:70000\n")

    def test_port_65536_is_invariant_violation(self) -> None:
        with pytest.raises(InvariantViolationError):
            parse_lsof_bind_output("p1\nf2\nn*:65536\n")


# ============================================================================
# BindWaiter
# ============================================================================


class TestBindWaiter:
    """Tests for BindWaiter.wait_for_bind() and its wrappers."""

    def test_tcp_command_line(self, fake_clock: FakeClock, lsof_dir: Path) -> None:
        runner = ScriptedRunner([ok_result(LSOF_OUTPUT)])
        port = make_waiter(runner, fake_clock, lsof_dir).wait_for_tcp_bind(4242, timeout=1.0)

        assert port == 8080
        assert runner.calls == [[
            str(lsof_dir / "lsof"), "-wbnP", "-Ffn", "-p", "4242", "-a", "-i", "4TCP",
        ]]

    def test_udp_uses_udp_filter(self, fake_clock: FakeClock, lsof_dir: Path) -> None:
        runner = ScriptedRunner([ok_result("p9\nf3\nn*:5353\n")])
        port = make_waiter(runner, fake_clock, lsof_dir).wait_for_udp_bind(9, timeout=1.0)

        assert port == 5353
        assert runner.calls[0][-1] == "4UDP"

    def test_retry_then_succeed(self, fake_clock: FakeClock, lsof_dir: Path) -> None:
        runner = ScriptedRunner([
            failed_result(),
            failed_result(),
            ok_result(LSOF_OUTPUT),
        ])
        port = make_waiter(runner, fake_clock, lsof_dir).wait_for_bind(
            123, BindProtocol.TCP, timeout=5.0
        )

        assert port == 8080
        assert len(runner.calls) == 3
        assert fake_clock.sleeps_ms == [10, 20]

    def test_malformed_output_not_retried(self, fake_clock: FakeClock, lsof_dir: Path) -> None:
        runner = ScriptedRunner([ok_result("p123\nf4\n"), ok_result(LSOF_OUTPUT)])
        waiter = make_waiter(runner, fake_clock, lsof_dir)

        with pytest.raises(MalformedOutputError):
            waiter.wait_for_tcp_bind(123, timeout=30.0)
        assert len(runner.calls) == 1
        assert fake_clock.sleeps == []

    def test_non_matching_pattern_not_retried(self, fake_clock: FakeClock, lsof_dir: Path) -> None:
        runner = ScriptedRunner([ok_result("p123\nf4\nnlocalhost:22\n")])
        with pytest.raises(MalformedOutputError):
            make_waiter(runner, fake_clock, lsof_dir).wait_for_tcp_bind(123, timeout=30.0)
        assert len(runner.calls) == 1

    def test_deadline_returns_last_failure_verbatim(
        self, fake_clock: FakeClock, lsof_dir: Path
    ) -> None:
        last = failed_result(returncode=1, stderr="final attempt")
        runner = ScriptedRunner([failed_result(stderr="early"), last])
        waiter = make_waiter(runner, fake_clock, lsof_dir)

        with pytest.raises(ToolInvocationError) as exc_info:
            waiter.wait_for_tcp_bind(123, timeout=0.05)

        assert exc_info.value.result is last
        assert "final attempt" in str(exc_info.value)
        # 10 + 20 + 30 = 60ms passes the 50ms deadline
        assert fake_clock.sleeps_ms == [10, 20, 30]
        assert len(runner.calls) == 4

    def test_zero_timeout_retries_once(self, fake_clock: FakeClock, lsof_dir: Path) -> None:
        runner = ScriptedRunner([failed_result()])
        with pytest.raises(ToolInvocationError):
            make_waiter(runner, fake_clock, lsof_dir).wait_for_tcp_bind(1, timeout=0)
        # The deadline is only passed once time has moved beyond it
        assert len(runner.calls) == 2

    def test_spawn_failure_is_retried(self, fake_clock: FakeClock, lsof_dir: Path) -> None:
        spawn_failure = ToolInvocationResult(
            command=("lsof",), returncode=None, error="Permission denied"
        )
        runner = ScriptedRunner([spawn_failure, ok_result(LSOF_OUTPUT)])
        port = make_waiter(runner, fake_clock, lsof_dir).wait_for_tcp_bind(1, timeout=1.0)
        assert port == 8080

    def test_tool_not_found(self, fake_clock: FakeClock, tmp_path: Path) -> None:
        runner = ScriptedRunner([ok_result(LSOF_OUTPUT)])
        waiter = BindWaiter(
            runner=runner,
            clock=fake_clock,
            config=BindConfig(
                tool="settle-test-missing-tool",
                search_paths=[tmp_path],
            ),
        )
        with pytest.raises(ToolNotFoundError) as exc_info:
            waiter.wait_for_tcp_bind(1, timeout=1.0)
        assert exc_info.value.binary == "settle-test-missing-tool"
        assert runner.calls == []

    def test_default_timeout_from_config(self, fake_clock: FakeClock, lsof_dir: Path) -> None:
        runner = ScriptedRunner([failed_result()])
        waiter = BindWaiter(
            runner=runner,
            clock=fake_clock,
            config=BindConfig(search_paths=[lsof_dir], default_timeout_seconds=0.025),
        )
        with pytest.raises(ToolInvocationError):
            waiter.wait_for_tcp_bind(1)
        assert fake_clock.sleeps_ms == [10, 20]


# ============================================================================
# Module-level wrappers
# ============================================================================


class TestModuleWrappers:
    """wait_for_tcp_bind / wait_for_udp_bind select the protocol."""

    def test_tcp_wrapper(self) -> None:
        with patch.object(BindWaiter, "wait_for_bind", return_value=8080) as mock_wait:
            assert wait_for_tcp_bind(77, timeout=2.0) == 8080
        mock_wait.assert_called_once_with(77, BindProtocol.TCP, 2.0)

    def test_udp_wrapper(self) -> None:
        with patch.object(BindWaiter, "wait_for_bind", return_value=5353) as mock_wait:
            assert wait_for_udp_bind(77) == 5353
        mock_wait.assert_called_once_with(77, BindProtocol.UDP, None)
