"""Shared test helpers for settle tests."""

from __future__ import annotations

from collections.abc import Sequence

from settle.process.runner import ToolInvocationResult


class FakeClock:
    """Deterministic clock: ``sleep()`` records the delay and advances time."""

    def __init__(self, start: float = 1000.0) -> None:
        self.current = start
        self.sleeps: list[float] = []

    def now(self) -> float:
        return self.current

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.current += seconds

    def advance(self, seconds: float) -> None:
        self.current += seconds

    @property
    def sleeps_ms(self) -> list[int]:
        return [round(s * 1000) for s in self.sleeps]


class ScriptedRunner:
    """Fake ToolRunner returning scripted results; the last one repeats."""

    def __init__(self, results: Sequence[ToolInvocationResult]) -> None:
        assert results, "ScriptedRunner needs at least one result"
        self._results = list(results)
        self.calls: list[list[str]] = []

    def invoke(self, command: Sequence[str]) -> ToolInvocationResult:
        self.calls.append(list(command))
        if len(self._results) > 1:
            return self._results.pop(0)
        return self._results[0]


def ok_result(stdout: str) -> ToolInvocationResult:
    """A successful lsof run printing ``stdout``."""
    return ToolInvocationResult(command=("lsof",), returncode=0, stdout=stdout)


def failed_result(returncode: int = 1, stderr: str = "") -> ToolInvocationResult:
    """A failed lsof run (e.g. the process has not bound yet)."""
    return ToolInvocationResult(command=("lsof",), returncode=returncode, stderr=stderr)


class FlakyProbe:
    """Probe that fails its first ``failures`` calls, then passes."""

    def __init__(self, failures: int, message: str = "not yet") -> None:
        self.failures = failures
        self.message = message
        self.calls = 0

    def __call__(self) -> None:
        self.calls += 1
        assert self.calls > self.failures, self.message
