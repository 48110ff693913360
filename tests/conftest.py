"""Pytest fixtures for settle tests."""

import logging
from typing import Generator

import pytest
import structlog

from tests.helpers import FakeClock


@pytest.fixture(autouse=True)
def reset_global_state() -> Generator[None, None, None]:
    """Reset logging, CLI state and the escalation switch around each test.

    This ensures test isolation for process-wide configuration.
    """
    import settle.cli.helpers as cli_helpers
    from settle.eventually import DEFAULT_SWITCH

    cli_helpers.reset_state()
    DEFAULT_SWITCH.break_on_failure = False
    structlog.reset_defaults()

    root_logger = logging.getLogger()
    original_handlers = root_logger.handlers[:]
    original_level = root_logger.level
    for handler in original_handlers:
        root_logger.removeHandler(handler)

    yield

    cli_helpers.reset_state()
    DEFAULT_SWITCH.break_on_failure = False
    structlog.reset_defaults()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()
    for handler in original_handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(original_level)


@pytest.fixture
def fake_clock() -> FakeClock:
    """A clock whose sleeps advance time instantly."""
    return FakeClock()
