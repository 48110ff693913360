"""Shared utilities for settle CLI commands.

Holds the global CLI state set by option callbacks (logging options and the
loaded configuration) and the helpers that turn it into configured logging.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from settle.core.config import SettleConfig
from settle.core.logging import configure_logging, get_logger
from settle.eventually import apply_config

_logger = get_logger("cli")


@dataclass
class CliState:
    """Centralized CLI state populated by the global option callbacks."""

    config: SettleConfig = field(default_factory=SettleConfig)
    config_path: Path | None = None
    log_level: str | None = None
    log_format: str | None = None
    log_file: Path | None = None
    logging_configured: bool = False


_state = CliState()


def get_state() -> CliState:
    """Get the current CLI state."""
    return _state


def reset_state() -> None:
    """Reset CLI state to defaults (used between test invocations)."""
    global _state
    _state = CliState()


def get_config() -> SettleConfig:
    """Get the configuration loaded for this invocation."""
    return _state.config


def load_config(path: Path | None, console: Console) -> SettleConfig:
    """Load configuration from ``path`` (or defaults) into the CLI state.

    Raises:
        typer.Exit: If the file is missing or invalid.
    """
    if path is None:
        config = SettleConfig()
    else:
        try:
            config = SettleConfig.from_yaml(path)
        except FileNotFoundError:
            console.print(f"[red]Config file not found:[/red] {path}")
            raise typer.Exit(1) from None
        except (ValidationError, yaml.YAMLError) as e:
            console.print(f"[red]Invalid configuration:[/red] {escape(str(e))}")
            raise typer.Exit(1) from None

    _state.config = config
    _state.config_path = path
    apply_config(config.eventually)
    return config


def configure_global_logging(console: Console) -> None:
    """Configure logging from CLI options layered over the loaded config.

    Only configures once per session.

    Raises:
        typer.Exit: If logging configuration fails.
    """
    if _state.logging_configured:
        return

    log_config = _state.config.logging
    updates: dict[str, object] = {}
    if _state.log_level:
        updates["level"] = _state.log_level.upper()
    if _state.log_format:
        updates["format"] = _state.log_format
    if _state.log_file:
        updates["file_path"] = _state.log_file

    try:
        log_config = type(log_config).model_validate(
            {**log_config.model_dump(), **updates}
        )
        configure_logging(
            level=log_config.level,
            format=log_config.format,
            file_path=log_config.file_path,
            max_file_size_mb=log_config.max_file_size_mb,
            backup_count=log_config.backup_count,
        )
    except (ValidationError, ValueError) as e:
        console.print(f"[red]Error configuring logging:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None

    _state.logging_configured = True
    _logger.debug("cli_logging_configured", level=log_config.level, format=log_config.format)
