"""settle CLI.

Built with Typer. Global options (logging, configuration file) are handled
by the app callback, which runs before any command; commands live in
``settle.cli.commands``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from settle import __version__

from . import helpers as helpers
from .commands import fds, wait_bind, which
from .output import console

app = typer.Typer(
    name="settle",
    help="Eventual assertions and bound-port discovery for test harnesses",
    add_completion=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"settle v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="YAML configuration file",
            envvar="SETTLE_CONFIG",
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            "-L",
            help="Logging level (DEBUG, INFO, WARNING, ERROR)",
            envvar="SETTLE_LOG_LEVEL",
        ),
    ] = None,
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log-file",
            help="Path for log file output",
            envvar="SETTLE_LOG_FILE",
        ),
    ] = None,
    log_format: Annotated[
        str | None,
        typer.Option(
            "--log-format",
            help="Log format: json, console, or both",
            envvar="SETTLE_LOG_FORMAT",
        ),
    ] = None,
) -> None:
    """settle - wait for things to settle in tests."""
    state = helpers.get_state()
    state.log_level = log_level
    state.log_file = log_file
    state.log_format = log_format
    helpers.load_config(config, console)
    helpers.configure_global_logging(console)


app.command()(which)
app.command(name="wait-bind")(wait_bind)
app.command()(fds)


__all__ = ["app", "main"]
