"""Process inspection commands for the settle CLI.

- `which`: resolve an executable the way bind discovery does
- `wait-bind`: wait for a process to bind a port and print it
- `fds`: count a process's open file descriptors
"""

from __future__ import annotations

import json
from pathlib import Path

import psutil
import typer
from rich.markup import escape

from settle.core.errors import SettleError, ToolNotFoundError
from settle.process import BindProtocol, BindWaiter, count_open_fds, find_executable

from ..helpers import get_config
from ..output import console, err_console, format_settle_error


def which(
    binary: str = typer.Argument(..., help="Executable name to resolve"),
    search: list[Path] = typer.Option(
        [],
        "--search",
        "-s",
        help="Directory to check before PATH (repeatable, checked in order)",
    ),
) -> None:
    """Resolve an executable, checking --search directories before PATH."""
    try:
        path = find_executable(binary, [str(s) for s in search])
    except ToolNotFoundError as e:
        err_console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1) from None
    console.print(path, highlight=False, soft_wrap=True)


def wait_bind(
    pid: int = typer.Argument(..., help="Process id to inspect"),
    udp: bool = typer.Option(False, "--udp", help="Look for a UDP socket instead of TCP"),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        "-t",
        min=0.0,
        help="Seconds to keep retrying lsof (default from config)",
    ),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output JSON"),
) -> None:
    """Wait until a process has bound an IPv4 port and print the port.

    Examples:
        settle wait-bind 4242
        settle wait-bind 4242 --udp --timeout 5
    """
    protocol = BindProtocol.UDP if udp else BindProtocol.TCP
    waiter = BindWaiter(config=get_config().bind)
    try:
        port = waiter.wait_for_bind(pid, protocol, timeout)
    except SettleError as e:
        err_console.print(format_settle_error(e))
        raise typer.Exit(1) from None

    if json_output:
        typer.echo(json.dumps({"pid": pid, "protocol": protocol.name, "port": port}))
    else:
        console.print(f"{port}", highlight=False)


def fds(
    pid: int | None = typer.Argument(None, help="Process id (default: this process)"),
) -> None:
    """Print the number of open file descriptors of a process."""
    try:
        count = count_open_fds(pid)
    except psutil.Error as e:
        err_console.print(f"[red]Cannot inspect process {pid}:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None
    console.print(f"{count}", highlight=False)
