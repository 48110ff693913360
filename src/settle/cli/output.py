"""Rich output formatting for the settle CLI."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from settle.core.errors import MalformedOutputError, SettleError, ToolInvocationError

# Command modules print through this console; errors go to err_console.
console = Console()
err_console = Console(stderr=True)


def format_settle_error(error: SettleError) -> Panel:
    """Render a settle error with the tool output that explains it."""
    lines = [f"[bold]{escape(str(error))}[/bold]"]
    if isinstance(error, ToolInvocationError):
        result = error.result
        lines.append(f"command: {' '.join(result.command)}")
        if result.stderr.strip():
            lines.append(f"stderr: {escape(result.stderr.strip())}")
    elif isinstance(error, MalformedOutputError):
        lines.append(f"output: {escape(repr(error.output))}")
    return Panel("\n".join(lines), title=type(error).__name__, border_style="red")
