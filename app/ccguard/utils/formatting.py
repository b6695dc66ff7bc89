"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich.
"""

import sys

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ccguard.core.theme import get_theme
from ccguard.models.result import LogLevel, LogLine


def _detect_color_system() -> str | None:
    """Return "truecolor" for interactive terminals, None to let Rich decide."""
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances (theme loaded once at import)
console = Console(theme=get_theme(), color_system=_detect_color_system())
err_console = Console(theme=get_theme(), stderr=True, color_system=_detect_color_system())


def create_version_table(title: str = "Installed Versions") -> Table:
    """Create a pre-configured table for displaying installed versions.

    Args:
        title: Table title.

    Returns:
        Rich Table with marker, version, size and path columns.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
        row_styles=["", "on grey7"],
    )
    table.add_column("", width=2, justify="center")
    table.add_column("Version", no_wrap=True, style="version.name")
    table.add_column("Size", style="version.size", justify="right")
    table.add_column("Path", style="muted", overflow="fold")
    return table


def format_log_line(line: LogLine) -> str:
    """Render a tagged log line with Rich markup."""
    if line.level == LogLevel.OK:
        return f"[success]✓[/] {escape(line.message)}"
    if line.level == LogLevel.WARN:
        return f"[warning]![/] {escape(line.message)}"
    return f"[muted]· {escape(line.message)}[/]"


def print_log(lines: tuple[LogLine, ...] | list[LogLine]) -> None:
    """Print an operation log, one styled line per entry."""
    for line in lines:
        console.print(format_log_line(line), highlight=False)


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")
