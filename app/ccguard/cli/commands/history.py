"""History command for viewing past operations.

This module provides the `ccguard history` command for viewing the
audit trail of protect, unprotect, switch and cache-clean runs.
"""

from datetime import datetime
from typing import Annotated

import typer
from rich.table import Table

from ccguard.cli.types import JsonOption, fail, print_json
from ccguard.core.history import HistoryManager
from ccguard.models.history import HistoryActionType, HistoryEntry
from ccguard.utils.formatting import console, print_info


def history(
    limit: Annotated[
        int,
        typer.Option(
            "--limit",
            "-n",
            help="Maximum number of entries to show.",
        ),
    ] = 20,
    action: Annotated[
        HistoryActionType | None,
        typer.Option(
            "--action",
            "-a",
            help="Only show entries of this action type.",
            case_sensitive=False,
        ),
    ] = None,
    since: Annotated[
        str | None,
        typer.Option(
            "--since",
            help="Show entries since date (YYYY-MM-DD).",
        ),
    ] = None,
    json_output: JsonOption = False,
) -> None:
    """Show the history of protection operations.

    Examples:
        ccguard history              # Show last 20 entries
        ccguard history -a switch    # Only switches
        ccguard history --since 2026-01-01 --json
    """
    entries = HistoryManager().get_history(limit=limit, action_type=action)

    if since:
        try:
            since_date = datetime.fromisoformat(since).strftime("%Y-%m-%d")
        except ValueError:
            fail(f"Invalid date format: {since}. Use YYYY-MM-DD.")
        entries = [e for e in entries if e.timestamp[:10] >= since_date]

    if json_output:
        print_json([entry.to_dict() for entry in entries])
        return

    if not entries:
        print_info("No history entries found.")
        return

    _print_table(entries)


def _print_table(entries: list[HistoryEntry]) -> None:
    table = Table(
        title="Protection History",
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("ID", style="dim")
    table.add_column("Timestamp", style="info")
    table.add_column("Action")
    table.add_column("Target", overflow="fold")
    table.add_column("Result", justify="center")

    for entry in entries:
        table.add_row(
            entry.id[:8],
            _format_timestamp(entry.timestamp),
            entry.action_type.value,
            entry.target or "",
            "[success]OK[/]" if entry.success else "[error]FAIL[/]",
        )

    console.print(table)


def _format_timestamp(iso_timestamp: str) -> str:
    """Format an ISO 8601 timestamp as YYYY-MM-DD HH:MM."""
    dt = datetime.fromisoformat(iso_timestamp.replace("Z", "+00:00"))
    return dt.strftime("%Y-%m-%d %H:%M")
