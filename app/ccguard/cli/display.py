"""Shared Rich display functions for versions and operation results.

Provides reusable table builders and summary printers used by the scan,
protect, unprotect, switch and cache commands.
"""

from typing import Any

from rich.table import Table

from ccguard.models.catalog import ArchiveCatalogEntry, RiskLevel
from ccguard.models.result import LogLine
from ccguard.models.version import InstalledVersion
from ccguard.utils.formatting import (
    console,
    create_version_table,
    print_error,
    print_log,
    print_success,
)

_RISK_STYLES: dict[RiskLevel, str] = {
    RiskLevel.LOW: "risk.low",
    RiskLevel.MEDIUM: "risk.medium",
    RiskLevel.HIGH: "risk.high",
}


def build_versions_table(
    versions: list[InstalledVersion],
    protected_version: str | None = None,
) -> Table:
    """Create a table of installed versions.

    The protected version is marked with a lock; scan order carries no
    meaning beyond sorting by version number.

    Args:
        versions: Scanned versions.
        protected_version: Path of the protected version, if any.

    Returns:
        Rich Table with one row per version.
    """
    table = create_version_table()
    for version in versions:
        marker = "[protected]🔒[/]" if version.path == protected_version else ""
        table.add_row(marker, version.name, version.size_human, version.path)
    return table


def build_archive_table(entries: list[ArchiveCatalogEntry]) -> Table:
    """Create a table of downloadable legacy releases."""
    table = Table(
        title="Legacy Versions",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Version", no_wrap=True, style="version.name")
    table.add_column("Persona", no_wrap=True)
    table.add_column("Risk", width=8)
    table.add_column("Description")
    table.add_column("Download", style="muted", overflow="fold")

    for entry in entries:
        style = _RISK_STYLES[entry.risk_level]
        table.add_row(
            entry.version,
            entry.persona,
            f"[{style}]{entry.risk_level.value}[/{style}]",
            entry.description,
            str(entry.download_url),
        )
    return table


def print_operation(
    title: str,
    logs: tuple[LogLine, ...],
    success: bool,
    error: str | None = None,
) -> None:
    """Print an operation log followed by its outcome."""
    console.print(f"\n[bold_header]{title}[/]")
    print_log(logs)
    console.print()
    if success:
        print_success("Done.")
    else:
        print_error(error or "Operation failed.")


def print_status(status: dict[str, Any], active_version: str | None = None) -> None:
    """Print the protection status view."""
    if status["is_protected"]:
        console.print("[protected]● Protected[/]")
        console.print(f"  Version: {status['protected_version']}")
    else:
        console.print("[unprotected]○ Not protected[/]")

    if active_version:
        console.print(f"  Launcher points to: v{active_version}")

    for path in status["locked_paths"]:
        console.print(f"  [muted]locked[/]   {path}")
    for path in status["blocker_paths"]:
        console.print(f"  [muted]blocker[/]  {path}")
