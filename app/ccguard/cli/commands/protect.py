"""Protect and unprotect commands.

protect keeps one installed version, optionally deletes the others, and
locks the launcher to it. unprotect reverts the lock and the blockers.
"""

from typing import Annotated

import typer

from ccguard.cli.types import (
    JsonOption,
    YesOption,
    fail,
    get_service,
    print_result,
    resolve_version_path,
)
from ccguard.core.errors import ScanError
from ccguard.service import GuardService
from ccguard.utils.formatting import console, print_info


def protect(
    keep: Annotated[
        str,
        typer.Argument(help="Version to keep: a version name or a path."),
    ],
    delete: Annotated[
        list[str] | None,
        typer.Option(
            "--delete",
            "-d",
            help="Version to delete (repeatable).",
        ),
    ] = None,
    delete_others: Annotated[
        bool,
        typer.Option(
            "--delete-others",
            help="Delete every other installed version.",
        ),
    ] = False,
    clean_cache: Annotated[
        bool,
        typer.Option(
            "--clean-cache/--no-clean-cache",
            help="Purge cache directories.",
        ),
    ] = False,
    lock_config: Annotated[
        bool,
        typer.Option(
            "--lock/--no-lock",
            help="Pin and write-protect the launcher configuration.",
        ),
    ] = True,
    blockers: Annotated[
        bool,
        typer.Option(
            "--blockers/--no-blockers",
            help="Plant sentinels at the updater staging paths.",
        ),
    ] = True,
    yes: YesOption = False,
    json_output: JsonOption = False,
) -> None:
    """Protect an installed version against auto-updates.

    Examples:
        ccguard protect 6.4.0                    # Lock to 6.4.0
        ccguard protect 6.4.0 --delete 5.9.0     # ...and delete 5.9.0
        ccguard protect 6.4.0 --delete-others --clean-cache -y
    """
    service = get_service()
    keep_path = resolve_version_path(service, keep)
    to_delete = [resolve_version_path(service, item) for item in delete or []]

    if delete_others:
        to_delete.extend(_other_versions(service, keep_path, to_delete))

    if not json_output:
        _show_plan(keep_path, to_delete, clean_cache, lock_config, blockers)

    if not yes and not typer.confirm("Apply protection?"):
        print_info("Cancelled.")
        return

    request = {
        "versions_to_delete": to_delete,
        "clean_cache": clean_cache,
        "lock_config": lock_config,
        "create_blockers": blockers,
    }
    result = service.apply_protection(request, keep_path)
    print_result("Applying protection", result, json_output)


def unprotect(
    yes: YesOption = False,
    json_output: JsonOption = False,
) -> None:
    """Remove protection so the application can update again."""
    service = get_service()

    if not yes and not typer.confirm("Remove protection?"):
        print_info("Cancelled.")
        return

    result = service.remove_protection()
    print_result("Removing protection", result, json_output)


def _other_versions(service: GuardService, keep_path: str, already: list[str]) -> list[str]:
    """Paths of installed versions other than keep_path."""
    try:
        versions = service.scan_versions()
    except ScanError as e:
        fail(e.message)
    return [
        v["path"]
        for v in versions
        if v["path"] != keep_path and v["path"] not in already
    ]


def _show_plan(
    keep: str,
    to_delete: list[str],
    clean_cache: bool,
    lock_config: bool,
    blockers: bool,
) -> None:
    console.print(f"\n[bold]Keep:[/bold] {keep}")
    if to_delete:
        console.print(f"[bold]Delete ({len(to_delete)}):[/bold]")
        for path in to_delete:
            console.print(f"  [warning]-[/] {path}")
    options = [
        ("lock configuration", lock_config),
        ("create blockers", blockers),
        ("clean cache", clean_cache),
    ]
    enabled = ", ".join(name for name, on in options if on) or "none"
    console.print(f"[bold]Steps:[/bold] {enabled}\n")

