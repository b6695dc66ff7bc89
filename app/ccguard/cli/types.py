"""Shared types and utilities for CLI commands.

This module provides the service factory and option types used across
multiple CLI command modules to avoid code duplication.
"""

import json
from pathlib import Path
from typing import Annotated, Any, NoReturn

import typer

from ccguard.cli.display import print_operation
from ccguard.core.errors import GuardError
from ccguard.models.result import LogLine
from ccguard.service import GuardService
from ccguard.utils.formatting import console, print_error

JsonOption = Annotated[
    bool,
    typer.Option(
        "--json",
        help="Output as JSON.",
    ),
]

YesOption = Annotated[
    bool,
    typer.Option(
        "--yes",
        "-y",
        help="Skip confirmation prompt.",
    ),
]


def get_service() -> GuardService:
    """Build the service from the user's configuration.

    Exits with code 1 when the configuration cannot be loaded.
    """
    try:
        return GuardService.from_config()
    except GuardError as e:
        fail(e.message)


def fail(message: str) -> NoReturn:
    """Print an error and exit with code 1."""
    print_error(message)
    raise typer.Exit(code=1)


def print_json(data: Any) -> None:
    """Print a JSON-ready value."""
    console.print_json(json.dumps(data))


def resolve_version_path(service: GuardService, value: str) -> str:
    """Map a bare version name to its directory under the install root.

    Anything containing a path separator is taken as a path.
    """
    path = Path(value)
    if not path.is_absolute() and len(path.parts) == 1 and value not in (".", ".."):
        return str(service.layout.install_root / value)
    return str(path)


def print_result(title: str, result: dict[str, Any], json_output: bool) -> None:
    """Print an operation result dict and exit 1 when it failed."""
    if json_output:
        print_json(result)
    else:
        logs = tuple(LogLine.parse(line) for line in result["logs"])
        error = result.get("error") or result.get("message")
        print_operation(title, logs, result["success"], error)

    if not result["success"]:
        raise typer.Exit(code=1)
