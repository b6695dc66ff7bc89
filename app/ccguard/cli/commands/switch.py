"""Switch command implementation.

Points the launcher at another installed version. Active protection
follows the switch.
"""

from typing import Annotated

import typer

from ccguard.cli.types import JsonOption, get_service, print_result, resolve_version_path


def switch(
    target: Annotated[
        str,
        typer.Argument(help="Version to activate: a version name or a path."),
    ],
    json_output: JsonOption = False,
) -> None:
    """Make another installed version the active one.

    Examples:
        ccguard switch 5.9.0
        ccguard switch "/path/to/CapCut/Apps/5.9.0" --json
    """
    service = get_service()
    result = service.switch_version(resolve_version_path(service, target))
    print_result("Switching version", result, json_output)
