"""Roots command implementation."""

from ccguard.cli.types import JsonOption, fail, get_service, print_json
from ccguard.core.errors import RootNotFoundError
from ccguard.utils.formatting import console


def roots(json_output: JsonOption = False) -> None:
    """Show the install and user-data roots in use."""
    service = get_service()

    try:
        found = service.get_install_roots()
    except RootNotFoundError as e:
        fail(e.message)

    if json_output:
        print_json(found)
        return

    for root in found:
        console.print(root)
