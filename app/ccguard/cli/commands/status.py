"""Status command implementation.

Shows the persisted protection state and where the launcher points.
"""

from ccguard.cli.display import print_status
from ccguard.cli.types import JsonOption, get_service, print_json
from ccguard.protection.switcher import read_manifest_version


def status(json_output: JsonOption = False) -> None:
    """Show the current protection status."""
    service = get_service()
    data = service.status()

    if json_output:
        print_json(data)
        return

    print_status(data, read_manifest_version(service.layout.manifest_file))
