"""Precheck command implementation.

Reports whether the application is installed and whether it is running,
the two facts protect depends on.
"""

from ccguard.cli.types import JsonOption, get_service, print_json
from ccguard.utils.formatting import console, print_success, print_warning


def precheck(json_output: JsonOption = False) -> None:
    """Check that protection can be applied right now."""
    service = get_service()
    result = service.precheck()

    if json_output:
        print_json(result)
        return

    if result["capcut_found"]:
        console.print(f"[success]✓[/] Installation found at {result['apps_path']}")
    else:
        print_warning(f"No installation found at {result['apps_path']}")

    if result["capcut_running"]:
        print_warning("CapCut is running. Close it before protecting.")
    else:
        console.print("[success]✓[/] CapCut is not running")

    if result["capcut_found"] and not result["capcut_running"]:
        print_success("Ready to protect.")
