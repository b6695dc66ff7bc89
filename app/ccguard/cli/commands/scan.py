"""Scan command implementation.

Lists the installed version copies and marks the protected one.
"""

from ccguard.cli.display import build_versions_table
from ccguard.cli.types import JsonOption, fail, get_service, print_json
from ccguard.core.errors import ScanError
from ccguard.models.version import InstalledVersion
from ccguard.utils.formatting import console, print_info


def scan(json_output: JsonOption = False) -> None:
    """List installed versions.

    Examples:
        ccguard scan
        ccguard scan --json
    """
    service = get_service()

    try:
        data = service.scan_versions()
    except ScanError as e:
        fail(e.message)

    if json_output:
        print_json(data)
        return

    if not data:
        print_info(f"No installed versions found in {service.layout.install_root}")
        return

    versions = [InstalledVersion(**item) for item in data]
    protected = service.status()["protected_version"]
    console.print(build_versions_table(versions, protected))

    total = sum(v.size_mb for v in versions)
    console.print(f"\n[dim]{len(versions)} version(s), {total:.1f} MB total[/dim]")
