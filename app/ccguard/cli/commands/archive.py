"""Archive command implementation.

Lists the bundled catalog of legacy releases. Download links are only
displayed, never fetched.
"""

from ccguard.catalog import get_archive_versions
from ccguard.cli.display import build_archive_table
from ccguard.cli.types import JsonOption, print_json
from ccguard.utils.formatting import console


def archive(json_output: JsonOption = False) -> None:
    """List downloadable legacy versions."""
    entries = get_archive_versions()

    if json_output:
        print_json([entry.to_dict() for entry in entries])
        return

    console.print(build_archive_table(entries))
