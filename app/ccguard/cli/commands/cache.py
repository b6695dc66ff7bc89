"""Cache size and cleanup commands."""

import typer

from ccguard.cli.types import JsonOption, YesOption, get_service, print_json, print_result
from ccguard.utils.formatting import console, print_info

app = typer.Typer(
    help="Measure and clean the application cache.",
    no_args_is_help=True,
)


@app.command()
def size(json_output: JsonOption = False) -> None:
    """Show the total cache size."""
    service = get_service()
    size_mb = service.calculate_cache_size()

    if json_output:
        print_json({"size_mb": size_mb})
        return

    console.print(f"Cache size: [version.size]{size_mb:.1f} MB[/]")
    for cache_dir in service.layout.cache_dirs:
        console.print(f"  [muted]{cache_dir}[/muted]")


@app.command()
def clean(
    yes: YesOption = False,
    json_output: JsonOption = False,
) -> None:
    """Delete the contents of the cache directories.

    Version directories and project data are never touched.
    """
    service = get_service()

    if not yes and not typer.confirm("Delete all cached files?"):
        print_info("Cancelled.")
        return

    print_result("Cleaning cache", service.clean_cache(), json_output)
