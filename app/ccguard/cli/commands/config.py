"""Configuration commands.

Shows the effective configuration and writes a starter config.toml.
"""

from pathlib import Path
from typing import Annotated

import tomli_w
import typer

from ccguard.cli.types import JsonOption, fail, print_json
from ccguard.core.config import GuardConfig, load_config, save_config
from ccguard.core.errors import ConfigError
from ccguard.core.layout import resolve_layout
from ccguard.core.paths import get_config_path
from ccguard.utils.formatting import console, print_info, print_success, print_warning

app = typer.Typer(
    help="Show and initialize the ccguard configuration.",
    no_args_is_help=True,
)


@app.command()
def show(json_output: JsonOption = False) -> None:
    """Show the effective configuration and resolved paths."""
    try:
        config = load_config()
    except ConfigError as e:
        fail(e.message)

    layout = resolve_layout(config)
    data = config.model_dump(mode="json", exclude_none=True)

    if json_output:
        print_json({"config": data, "app_root": str(layout.app_root)})
        return

    path = get_config_path()
    source = str(path) if path.exists() else "built-in defaults"
    console.print(f"[bold_header]Configuration[/] [muted]({source})[/muted]\n")
    console.print(tomli_w.dumps(data), highlight=False, markup=False)
    console.print(f"Application root: {layout.app_root}")
    console.print(f"Install root:     {layout.install_root}")


@app.command()
def init(
    app_root: Annotated[
        Path | None,
        typer.Option(
            "--app-root",
            help="Application root to record (default: auto-detect).",
        ),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output path for the config file.",
        ),
    ] = None,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite an existing config file.",
        ),
    ] = False,
) -> None:
    """Write a config file with the defaults and the detected root.

    Examples:
        ccguard config init
        ccguard config init --app-root "D:/Apps/CapCut" --force
    """
    output_path = output or get_config_path()

    if output_path.exists():
        if not force:
            fail(f"Config already exists: {output_path} (use --force to overwrite)")
        print_warning(f"Overwriting existing config: {output_path}")

    if app_root is None:
        detected = resolve_layout(GuardConfig()).app_root
        if detected.is_dir():
            app_root = detected
            print_info(f"Detected application root: {detected}")
        else:
            print_warning("No installation detected; app_root left unset.")

    try:
        saved = save_config(GuardConfig(app_root=app_root), output_path)
    except ConfigError as e:
        fail(e.message)

    print_success(f"Config created: {saved}")
