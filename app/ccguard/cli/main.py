"""Main CLI application entry point.

Defines the Typer application and global options.
"""

import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from ccguard import __version__
from ccguard.cli.commands import (
    archive,
    cache,
    config,
    history,
    precheck,
    protect,
    roots,
    scan,
    status,
    switch,
)
from ccguard.utils.formatting import err_console

# Create main Typer app
app = typer.Typer(
    name="ccguard",
    help="Keep a chosen CapCut version installed and stop auto-updates.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"ccguard version {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool, quiet: bool) -> None:
    """Route ccguard's loggers to stderr through Rich.

    Operation logs are already printed by the commands, so only errors
    reach the terminal unless --verbose is given.
    """
    package_logger = logging.getLogger("ccguard")
    package_logger.handlers.clear()

    handler = RichHandler(console=err_console, show_time=False, show_path=False)
    package_logger.addHandler(handler)

    if verbose:
        package_logger.setLevel(logging.DEBUG)
    elif quiet:
        package_logger.setLevel(logging.CRITICAL)
    else:
        package_logger.setLevel(logging.ERROR)


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Show debug logging.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress log output.",
        ),
    ] = False,
) -> None:
    """ccguard - Pin CapCut to the version you choose.

    Delete unwanted versions, lock the launcher configuration and block
    the updater, then switch or undo whenever you like.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    configure_logging(verbose, quiet)


# Register commands
app.command(name="scan")(scan.scan)
app.command(name="precheck")(precheck.precheck)
app.command(name="status")(status.status)
app.command(name="protect")(protect.protect)
app.command(name="unprotect")(protect.unprotect)
app.command(name="switch")(switch.switch)
app.command(name="archive")(archive.archive)
app.command(name="roots")(roots.roots)
app.command(name="history")(history.history)
app.add_typer(cache.app, name="cache")
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
