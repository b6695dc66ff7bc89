"""CLI commands for ccguard.

This package contains all subcommand implementations.
"""

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

__all__ = [
    "archive",
    "cache",
    "config",
    "history",
    "precheck",
    "protect",
    "roots",
    "scan",
    "status",
    "switch",
]
