"""Protection pipeline and version switching."""

from ccguard.protection.controller import Enforcement, ProtectionController
from ccguard.protection.switcher import VersionSwitcher, read_manifest_version

__all__ = [
    "Enforcement",
    "ProtectionController",
    "VersionSwitcher",
    "read_manifest_version",
]
