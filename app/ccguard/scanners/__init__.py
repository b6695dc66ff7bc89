"""Scanners for installed versions and running processes."""

from ccguard.scanners.process import ProcessMonitor
from ccguard.scanners.versions import VersionScanner, get_install_roots

__all__ = ["ProcessMonitor", "VersionScanner", "get_install_roots"]
