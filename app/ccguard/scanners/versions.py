"""Scanner for installed version copies.

Lists the version subdirectories of the install root and measures each
one. The scan result is a fresh snapshot; it never says which version is
protected or active, that is the protection state's job.
"""

import logging
import re
from pathlib import Path

from ccguard.core.config import GuardConfig
from ccguard.core.errors import RootNotFoundError, ScanError
from ccguard.core.layout import InstallLayout, candidate_app_roots
from ccguard.models.version import InstalledVersion
from ccguard.operators.cache import CacheCleaner
from ccguard.utils.fsutils import bytes_to_mb, directory_size

logger = logging.getLogger(__name__)


class VersionScanner:
    """Enumerates installed versions below the install root.

    Args:
        layout: Resolved installation layout.
    """

    def __init__(self, layout: InstallLayout) -> None:
        self._layout = layout
        self._pattern = re.compile(layout.config.version_pattern)

    def is_available(self) -> bool:
        """Check whether the install root exists."""
        return self._layout.install_root.is_dir()

    def scan_versions(self) -> list[InstalledVersion]:
        """Scan the install root for version directories.

        Only real directories whose name matches the version pattern are
        reported; files and symlinks are skipped. A version directory that
        cannot be measured is still reported, with size 0.

        Returns:
            Installed versions ordered by version number. Empty when the
            install root does not exist.

        Raises:
            ScanError: If the install root exists but cannot be listed.
        """
        root = self._layout.install_root

        if not root.exists():
            logger.info("Install root not found: %s", root)
            return []
        if not root.is_dir():
            msg = f"Install root is not a directory: {root}"
            raise ScanError(msg)

        try:
            entries = sorted(root.iterdir())
        except OSError as e:
            msg = f"Cannot list install root {root}: {e}"
            raise ScanError(msg) from e

        versions: list[InstalledVersion] = []
        for entry in entries:
            version = self._inspect(entry)
            if version is not None:
                versions.append(version)

        versions.sort(key=lambda v: v.sort_key)
        return versions

    def _inspect(self, entry: Path) -> InstalledVersion | None:
        """Build an InstalledVersion for entry, or None to skip it."""
        if not self._pattern.match(entry.name):
            return None

        try:
            if entry.is_symlink():
                logger.debug("Skipping symlinked version entry: %s", entry)
                return None
            if not entry.is_dir():
                return None
        except OSError as e:
            logger.warning("Skipping uninspectable entry %s: %s", entry, e)
            return None

        try:
            size = directory_size(entry)
        except OSError as e:
            logger.warning("Cannot measure version directory %s: %s", entry, e)
            size = 0

        return InstalledVersion(name=entry.name, path=str(entry), size_mb=bytes_to_mb(size))

    def calculate_cache_size(self) -> float:
        """Measure the cache directories in megabytes."""
        return CacheCleaner(self._layout).calculate_size()

    def get_install_roots(self) -> list[Path]:
        """Resolve the well-known install and user-data roots.

        Raises:
            RootNotFoundError: If no candidate root exists.
        """
        return get_install_roots(self._layout.config)


def get_install_roots(config: GuardConfig) -> list[Path]:
    """Resolve the existing install and user-data roots.

    Probes the application root candidates in order and returns the
    roots of the first candidate that has any.

    Args:
        config: Guard configuration.

    Returns:
        Existing roots, install root first.

    Raises:
        RootNotFoundError: If no candidate has an install or user-data root.
    """
    candidates = candidate_app_roots(config)
    for candidate in candidates:
        roots = InstallLayout(app_root=candidate, config=config).roots()
        if roots:
            return roots
        logger.debug("No roots under candidate %s", candidate)

    probed = ", ".join(str(c) for c in candidates) or "none"
    msg = f"No CapCut installation found (probed: {probed})"
    raise RootNotFoundError(msg)
