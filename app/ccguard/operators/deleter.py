"""Deletion of superseded version directories.

Each path is handled on its own: a failure is reported in its result and
never stops the remaining deletions. There is no rollback.
"""

import logging
from pathlib import Path

from ccguard.core.layout import InstallLayout
from ccguard.operators.base import PathActionResult
from ccguard.utils.fsutils import is_within, remove_path

logger = logging.getLogger(__name__)


class VersionDeleter:
    """Removes version directories below the install root.

    Paths outside the install root, the install root itself and any
    path in ``keep`` are refused with an error result.

    Args:
        layout: Resolved installation layout.
        keep: Paths that must survive, typically the keep version.
    """

    def __init__(self, layout: InstallLayout, keep: set[Path] | None = None) -> None:
        self._layout = layout
        self._keep = {Path(p) for p in keep or set()}

    def delete(self, paths: list[str]) -> list[PathActionResult]:
        """Delete multiple version directories and return results.

        Args:
            paths: Absolute version directory paths.

        Returns:
            One PathActionResult per input path, in input order.
        """
        return [self._delete_single(Path(path)) for path in paths]

    def _delete_single(self, target: Path) -> PathActionResult:
        path = str(target)
        root = self._layout.install_root

        if any(is_within(target, keep) or is_within(keep, target) for keep in self._keep):
            return PathActionResult(
                path=path,
                success=False,
                error=f"Refusing to delete kept version: {target.name}",
            )

        if not is_within(target, root) or is_within(root, target):
            return PathActionResult(
                path=path,
                success=False,
                error=f"Not a version directory under {root}: {path}",
            )

        if not target.exists() and not target.is_symlink():
            logger.debug("Already removed: %s", path)
            return PathActionResult(path=path, success=True, changed=False)

        if target.is_symlink() or not target.is_dir():
            return PathActionResult(
                path=path,
                success=False,
                error=f"Not a version directory: {path}",
            )

        try:
            remove_path(target)
        except OSError as e:
            return PathActionResult(path=path, success=False, error=str(e))

        return PathActionResult(path=path, success=True, changed=True)
