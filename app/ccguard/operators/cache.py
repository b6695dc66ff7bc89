"""Cache measurement and cleanup.

Only the contents of the configured cache directories are removed. The
directories themselves stay, and a cache entry that overlaps the install
root is refused so version directories can never be purged as cache.
"""

import logging
from pathlib import Path

from ccguard.core.layout import InstallLayout
from ccguard.models.result import OperationLog, OperationResult
from ccguard.utils.fsutils import bytes_to_mb, directory_size, is_within, remove_path

logger = logging.getLogger(__name__)


class CacheCleaner:
    """Measures and purges the application's cache directories.

    Args:
        layout: Resolved installation layout.
    """

    def __init__(self, layout: InstallLayout) -> None:
        self._layout = layout

    def _is_safe(self, cache_dir: Path) -> bool:
        root = self._layout.install_root
        return not (is_within(cache_dir, root) or is_within(root, cache_dir))

    def calculate_size(self) -> float:
        """Sum the size of all cache directories in megabytes.

        Missing directories contribute zero.
        """
        total = 0
        for cache_dir in self._layout.cache_dirs:
            if self._is_safe(cache_dir) and cache_dir.is_dir():
                total += directory_size(cache_dir)
        return bytes_to_mb(total)

    def clean(self, log: OperationLog | None = None) -> OperationResult:
        """Delete the contents of every cache directory.

        Each entry is removed on its own; failures are logged as warnings
        and cleaning continues with the next entry.

        Args:
            log: Log to append to. A new one is created when omitted.

        Returns:
            OperationResult that succeeds even when some entries failed.
        """
        log = log if log is not None else OperationLog(logger)
        before = self.calculate_size()
        removed = 0
        failed = 0

        for cache_dir in self._layout.cache_dirs:
            if not self._is_safe(cache_dir):
                log.warn(f"Refusing to clean {cache_dir}: overlaps the install root")
                continue
            if not cache_dir.is_dir():
                log.info(f"No cache at {cache_dir.name}")
                continue

            try:
                entries = sorted(cache_dir.iterdir())
            except OSError as e:
                log.warn(f"Cannot list {cache_dir}: {e}")
                failed += 1
                continue

            for entry in entries:
                try:
                    remove_path(entry)
                    removed += 1
                except OSError as e:
                    log.warn(f"Could not remove {entry.name}: {e}")
                    failed += 1

        freed = max(before - self.calculate_size(), 0.0)
        if failed:
            log.warn(
                f"Cache partly cleaned: {removed} removed, {failed} failed "
                f"({freed:.1f} MB freed)"
            )
        else:
            log.ok(f"Cache cleaned ({freed:.1f} MB freed)")
        return OperationResult.ok(log)
