"""Filesystem helpers shared by scanners and operators.

Sizes are best effort: unreadable children are skipped and symlinks are
never followed, so a symlink loop cannot stall a scan. Write protection
is expressed through permission bits, plus the read-only attribute on
Windows.
"""

import logging
import os
import shutil
import stat
import subprocess
import sys
from pathlib import Path

from ccguard.utils.shell import command_exists, run_command

logger = logging.getLogger(__name__)

_WRITE_BITS = stat.S_IWUSR | stat.S_IWGRP | stat.S_IWOTH

BYTES_PER_MB = 1024 * 1024


def bytes_to_mb(size_bytes: int) -> float:
    """Convert a byte count to megabytes."""
    return size_bytes / BYTES_PER_MB


def directory_size(path: Path) -> int:
    """Sum the sizes of all regular files below path.

    Args:
        path: Directory to measure. A regular file is measured directly.

    Returns:
        Total size in bytes; 0 when the path is missing.
    """
    try:
        if path.is_symlink():
            return 0
        if path.is_file():
            return path.stat().st_size
    except OSError:
        return 0

    total = 0

    def _on_error(error: OSError) -> None:
        logger.debug("Skipping unreadable entry during size scan: %s", error)

    for dirpath, _dirnames, filenames in os.walk(path, onerror=_on_error, followlinks=False):
        for name in filenames:
            try:
                st = os.lstat(os.path.join(dirpath, name))
            except OSError as e:
                logger.debug("Cannot stat %s: %s", name, e)
                continue
            if stat.S_ISREG(st.st_mode):
                total += st.st_size
    return total


def is_read_only(path: Path) -> bool:
    """Check whether path has no owner write permission.

    Uses the permission bits rather than os.access(), which reports
    every file as writable to a superuser.
    """
    try:
        return not (path.stat().st_mode & stat.S_IWUSR)
    except OSError:
        return False


def make_read_only(path: Path) -> None:
    """Strip write permission from a file.

    Raises:
        OSError: If the permission bits cannot be changed.
    """
    mode = stat.S_IMODE(path.stat().st_mode)
    os.chmod(path, mode & ~_WRITE_BITS)
    if sys.platform == "win32":
        _set_attribute(path, "+r")


def make_writable(path: Path) -> None:
    """Restore owner write permission on a file or directory.

    Raises:
        OSError: If the permission bits cannot be changed.
    """
    if sys.platform == "win32":
        _set_attribute(path, "-r")
    mode = stat.S_IMODE(path.stat().st_mode)
    os.chmod(path, mode | stat.S_IWUSR)


def make_tree_writable(path: Path) -> None:
    """Restore owner write permission on path and everything below it.

    Failures are logged and skipped; the following deletion reports the
    real error if one remains.
    """
    if path.is_symlink() or not path.exists():
        return
    targets = [path]
    if path.is_dir():
        for dirpath, dirnames, filenames in os.walk(path, followlinks=False):
            base = Path(dirpath)
            targets.extend(base / d for d in dirnames)
            targets.extend(base / f for f in filenames)
    for target in targets:
        if target.is_symlink():
            continue
        try:
            if is_read_only(target):
                make_writable(target)
        except OSError as e:
            logger.debug("Cannot restore write permission on %s: %s", target, e)


def remove_path(path: Path) -> None:
    """Remove a file, symlink or directory tree.

    Raises:
        FileNotFoundError: If nothing exists at path.
        OSError: If the removal fails.
    """
    if path.is_dir() and not path.is_symlink():
        make_tree_writable(path)
        shutil.rmtree(path)
        return
    if path.exists() or path.is_symlink():
        if not path.is_symlink() and is_read_only(path):
            make_writable(path)
        path.unlink()
        return
    msg = f"Path does not exist: {path}"
    raise FileNotFoundError(msg)


def is_within(path: Path, root: Path) -> bool:
    """Check whether path equals root or lies below it (lexically)."""
    try:
        Path(os.path.abspath(path)).relative_to(os.path.abspath(root))
    except ValueError:
        return False
    return True


def _set_attribute(path: Path, flag: str) -> None:
    """Toggle a Windows file attribute with attrib, best effort."""
    if not command_exists("attrib"):
        return
    try:
        result = run_command(["attrib", flag, str(path)], timeout=10.0)
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug("attrib %s failed for %s: %s", flag, path, e)
        return
    if not result.success:
        logger.debug("attrib %s failed for %s: %s", flag, path, result.stderr.strip())
