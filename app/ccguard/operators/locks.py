"""Configuration locking and update blockers.

ConfigLocker pins the launcher configuration to the kept version and
write-protects it. BlockerPlanter places empty read-only sentinels at the
paths the updater stages new versions to. Both are idempotent: a path
already in the requested state is reported as unchanged.

The configuration is edited line by line on the raw bytes: only the
last_version line changes, other lines keep their bytes and line endings.
"""

import logging
from pathlib import Path

from ccguard.core.layout import InstallLayout
from ccguard.models.protection import ConfigOrigin
from ccguard.operators.base import PathActionResult
from ccguard.utils.fsutils import (
    is_read_only,
    is_within,
    make_read_only,
    make_writable,
    remove_path,
)

logger = logging.getLogger(__name__)

CONFIG_SECTION = "[Configure]"
PIN_KEY = "last_version"

# Undecodable bytes round-trip through lone surrogates.
_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


def _split_ending(line: str) -> tuple[str, str]:
    body = line.rstrip("\r\n")
    return body, line[len(body) :]


def _is_pin_line(body: str) -> bool:
    key, sep, _value = body.partition("=")
    return bool(sep) and key.strip() == PIN_KEY


def _is_section_header(body: str) -> bool:
    return body.strip().lstrip("\ufeff") == CONFIG_SECTION


def pin_config_text(content: str, version: str | None) -> str:
    """Return configuration text with last_version pinned to version.

    The first last_version line is rewritten in place and later ones are
    dropped. A missing key goes right below the [Configure] header, and a
    missing header is created. Untouched lines keep their line endings;
    new lines use the file's first line ending.

    Args:
        content: Current file content (may be empty).
        version: Version name to pin, or None to drop the key.

    Returns:
        New file content.
    """
    lines = content.splitlines(keepends=True)
    eol = next((end for _, end in map(_split_ending, lines) if end), "\n")
    pinned = False
    result: list[str] = []

    for line in lines:
        body, end = _split_ending(line)
        if _is_pin_line(body):
            if version is not None and not pinned:
                result.append(f"{PIN_KEY}={version}{end or eol}")
                pinned = True
            continue
        result.append(line)

    if version is None or pinned:
        return "".join(result)

    pin_line = f"{PIN_KEY}={version}{eol}"
    headers = [i for i, line in enumerate(result) if _is_section_header(line)]
    if not headers:
        return f"{CONFIG_SECTION}{eol}{pin_line}" + "".join(result)

    index = headers[0]
    if not _split_ending(result[index])[1]:
        result[index] += eol
    result.insert(index + 1, pin_line)
    return "".join(result)


def read_config_text(path: Path) -> str:
    """Read a configuration file without losing any byte.

    Raises:
        OSError: If the file cannot be read.
    """
    return path.read_bytes().decode(_ENCODING, _ERRORS)


def write_config_text(path: Path, content: str) -> None:
    """Write text produced from read_config_text back as bytes.

    Raises:
        OSError: If the file cannot be written.
    """
    path.write_bytes(content.encode(_ENCODING, _ERRORS))


def read_pinned_version(path: Path) -> str | None:
    """Read the last_version value from a configuration file.

    Returns:
        The pinned version, or None when missing or unreadable.
    """
    try:
        content = read_config_text(path)
    except OSError:
        return None
    for line in content.splitlines():
        key, sep, value = line.partition("=")
        if sep and key.strip() == PIN_KEY:
            return value.strip()
    return None


def _rewrite_pin(path: Path, version: str | None) -> None:
    """Re-pin an existing or missing file, clearing read-only first."""
    content = ""
    if path.exists():
        if is_read_only(path):
            make_writable(path)
        content = read_config_text(path)
    write_config_text(path, pin_config_text(content, version))


class ConfigLocker:
    """Pins and write-protects the launcher configuration file.

    Args:
        layout: Resolved installation layout.
    """

    def __init__(self, layout: InstallLayout) -> None:
        self._layout = layout

    @property
    def config_path(self) -> Path:
        return self._layout.config_file

    def origin(self) -> ConfigOrigin:
        """Describe the configuration as it is before locking."""
        path = self.config_path
        if not path.is_file():
            return ConfigOrigin(existed=False)
        return ConfigOrigin(existed=True, pinned_version=read_pinned_version(path))

    def is_locked(self, version: str | None = None) -> bool:
        """Check that the config is read-only (and pinned to version, if given)."""
        path = self.config_path
        if not path.is_file() or not is_read_only(path):
            return False
        return version is None or read_pinned_version(path) == version

    def lock(self, version: str) -> PathActionResult:
        """Pin the configuration to version and strip write permission.

        Args:
            version: Version name the launcher should consider current.

        Returns:
            PathActionResult for the configuration file.
        """
        path = self.config_path

        if self.is_locked(version):
            return PathActionResult(path=str(path), success=True, changed=False)

        if not path.parent.is_dir():
            return PathActionResult(
                path=str(path),
                success=False,
                error=f"Install root does not exist: {path.parent}",
            )

        try:
            _rewrite_pin(path, version)
            make_read_only(path)
        except OSError as e:
            return PathActionResult(path=str(path), success=False, error=str(e))

        logger.debug("Locked %s at %s", path, version)
        return PathActionResult(path=str(path), success=True, changed=True)

    def pin(self, version: str) -> PathActionResult:
        """Pin the configuration to version, leaving it writable.

        Used when switching versions without active protection.
        """
        path = self.config_path

        if not path.parent.is_dir():
            return PathActionResult(
                path=str(path),
                success=False,
                error=f"Install root does not exist: {path.parent}",
            )

        try:
            _rewrite_pin(path, version)
        except OSError as e:
            return PathActionResult(path=str(path), success=False, error=str(e))

        return PathActionResult(path=str(path), success=True, changed=True)

    @staticmethod
    def unlock(path: Path, origin: ConfigOrigin | None = None) -> PathActionResult:
        """Undo a lock, restoring write permission.

        With an origin, the file is also put back the way it was before
        locking: removed if locking created it, otherwise re-pinned to the
        previous version (or left without a pin if it had none). A file
        that is gone or already back to its origin counts as unlocked.
        """
        if not path.exists():
            return PathActionResult(path=str(path), success=True, changed=False)

        changed = False
        try:
            if origin is not None and not origin.existed:
                remove_path(path)
                return PathActionResult(path=str(path), success=True, changed=True)
            if is_read_only(path):
                make_writable(path)
                changed = True
            if origin is not None and read_pinned_version(path) != origin.pinned_version:
                _rewrite_pin(path, origin.pinned_version)
                changed = True
        except OSError as e:
            return PathActionResult(path=str(path), success=False, error=str(e))
        return PathActionResult(path=str(path), success=True, changed=changed)


class BlockerPlanter:
    """Plants and removes sentinels at updater staging paths.

    Sentinels only ever go to the configured staging paths, never to
    effects, assets or project data.

    Args:
        layout: Resolved installation layout.
    """

    def __init__(self, layout: InstallLayout) -> None:
        self._layout = layout

    def targets(self, keep: Path) -> list[Path]:
        """Staging paths to block for a keep version.

        Paths equal to or inside the keep version are excluded.
        """
        return [p for p in self._layout.staging_paths if not is_within(p, keep)]

    @staticmethod
    def is_sentinel(path: Path) -> bool:
        """Check whether path holds an intact blocker sentinel."""
        try:
            return (
                not path.is_symlink()
                and path.is_file()
                and path.stat().st_size == 0
                and is_read_only(path)
            )
        except OSError:
            return False

    def plant(self, path: Path) -> PathActionResult:
        """Place an empty read-only sentinel at path.

        Whatever the updater already staged there is removed first.
        """
        if self.is_sentinel(path):
            return PathActionResult(path=str(path), success=True, changed=False)

        try:
            if path.exists() or path.is_symlink():
                logger.info("Removing staged update payload at %s", path)
                remove_path(path)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(b"")
            make_read_only(path)
        except OSError as e:
            return PathActionResult(path=str(path), success=False, error=str(e))

        return PathActionResult(path=str(path), success=True, changed=True)

    @staticmethod
    def release(path: Path) -> PathActionResult:
        """Remove a sentinel. A missing sentinel counts as released."""
        if not path.exists() and not path.is_symlink():
            return PathActionResult(path=str(path), success=True, changed=False)
        try:
            remove_path(path)
        except OSError as e:
            return PathActionResult(path=str(path), success=False, error=str(e))
        return PathActionResult(path=str(path), success=True, changed=True)
