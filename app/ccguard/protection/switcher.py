"""Switching the active version.

The launcher decides what to start from two files in the install root:
the ProductInfo.xml pointer and the last_version pin in configure.ini.
A switch rewrites both, re-applies an active protection to the new
target, and records the new target in the protection state. Every file
a switch may touch is snapshotted first; if any step fails the snapshot
is restored and the state file is left as it was.
"""

from __future__ import annotations

import logging
import os
import stat
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from xml.sax.saxutils import escape

from ccguard.core.errors import GuardError, PreconditionError, SwitchError
from ccguard.core.history import HistoryManager
from ccguard.core.state import ProtectionStateStore
from ccguard.models.history import HistoryActionType, create_history_entry
from ccguard.models.protection import ConfigOrigin, ProtectionState
from ccguard.models.result import OperationLog, SwitchResult
from ccguard.operators.locks import ConfigLocker
from ccguard.protection.controller import ProtectionController, normalize_path
from ccguard.utils.fsutils import (
    is_read_only,
    is_within,
    make_read_only,
    make_writable,
    remove_path,
)

logger = logging.getLogger(__name__)

MANIFEST_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<ProductInfo>
  <InstallPath>{install_path}</InstallPath>
  <Version>{version}</Version>
</ProductInfo>
"""


def render_manifest(executable: Path, version: str) -> str:
    """Render the launcher pointer for a version's executable."""
    return MANIFEST_TEMPLATE.format(
        install_path=escape(str(executable)),
        version=escape(version),
    )


def read_manifest_version(path: Path) -> str | None:
    """Read the Version element of a launcher pointer.

    Returns:
        The version, or None when the file is missing or not a pointer.
    """
    try:
        root = ET.parse(path).getroot()
    except (OSError, ET.ParseError):
        return None
    version = root.findtext("Version")
    return version.strip() if version else None


@dataclass(frozen=True, slots=True)
class FileSnapshot:
    """Content and permission bits of a file before a switch.

    Attributes:
        path: Snapshotted path.
        content: File bytes, or None when the path did not exist.
        mode: Permission bits, or None when the path did not exist.
    """

    path: Path
    content: bytes | None = None
    mode: int | None = None

    @classmethod
    def capture(cls, path: Path) -> FileSnapshot | None:
        """Snapshot path; directories and symlinks cannot be captured.

        Raises:
            OSError: If an existing file cannot be read.
        """
        if path.is_symlink() or path.is_dir():
            return None
        if not path.exists():
            return cls(path=path)
        return cls(
            path=path,
            content=path.read_bytes(),
            mode=stat.S_IMODE(path.stat().st_mode),
        )

    def restore(self) -> None:
        """Put the file back the way it was captured.

        Raises:
            OSError: If the file cannot be restored.
        """
        if self.content is None:
            if self.path.exists() or self.path.is_symlink():
                remove_path(self.path)
            return

        if self.path.is_dir() and not self.path.is_symlink():
            remove_path(self.path)
        elif self.path.exists() and is_read_only(self.path):
            make_writable(self.path)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_bytes(self.content)
        if self.mode is not None:
            os.chmod(self.path, self.mode)
            if not self.mode & stat.S_IWUSR:
                make_read_only(self.path)


class VersionSwitcher:
    """Makes another installed version the active one.

    Args:
        controller: Controller whose lock and blocker steps are re-run
            when protection is active.
        store: Persistent protection state.
        history: Optional audit trail.
    """

    def __init__(
        self,
        controller: ProtectionController,
        store: ProtectionStateStore,
        history: HistoryManager | None = None,
    ) -> None:
        self._controller = controller
        self._layout = controller.layout
        self._store = store
        self._history = history
        self._locker = ConfigLocker(self._layout)

    def switch(self, target_path: str) -> SwitchResult:
        """Switch the launcher to the version at target_path.

        Args:
            target_path: Version directory to activate.

        Returns:
            SwitchResult; on failure nothing observable has changed.
        """
        log = OperationLog(logger)
        target = Path(os.path.abspath(target_path))
        log.info(f"Switching to version at {target}")

        try:
            self._check_target(target)
        except PreconditionError as e:
            log.warn(e.message)
            return SwitchResult(False, e.message, log.lines, e.kind)

        try:
            with self._store.transaction() as state:
                if state.is_protected:
                    self._controller.ensure_not_running()
                snapshots = self._capture(state)
                try:
                    new_state = self._apply_switch(state, target, log)
                    if new_state is not None:
                        self._store.save(new_state)
                except GuardError as e:
                    log.warn(e.message)
                    self._restore(snapshots, log)
                    self._record(target, False, log)
                    return SwitchResult(False, e.message, log.lines, e.kind)
        except GuardError as e:
            log.warn(e.message)
            return SwitchResult(False, e.message, log.lines, e.kind)

        message = f"Switched to v{target.name}"
        log.ok(message)
        self._record(target, True, log)
        return SwitchResult(True, message, log.lines)

    def _check_target(self, target: Path) -> None:
        """Raises PreconditionError unless target is an installed version."""
        root = self._layout.install_root
        if not target.is_dir():
            msg = f"Target version not found: {target}"
            raise PreconditionError(msg)
        if normalize_path(target) == normalize_path(root) or not is_within(target, root):
            msg = f"Target is not a version directory under {root}: {target}"
            raise PreconditionError(msg)

    def _capture(self, state: ProtectionState) -> list[FileSnapshot]:
        """Snapshot every file a switch may write or remove."""
        paths = {
            self._layout.manifest_file,
            self._layout.config_file,
            *self._layout.staging_paths,
            *(Path(p) for p in state.locked_paths),
            *(Path(p) for p in state.blocker_paths),
        }
        snapshots: list[FileSnapshot] = []
        for path in sorted(paths):
            try:
                snapshot = FileSnapshot.capture(path)
            except OSError as e:
                msg = f"Cannot snapshot {path}: {e}"
                raise SwitchError(msg) from e
            if snapshot is None:
                logger.debug("Not snapshotting non-file %s", path)
                continue
            snapshots.append(snapshot)
        return snapshots

    def _restore(self, snapshots: list[FileSnapshot], log: OperationLog) -> None:
        log.info("Rolling back switch...")
        for snapshot in snapshots:
            try:
                snapshot.restore()
            except OSError as e:
                log.warn(f"Could not restore {snapshot.path}: {e}")

    def _apply_switch(
        self,
        state: ProtectionState,
        target: Path,
        log: OperationLog,
    ) -> ProtectionState | None:
        """Rewrite the pointer files and re-apply protection.

        Returns:
            The state to persist, or None when protection is inactive.

        Raises:
            SwitchError: If any step fails.
        """
        self._write_manifest(target)
        log.ok("Launcher pointer updated")

        relock = state.is_protected and bool(state.locked_paths)
        if not relock:
            action = self._locker.pin(target.name)
            if action.failed:
                msg = f"Could not update configuration: {action.error}"
                raise SwitchError(msg)
            log.ok(f"Configuration pinned to v{target.name}")

        if not state.is_protected:
            return None

        enforcement = self._controller.enforce(
            target,
            lock_config=relock,
            create_blockers=bool(state.blocker_paths),
            log=log,
        )
        if enforcement.error is not None:
            raise SwitchError(enforcement.error)
        if not enforcement.holds_anything:
            msg = f"Protection could not be re-applied to v{target.name}"
            raise SwitchError(msg)

        # Removing protection later keeps the switched-to pin.
        for path in enforcement.config_origins:
            enforcement.config_origins[path] = ConfigOrigin(
                existed=True, pinned_version=target.name
            )
        self._controller.release_stale(state, enforcement, log)
        return ProtectionState.protected(
            str(target),
            locked_paths=enforcement.locked_paths,
            blocker_paths=enforcement.blocker_paths,
            config_origins=enforcement.config_origins,
        )

    def _write_manifest(self, target: Path) -> None:
        path = self._layout.manifest_file
        executable = target / self._layout.config.executable_name
        try:
            if path.exists() and is_read_only(path):
                make_writable(path)
            path.write_text(render_manifest(executable, target.name), encoding="utf-8")
        except OSError as e:
            msg = f"Could not write {path.name}: {e}"
            raise SwitchError(msg) from e

    def _record(self, target: Path, success: bool, log: OperationLog) -> None:
        if self._history is None:
            return
        entry = create_history_entry(
            HistoryActionType.SWITCH,
            target=str(target),
            success=success,
            metadata={"warnings": len(log.warnings)},
        )
        try:
            self._history.record(entry)
        except OSError as e:
            log.warn(f"Could not record history: {e}")


