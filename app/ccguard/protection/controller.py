"""Protection pipeline: apply, status and remove.

apply() runs an ordered sequence of idempotent steps. The precondition
gate refuses the whole run before anything is touched; after that, each
step is best-effort and reports per-item failures as warning lines. A
run only fails as a whole when the keep version cannot end up locked and
recorded.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from ccguard.core.errors import ErrorKind, GuardError, PreconditionError
from ccguard.core.history import HistoryManager
from ccguard.core.layout import InstallLayout
from ccguard.core.state import ProtectionStateStore
from ccguard.models.history import HistoryActionType, create_history_entry
from ccguard.models.protection import (
    ConfigOrigin,
    ProtectionRequest,
    ProtectionState,
    ProtectionStatus,
)
from ccguard.models.result import OperationLog, OperationResult
from ccguard.operators.cache import CacheCleaner
from ccguard.operators.deleter import VersionDeleter
from ccguard.operators.locks import BlockerPlanter, ConfigLocker
from ccguard.scanners.process import ProcessMonitor
from ccguard.utils.fsutils import is_within

logger = logging.getLogger(__name__)


def normalize_path(path: str | Path) -> Path:
    """Absolute, lexically normalized form used for path comparisons."""
    return Path(os.path.normcase(os.path.abspath(path)))


@dataclass
class Enforcement:
    """Paths held by the lock and blocker steps for one keep version.

    Attributes:
        locked_paths: Files locked for the keep version.
        blocker_paths: Sentinels planted for the keep version.
        config_origins: Pre-lock shape of each locked path.
        error: Set when the keep version could not be locked.
    """

    locked_paths: set[str] = field(default_factory=set)
    blocker_paths: set[str] = field(default_factory=set)
    config_origins: dict[str, ConfigOrigin] = field(default_factory=dict)
    error: str | None = None

    @property
    def holds_anything(self) -> bool:
        return bool(self.locked_paths or self.blocker_paths)


class ProtectionController:
    """Applies, inspects and removes protection for one installation.

    Args:
        layout: Resolved installation layout.
        store: Persistent protection state.
        monitor: Process monitor used by the precondition gate.
        history: Optional audit trail; write failures become warnings.
    """

    def __init__(
        self,
        layout: InstallLayout,
        store: ProtectionStateStore,
        monitor: ProcessMonitor,
        history: HistoryManager | None = None,
    ) -> None:
        self._layout = layout
        self._store = store
        self._monitor = monitor
        self._history = history
        self._locker = ConfigLocker(layout)
        self._planter = BlockerPlanter(layout)

    @property
    def layout(self) -> InstallLayout:
        return self._layout

    def status(self) -> ProtectionStatus:
        """Report the persisted protection state without taking the lock."""
        return ProtectionStatus.from_state(self._store.load())

    def apply(self, request: ProtectionRequest, keep_version: str) -> OperationResult:
        """Run the protection pipeline for keep_version.

        Args:
            request: Validated protection options.
            keep_version: Path of the version directory to keep.

        Returns:
            OperationResult with the ordered, tagged log.
        """
        log = OperationLog(logger)
        keep = Path(os.path.abspath(keep_version))

        try:
            with self._store.transaction() as previous:
                try:
                    self._check_preconditions(request, keep, log)
                except PreconditionError as e:
                    log.warn(e.message)
                    return OperationResult.failed(log, e.message, e.kind)

                deleted = self._delete_versions(request, keep, log)
                enforcement = self.enforce(
                    keep,
                    lock_config=request.lock_config,
                    create_blockers=request.create_blockers,
                    origins=previous.config_origins,
                    log=log,
                )

                if request.clean_cache:
                    log.info("Cleaning cache...")
                    CacheCleaner(self._layout).clean(log)

                self.release_stale(previous, enforcement, log)
                state = self._build_state(keep, request, enforcement, log)
                self._store.save(state)
        except GuardError as e:
            log.warn(e.message)
            self._record(HistoryActionType.APPLY, str(keep), [], False, log)
            return OperationResult.failed(log, e.message, e.kind)

        if enforcement.error is not None:
            self._record(HistoryActionType.APPLY, str(keep), deleted, False, log)
            return OperationResult.failed(log, enforcement.error, ErrorKind.PARTIAL_FAILURE)

        if state.is_protected:
            log.ok(f"Protection applied to v{keep.name}")
        paths = deleted + sorted(state.locked_paths | state.blocker_paths)
        self._record(HistoryActionType.APPLY, str(keep), paths, True, log)
        return OperationResult.ok(log)

    def remove(self) -> OperationResult:
        """Undo the recorded lock and blockers and clear the state.

        Paths that cannot be reverted stay recorded so a retry can finish
        the job.
        """
        log = OperationLog(logger)

        try:
            with self._store.transaction() as state:
                if not state.is_protected:
                    log.ok("Protection is not active")
                    return OperationResult.ok(log)

                log.info("Removing protection...")
                remaining_locks = self._unlock_all(state.locked_paths, state.config_origins, log)
                remaining_blockers = self._release_all(state.blocker_paths, log)

                if remaining_locks or remaining_blockers:
                    self._store.save(
                        ProtectionState.protected(
                            str(state.protected_version),
                            locked_paths=remaining_locks,
                            blocker_paths=remaining_blockers,
                            config_origins={
                                p: o
                                for p, o in state.config_origins.items()
                                if p in remaining_locks
                            },
                        )
                    )
                    error = (
                        f"Could not revert {len(remaining_locks) + len(remaining_blockers)} "
                        "path(s); run remove again"
                    )
                    log.warn(error)
                    self._record(HistoryActionType.REMOVE, state.protected_version, [], False, log)
                    return OperationResult.failed(log, error, ErrorKind.PARTIAL_FAILURE)

                self._store.clear()
        except GuardError as e:
            log.warn(e.message)
            return OperationResult.failed(log, e.message, e.kind)

        log.ok("Protection removed - CapCut can now auto-update")
        paths = sorted(state.locked_paths | state.blocker_paths)
        self._record(HistoryActionType.REMOVE, state.protected_version, paths, True, log)
        return OperationResult.ok(log)

    def enforce(
        self,
        keep: Path,
        *,
        lock_config: bool,
        create_blockers: bool,
        log: OperationLog,
        origins: dict[str, ConfigOrigin] | None = None,
    ) -> Enforcement:
        """Run the lock and blocker steps against keep.

        Args:
            keep: Version directory to protect.
            lock_config: Pin and lock the configuration file.
            create_blockers: Plant sentinels at the staging paths.
            log: Log receiving one line per path.
            origins: Known pre-lock shapes; the config is inspected before
                locking when it has none.

        Returns:
            Enforcement describing what is now held.
        """
        result = Enforcement()

        if lock_config:
            log.info("Locking configuration...")
            origin = (origins or {}).get(str(self._locker.config_path))
            if origin is None:
                origin = self._locker.origin()
            action = self._locker.lock(keep.name)
            if action.failed:
                result.error = f"Could not lock configuration: {action.error}"
                log.warn(result.error)
            else:
                result.locked_paths.add(action.path)
                result.config_origins[action.path] = origin
                if action.changed:
                    log.ok(f"Configuration pinned to v{keep.name} and locked")
                else:
                    log.ok("Configuration already locked")
        else:
            log.info("Skipping configuration lock")

        if create_blockers:
            log.info("Creating update blockers...")
            targets = self._planter.targets(keep)
            for target in targets:
                action = self._planter.plant(target)
                label = self._relative(target)
                if action.failed:
                    log.warn(f"Could not block {label}: {action.error}")
                    continue
                result.blocker_paths.add(action.path)
                if action.changed:
                    log.ok(f"Blocked {label}")
                else:
                    log.info(f"Blocker already in place: {label}")
            if targets and not result.blocker_paths:
                log.warn("No update blockers could be created")
        else:
            log.info("Skipping update blockers")

        return result

    def ensure_not_running(self) -> None:
        """Raises PreconditionError while the application is running."""
        if self._monitor.is_running():
            msg = "CapCut is still running. Please close it first."
            raise PreconditionError(msg)

    def release_stale(
        self,
        previous: ProtectionState,
        enforcement: Enforcement,
        log: OperationLog,
    ) -> None:
        """Release paths of a previous protection that are no longer held.

        Paths that fail to release are added to enforcement so they stay
        recorded.
        """
        stale_locks = previous.locked_paths - enforcement.locked_paths
        stale_blockers = previous.blocker_paths - enforcement.blocker_paths
        if not (stale_locks or stale_blockers):
            return

        log.info("Releasing paths of the previous protection...")
        failed_locks = self._unlock_all(stale_locks, previous.config_origins, log)
        enforcement.locked_paths |= failed_locks
        for path in failed_locks:
            if path in previous.config_origins:
                enforcement.config_origins[path] = previous.config_origins[path]
        enforcement.blocker_paths |= self._release_all(stale_blockers, log)

    def _check_preconditions(
        self,
        request: ProtectionRequest,
        keep: Path,
        log: OperationLog,
    ) -> None:
        """Refuse the run before anything is touched.

        Raises:
            PreconditionError: If the run must not start.
        """
        log.info("Checking system state...")
        self.ensure_not_running()
        log.ok("CapCut is not running")

        root = self._layout.install_root
        if not keep.is_dir():
            msg = f"Keep version not found: {keep}"
            raise PreconditionError(msg)
        if normalize_path(keep) == normalize_path(root) or not is_within(keep, root):
            msg = f"Keep version is not a version directory under {root}: {keep}"
            raise PreconditionError(msg)

        keep_norm = normalize_path(keep)
        for path in request.versions_to_delete:
            target = normalize_path(path)
            if target == keep_norm or is_within(keep_norm, target):
                msg = f"Refusing to delete the kept version: {path}"
                raise PreconditionError(msg)

        log.ok(f"Keeping v{keep.name}")

    def _delete_versions(
        self,
        request: ProtectionRequest,
        keep: Path,
        log: OperationLog,
    ) -> list[str]:
        """Delete the requested versions, returning the paths removed."""
        if not request.versions_to_delete:
            log.info("No versions to delete")
            return []

        log.info(f"Deleting {len(request.versions_to_delete)} version(s)...")
        deleter = VersionDeleter(self._layout, keep={keep})
        deleted: list[str] = []

        for action in deleter.delete(request.versions_to_delete):
            name = Path(action.path).name
            if action.failed:
                log.warn(f"Could not delete {name}: {action.error}")
            elif action.changed:
                log.ok(f"Deleted v{name}")
                deleted.append(action.path)
            else:
                log.info(f"Already removed: v{name}")

        return deleted

    def _build_state(
        self,
        keep: Path,
        request: ProtectionRequest,
        enforcement: Enforcement,
        log: OperationLog,
    ) -> ProtectionState:
        """Build the state to persist for this run."""
        if enforcement.holds_anything:
            log.info("Saving protection state...")
            return ProtectionState.protected(
                str(keep),
                locked_paths=enforcement.locked_paths,
                blocker_paths=enforcement.blocker_paths,
                config_origins=enforcement.config_origins,
            )
        if not (request.lock_config or request.create_blockers):
            log.info("Locking and blockers disabled; protection not recorded")
        return ProtectionState.unprotected()

    def _unlock_all(
        self,
        paths: set[str],
        origins: dict[str, ConfigOrigin],
        log: OperationLog,
    ) -> set[str]:
        """Unlock every path back to its origin, returning those that failed."""
        failed: set[str] = set()
        for path in sorted(paths):
            action = ConfigLocker.unlock(Path(path), origins.get(path))
            label = self._relative(Path(path))
            if action.failed:
                log.warn(f"Could not unlock {label}: {action.error}")
                failed.add(path)
            elif action.changed:
                log.ok(f"Unlocked {label}")
            else:
                log.info(f"Already unlocked: {label}")
        return failed

    def _release_all(self, paths: set[str], log: OperationLog) -> set[str]:
        """Remove every blocker, returning those that failed."""
        failed: set[str] = set()
        for path in sorted(paths):
            action = BlockerPlanter.release(Path(path))
            label = self._relative(Path(path))
            if action.failed:
                log.warn(f"Could not remove blocker {label}: {action.error}")
                failed.add(path)
            elif action.changed:
                log.ok(f"Removed blocker {label}")
            else:
                log.info(f"Blocker already gone: {label}")
        return failed

    def _relative(self, path: Path) -> str:
        """Display path relative to the application root when possible."""
        try:
            return path.relative_to(self._layout.app_root).as_posix()
        except ValueError:
            return str(path)

    def _record(
        self,
        action: HistoryActionType,
        target: str | None,
        paths: list[str],
        success: bool,
        log: OperationLog,
    ) -> None:
        """Append to the audit trail; failures only add a warning."""
        if self._history is None:
            return
        entry = create_history_entry(
            action,
            target=target,
            paths=paths,
            success=success,
            metadata={"warnings": len(log.warnings)},
        )
        try:
            self._history.record(entry)
        except OSError as e:
            log.warn(f"Could not record history: {e}")


