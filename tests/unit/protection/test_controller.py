"""Unit tests for ProtectionController."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from ccguard.core.errors import ErrorKind, PersistenceError
from ccguard.core.filelock import FileLock
from ccguard.core.history import HistoryManager
from ccguard.core.layout import InstallLayout
from ccguard.core.state import ProtectionStateStore
from ccguard.models.history import HistoryActionType
from ccguard.models.protection import ProtectionRequest
from ccguard.operators.base import PathActionResult
from ccguard.operators.cache import CacheCleaner
from ccguard.operators.locks import BlockerPlanter, ConfigLocker, read_pinned_version
from ccguard.protection.controller import ProtectionController
from ccguard.utils.fsutils import is_read_only


def _request(
    delete: list[str] | None = None,
    *,
    clean_cache: bool = False,
    lock_config: bool = True,
    create_blockers: bool = True,
) -> ProtectionRequest:
    return ProtectionRequest(
        versions_to_delete=delete or [],
        clean_cache=clean_cache,
        lock_config=lock_config,
        create_blockers=create_blockers,
    )


@pytest.fixture
def controller(
    layout: InstallLayout,
    store: ProtectionStateStore,
    idle_monitor: MagicMock,
    history: HistoryManager,
) -> ProtectionController:
    """Controller over the fake installation with an idle process monitor."""
    return ProtectionController(layout, store, idle_monitor, history)


@pytest.fixture
def keep(app_root: Path) -> Path:
    return app_root / "Apps" / "6.4.0"


@pytest.fixture
def old(app_root: Path) -> Path:
    return app_root / "Apps" / "5.9.0"


class TestApply:
    """Tests for the apply pipeline."""

    def test_full_protection(
        self,
        controller: ProtectionController,
        layout: InstallLayout,
        store: ProtectionStateStore,
        keep: Path,
        old: Path,
    ) -> None:
        """Delete, lock, block and clean in one run."""
        result = controller.apply(_request([str(old)], clean_cache=True), str(keep))

        assert result.success is True
        assert result.error is None
        assert not old.exists()
        assert keep.is_dir()

        assert is_read_only(layout.config_file)
        assert read_pinned_version(layout.config_file) == "6.4.0"
        for staging in layout.staging_paths:
            assert BlockerPlanter.is_sentinel(staging)
        assert CacheCleaner(layout).calculate_size() == 0

        rendered = result.rendered_logs
        assert "[OK] Deleted v5.9.0" in rendered
        assert "[OK] Configuration pinned to v6.4.0 and locked" in rendered
        assert "[OK] Blocked Apps/update.exe" in rendered
        assert rendered[-1] == "[OK] Protection applied to v6.4.0"

        status = controller.status()
        assert status.is_protected is True
        assert status.protected_version == str(keep)
        assert status.locked_paths == (str(layout.config_file),)
        assert set(status.blocker_paths) == {str(p) for p in layout.staging_paths}
        assert store.state_path.exists()

    def test_apply_twice_is_idempotent(
        self, controller: ProtectionController, keep: Path
    ) -> None:
        """A second run succeeds and reports everything already in place."""
        first = controller.apply(_request(), str(keep))
        second = controller.apply(_request(), str(keep))

        assert first.success is True
        assert second.success is True
        assert "[OK] Configuration already locked" in second.rendered_logs
        assert "Blocker already in place: Apps/update.exe" in second.rendered_logs
        assert controller.status().is_protected is True

    def test_already_deleted_version_is_not_an_error(
        self, controller: ProtectionController, keep: Path, app_root: Path
    ) -> None:
        """Deleting a missing version is reported as info."""
        gone = app_root / "Apps" / "1.0.0"

        result = controller.apply(_request([str(gone)]), str(keep))

        assert result.success is True
        assert "Already removed: v1.0.0" in result.rendered_logs

    def test_keep_in_delete_list_is_refused(
        self,
        controller: ProtectionController,
        layout: InstallLayout,
        store: ProtectionStateStore,
        keep: Path,
        old: Path,
    ) -> None:
        """Nothing is touched when the keep version is marked for deletion."""
        result = controller.apply(_request([str(old), str(keep)]), str(keep))

        assert result.success is False
        assert result.error_kind == ErrorKind.PRECONDITION
        assert "kept version" in (result.error or "")
        assert old.is_dir()
        assert keep.is_dir()
        assert not is_read_only(layout.config_file)
        assert not store.state_path.exists()

    def test_parent_of_keep_in_delete_list_is_refused(
        self, controller: ProtectionController, app_root: Path, keep: Path
    ) -> None:
        """Deleting a directory containing the keep version is refused."""
        result = controller.apply(_request([str(app_root / "Apps")]), str(keep))

        assert result.success is False
        assert result.error_kind == ErrorKind.PRECONDITION
        assert keep.is_dir()

    def test_running_application_is_refused(
        self,
        layout: InstallLayout,
        store: ProtectionStateStore,
        running_monitor: MagicMock,
        keep: Path,
        old: Path,
    ) -> None:
        """The precondition gate stops the run while the app is running."""
        controller = ProtectionController(layout, store, running_monitor)

        result = controller.apply(_request([str(old)]), str(keep))

        assert result.success is False
        assert result.error_kind == ErrorKind.PRECONDITION
        assert result.error == "CapCut is still running. Please close it first."
        assert old.is_dir()
        assert not store.state_path.exists()

    def test_missing_keep_version(
        self, controller: ProtectionController, app_root: Path
    ) -> None:
        """A keep version that does not exist is a precondition failure."""
        result = controller.apply(_request(), str(app_root / "Apps" / "9.9.9"))

        assert result.success is False
        assert result.error_kind == ErrorKind.PRECONDITION
        assert "Keep version not found" in (result.error or "")

    @pytest.mark.parametrize("relative", ["Apps", "User Data"])
    def test_keep_outside_install_root(
        self, controller: ProtectionController, app_root: Path, relative: str
    ) -> None:
        """The keep version must be a directory below the install root."""
        result = controller.apply(_request(), str(app_root / relative))

        assert result.success is False
        assert result.error_kind == ErrorKind.PRECONDITION

    def test_lock_contention(
        self,
        controller: ProtectionController,
        store: ProtectionStateStore,
        keep: Path,
        old: Path,
    ) -> None:
        """A held state lock fails the run without touching anything."""
        with FileLock(store.lock_path):
            result = controller.apply(_request([str(old)]), str(keep))

        assert result.success is False
        assert result.error_kind == ErrorKind.LOCK_CONTENTION
        assert old.is_dir()

    def test_lock_failure_is_partial(
        self,
        controller: ProtectionController,
        layout: InstallLayout,
        keep: Path,
    ) -> None:
        """A failed config lock fails the run but blockers stay recorded."""
        failure = PathActionResult(path=str(layout.config_file), success=False, error="denied")
        with patch.object(ConfigLocker, "lock", return_value=failure):
            result = controller.apply(_request(), str(keep))

        assert result.success is False
        assert result.error_kind == ErrorKind.PARTIAL_FAILURE
        assert result.error == "Could not lock configuration: denied"
        status = controller.status()
        assert status.is_protected is True
        assert status.locked_paths == ()
        assert len(status.blocker_paths) == 2

    def test_persistence_failure(
        self,
        controller: ProtectionController,
        store: ProtectionStateStore,
        keep: Path,
    ) -> None:
        """A state write failure is reported with its own kind."""
        with patch.object(store, "save", side_effect=PersistenceError("disk full")):
            result = controller.apply(_request(), str(keep))

        assert result.success is False
        assert result.error_kind == ErrorKind.PERSISTENCE
        assert result.error == "disk full"

    def test_lock_and_blockers_disabled(
        self,
        controller: ProtectionController,
        layout: InstallLayout,
        store: ProtectionStateStore,
        keep: Path,
        old: Path,
    ) -> None:
        """Deleting alone leaves the machine unprotected."""
        request = _request([str(old)], lock_config=False, create_blockers=False)

        result = controller.apply(request, str(keep))

        assert result.success is True
        assert not old.exists()
        assert not is_read_only(layout.config_file)
        assert not store.state_path.exists()
        assert controller.status().is_protected is False

    def test_reapply_releases_previous_paths(
        self,
        controller: ProtectionController,
        layout: InstallLayout,
        keep: Path,
    ) -> None:
        """Dropping blockers on a second run removes the old sentinels."""
        controller.apply(_request(), str(keep))

        result = controller.apply(_request(create_blockers=False), str(keep))

        assert result.success is True
        status = controller.status()
        assert status.blocker_paths == ()
        for staging in layout.staging_paths:
            assert not staging.exists()

    def test_switching_keep_version_repins(
        self,
        controller: ProtectionController,
        layout: InstallLayout,
        old: Path,
        keep: Path,
    ) -> None:
        """Applying to another version re-pins the locked config."""
        controller.apply(_request(), str(keep))

        result = controller.apply(_request(), str(old))

        assert result.success is True
        assert read_pinned_version(layout.config_file) == "5.9.0"
        assert controller.status().protected_version == str(old)

    def test_records_history(
        self, controller: ProtectionController, history: HistoryManager, keep: Path, old: Path
    ) -> None:
        """Each run appends an APPLY entry."""
        controller.apply(_request([str(old)]), str(keep))

        entries = history.get_history()
        assert len(entries) == 1
        assert entries[0].action_type == HistoryActionType.APPLY
        assert entries[0].target == str(keep)
        assert entries[0].success is True
        assert str(old) in entries[0].paths

    def test_history_failure_is_only_a_warning(
        self, controller: ProtectionController, history: HistoryManager, keep: Path
    ) -> None:
        """An unwritable history file does not fail the run."""
        with patch.object(history, "record", side_effect=OSError("read-only")):
            result = controller.apply(_request(), str(keep))

        assert result.success is True
        assert "[!] Could not record history: read-only" in result.rendered_logs


class TestRemove:
    """Tests for removing protection."""

    def test_remove_reverts_everything(
        self,
        controller: ProtectionController,
        layout: InstallLayout,
        store: ProtectionStateStore,
        keep: Path,
    ) -> None:
        """Remove unlocks the config, deletes blockers and clears state."""
        controller.apply(_request(), str(keep))

        result = controller.remove()

        assert result.success is True
        assert result.rendered_logs[-1] == "[OK] Protection removed - CapCut can now auto-update"
        assert not is_read_only(layout.config_file)
        for staging in layout.staging_paths:
            assert not staging.exists()
        assert not store.state_path.exists()
        assert controller.status().is_protected is False

    def test_remove_restores_previous_pin(
        self, controller: ProtectionController, layout: InstallLayout, keep: Path
    ) -> None:
        """Remove puts the configuration back exactly as it was before apply."""
        original = b"[Configure]\r\nlast_version=7.0.0\r\ntheme=dark\r\n"
        layout.config_file.write_bytes(original)

        controller.apply(_request(), str(keep))
        assert read_pinned_version(layout.config_file) == "6.4.0"

        result = controller.remove()

        assert result.success is True
        assert layout.config_file.read_bytes() == original
        assert not is_read_only(layout.config_file)

    def test_remove_deletes_config_created_by_apply(
        self, controller: ProtectionController, layout: InstallLayout, keep: Path
    ) -> None:
        """A configuration that only exists because of the lock is removed."""
        layout.config_file.unlink()
        controller.apply(_request(), str(keep))
        assert layout.config_file.exists()

        controller.remove()

        assert not layout.config_file.exists()

    def test_reapply_keeps_first_origin(
        self, controller: ProtectionController, layout: InstallLayout, keep: Path
    ) -> None:
        """A second apply does not mistake the locked pin for the original."""
        layout.config_file.write_text("[Configure]\nlast_version=7.0.0\n")
        controller.apply(_request(), str(keep))
        controller.apply(_request(), str(keep))

        controller.remove()

        assert read_pinned_version(layout.config_file) == "7.0.0"

    def test_dropping_the_lock_restores_the_pin(
        self, controller: ProtectionController, layout: InstallLayout, keep: Path
    ) -> None:
        """Re-applying without the lock releases it back to the old pin."""
        layout.config_file.write_text("[Configure]\nlast_version=7.0.0\n")
        controller.apply(_request(), str(keep))

        result = controller.apply(_request(lock_config=False), str(keep))

        assert result.success is True
        assert read_pinned_version(layout.config_file) == "7.0.0"
        assert not is_read_only(layout.config_file)
        assert controller.status().locked_paths == ()

    def test_remove_keeps_versions(
        self, controller: ProtectionController, keep: Path
    ) -> None:
        """Removal never touches version directories."""
        controller.apply(_request(), str(keep))
        controller.remove()
        assert (keep / "CapCut.exe").exists()

    def test_remove_twice(self, controller: ProtectionController, keep: Path) -> None:
        """Removing again is a successful no-op."""
        controller.apply(_request(), str(keep))
        controller.remove()

        result = controller.remove()

        assert result.success is True
        assert result.rendered_logs == ["[OK] Protection is not active"]

    def test_remove_tolerates_missing_paths(
        self, controller: ProtectionController, layout: InstallLayout, keep: Path
    ) -> None:
        """Paths removed behind our back count as reverted."""
        controller.apply(_request(), str(keep))
        for staging in layout.staging_paths:
            BlockerPlanter.release(staging)

        result = controller.remove()

        assert result.success is True
        assert "Blocker already gone: Apps/update.exe" in result.rendered_logs

    def test_remove_partial_failure_keeps_leftovers(
        self,
        controller: ProtectionController,
        layout: InstallLayout,
        keep: Path,
    ) -> None:
        """Blockers that cannot be removed stay recorded for a retry."""
        controller.apply(_request(), str(keep))

        with patch.object(
            BlockerPlanter,
            "release",
            side_effect=lambda path: PathActionResult(
                path=str(path), success=False, error="busy"
            ),
        ):
            result = controller.remove()

        assert result.success is False
        assert result.error_kind == ErrorKind.PARTIAL_FAILURE
        assert result.error == "Could not revert 2 path(s); run remove again"
        status = controller.status()
        assert status.is_protected is True
        assert status.locked_paths == ()
        assert set(status.blocker_paths) == {str(p) for p in layout.staging_paths}

        retry = controller.remove()
        assert retry.success is True
        assert controller.status().is_protected is False

    def test_remove_lock_contention(
        self,
        controller: ProtectionController,
        store: ProtectionStateStore,
        keep: Path,
    ) -> None:
        """A held state lock fails removal."""
        controller.apply(_request(), str(keep))

        with FileLock(store.lock_path):
            result = controller.remove()

        assert result.success is False
        assert result.error_kind == ErrorKind.LOCK_CONTENTION
        assert controller.status().is_protected is True


def test_status_with_corrupt_state_is_unprotected(
    controller: ProtectionController, store: ProtectionStateStore
) -> None:
    """A corrupt state file reads as unprotected."""
    store.state_path.parent.mkdir(parents=True, exist_ok=True)
    store.state_path.write_text("{not json")

    assert controller.status().is_protected is False
