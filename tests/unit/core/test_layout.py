"""Unit tests for installation layout resolution."""

import sys
from pathlib import Path

import pytest
from ccguard.core.config import APP_ROOT_ENV, GuardConfig
from ccguard.core.layout import APP_DIR_NAME, InstallLayout, candidate_app_roots, resolve_layout


class TestInstallLayout:
    """Tests for the derived paths of a layout."""

    def test_derived_paths(self, tmp_path: Path) -> None:
        """All paths derive from the application root and config."""
        layout = InstallLayout(app_root=tmp_path, config=GuardConfig())

        assert layout.install_root == tmp_path / "Apps"
        assert layout.user_data_root == tmp_path / "User Data"
        assert layout.config_file == tmp_path / "Apps" / "configure.ini"
        assert layout.manifest_file == tmp_path / "Apps" / "ProductInfo.xml"
        assert layout.staging_paths == [
            tmp_path / "Apps" / "update.exe",
            tmp_path / "User Data" / "Download" / "update.exe",
        ]
        assert layout.cache_dirs == [
            tmp_path / "User Data" / "Cache",
            tmp_path / "User Data" / "Temp",
        ]

    def test_roots_lists_existing_only(self, app_root: Path, layout: InstallLayout) -> None:
        """roots() reports the roots that exist."""
        assert layout.roots() == [app_root / "Apps", app_root / "User Data"]

    def test_roots_empty_for_missing_install(self, tmp_path: Path) -> None:
        """A missing installation has no roots."""
        layout = InstallLayout(app_root=tmp_path / "nothing", config=GuardConfig())
        assert layout.roots() == []


class TestCandidates:
    """Tests for candidate_app_roots and resolve_layout."""

    def test_explicit_root_is_only_candidate(self, tmp_path: Path) -> None:
        """A configured root disables platform probing."""
        assert candidate_app_roots(GuardConfig(app_root=tmp_path)) == [tmp_path]

    def test_env_root_wins(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """CCGUARD_APP_ROOT overrides the configured root."""
        monkeypatch.setenv(APP_ROOT_ENV, str(tmp_path / "env"))
        config = GuardConfig(app_root=tmp_path / "configured")

        assert candidate_app_roots(config) == [tmp_path / "env"]

    @pytest.mark.skipif(sys.platform != "linux", reason="Linux default location")
    def test_linux_default(self) -> None:
        """On Linux the XDG data location is probed."""
        candidates = candidate_app_roots(GuardConfig())
        assert candidates == [Path.home() / ".local" / "share" / APP_DIR_NAME]

    def test_resolve_returns_explicit_root(self, app_root: Path, guard_config: GuardConfig) -> None:
        """resolve_layout uses an existing explicit root."""
        assert resolve_layout(guard_config).app_root == app_root

    def test_resolve_missing_root_still_returns_layout(self, tmp_path: Path) -> None:
        """A missing root yields a layout so callers can report it."""
        layout = resolve_layout(GuardConfig(app_root=tmp_path / "missing"))

        assert layout.app_root == tmp_path / "missing"
        assert not layout.install_root.exists()
