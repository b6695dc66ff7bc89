"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules. Every test
runs with XDG directories redirected into tmp_path, so nothing touches
the real configuration or state of the machine.
"""

import logging
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from ccguard.core.config import APP_ROOT_ENV, GuardConfig
from ccguard.core.history import HistoryManager
from ccguard.core.layout import InstallLayout
from ccguard.core.state import ProtectionStateStore
from ccguard.scanners.process import ProcessMonitor


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Point XDG directories at tmp_path and clear the root override."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg-config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "xdg-state"))
    monkeypatch.delenv(APP_ROOT_ENV, raising=False)


@pytest.fixture(autouse=True)
def reset_package_logger() -> Iterator[None]:
    """Undo the handler and level the CLI installs on the package logger."""
    yield
    package_logger = logging.getLogger("ccguard")
    package_logger.handlers.clear()
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def app_root(tmp_path: Path) -> Path:
    """Create a fake application root with two installed versions.

    Layout:
        CapCut/Apps/5.9.0/CapCut.exe
        CapCut/Apps/6.4.0/CapCut.exe
        CapCut/Apps/configure.ini
        CapCut/User Data/Cache/{blob.bin, sub/frame.tmp}
        CapCut/User Data/Download/
    """
    root = tmp_path / "CapCut"
    apps = root / "Apps"
    for name, size in (("5.9.0", 2048), ("6.4.0", 4096)):
        version_dir = apps / name
        version_dir.mkdir(parents=True)
        (version_dir / "CapCut.exe").write_bytes(b"\0" * size)

    (apps / "configure.ini").write_text("[Configure]\nlast_version=6.4.0\n")

    cache = root / "User Data" / "Cache"
    (cache / "sub").mkdir(parents=True)
    (cache / "blob.bin").write_bytes(b"x" * 1024)
    (cache / "sub" / "frame.tmp").write_bytes(b"y" * 512)
    (root / "User Data" / "Download").mkdir(parents=True)

    return root


@pytest.fixture
def guard_config(app_root: Path) -> GuardConfig:
    """Configuration pointing at the fake application root."""
    return GuardConfig(app_root=app_root)


@pytest.fixture
def layout(app_root: Path, guard_config: GuardConfig) -> InstallLayout:
    """Layout of the fake application root."""
    return InstallLayout(app_root=app_root, config=guard_config)


@pytest.fixture
def state_dir(tmp_path: Path) -> Path:
    """Directory for protection state and history."""
    return tmp_path / "state"


@pytest.fixture
def store(state_dir: Path) -> ProtectionStateStore:
    """Protection state store with a short lock timeout."""
    return ProtectionStateStore(state_dir=state_dir, lock_timeout=0.2)


@pytest.fixture
def history(state_dir: Path) -> HistoryManager:
    """History manager writing next to the state file."""
    return HistoryManager(state_dir=state_dir)


@pytest.fixture
def idle_monitor() -> MagicMock:
    """Process monitor reporting that the application is not running."""
    monitor = MagicMock(spec=ProcessMonitor)
    monitor.is_running.return_value = False
    return monitor


@pytest.fixture
def running_monitor() -> MagicMock:
    """Process monitor reporting that the application is running."""
    monitor = MagicMock(spec=ProcessMonitor)
    monitor.is_running.return_value = True
    return monitor
