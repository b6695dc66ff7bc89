"""Fixtures for CLI tests: a fake installation and an idle process table."""

from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest
from ccguard.core.config import APP_ROOT_ENV


@pytest.fixture(autouse=True)
def no_running_processes() -> Iterator[None]:
    """The application is never running unless a test says otherwise."""
    with patch("ccguard.scanners.process.psutil.process_iter", return_value=[]):
        yield


@pytest.fixture
def installed(app_root: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point ccguard at the fake installation and return its root."""
    monkeypatch.setenv(APP_ROOT_ENV, str(app_root))
    return app_root
