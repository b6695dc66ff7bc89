"""Unit tests for CacheCleaner."""

from pathlib import Path

import pytest
from ccguard.core.config import GuardConfig
from ccguard.core.layout import InstallLayout
from ccguard.models.result import LogLevel, OperationLog
from ccguard.operators.cache import CacheCleaner


class TestCacheCleaner:
    """Tests for cache measurement and cleanup."""

    def test_calculate_size(self, layout: InstallLayout) -> None:
        """Size covers all cache files, missing directories count zero."""
        assert CacheCleaner(layout).calculate_size() == pytest.approx(1536 / (1024 * 1024))

    def test_clean_removes_contents(self, app_root: Path, layout: InstallLayout) -> None:
        """Entries are removed but the cache directory itself stays."""
        cache = app_root / "User Data" / "Cache"

        result = CacheCleaner(layout).clean()

        assert result.success is True
        assert cache.is_dir()
        assert list(cache.iterdir()) == []
        assert CacheCleaner(layout).calculate_size() == 0

    def test_clean_logs_to_given_log(self, layout: InstallLayout) -> None:
        """Lines go to the provided log; a missing directory is info only."""
        log = OperationLog()

        CacheCleaner(layout).clean(log)

        levels = [line.level for line in log.lines]
        assert levels[-1] == LogLevel.OK
        assert "Cache cleaned" in log.lines[-1].message
        assert any(line.message == "No cache at Temp" for line in log.lines)
        assert log.warnings == ()

    def test_clean_is_idempotent(self, layout: InstallLayout) -> None:
        """Cleaning an empty cache still succeeds."""
        cleaner = CacheCleaner(layout)
        cleaner.clean()

        result = cleaner.clean()

        assert result.success is True

    def test_refuses_cache_overlapping_install_root(self, app_root: Path) -> None:
        """A cache entry pointing into the install root is never purged."""
        config = GuardConfig(app_root=app_root, cache_dirs=["Apps"])
        layout = InstallLayout(app_root=app_root, config=config)

        result = CacheCleaner(layout).clean()

        assert result.success is True
        assert result.logs[0].level == LogLevel.WARN
        assert (app_root / "Apps" / "6.4.0").is_dir()
        assert CacheCleaner(layout).calculate_size() == 0
