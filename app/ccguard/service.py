"""Boundary facade over the protection engine.

GuardService exposes every engine operation with plain, JSON-ready
return values, which is what a UI bridge or the CLI's --json output
consumes. AsyncGuardService runs the same calls in a worker thread so
an event loop never blocks on filesystem or process I/O.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ccguard.catalog import get_archive_versions
from ccguard.core.config import GuardConfig, load_config
from ccguard.core.errors import ErrorKind
from ccguard.core.history import HistoryManager
from ccguard.core.layout import InstallLayout, resolve_layout
from ccguard.core.state import ProtectionStateStore
from ccguard.models.history import HistoryActionType, create_history_entry
from ccguard.models.protection import ProtectionRequest
from ccguard.models.result import OperationLog
from ccguard.operators.cache import CacheCleaner
from ccguard.protection.controller import ProtectionController
from ccguard.protection.switcher import VersionSwitcher
from ccguard.scanners.process import ProcessMonitor
from ccguard.scanners.versions import VersionScanner, get_install_roots

logger = logging.getLogger(__name__)


def format_validation_error(error: ValidationError) -> str:
    """Condense a pydantic error into a single line."""
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "request"
        parts.append(f"{location}: {item['msg']}")
    return "Invalid protection request: " + "; ".join(parts)


class GuardService:
    """Entry point for every protection operation.

    Args:
        config: Guard configuration.
        layout: Resolved installation layout.
        store: Persistent protection state.
        history: Audit trail.
        monitor: Process monitor.
    """

    def __init__(
        self,
        config: GuardConfig,
        layout: InstallLayout,
        store: ProtectionStateStore,
        history: HistoryManager,
        monitor: ProcessMonitor,
    ) -> None:
        self.config = config
        self.layout = layout
        self.history = history
        self._store = store
        self._monitor = monitor
        self._scanner = VersionScanner(layout)
        self._controller = ProtectionController(layout, store, monitor, history)
        self._switcher = VersionSwitcher(self._controller, store, history)

    @classmethod
    def from_config(
        cls,
        config: GuardConfig | None = None,
        state_dir: Path | None = None,
    ) -> "GuardService":
        """Build a service with the default collaborators.

        Args:
            config: Configuration to use. Loaded from disk when omitted.
            state_dir: Override for the state directory.

        Raises:
            ConfigError: If the configuration file is invalid.
        """
        config = config if config is not None else load_config()
        layout = resolve_layout(config)
        logger.debug("Using application root %s", layout.app_root)
        return cls(
            config=config,
            layout=layout,
            store=ProtectionStateStore(state_dir, lock_timeout=config.lock_timeout_seconds),
            history=HistoryManager(state_dir),
            monitor=ProcessMonitor(config.process_names),
        )

    def scan_versions(self) -> list[dict[str, Any]]:
        """List installed versions.

        Raises:
            ScanError: If the install root exists but cannot be listed.
        """
        return [version.to_dict() for version in self._scanner.scan_versions()]

    def get_archive_versions(self) -> list[dict[str, Any]]:
        return [entry.to_dict() for entry in get_archive_versions()]

    def precheck(self) -> dict[str, Any]:
        return self._monitor.precheck(self.layout).to_dict()

    def is_running(self) -> bool:
        return self._monitor.is_running()

    def calculate_cache_size(self) -> float:
        return self._scanner.calculate_cache_size()

    def apply_protection(self, request: Any, keep_version_path: str) -> dict[str, Any]:
        """Validate request and run the protection pipeline.

        Args:
            request: Mapping with versions_to_delete, clean_cache,
                lock_config and create_blockers.
            keep_version_path: Version directory to keep.

        Returns:
            Result dictionary with success, logs and optional error.
        """
        try:
            parsed = ProtectionRequest.model_validate(request)
        except ValidationError as e:
            message = format_validation_error(e)
            logger.warning("%s", message)
            return {
                "success": False,
                "logs": [],
                "error": message,
                "error_kind": ErrorKind.INVALID_REQUEST.value,
            }
        return self._controller.apply(parsed, keep_version_path).to_dict()

    def status(self) -> dict[str, Any]:
        return self._controller.status().to_dict()

    def remove_protection(self) -> dict[str, Any]:
        return self._controller.remove().to_dict()

    def switch_version(self, target_path: str) -> dict[str, Any]:
        return self._switcher.switch(target_path).to_dict()

    def clean_cache(self) -> dict[str, Any]:
        """Purge the cache directories and record the run."""
        log = OperationLog(logger)
        result = CacheCleaner(self.layout).clean(log)
        entry = create_history_entry(
            HistoryActionType.CLEAN_CACHE,
            paths=[str(p) for p in self.layout.cache_dirs],
            success=result.success,
            metadata={"warnings": len(log.warnings)},
        )
        try:
            self.history.record(entry)
        except OSError as e:
            logger.warning("Could not record history: %s", e)
        return result.to_dict()

    def get_install_roots(self) -> list[str]:
        """Resolve the existing install and user-data roots.

        Raises:
            RootNotFoundError: If no installation can be found.
        """
        return [str(root) for root in get_install_roots(self.config)]


class AsyncGuardService:
    """Awaitable wrapper running each GuardService call in a thread.

    Calls are not cancellable once started; the state file lock keeps
    concurrent mutations serialized.
    """

    def __init__(self, service: GuardService) -> None:
        self._service = service

    async def scan_versions(self) -> list[dict[str, Any]]:
        return await asyncio.to_thread(self._service.scan_versions)

    async def get_archive_versions(self) -> list[dict[str, Any]]:
        return await asyncio.to_thread(self._service.get_archive_versions)

    async def precheck(self) -> dict[str, Any]:
        return await asyncio.to_thread(self._service.precheck)

    async def is_running(self) -> bool:
        return await asyncio.to_thread(self._service.is_running)

    async def calculate_cache_size(self) -> float:
        return await asyncio.to_thread(self._service.calculate_cache_size)

    async def apply_protection(self, request: Any, keep_version_path: str) -> dict[str, Any]:
        return await asyncio.to_thread(self._service.apply_protection, request, keep_version_path)

    async def status(self) -> dict[str, Any]:
        return await asyncio.to_thread(self._service.status)

    async def remove_protection(self) -> dict[str, Any]:
        return await asyncio.to_thread(self._service.remove_protection)

    async def switch_version(self, target_path: str) -> dict[str, Any]:
        return await asyncio.to_thread(self._service.switch_version, target_path)

    async def clean_cache(self) -> dict[str, Any]:
        return await asyncio.to_thread(self._service.clean_cache)

    async def get_install_roots(self) -> list[str]:
        return await asyncio.to_thread(self._service.get_install_roots)
