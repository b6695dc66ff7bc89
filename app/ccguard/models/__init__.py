"""Data models for ccguard.

This module exports the value types shared by scanners, operators and
the protection engine.
"""

from ccguard.models.catalog import ArchiveCatalogEntry, RiskLevel
from ccguard.models.history import HistoryActionType, HistoryEntry, create_history_entry
from ccguard.models.protection import (
    ConfigOrigin,
    ProtectionRequest,
    ProtectionState,
    ProtectionStatus,
)
from ccguard.models.result import (
    LogLevel,
    LogLine,
    OperationLog,
    OperationResult,
    PrecheckResult,
    SwitchResult,
)
from ccguard.models.version import InstalledVersion, version_key

__all__ = [
    "ArchiveCatalogEntry",
    "ConfigOrigin",
    "HistoryActionType",
    "HistoryEntry",
    "InstalledVersion",
    "LogLevel",
    "LogLine",
    "OperationLog",
    "OperationResult",
    "PrecheckResult",
    "ProtectionRequest",
    "ProtectionState",
    "ProtectionStatus",
    "RiskLevel",
    "SwitchResult",
    "create_history_entry",
    "version_key",
]
