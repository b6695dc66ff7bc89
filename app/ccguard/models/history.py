"""History entry model for the protection audit trail.

This module defines the records appended to the history file after each
apply, remove, switch or cache-clean operation.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class HistoryActionType(str, Enum):
    """Type of operation recorded in history.

    Attributes:
        APPLY: Protection applied to a keep version.
        REMOVE: Protection removed.
        SWITCH: Active version switched.
        CLEAN_CACHE: Cache directories purged.
    """

    APPLY = "apply"
    REMOVE = "remove"
    SWITCH = "switch"
    CLEAN_CACHE = "clean_cache"


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    """Record of a single operation in history.

    Attributes:
        id: Unique identifier (12-character hex string from UUID).
        timestamp: When the operation finished (ISO 8601 with timezone).
        action_type: Type of operation.
        target: Version path the operation was aimed at, if any.
        paths: Paths deleted, locked or blocked by the operation.
        success: Whether the operation succeeded as a whole.
        metadata: Additional context (command, warning count, etc.).
    """

    id: str
    timestamp: str
    action_type: HistoryActionType
    target: str | None = None
    paths: tuple[str, ...] = ()
    success: bool = True
    metadata: dict[str, Any] = field(default_factory=lambda: {})

    def __post_init__(self) -> None:
        """Validate entry data after initialization."""
        if not self.id:
            msg = "History entry ID cannot be empty"
            raise ValueError(msg)
        if not self.timestamp:
            msg = "Timestamp cannot be empty"
            raise ValueError(msg)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "action_type": self.action_type.value,
            "target": self.target,
            "paths": list(self.paths),
            "success": self.success,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HistoryEntry:
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If action_type is invalid.
        """
        return cls(
            id=data["id"],
            timestamp=data["timestamp"],
            action_type=HistoryActionType(data["action_type"]),
            target=data.get("target"),
            paths=tuple(data.get("paths", ())),
            success=data.get("success", True),
            metadata=data.get("metadata", {}),
        )

    def to_json_line(self) -> str:
        """Serialize to JSON line for JSONL storage (no trailing newline)."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_json_line(cls, line: str) -> HistoryEntry:
        """Deserialize from JSON line.

        Raises:
            json.JSONDecodeError: If line is not valid JSON.
            KeyError: If required fields are missing.
            ValueError: If data is invalid.
        """
        data = json.loads(line.strip())
        if not isinstance(data, dict):
            msg = "History line is not a JSON object"
            raise ValueError(msg)
        return cls.from_dict(data)


def create_history_entry(
    action_type: HistoryActionType,
    target: str | None = None,
    paths: list[str] | None = None,
    success: bool = True,
    metadata: dict[str, Any] | None = None,
) -> HistoryEntry:
    """Create a new history entry with auto-generated ID and timestamp.

    Args:
        action_type: Type of operation.
        target: Version path the operation was aimed at.
        paths: Paths affected by the operation.
        success: Whether the operation succeeded.
        metadata: Additional context.

    Returns:
        New HistoryEntry instance.
    """
    return HistoryEntry(
        id=uuid.uuid4().hex[:12],
        timestamp=datetime.now(UTC).isoformat(),
        action_type=action_type,
        target=target,
        paths=tuple(paths or ()),
        success=success,
        metadata=metadata or {},
    )
