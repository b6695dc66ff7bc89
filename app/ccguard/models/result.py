"""Operation result models and the tagged operation log.

Each log line carries a severity that is part of the result contract:
rendered lines are prefixed "[OK] " (ok), "[!] " (warn) or nothing
(info). Consumers classify lines by prefix only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ccguard.core.errors import ErrorKind


class LogLevel(str, Enum):
    """Severity tag of an operation log line."""

    OK = "ok"
    WARN = "warn"
    INFO = "info"

    @property
    def prefix(self) -> str:
        """Rendered prefix for this severity."""
        return _PREFIXES[self]


_PREFIXES: dict[LogLevel, str] = {
    LogLevel.OK: "[OK] ",
    LogLevel.WARN: "[!] ",
    LogLevel.INFO: "",
}


@dataclass(frozen=True, slots=True)
class LogLine:
    """A single tagged log line.

    Attributes:
        level: Severity tag.
        message: Free text; consumers must not parse it.
    """

    level: LogLevel
    message: str

    def render(self) -> str:
        """Render the line with its severity prefix."""
        return f"{self.level.prefix}{self.message}"

    @classmethod
    def parse(cls, line: str) -> LogLine:
        """Classify a rendered line by its prefix."""
        for level in (LogLevel.OK, LogLevel.WARN):
            if line.startswith(level.prefix):
                return cls(level=level, message=line[len(level.prefix) :])
        return cls(level=LogLevel.INFO, message=line)


class OperationLog:
    """Ordered collection of tagged lines, mirrored to a module logger."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._lines: list[LogLine] = []
        self._logger = logger or logging.getLogger(__name__)

    def ok(self, message: str) -> None:
        self._append(LogLine(LogLevel.OK, message), logging.INFO)

    def warn(self, message: str) -> None:
        self._append(LogLine(LogLevel.WARN, message), logging.WARNING)

    def info(self, message: str) -> None:
        self._append(LogLine(LogLevel.INFO, message), logging.INFO)

    def _append(self, line: LogLine, log_level: int) -> None:
        self._lines.append(line)
        self._logger.log(log_level, "%s", line.message)

    @property
    def lines(self) -> tuple[LogLine, ...]:
        return tuple(self._lines)

    @property
    def warnings(self) -> tuple[LogLine, ...]:
        return tuple(line for line in self._lines if line.level == LogLevel.WARN)

    def __len__(self) -> int:
        return len(self._lines)


@dataclass(frozen=True, slots=True)
class OperationResult:
    """Outcome of apply, remove or cache cleaning.

    Attributes:
        success: True unless the operation failed as a whole.
        logs: Ordered tagged log lines.
        error: Failure message, None on success.
        error_kind: Machine-readable failure class, None on success.
    """

    success: bool
    logs: tuple[LogLine, ...] = field(default_factory=tuple)
    error: str | None = None
    error_kind: ErrorKind | None = None

    @classmethod
    def ok(cls, log: OperationLog) -> OperationResult:
        return cls(success=True, logs=log.lines)

    @classmethod
    def failed(cls, log: OperationLog, error: str, kind: ErrorKind) -> OperationResult:
        return cls(success=False, logs=log.lines, error=error, error_kind=kind)

    @property
    def rendered_logs(self) -> list[str]:
        """Log lines in their prefixed string form."""
        return [line.render() for line in self.logs]

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the boundary dictionary shape."""
        result: dict[str, Any] = {"success": self.success, "logs": self.rendered_logs}
        if self.error is not None:
            result["error"] = self.error
        if self.error_kind is not None:
            result["error_kind"] = self.error_kind.value
        return result


@dataclass(frozen=True, slots=True)
class SwitchResult:
    """Outcome of a version switch.

    Attributes:
        success: Whether the target became the active version.
        message: Summary for display.
        logs: Ordered tagged log lines.
        error_kind: Machine-readable failure class, None on success.
    """

    success: bool
    message: str
    logs: tuple[LogLine, ...] = field(default_factory=tuple)
    error_kind: ErrorKind | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the boundary dictionary shape."""
        result: dict[str, Any] = {
            "success": self.success,
            "message": self.message,
            "logs": [line.render() for line in self.logs],
        }
        if self.error_kind is not None:
            result["error_kind"] = self.error_kind.value
        return result


@dataclass(frozen=True, slots=True)
class PrecheckResult:
    """System facts gathered before a protection run.

    Attributes:
        capcut_found: Whether the install root exists.
        capcut_running: Whether the application is running right now.
        apps_path: Install root that was checked.
    """

    capcut_found: bool
    capcut_running: bool
    apps_path: str | None = None

    @property
    def ready(self) -> bool:
        """True when protection can be applied."""
        return self.capcut_found and not self.capcut_running

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the boundary dictionary shape."""
        return {
            "capcut_found": self.capcut_found,
            "capcut_running": self.capcut_running,
            "apps_path": self.apps_path,
        }
