"""Exception hierarchy and error kinds for ccguard.

Every error raised by the engine derives from GuardError and carries an
ErrorKind so callers can branch on a stable value instead of parsing
message text. The message text itself is kept for log displays.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Machine-readable classification of an operation failure.

    Attributes:
        PRECONDITION: Operation refused before any mutation.
        PARTIAL_FAILURE: A step failed in a way that leaves the keep
            version unlocked or unrecorded.
        PERSISTENCE: The protection state could not be written.
        LOCK_CONTENTION: Another ccguard instance holds the state lock.
        INVALID_REQUEST: Malformed input rejected at the boundary.
        IO: The filesystem could not be read at all.
    """

    PRECONDITION = "precondition"
    PARTIAL_FAILURE = "partial_failure"
    PERSISTENCE = "persistence"
    LOCK_CONTENTION = "lock_contention"
    INVALID_REQUEST = "invalid_request"
    IO = "io"


class GuardError(Exception):
    """Base exception for all ccguard errors."""

    kind: ErrorKind = ErrorKind.IO

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class PreconditionError(GuardError):
    """Raised when an operation is refused before touching anything."""

    kind = ErrorKind.PRECONDITION


class PersistenceError(GuardError):
    """Raised when the protection state file cannot be written."""

    kind = ErrorKind.PERSISTENCE


class StateLockError(GuardError):
    """Raised when the state file lock cannot be acquired in time."""

    kind = ErrorKind.LOCK_CONTENTION


class SwitchError(GuardError):
    """Raised when a version switch has to be rolled back."""

    kind = ErrorKind.PARTIAL_FAILURE


class ScanError(GuardError):
    """Raised when the install root exists but cannot be listed."""

    kind = ErrorKind.IO


class RootNotFoundError(GuardError):
    """Raised when no application root can be resolved at all."""

    kind = ErrorKind.IO


class ConfigError(GuardError):
    """Base exception for configuration errors."""

    kind = ErrorKind.INVALID_REQUEST


class ConfigParseError(ConfigError):
    """Raised when the configuration file cannot be parsed."""
