"""Shared result type for per-path operations."""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class PathActionResult:
    """Result of a single filesystem operation.

    Attributes:
        path: Absolute path that was operated on.
        success: Whether the path ended in the requested state.
        changed: Whether anything on disk was modified. False when the
            path already was in the requested state.
        error: Error message if the operation failed, None otherwise.
    """

    path: str
    success: bool
    changed: bool = False
    error: str | None = None

    @property
    def failed(self) -> bool:
        return not self.success
