"""Installed version model.

InstalledVersion values are produced fresh by every scan and are never
persisted; the protection state stores plain paths instead.
"""

import re
from dataclasses import dataclass
from typing import Any

_NUMBER_RE = re.compile(r"\d+")


def version_key(name: str) -> tuple[int, ...]:
    """Build a numeric sort key from a version string.

    Non-numeric parts are ignored, so "6.4.0" sorts after "5.9.0" and
    "10.0.0" after "9.9.9".

    Args:
        name: Version string such as "6.4.0.1200".

    Returns:
        Tuple of integers suitable for ordering.
    """
    return tuple(int(part) for part in _NUMBER_RE.findall(name))


@dataclass(frozen=True, slots=True)
class InstalledVersion:
    """A version copy found in the install root.

    Attributes:
        name: Version string, taken from the directory name.
        path: Absolute path of the version directory.
        size_mb: Recursive size in megabytes (best effort).
    """

    name: str
    path: str
    size_mb: float

    def __post_init__(self) -> None:
        """Validate version data after initialization."""
        if not self.name:
            msg = "Version name cannot be empty"
            raise ValueError(msg)
        if not self.path:
            msg = "Version path cannot be empty"
            raise ValueError(msg)
        if self.size_mb < 0:
            msg = f"Size cannot be negative, got {self.size_mb}"
            raise ValueError(msg)

    @property
    def sort_key(self) -> tuple[int, ...]:
        """Numeric ordering key of this version."""
        return version_key(self.name)

    @property
    def size_human(self) -> str:
        """Human-readable size string."""
        if self.size_mb >= 1024:
            return f"{self.size_mb / 1024:.1f} GB"
        return f"{self.size_mb:.0f} MB"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the boundary dictionary shape."""
        return {"name": self.name, "size_mb": self.size_mb, "path": self.path}
