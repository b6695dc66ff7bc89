"""Protection state and request models.

ProtectionState is the persisted record that answers "is this machine
protected". ProtectionRequest is the validated input of the apply
pipeline; malformed requests are rejected before any step runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    field_serializer,
    field_validator,
    model_validator,
)


class ConfigOrigin(BaseModel):
    """What a locked configuration file looked like before locking.

    Attributes:
        existed: Whether the file existed.
        pinned_version: Its last_version value, None when it had none.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    existed: bool
    pinned_version: str | None = None


class ProtectionState(BaseModel):
    """Durable record of the current protection.

    Attributes:
        is_protected: Whether protection is active.
        protected_version: Path of the protected version directory.
        locked_paths: Files whose write permission was stripped.
        blocker_paths: Sentinel files planted at updater staging paths.
        config_origins: Pre-lock shape of each locked path, used on removal.
        updated_at: When the record was last written (ISO 8601, UTC).
    """

    model_config = ConfigDict(extra="forbid")

    is_protected: bool = False
    protected_version: str | None = None
    locked_paths: Annotated[set[str], Field(default_factory=set)]
    blocker_paths: Annotated[set[str], Field(default_factory=set)]
    config_origins: Annotated[dict[str, ConfigOrigin], Field(default_factory=dict)]
    updated_at: str | None = None

    @model_validator(mode="after")
    def validate_consistency(self) -> ProtectionState:
        """Validate that the record is internally consistent."""
        if self.is_protected and not self.protected_version:
            msg = "A protected state must name its protected_version"
            raise ValueError(msg)
        if not self.is_protected and (self.locked_paths or self.blocker_paths):
            msg = "An unprotected state cannot hold locked or blocker paths"
            raise ValueError(msg)
        if not set(self.config_origins) <= self.locked_paths:
            msg = "config_origins can only describe locked paths"
            raise ValueError(msg)
        return self

    @field_serializer("locked_paths", "blocker_paths")
    def serialize_paths(self, paths: set[str]) -> list[str]:
        """Serialize path sets in a stable order."""
        return sorted(paths)

    @classmethod
    def unprotected(cls) -> ProtectionState:
        """Create the initial, unprotected state."""
        return cls()

    @classmethod
    def protected(
        cls,
        version: str,
        locked_paths: set[str] | None = None,
        blocker_paths: set[str] | None = None,
        config_origins: dict[str, ConfigOrigin] | None = None,
    ) -> ProtectionState:
        """Create a protected state stamped with the current time."""
        return cls(
            is_protected=True,
            protected_version=version,
            locked_paths=set(locked_paths or ()),
            blocker_paths=set(blocker_paths or ()),
            config_origins=dict(config_origins or {}),
            updated_at=datetime.now(UTC).isoformat(),
        )

    def to_json(self) -> str:
        """Serialize to an indented JSON document."""
        return self.model_dump_json(indent=2)


class ProtectionRequest(BaseModel):
    """Options of one protection run.

    The version to keep is passed separately and is implied by exclusion:
    it must never appear in versions_to_delete.

    Attributes:
        versions_to_delete: Version directories to remove.
        clean_cache: Purge cache directories.
        lock_config: Pin and write-protect the configuration file.
        create_blockers: Plant sentinels at updater staging paths.
    """

    model_config = ConfigDict(extra="forbid")

    versions_to_delete: list[str]
    clean_cache: StrictBool
    lock_config: StrictBool
    create_blockers: StrictBool

    @field_validator("versions_to_delete")
    @classmethod
    def validate_paths(cls, v: list[str]) -> list[str]:
        """Reject empty entries and drop duplicates, keeping order."""
        seen: list[str] = []
        for item in v:
            if not item or not item.strip():
                msg = "versions_to_delete cannot contain empty paths"
                raise ValueError(msg)
            if item not in seen:
                seen.append(item)
        return seen


@dataclass(frozen=True, slots=True)
class ProtectionStatus:
    """Read-only view of the persisted protection state.

    Attributes:
        is_protected: Whether protection is active.
        protected_version: Path of the protected version, if any.
        locked_paths: Sorted locked file paths.
        blocker_paths: Sorted blocker sentinel paths.
    """

    is_protected: bool
    protected_version: str | None = None
    locked_paths: tuple[str, ...] = field(default_factory=tuple)
    blocker_paths: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_state(cls, state: ProtectionState) -> ProtectionStatus:
        """Build a status view from a loaded state."""
        return cls(
            is_protected=state.is_protected,
            protected_version=state.protected_version,
            locked_paths=tuple(sorted(state.locked_paths)),
            blocker_paths=tuple(sorted(state.blocker_paths)),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the boundary dictionary shape."""
        return {
            "is_protected": self.is_protected,
            "protected_version": self.protected_version,
            "locked_paths": list(self.locked_paths),
            "blocker_paths": list(self.blocker_paths),
        }
