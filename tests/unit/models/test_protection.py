"""Unit tests for protection state and request models."""

import json

import pytest
from ccguard.models.protection import (
    ConfigOrigin,
    ProtectionRequest,
    ProtectionState,
    ProtectionStatus,
)
from pydantic import ValidationError


class TestProtectionState:
    """Tests for the ProtectionState model."""

    def test_unprotected_is_empty(self) -> None:
        """The initial state holds nothing."""
        state = ProtectionState.unprotected()

        assert state.is_protected is False
        assert state.protected_version is None
        assert state.locked_paths == set()
        assert state.blocker_paths == set()

    def test_protected_is_stamped(self) -> None:
        """protected() records the version and a UTC timestamp."""
        state = ProtectionState.protected("/apps/6.4.0", locked_paths={"/apps/configure.ini"})

        assert state.is_protected is True
        assert state.protected_version == "/apps/6.4.0"
        assert state.updated_at is not None
        assert state.updated_at.endswith("+00:00")

    def test_protected_requires_version(self) -> None:
        """A protected state must name its version."""
        with pytest.raises(ValidationError, match="protected_version"):
            ProtectionState(is_protected=True)

    def test_unprotected_cannot_hold_paths(self) -> None:
        """Unprotected states cannot carry locked or blocker paths."""
        with pytest.raises(ValidationError, match="cannot hold"):
            ProtectionState(is_protected=False, blocker_paths={"/x"})

    def test_to_json_sorts_paths(self) -> None:
        """Serialized path sets are sorted."""
        state = ProtectionState.protected("/v", locked_paths={"/z", "/a"})

        data = json.loads(state.to_json())

        assert data["locked_paths"] == ["/a", "/z"]

    def test_config_origins_round_trip(self) -> None:
        """Pre-lock config origins survive serialization."""
        origin = ConfigOrigin(existed=True, pinned_version="7.0.0")
        state = ProtectionState.protected(
            "/v", locked_paths={"/c.ini"}, config_origins={"/c.ini": origin}
        )

        loaded = ProtectionState.model_validate_json(state.to_json())

        assert loaded.config_origins == {"/c.ini": origin}

    def test_config_origins_need_locked_paths(self) -> None:
        """An origin for a path that is not locked is rejected."""
        with pytest.raises(ValidationError, match="config_origins"):
            ProtectionState.protected(
                "/v", config_origins={"/c.ini": ConfigOrigin(existed=False)}
            )

    def test_records_without_origins_still_load(self) -> None:
        """State files written before origins were tracked stay valid."""
        state = ProtectionState.model_validate(
            {"is_protected": True, "protected_version": "/v", "locked_paths": ["/c.ini"]}
        )
        assert state.config_origins == {}

    def test_rejects_unknown_fields(self) -> None:
        """Unknown fields in a stored record are rejected."""
        with pytest.raises(ValidationError):
            ProtectionState.model_validate({"is_protected": False, "extra": 1})


class TestProtectionRequest:
    """Tests for boundary validation of protection requests."""

    def test_valid_request(self) -> None:
        """A complete request validates."""
        request = ProtectionRequest.model_validate(
            {
                "versions_to_delete": ["/apps/5.9.0"],
                "clean_cache": True,
                "lock_config": True,
                "create_blockers": False,
            }
        )
        assert request.versions_to_delete == ["/apps/5.9.0"]
        assert request.create_blockers is False

    def test_missing_field_is_rejected(self) -> None:
        """All four fields are required."""
        with pytest.raises(ValidationError, match="create_blockers"):
            ProtectionRequest.model_validate(
                {"versions_to_delete": [], "clean_cache": True, "lock_config": True}
            )

    def test_non_bool_flag_is_rejected(self) -> None:
        """Flags must be real booleans, not truthy strings."""
        with pytest.raises(ValidationError):
            ProtectionRequest.model_validate(
                {
                    "versions_to_delete": [],
                    "clean_cache": "yes",
                    "lock_config": True,
                    "create_blockers": True,
                }
            )

    def test_empty_path_is_rejected(self) -> None:
        """Blank paths are rejected."""
        with pytest.raises(ValidationError, match="empty paths"):
            ProtectionRequest(
                versions_to_delete=["  "],
                clean_cache=False,
                lock_config=False,
                create_blockers=False,
            )

    def test_duplicates_are_dropped(self) -> None:
        """Repeated paths are de-duplicated in order."""
        request = ProtectionRequest(
            versions_to_delete=["/b", "/a", "/b"],
            clean_cache=False,
            lock_config=False,
            create_blockers=False,
        )
        assert request.versions_to_delete == ["/b", "/a"]


def test_status_from_state() -> None:
    """ProtectionStatus mirrors the state with sorted tuples."""
    state = ProtectionState.protected("/v", blocker_paths={"/b2", "/b1"})

    status = ProtectionStatus.from_state(state)

    assert status.to_dict() == {
        "is_protected": True,
        "protected_version": "/v",
        "locked_paths": [],
        "blocker_paths": ["/b1", "/b2"],
    }
