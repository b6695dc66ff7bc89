"""Unit tests for history entry models."""

import json

import pytest
from ccguard.models.history import HistoryActionType, HistoryEntry, create_history_entry


class TestCreateHistoryEntry:
    """Tests for create_history_entry."""

    def test_generates_id_and_timestamp(self) -> None:
        """Entries get a 12-character id and an ISO timestamp."""
        entry = create_history_entry(HistoryActionType.APPLY, target="/apps/6.4.0")

        assert len(entry.id) == 12
        assert "T" in entry.timestamp
        assert entry.success is True
        assert entry.paths == ()

    def test_ids_are_unique(self) -> None:
        """Two entries never share an id."""
        first = create_history_entry(HistoryActionType.REMOVE)
        second = create_history_entry(HistoryActionType.REMOVE)
        assert first.id != second.id


class TestHistoryEntry:
    """Tests for HistoryEntry serialization."""

    def test_json_line_round_trip(self) -> None:
        """A JSON line parses back into an equal entry."""
        entry = create_history_entry(
            HistoryActionType.SWITCH,
            target="/apps/5.9.0",
            paths=["/apps/ProductInfo.xml"],
            success=False,
            metadata={"warnings": 2},
        )

        line = entry.to_json_line()

        assert "\n" not in line
        assert HistoryEntry.from_json_line(line) == entry

    def test_to_dict_uses_enum_value(self) -> None:
        """action_type is stored as its string value."""
        entry = create_history_entry(HistoryActionType.CLEAN_CACHE)
        assert entry.to_dict()["action_type"] == "clean_cache"

    def test_rejects_empty_id(self) -> None:
        """An empty id is invalid."""
        with pytest.raises(ValueError, match="ID"):
            HistoryEntry(
                id="",
                timestamp="2026-01-01T00:00:00+00:00",
                action_type=HistoryActionType.APPLY,
            )

    def test_from_json_line_rejects_non_objects(self) -> None:
        """Only JSON objects are entries."""
        with pytest.raises(ValueError):
            HistoryEntry.from_json_line(json.dumps(["apply"]))

    def test_from_dict_rejects_unknown_action(self) -> None:
        """Unknown action types are rejected."""
        with pytest.raises(ValueError):
            HistoryEntry.from_dict(
                {"id": "abc", "timestamp": "2026-01-01T00:00:00+00:00", "action_type": "install"}
            )
