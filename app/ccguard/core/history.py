"""Operation history persistence.

This module provides the HistoryManager class for appending and querying
protection operations in a JSONL file.
"""

import json
import logging
from pathlib import Path

from ccguard.core.paths import get_state_dir
from ccguard.models.history import HistoryActionType, HistoryEntry

logger = logging.getLogger(__name__)


class HistoryManager:
    """Manages the operation history in a JSONL file.

    Storage location: ~/.local/state/ccguard/history.jsonl

    Each line is a complete JSON object representing a HistoryEntry,
    which keeps writes append-only and parsing line-oriented.
    """

    HISTORY_FILENAME = "history.jsonl"

    def __init__(self, state_dir: Path | None = None) -> None:
        """Initialize HistoryManager.

        Args:
            state_dir: Optional override for state directory.
                      Default: ~/.local/state/ccguard
        """
        self._state_dir = state_dir if state_dir is not None else get_state_dir()

    @property
    def history_path(self) -> Path:
        return self._state_dir / self.HISTORY_FILENAME

    def record(self, entry: HistoryEntry) -> None:
        """Append an entry to the history file.

        Creates the file and parent directories if they don't exist.

        Args:
            entry: The history entry to record.

        Raises:
            OSError: If the file cannot be written.
        """
        self._state_dir.mkdir(parents=True, exist_ok=True)

        with self.history_path.open(mode="a", encoding="utf-8") as f:
            f.write(entry.to_json_line() + "\n")
            f.flush()

    def get_history(
        self,
        limit: int | None = None,
        action_type: HistoryActionType | None = None,
    ) -> list[HistoryEntry]:
        """Read history entries, newest first.

        Args:
            limit: Maximum number of entries to return. None returns all.
            action_type: Only return entries of this type.

        Returns:
            List of HistoryEntry, newest first. Empty if no file exists.
        """
        if not self.history_path.exists():
            return []

        entries: list[HistoryEntry] = []

        with self.history_path.open(encoding="utf-8") as f:
            for line_num, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue

                try:
                    entry = HistoryEntry.from_json_line(line)
                except (json.JSONDecodeError, KeyError, ValueError) as e:
                    logger.warning("Skipping corrupt history line %d: %s", line_num, str(e))
                    continue

                if action_type is None or entry.action_type == action_type:
                    entries.append(entry)

        entries.reverse()

        if limit is not None:
            return entries[:limit]

        return entries
