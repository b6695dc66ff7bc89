"""Durable protection state.

This module provides the ProtectionStateStore class, the single source of
truth for whether this machine is protected. Nothing in ccguard infers
protection from the installed directories; every reader loads this file.
"""

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from tempfile import NamedTemporaryFile

from ccguard.core.errors import PersistenceError
from ccguard.core.filelock import FileLock
from ccguard.core.paths import get_state_dir
from ccguard.models.protection import ProtectionState

logger = logging.getLogger(__name__)


class ProtectionStateStore:
    """Loads and saves the protection record as a JSON file.

    Storage location: ~/.local/state/ccguard/protection.json

    Reads never take the lock and never raise: a missing, unreadable or
    corrupt file means "unprotected". Writers wrap their read-modify-write
    in transaction(), which holds an exclusive lock on protection.lock.

    Attributes:
        state_dir: Directory containing the state and lock files.
    """

    STATE_FILENAME = "protection.json"
    LOCK_FILENAME = "protection.lock"

    def __init__(self, state_dir: Path | None = None, lock_timeout: float = 10.0) -> None:
        """Initialize ProtectionStateStore.

        Args:
            state_dir: Optional override for state directory.
                      Default: ~/.local/state/ccguard
            lock_timeout: Seconds to wait for the state lock.
        """
        self._state_dir = state_dir if state_dir is not None else get_state_dir()
        self._lock_timeout = lock_timeout

    @property
    def state_path(self) -> Path:
        return self._state_dir / self.STATE_FILENAME

    @property
    def lock_path(self) -> Path:
        return self._state_dir / self.LOCK_FILENAME

    def load(self) -> ProtectionState:
        """Load the persisted state.

        Returns:
            The stored ProtectionState, or an unprotected state when the
            file is missing, unreadable, corrupt or inconsistent.
        """
        if not self.state_path.exists():
            return ProtectionState.unprotected()

        try:
            raw = self.state_path.read_text(encoding="utf-8")
            return ProtectionState.model_validate_json(raw)
        except (OSError, ValueError) as e:
            logger.warning(
                "Ignoring unreadable protection state %s: %s",
                self.state_path,
                e,
            )
            return ProtectionState.unprotected()

    def save(self, state: ProtectionState) -> None:
        """Persist the state atomically.

        An unprotected state is persisted by removing the file, so a fresh
        machine and a machine after removal look identical.

        Args:
            state: The state to persist.

        Raises:
            PersistenceError: If the file cannot be written.
        """
        if not state.is_protected:
            self.clear()
            return

        tmp_path: Path | None = None
        try:
            self._state_dir.mkdir(parents=True, exist_ok=True)
            with NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                dir=self._state_dir,
                delete=False,
                suffix=".tmp",
            ) as f:
                tmp_path = Path(f.name)
                f.write(state.to_json())
                f.flush()
                os.fsync(f.fileno())
            # os.replace() is atomic on POSIX and Windows
            os.replace(str(tmp_path), str(self.state_path))
        except OSError as e:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()
            msg = f"Failed to write protection state {self.state_path}: {e}"
            raise PersistenceError(msg) from e

        logger.debug("Saved protection state for %s", state.protected_version)

    def clear(self) -> None:
        """Remove the state file, returning to the unprotected state.

        Raises:
            PersistenceError: If the file exists but cannot be removed.
        """
        try:
            self.state_path.unlink(missing_ok=True)
        except OSError as e:
            msg = f"Failed to clear protection state {self.state_path}: {e}"
            raise PersistenceError(msg) from e

    @contextmanager
    def transaction(self) -> Iterator[ProtectionState]:
        """Hold the state lock and yield the current state.

        Callers persist their changes with save() or clear() before the
        block exits.

        Yields:
            The state as loaded under the lock.

        Raises:
            StateLockError: If the lock cannot be acquired in time.
        """
        with FileLock(self.lock_path, timeout=self._lock_timeout):
            yield self.load()
