"""Cross-platform exclusive file lock.

Serializes read-modify-write of the protection state between ccguard
processes using msvcrt on Windows and fcntl on Unix-like systems.
"""

import logging
import os
import platform
import time
from pathlib import Path

from ccguard.core.errors import StateLockError

logger = logging.getLogger(__name__)

_POLL_INTERVAL = 0.05


class FileLock:
    """Exclusive lock held on a sidecar lock file.

    The lock file itself is left in place after release; only the OS
    lock on it carries meaning.

    Example:
        >>> with FileLock(Path("/tmp/protection.lock"), timeout=5.0):
        ...     # Protected region
        ...     pass
    """

    def __init__(self, lock_path: Path, timeout: float = 10.0) -> None:
        """Initialize file lock.

        Args:
            lock_path: Path to the lock file.
            timeout: Seconds to keep retrying before giving up.
        """
        self.lock_path = lock_path
        self.timeout = timeout
        self._lock_fd: int | None = None

    @property
    def is_held(self) -> bool:
        return self._lock_fd is not None

    def acquire(self) -> None:
        """Acquire the lock, retrying until the timeout expires.

        Raises:
            StateLockError: If the lock is still held elsewhere at timeout,
                or the lock file cannot be opened.
        """
        if self._lock_fd is not None:
            return

        try:
            self.lock_path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.lock_path, os.O_CREAT | os.O_RDWR)
        except OSError as e:
            msg = f"Cannot open lock file {self.lock_path}: {e}"
            raise StateLockError(msg) from e

        deadline = time.monotonic() + self.timeout
        while True:
            try:
                _lock_fd(fd)
            except OSError:
                if time.monotonic() >= deadline:
                    os.close(fd)
                    msg = (
                        f"Another ccguard instance holds {self.lock_path} "
                        f"(waited {self.timeout:.0f}s)"
                    )
                    raise StateLockError(msg) from None
                time.sleep(_POLL_INTERVAL)
                continue
            break

        self._lock_fd = fd
        logger.debug("Acquired state lock %s", self.lock_path)

    def release(self) -> None:
        """Release the lock. Safe to call when the lock is not held."""
        if self._lock_fd is None:
            return

        fd = self._lock_fd
        self._lock_fd = None
        try:
            _unlock_fd(fd)
        except OSError as e:
            logger.warning("Error releasing state lock %s: %s", self.lock_path, e)
        finally:
            os.close(fd)
        logger.debug("Released state lock %s", self.lock_path)

    def __enter__(self) -> "FileLock":
        self.acquire()
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.release()


def _lock_fd(fd: int) -> None:
    """Try once to take an exclusive, non-blocking lock on fd."""
    if platform.system() == "Windows":
        import msvcrt

        os.lseek(fd, 0, os.SEEK_SET)
        msvcrt.locking(fd, msvcrt.LK_NBLCK, 1)  # type: ignore[attr-defined]
    else:
        import fcntl

        fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)


def _unlock_fd(fd: int) -> None:
    if platform.system() == "Windows":
        import msvcrt

        os.lseek(fd, 0, os.SEEK_SET)
        msvcrt.locking(fd, msvcrt.LK_UNLCK, 1)  # type: ignore[attr-defined]
    else:
        import fcntl

        fcntl.flock(fd, fcntl.LOCK_UN)
