"""Resolution of the protected application's on-disk layout.

An application root holds the install root (one subdirectory per
installed version) and the user data root (caches, downloads). All
engine components receive an InstallLayout instead of probing the
filesystem for well-known locations themselves.
"""

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

from ccguard.core.config import GuardConfig
from ccguard.core.errors import RootNotFoundError

logger = logging.getLogger(__name__)

APP_DIR_NAME = "CapCut"


@dataclass(frozen=True, slots=True)
class InstallLayout:
    """Concrete paths of one application installation.

    Attributes:
        app_root: Application root directory.
        config: Configuration the layout was derived from.
    """

    app_root: Path
    config: GuardConfig

    @property
    def install_root(self) -> Path:
        """Directory containing one subdirectory per installed version."""
        return self.app_root / self.config.install_dir

    @property
    def user_data_root(self) -> Path:
        """Directory holding caches, downloads and project data."""
        return self.app_root / self.config.user_data_dir

    @property
    def config_file(self) -> Path:
        """Pinned configuration file locked by protection."""
        return self.install_root / self.config.config_filename

    @property
    def manifest_file(self) -> Path:
        """Launcher pointer naming the active version's executable."""
        return self.install_root / self.config.manifest_filename

    @property
    def staging_paths(self) -> list[Path]:
        """Updater staging locations that receive blocker sentinels."""
        return [self.app_root / p for p in self.config.staging_paths]

    @property
    def cache_dirs(self) -> list[Path]:
        """Cache directories whose contents may be purged."""
        return [self.app_root / p for p in self.config.cache_dirs]

    def roots(self) -> list[Path]:
        """Return the well-known roots that currently exist."""
        return [p for p in (self.install_root, self.user_data_root) if p.is_dir()]


def candidate_app_roots(config: GuardConfig) -> list[Path]:
    """List application root candidates in probing order.

    An explicit root (environment or config) is the only candidate when
    set. Otherwise platform defaults are probed, primary location first.

    Args:
        config: Guard configuration.

    Returns:
        Ordered list of candidate application roots.
    """
    explicit = config.effective_app_root
    if explicit is not None:
        return [explicit]

    candidates: list[Path] = []
    if sys.platform == "win32":
        for env_var in ("LOCALAPPDATA", "PROGRAMFILES", "PROGRAMFILES(X86)"):
            base = os.environ.get(env_var)
            if base:
                candidates.append(Path(base) / APP_DIR_NAME)
    elif sys.platform == "darwin":
        home = Path.home()
        candidates.append(home / "Library" / "Application Support" / APP_DIR_NAME)
        candidates.append(home / "Movies" / APP_DIR_NAME)
    else:
        candidates.append(Path.home() / ".local" / "share" / APP_DIR_NAME)

    return candidates


def resolve_layout(config: GuardConfig) -> InstallLayout:
    """Resolve the layout of the installed application.

    Returns the first candidate whose directory exists. When none exists
    the primary candidate is returned anyway, so callers can report
    "not found" rather than fail.

    Args:
        config: Guard configuration.

    Returns:
        InstallLayout for the resolved application root.

    Raises:
        RootNotFoundError: If no candidate root can be named at all.
    """
    candidates = candidate_app_roots(config)
    if not candidates:
        msg = "Cannot determine the application root on this platform"
        raise RootNotFoundError(msg)

    for candidate in candidates:
        if candidate.is_dir():
            logger.debug("Resolved application root: %s", candidate)
            return InstallLayout(app_root=candidate, config=config)

    logger.debug("No application root exists; using primary candidate %s", candidates[0])
    return InstallLayout(app_root=candidates[0], config=config)
