"""Detection of the running protected application.

The result of is_running() is a point-in-time fact. Destructive
operations call it again right before they mutate anything instead of
trusting an earlier precheck.
"""

import logging

import psutil

from ccguard.core.layout import InstallLayout
from ccguard.models.result import PrecheckResult

logger = logging.getLogger(__name__)


class ProcessMonitor:
    """Checks the process table for the protected application.

    Args:
        process_names: Executable names to match, case-insensitively.
    """

    def __init__(self, process_names: list[str] | tuple[str, ...]) -> None:
        self._names = {name.lower() for name in process_names}

    def find_running(self) -> list[int]:
        """Return the PIDs of matching processes.

        psutil reports None for attributes it could not read, so processes
        that deny access simply never match.
        """
        pids: list[int] = []
        for proc in psutil.process_iter(["pid", "name"]):
            name = proc.info.get("name") or ""
            if name.lower() in self._names:
                pids.append(proc.info["pid"])
        return pids

    def is_running(self) -> bool:
        """Check if the protected application is running right now."""
        running = self.find_running()
        if running:
            logger.debug("Protected application running with PIDs %s", running)
        return bool(running)

    def precheck(self, layout: InstallLayout) -> PrecheckResult:
        """Gather installation and process facts for a protection run."""
        return PrecheckResult(
            capcut_found=layout.install_root.is_dir(),
            capcut_running=self.is_running(),
            apps_path=str(layout.install_root),
        )
