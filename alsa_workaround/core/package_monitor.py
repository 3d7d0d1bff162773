"""
Version gate for the APT post-invoke hook. dpkg runs the hook after every
transaction, so the workaround is only reapplied when one of the watched
packages actually changed.
"""

import logging
import subprocess
from collections.abc import Callable

from alsa_workaround.core.workaround import WorkaroundManager
from alsa_workaround.models.report import ApplyReport
from alsa_workaround.storage.status_file import NOT_INSTALLED, PackageStatusFile

log = logging.getLogger(__name__)


def query_installed_version(
    package: str,
    runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
) -> str:
    """Installed version of a package per dpkg, or 'none'."""
    try:
        result = runner(
            ["dpkg-query", "--show", "--showformat=${Version}", package],
            capture_output=True,
            text=True,
        )
    except OSError as e:
        log.debug(f"dpkg-query unavailable: {e}")
        return NOT_INSTALLED
    version = result.stdout.strip() if result.returncode == 0 else ""
    return version or NOT_INSTALLED


def needs_reapply(stored: dict[str, str] | None, current: dict[str, str]) -> bool:
    """
    True when there is no record yet or any watched package's version differs
    from the recorded one.
    """
    if stored is None:
        return True
    return any(stored.get(pkg) != version for pkg, version in current.items())


class PackageMonitor:
    """Reapplies the workaround when watched package versions change."""

    def __init__(
        self,
        manager: WorkaroundManager,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ):
        self.manager = manager
        self.config = manager.config
        self.status = PackageStatusFile(self.config.status_file)
        self._run = runner

    def current_versions(self) -> dict[str, str]:
        return {
            pkg: query_installed_version(pkg, self._run)
            for pkg in self.config.watched_packages
        }

    def run(self) -> ApplyReport | None:
        """
        Applies the workaround if needed and records the versions it ran for.

        Returns:
            The apply report, or None when nothing changed since the last run.
        """
        current = self.current_versions()
        stored = self.status.read() if self.status.exists() else None

        if not needs_reapply(stored, current):
            log.debug("Watched package versions unchanged; workaround not rerun.")
            return None

        log.info("Watched packages changed; reapplying workaround.")
        report = self.manager.apply()
        if not self.config.dry_run:
            self.status.write(current)
        return report
