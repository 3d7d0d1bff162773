"""
Package-manager hooks that reapply the workaround after the packages owning
the mixer profiles are upgraded, since upgrades overwrite the patched files.
"""

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from alsa_workaround.exceptions import HookInstallError, NotRootError
from alsa_workaround.models.config import WorkaroundConfig
from alsa_workaround.utils.fileops import atomic_write_text
from alsa_workaround.utils.structured_logger import WorkaroundLogger

log = logging.getLogger(__name__)

PACMAN_HOOK_TEMPLATE = """\
[Trigger]
Operation = Upgrade
Operation = Install
Type = Package
{targets}

[Action]
Description = Reapplying ALSA workaround after upgrade of one or more key packages...
When = PostTransaction
Exec = {executable} apply
"""

APT_CONF_TEMPLATE = """\
DPkg::Post-Invoke {{
    "if [ -x {executable} ]; then {executable} apt-hook; fi";
}};
"""


def require_root() -> None:
    """Raises NotRootError unless running with an effective uid of 0."""
    if os.geteuid() != 0:
        raise NotRootError("This command must be run as root. Use sudo.")


def default_executable() -> Path | None:
    """The installed alsa-workaround script on PATH, if any."""
    found = shutil.which("alsa-workaround")
    return Path(found) if found else None


def render_pacman_hook(config: WorkaroundConfig) -> str:
    targets = "\n".join(f"Target = {t}" for t in config.pacman_targets)
    return PACMAN_HOOK_TEMPLATE.format(
        targets=targets, executable=config.executable
    )


def render_apt_conf(config: WorkaroundConfig) -> str:
    return APT_CONF_TEMPLATE.format(executable=config.executable)


@dataclass
class HookSpec:
    """One package manager's hook: how to detect it and what to write where."""

    manager: str
    command: str
    path: Path
    content: str

    def detected(self) -> bool:
        return shutil.which(self.command) is not None

    def installed(self) -> bool:
        return self.path.is_file()

    def current(self) -> bool:
        """True when the installed hook matches what would be written."""
        try:
            current = self.path.read_text(encoding="utf-8", errors="replace")
        except OSError:
            return False
        return current == self.content


class HookInstaller:
    """Installs and removes the pacman and APT hooks."""

    def __init__(
        self, config: WorkaroundConfig, events: WorkaroundLogger | None = None
    ):
        self.config = config
        self.events = events

    def specs(self) -> list[HookSpec]:
        return [
            HookSpec(
                "pacman",
                "pacman",
                self.config.pacman_hook_path,
                render_pacman_hook(self.config),
            ),
            HookSpec(
                "apt",
                "apt-get",
                self.config.apt_conf_path,
                render_apt_conf(self.config),
            ),
        ]

    def check_executable(self) -> None:
        """Raises HookInstallError unless the hooks' command can be run."""
        executable = self.config.executable
        if not (executable.is_file() and os.access(executable, os.X_OK)):
            raise HookInstallError(
                f"Hook command {executable} is not an executable file. "
                "Set 'executable' in the configuration to the installed "
                "alsa-workaround script."
            )

    def install(self) -> list[HookSpec]:
        """Writes the hook of every detected package manager."""
        installed = []
        detected = []
        for spec in self.specs():
            if spec.detected():
                detected.append(spec)
            else:
                log.debug(f"{spec.manager} not detected; hook not installed.")
        if detected:
            self.check_executable()

        for spec in detected:
            log.info(f"[cyan]{spec.manager}[/cyan] system detected. Installing hook...")
            try:
                spec.path.parent.mkdir(parents=True, exist_ok=True)
                atomic_write_text(spec.path, spec.content)
            except OSError as e:
                raise HookInstallError(
                    f"Could not write {spec.manager} hook {spec.path}: {e}"
                ) from e

            log.info(f"{spec.manager} hook installed at [dim]{spec.path}[/dim]")
            installed.append(spec)
            if self.events:
                self.events.hook_installed(spec.manager, spec.path)

        if not installed:
            log.warning(
                "[yellow]Neither pacman nor apt-get found; no hooks installed.[/yellow]"
            )
        return installed

    def uninstall(self) -> list[HookSpec]:
        """Removes every installed hook, detected package manager or not."""
        removed = []
        for spec in self.specs():
            try:
                spec.path.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                raise HookInstallError(
                    f"Could not remove {spec.manager} hook {spec.path}: {e}"
                ) from e
            log.info(f"Removed {spec.manager} hook [dim]{spec.path}[/dim]")
            removed.append(spec)
            if self.events:
                self.events.hook_removed(spec.manager, spec.path)
        return removed
