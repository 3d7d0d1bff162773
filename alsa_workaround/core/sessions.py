"""
Restarts the user-session audio service for everyone who is logged in, so the
changed mixer configuration is picked up without logging out.
"""

import logging
import os
import pwd
import shlex
import shutil
import subprocess
from collections.abc import Callable
from pathlib import Path

from alsa_workaround.models.config import WorkaroundConfig
from alsa_workaround.models.report import ApplyReport
from alsa_workaround.utils.structured_logger import WorkaroundLogger

log = logging.getLogger(__name__)

NON_LOGIN_SHELLS = ("nologin", "false")


def parse_who_output(output: str) -> list[str]:
    """Unique, sorted account names from the first column of `who`."""
    return sorted({line.split()[0] for line in output.splitlines() if line.strip()})


def read_locked_accounts(shadow_path: Path) -> set[str]:
    """
    Accounts whose shadow password field starts with '!'. An unreadable shadow
    file yields an empty set.
    """
    try:
        content = shadow_path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        log.debug(f"Cannot read {shadow_path}, assuming no locked accounts: {e}")
        return set()

    locked = set()
    for line in content.splitlines():
        fields = line.split(":")
        if len(fields) > 1 and fields[1].startswith("!"):
            locked.add(fields[0])
    return locked


class SessionRestarter:
    """Finds eligible logged-in accounts and restarts their session service."""

    def __init__(
        self,
        config: WorkaroundConfig,
        events: WorkaroundLogger | None = None,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
        user_lookup: Callable[[str], pwd.struct_passwd] = pwd.getpwnam,
    ):
        self.config = config
        self.events = events
        self._run = runner
        self._lookup = user_lookup

    def logged_in_users(self) -> list[str]:
        try:
            result = self._run(["who"], capture_output=True, text=True, check=True)
        except (OSError, subprocess.CalledProcessError) as e:
            log.warning(f"Could not list logged-in users: {e}")
            return []
        return parse_who_output(result.stdout)

    def skip_reason(self, account: pwd.struct_passwd, locked: set[str]) -> str | None:
        """Why the account gets no restart, or None when it is eligible."""
        if not self.config.min_uid <= account.pw_uid <= self.config.max_uid:
            return f"system account (uid {account.pw_uid})"
        if Path(account.pw_shell).name in NON_LOGIN_SHELLS:
            return f"no login shell ({account.pw_shell})"
        if account.pw_name in locked:
            return "account locked"
        if not self.runtime_dir(account).is_dir():
            return "no session runtime directory"
        return None

    def runtime_dir(self, account: pwd.struct_passwd) -> Path:
        return self.config.runtime_dir_root / str(account.pw_uid)

    def restart_command(self, account: pwd.struct_passwd) -> list[str]:
        inner = (
            f"XDG_RUNTIME_DIR={shlex.quote(str(self.runtime_dir(account)))} "
            f"systemctl --user restart {shlex.quote(self.config.service)}"
        )
        return ["su", account.pw_name, "-c", inner]

    def own_restart_command(self) -> list[str]:
        """Restart command for the session of the account running the tool."""
        return ["systemctl", "--user", "restart", self.config.service]

    def restart_all(self, report: ApplyReport) -> None:
        """
        Restarts the service for every eligible logged-in account. Without
        root only the caller's own session is restarted; su would prompt for
        every other account's password.
        """
        users = self.logged_in_users()
        if not users:
            log.info("No logged-in users; nothing to restart.")
            return

        euid = os.geteuid()
        if euid != 0:
            self._restart_own_session(users, euid, report)
            return

        if shutil.which("su") is None:
            for user in users:
                log.warning(f"'su' command not found. Skipping user {user}.")
                report.users_skipped[user] = "'su' not available"
            return

        locked = read_locked_accounts(self.config.shadow_path)
        for user in users:
            account = self._eligible_account(user, locked, report)
            if account is not None:
                self._restart(account, self.restart_command(account), report)

    def _restart_own_session(
        self, users: list[str], euid: int, report: ApplyReport
    ) -> None:
        for user in users:
            try:
                own = self._lookup(user).pw_uid == euid
            except KeyError:
                own = False
            if not own:
                report.users_skipped[user] = "requires root"
                continue

            account = self._eligible_account(user, set(), report)
            if account is not None:
                self._restart(account, self.own_restart_command(), report)

    def _eligible_account(
        self, user: str, locked: set[str], report: ApplyReport
    ) -> pwd.struct_passwd | None:
        try:
            account = self._lookup(user)
        except KeyError:
            report.users_skipped[user] = "unknown account"
            return None

        reason = self.skip_reason(account, locked)
        if reason:
            log.debug(f"Skipping {user}: {reason}.")
            report.users_skipped[user] = reason
            return None
        return account

    def _restart(
        self, account: pwd.struct_passwd, command: list[str], report: ApplyReport
    ) -> None:
        user = account.pw_name
        service = self.config.service
        try:
            result = self._run(
                command, capture_output=True, text=True, stdin=subprocess.DEVNULL
            )
        except OSError as e:
            error = str(e)
        else:
            if result.returncode == 0:
                log.info(f"Restarted {service} for [cyan]{user}[/cyan].")
                report.users_restarted.append(user)
                if self.events:
                    self.events.service_restarted(user, service)
                return
            error = (result.stderr or "").strip() or f"exit code {result.returncode}"

        log.warning(f"Failed to restart {service} for {user}: {error}")
        report.users_failed[user] = error
        if self.events:
            self.events.service_restart_failed(user, service, error)
