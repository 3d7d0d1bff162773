"""
WirePlumber soft-mixer override: the fallback used when the mixer profiles
cannot be edited. It tells WirePlumber to leave the card's hardware mixer
alone and attenuate in software instead.
"""

import logging
import os
import pwd
from pathlib import Path

from alsa_workaround.models.config import WorkaroundConfig
from alsa_workaround.utils.fileops import atomic_write_text, is_writable_dir

log = logging.getLogger(__name__)

SOFTMIXER_TEMPLATE = """\
# Installed by alsa-workaround. The hardware mixer of matching cards is
# ignored and volume is applied in software.
monitor.alsa.rules = [
  {{
    matches = [
      {{
        device.name = "{card_match}"
      }}
    ]
    actions = {{
      update-props = {{
        api.alsa.soft-mixer = true
      }}
    }}
  }}
]
"""


def render_softmixer_conf(card_match: str) -> str:
    return SOFTMIXER_TEMPLATE.format(card_match=card_match.replace('"', '\\"'))


def invoking_user() -> pwd.struct_passwd | None:
    """The account behind sudo, or None when not running through sudo."""
    sudo_user = os.getenv("SUDO_USER")
    if not sudo_user or sudo_user == "root":
        return None
    try:
        return pwd.getpwnam(sudo_user)
    except KeyError:
        log.debug(f"SUDO_USER '{sudo_user}' is not a known account.")
        return None


def user_config_home() -> Path:
    """Config home of the real (non-root) user running the tool."""
    account = invoking_user()
    if account is not None:
        return Path(account.pw_dir) / ".config"
    return Path(os.getenv("XDG_CONFIG_HOME", "~/.config")).expanduser()


class SoftMixerOverride:
    """Selects a writable location for the override file and keeps it current."""

    def __init__(self, config: WorkaroundConfig):
        self.config = config

    def candidate_dirs(self) -> list[Path]:
        """Global directory first, then the invoking user's directory."""
        return [
            self.config.global_softmixer_dir,
            user_config_home() / self.config.user_softmixer_dir,
        ]

    def select_dir(self) -> Path | None:
        """Returns the first writable candidate directory."""
        for directory in self.candidate_dirs():
            if is_writable_dir(directory):
                return directory
            log.debug(f"Soft-mixer location not writable: {directory}")
        return None

    def installed_files(self) -> list[Path]:
        """Override files currently present in any candidate directory."""
        return [
            d / self.config.softmixer_filename
            for d in self.candidate_dirs()
            if (d / self.config.softmixer_filename).is_file()
        ]

    def write(
        self, directory: Path, dry_run: bool = False
    ) -> tuple[Path, bool, str, str]:
        """
        Writes the override file into the directory when its content differs.

        Returns:
            Tuple of (target_path, changed, previous_content, new_content)
        """
        target = directory / self.config.softmixer_filename
        content = render_softmixer_conf(self.config.card_match)

        try:
            current = target.read_text(encoding="utf-8", errors="surrogateescape")
        except FileNotFoundError:
            current = ""

        if current == content:
            return target, False, current, content
        if dry_run:
            return target, True, current, content

        directory.mkdir(parents=True, exist_ok=True)
        atomic_write_text(target, content)
        self._hand_over(directory, target)
        return target, True, current, content

    def _hand_over(self, directory: Path, target: Path) -> None:
        """Gives files written into a user's config home back to that user."""
        account = invoking_user()
        if account is None or os.geteuid() != 0:
            return
        home = Path(account.pw_dir)
        if home not in directory.parents:
            return
        # Every directory created below the home must be owned by the user too
        path = target
        while path != home:
            os.chown(path, account.pw_uid, account.pw_gid)
            path = path.parent
