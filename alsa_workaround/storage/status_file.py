"""
Persists the last-seen versions of the watched packages, one
'package version' pair per line.
"""

import logging
from pathlib import Path

from alsa_workaround.exceptions import StatusFileError
from alsa_workaround.utils.fileops import atomic_write_text

log = logging.getLogger(__name__)

NOT_INSTALLED = "none"


class PackageStatusFile:
    """Reads and writes the package version status file."""

    def __init__(self, path: Path):
        self.path = path

    def exists(self) -> bool:
        return self.path.is_file()

    def read(self) -> dict[str, str]:
        """
        Returns the stored versions keyed by package name.

        Blank lines are ignored; a line without a version records the package
        as not installed.
        """
        try:
            content = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except (OSError, UnicodeDecodeError) as e:
            raise StatusFileError(f"Cannot read status file '{self.path}': {e}") from e

        versions: dict[str, str] = {}
        for line in content.splitlines():
            line = line.strip()
            if not line:
                continue
            package, _, version = line.partition(" ")
            versions[package] = version.strip() or NOT_INSTALLED
        return versions

    def write(self, versions: dict[str, str]) -> None:
        """Overwrites the status file with the given versions, in the given order."""
        content = "".join(f"{pkg} {ver}\n" for pkg, ver in versions.items())
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            atomic_write_text(self.path, content)
        except OSError as e:
            raise StatusFileError(
                f"Cannot write status file '{self.path}': {e}"
            ) from e
        log.debug(f"Recorded {len(versions)} package versions in {self.path}.")

    def remove(self) -> bool:
        """Deletes the status file. Returns True when a file was removed."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StatusFileError(
                f"Cannot remove status file '{self.path}': {e}"
            ) from e
        return True
