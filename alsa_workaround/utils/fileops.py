"""
Utilities for writability checks, atomic writes, and edit backups.
"""

import filecmp
import logging
import os
import shutil
import tempfile
from datetime import datetime
from pathlib import Path

log = logging.getLogger(__name__)


def is_writable_file(path: Path) -> bool:
    """
    True when the file exists and can be replaced in place: the file itself and
    its directory must be writable, since edits go through a temp file + rename.
    """
    return (
        path.is_file()
        and os.access(path, os.W_OK)
        and os.access(path.parent, os.W_OK | os.X_OK)
    )


def is_writable_dir(path: Path) -> bool:
    """
    True when a file can be created in the directory, creating the directory
    itself if needed.
    """
    candidate = path
    while not candidate.exists():
        if candidate.parent == candidate:
            return False
        candidate = candidate.parent
    return candidate.is_dir() and os.access(candidate, os.W_OK | os.X_OK)


def atomic_write_text(path: Path, content: str) -> None:
    """Replaces the file's content through a temp file in the same directory."""
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(
            fd, "w", encoding="utf-8", errors="surrogateescape", newline=""
        ) as f:
            f.write(content)
        if path.exists():
            shutil.copymode(path, tmp_path)
        else:
            tmp_path.chmod(0o644)
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


class EditBackup:
    """
    Keeps timestamped copies of files for the duration of an edit.

    Usage:
        with EditBackup([conf_a, conf_b]) as backup:
            ...edit conf_a and conf_b...
            changed = backup.changed_files()
    """

    def __init__(self, paths: list[Path], keep: bool = False):
        self.paths = paths
        self.keep = keep
        self.timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
        self.backups: dict[Path, Path] = {}

    def backup_path(self, path: Path) -> Path:
        return path.with_name(f"{path.name}.bak.{self.timestamp}")

    def __enter__(self) -> "EditBackup":
        for path in self.paths:
            backup = self.backup_path(path)
            shutil.copy2(path, backup)
            self.backups[path] = backup
            log.debug(f"Backup created: {backup}")
        return self

    def is_changed(self, path: Path) -> bool:
        """Byte-for-byte comparison of the file against its backup."""
        return not filecmp.cmp(path, self.backups[path], shallow=False)

    def changed_files(self) -> list[Path]:
        return [path for path in self.paths if self.is_changed(path)]

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.keep:
            for backup in self.backups.values():
                log.info(f"Backup kept: [dim]{backup}[/dim]")
            return False
        for backup in self.backups.values():
            try:
                backup.unlink()
            except OSError as e:
                log.warning(f"Could not remove backup {backup}: {e}")
        return False
