"""
Applies the volume workaround: patch the mixer profiles when they are
writable, otherwise fall back to a soft-mixer override, then restart the
session service if anything changed.
"""

import difflib
import logging
from pathlib import Path

from alsa_workaround.core.mixer_profile import (
    MASTER_SECTION,
    has_section,
    insert_master_block,
    override_master_volume,
)
from alsa_workaround.core.sessions import SessionRestarter
from alsa_workaround.core.soft_mixer import SoftMixerOverride
from alsa_workaround.exceptions import PatchError
from alsa_workaround.models.config import WorkaroundConfig
from alsa_workaround.models.report import ApplyReport
from alsa_workaround.utils.fileops import (
    EditBackup,
    atomic_write_text,
    is_writable_file,
)
from alsa_workaround.utils.structured_logger import WorkaroundLogger

log = logging.getLogger(__name__)


def unified_diff(path: Path, before: str, after: str) -> str:
    diff = "".join(
        difflib.unified_diff(
            before.splitlines(keepends=True),
            after.splitlines(keepends=True),
            fromfile=str(path),
            tofile=f"{path} (patched)",
        )
    )
    # undecodable bytes show as U+FFFD so the diff can be printed
    return diff.encode("utf-8", "surrogateescape").decode("utf-8", "replace")


def _read(path: Path) -> str:
    # newline="" keeps CRLF files byte-identical when nothing is rewritten
    with open(path, encoding="utf-8", errors="surrogateescape", newline="") as f:
        return f.read()


class WorkaroundManager:
    """Orchestrates a single apply run and records its outcome."""

    def __init__(
        self,
        config: WorkaroundConfig,
        restarter: SessionRestarter | None = None,
        events: WorkaroundLogger | None = None,
    ):
        self.config = config
        self.events = events
        self.restarter = restarter or SessionRestarter(config, events=events)
        self.soft_mixer = SoftMixerOverride(config)

    @property
    def profile_paths(self) -> list[Path]:
        return [self.config.common_path, self.config.headphones_path]

    def profiles_writable(self) -> bool:
        return all(is_writable_file(p) for p in self.profile_paths)

    def apply(self) -> ApplyReport:
        """
        Runs the workaround once.

        Raises:
            PatchError: If neither the profiles nor any soft-mixer location can
            be written.
        """
        report = ApplyReport(dry_run=self.config.dry_run)

        if self.profiles_writable():
            self._patch_profiles(report)
        else:
            unwritable = [p for p in self.profile_paths if not is_writable_file(p)]
            for path in unwritable:
                log.warning(
                    f"[yellow]{path} is missing or not writable.[/yellow]"
                )
            if self.events:
                self.events.profiles_unwritable(unwritable)
            self._write_soft_mixer(report)

        if not report.changed:
            log.info("[green]Workaround already in place; nothing changed.[/green]")
        elif self.config.dry_run:
            log.info("[cyan]Dry run: no files written, no services restarted.[/cyan]")
        elif self.config.restart_service:
            log.info(
                f"Configuration differences detected; restarting "
                f"{self.config.service}..."
            )
            self.restarter.restart_all(report)

        return report

    def _transform(self, common: str, headphones: str) -> tuple[str, str]:
        """Computes the patched contents of both profile files."""
        new_common = insert_master_block(common)
        if not has_section(new_common, MASTER_SECTION):
            log.warning(
                f"[{MASTER_SECTION}] absent from {self.config.common_path}; "
                "headphones profile left alone."
            )
            return new_common, headphones

        if has_section(headphones, MASTER_SECTION):
            return new_common, override_master_volume(headphones)

        log.info(
            f"[{MASTER_SECTION}] block not found in {self.config.headphones_path}; "
            "skipping modification of that file."
        )
        return new_common, headphones

    def _patch_profiles(self, report: ApplyReport) -> None:
        report.patched_profiles = True
        common_path = self.config.common_path
        headphones_path = self.config.headphones_path

        before = {path: _read(path) for path in self.profile_paths}
        new_common, new_headphones = self._transform(
            before[common_path], before[headphones_path]
        )
        after = {common_path: new_common, headphones_path: new_headphones}

        if self.config.dry_run:
            for path in self.profile_paths:
                changed = after[path] != before[path]
                report.mark(
                    path, changed, unified_diff(path, before[path], after[path])
                )
            return

        with EditBackup(self.profile_paths, keep=self.config.keep_backups) as backup:
            for path in self.profile_paths:
                if after[path] != before[path]:
                    atomic_write_text(path, after[path])
                    log.info(f"Patched [cyan]{path}[/cyan].")

            for path in self.profile_paths:
                changed = backup.is_changed(path)
                report.mark(
                    path, changed, unified_diff(path, before[path], after[path])
                )
                if not self.events:
                    continue
                if changed:
                    self.events.profile_patched(path, dry_run=False)
                else:
                    self.events.profile_unchanged(path)

    def _write_soft_mixer(self, report: ApplyReport) -> None:
        directory = self.soft_mixer.select_dir()
        if directory is None:
            locations = ", ".join(str(d) for d in self.soft_mixer.candidate_dirs())
            raise PatchError(
                "Mixer profiles are not writable and no soft-mixer location is "
                f"writable either (tried: {locations})."
            )

        target, changed, previous, content = self.soft_mixer.write(
            directory, dry_run=self.config.dry_run
        )
        report.fallback_path = target
        report.mark(target, changed, unified_diff(target, previous, content))

        if changed:
            verb = "Would write" if self.config.dry_run else "Wrote"
            log.info(f"{verb} soft-mixer override [cyan]{target}[/cyan].")
        if self.events:
            if changed:
                self.events.softmixer_written(target, dry_run=self.config.dry_run)
            else:
                self.events.softmixer_unchanged(target)
