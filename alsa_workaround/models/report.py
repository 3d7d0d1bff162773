"""
Dataclass for tracking the outcome of a single workaround run.
"""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class ApplyReport:
    """Records what an apply run changed, where it wrote, and whom it restarted."""

    dry_run: bool = False
    patched_profiles: bool = False
    changed_files: list[Path] = field(default_factory=list)
    unchanged_files: list[Path] = field(default_factory=list)
    skipped_files: dict[Path, str] = field(default_factory=dict)
    fallback_path: Path | None = None
    diffs: dict[Path, str] = field(default_factory=dict, repr=False)

    users_restarted: list[str] = field(default_factory=list)
    users_skipped: dict[str, str] = field(default_factory=dict)
    users_failed: dict[str, str] = field(default_factory=dict)

    @property
    def changed(self) -> bool:
        """True when at least one file differs from its state before the run."""
        return bool(self.changed_files)

    @property
    def used_fallback(self) -> bool:
        return self.fallback_path is not None

    def mark(self, path: Path, changed: bool, diff: str = "") -> None:
        """Files the outcome for one target file."""
        if changed:
            self.changed_files.append(path)
            if diff:
                self.diffs[path] = diff
        else:
            self.unchanged_files.append(path)
