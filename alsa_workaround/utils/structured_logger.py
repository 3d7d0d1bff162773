"""
Structured logging system for auditing what the workaround did to a system.
Provides JSON-formatted logs with context and metadata.
"""

import json
import logging
import os
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Any


class StructuredLogger:
    """
    Logger that outputs both human-readable and machine-parseable logs.

    Usage:
        logger = StructuredLogger("alsa_workaround", log_dir=Path("/var/log/x"))
        logger.info("profile_patched", path="/usr/share/...", dry_run=False)
    """

    def __init__(
        self,
        name: str,
        log_dir: Path | None = None,
        enable_json: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize structured logger.

        Args:
            name: Logger name
            log_dir: Directory for JSON log files (None = disabled)
            enable_json: Enable JSON file logging
            enable_console: Enable console output
        """
        self.name = name
        self.log_dir = log_dir
        self.enable_json = enable_json and log_dir is not None
        self.enable_console = enable_console

        self._logger = logging.getLogger(name)

        self._json_file = None
        if self.enable_json:
            try:
                log_dir.mkdir(parents=True, exist_ok=True)
                json_log_path = log_dir / "alsa_workaround.jsonl"
                self._json_file = open(json_log_path, "a", encoding="utf-8")  # noqa: SIM115
            except OSError as e:
                self._logger.warning(f"JSON event log disabled: {e}")
                self.enable_json = False

        # Session context (added to all log entries)
        self._session_context: dict[str, Any] = {
            "session_id": f"{int(time.time())}_{os.getpid()}",
            "start_time": datetime.now().isoformat(),
        }

    def set_session_context(self, **kwargs) -> None:
        """Set session-level context that appears in all logs."""
        self._session_context.update(kwargs)

    def _format_message(self, event: str, **context) -> str:
        """Format message for console output."""
        parts = [f"\\[{event}]"]
        for key, value in context.items():
            if key not in ("level", "timestamp"):
                parts.append(f"{key}={value}")
        return " ".join(parts)

    def _write_json(self, level: str, event: str, **context) -> None:
        """Write structured log entry to JSON file."""
        if not self._json_file or self._json_file.closed:
            return

        entry = {
            "timestamp": datetime.now().isoformat(),
            "level": level,
            "event": event,
            **self._session_context,
            **context,
        }

        try:
            self._json_file.write(json.dumps(entry, default=str) + "\n")
            self._json_file.flush()
        except (OSError, TypeError) as e:
            print(f"JSON logging failed: {e}", file=sys.stderr)

    def debug(self, event: str, **context) -> None:
        """Log debug event."""
        if self.enable_console:
            self._logger.debug(self._format_message(event, **context))
        if self.enable_json:
            self._write_json("DEBUG", event, **context)

    def info(self, event: str, **context) -> None:
        """Log info event."""
        if self.enable_console:
            self._logger.debug(self._format_message(event, **context))
        if self.enable_json:
            self._write_json("INFO", event, **context)

    def warning(self, event: str, **context) -> None:
        """Log warning event."""
        if self.enable_console:
            self._logger.debug(self._format_message(event, **context))
        if self.enable_json:
            self._write_json("WARNING", event, **context)

    def close(self) -> None:
        """Close JSON log file."""
        if self._json_file and not self._json_file.closed:
            self._json_file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class WorkaroundLogger:
    """Specialized logger for workaround events."""

    def __init__(self, logger: StructuredLogger):
        self.logger = logger

    def profile_patched(self, path: Path, dry_run: bool):
        self.logger.info("profile_patched", path=str(path), dry_run=dry_run)

    def profile_unchanged(self, path: Path):
        self.logger.debug("profile_unchanged", path=str(path))

    def profiles_unwritable(self, paths: list[Path]):
        self.logger.warning("profiles_unwritable", paths=[str(p) for p in paths])

    def softmixer_written(self, path: Path, dry_run: bool):
        self.logger.info("softmixer_written", path=str(path), dry_run=dry_run)

    def softmixer_unchanged(self, path: Path):
        self.logger.debug("softmixer_unchanged", path=str(path))

    def service_restarted(self, user: str, service: str):
        self.logger.info("service_restarted", user=user, service=service)

    def service_restart_failed(self, user: str, service: str, error: str):
        self.logger.warning(
            "service_restart_failed", user=user, service=service, error=error
        )

    def hook_installed(self, manager: str, path: Path):
        self.logger.info("hook_installed", manager=manager, path=str(path))

    def hook_removed(self, manager: str, path: Path):
        self.logger.info("hook_removed", manager=manager, path=str(path))


def create_structured_logger(
    log_dir: Path | None = None,
) -> tuple[StructuredLogger, WorkaroundLogger]:
    """
    Create the structured loggers. JSON output is enabled only with a log_dir.

    Returns:
        Tuple of (base_logger, workaround_logger)
    """
    base = StructuredLogger("alsa_workaround.events", log_dir=log_dir)
    return base, WorkaroundLogger(base)
