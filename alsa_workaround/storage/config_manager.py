"""
Manages loading, validation, and migration of the INI configuration file.
"""

import configparser
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from alsa_workaround.exceptions import ConfigurationError
from alsa_workaround.models.config import WorkaroundConfig

log = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path("/etc/alsa-workaround/config.ini")
CONFIG_ENV_VAR = "ALSA_WORKAROUND_CONFIG"

_BOOL_KEYS = {"keep_backups", "restart_service"}
_INT_KEYS = {"min_uid", "max_uid"}
_LIST_KEYS = {"watched_packages", "pacman_targets"}


def get_config_file(override: Path | None = None) -> Path:
    """Resolves the config file: explicit path, then environment, then /etc."""
    if override is not None:
        return override
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_FILE


def _to_ini_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return ",".join(map(str, value))
    return str(value)


class ConfigManager:
    """Handles all operations related to the application's INI config file."""

    def __init__(self, config_file_path: Path):
        self.config_file_path = config_file_path
        # Paths and match patterns may contain '%', so interpolation stays off
        self._parser = configparser.ConfigParser(interpolation=None)

    def load_config(
        self, cli_options: dict[str, Any] | None = None
    ) -> WorkaroundConfig:
        """
        Loads configuration from the INI file, applies CLI overrides, and validates it.

        A missing file is not an error: the built-in defaults describe a stock
        system layout.

        Args:
            cli_options: A dictionary of options provided via the command line.

        Returns:
            A validated WorkaroundConfig object.

        Raises:
            ConfigurationError: If the config file cannot be parsed or validation
            fails.
        """
        config_from_file: dict[str, Any] = {}

        if self.config_file_path.is_file():
            try:
                self._parser.read(self.config_file_path, encoding="utf-8")
            except configparser.Error as e:
                raise ConfigurationError(
                    f"Error parsing configuration file: {e}"
                ) from e

            if self._migrate_if_needed():
                log.info(
                    "[yellow]Configuration file was updated with new default values."
                    "[/yellow]"
                )
            config_from_file = self._get_config_as_dict()
        else:
            log.debug(
                f"No configuration file at '{self.config_file_path}', using defaults."
            )

        if cli_options:
            config_from_file.update(cli_options)

        try:
            return WorkaroundConfig(
                **config_from_file, config_path=str(self.config_file_path)
            )
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def save_new_config(self, settings: dict[str, Any] | None = None) -> None:
        """
        Creates and saves a new configuration file.

        Args:
            settings: A dictionary of settings to save over the defaults.
        """
        settings = settings or {}
        config = configparser.ConfigParser(interpolation=None)
        config["DEFAULT"] = {}

        defaults = WorkaroundConfig()
        for key in sorted(WorkaroundConfig.get_ini_keys()):
            value = settings.get(key, getattr(defaults, key, None))
            if value is not None:
                config["DEFAULT"][key] = _to_ini_value(value)

        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "w", encoding="utf-8") as configfile:
                config.write(configfile)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration file: {e}") from e

    def _get_config_as_dict(self) -> dict[str, Any]:
        """Reads the 'DEFAULT' section of the INI file into a dictionary."""
        section = self._parser["DEFAULT"]
        result: dict[str, Any] = {}
        for key in WorkaroundConfig.get_ini_keys():
            if key not in section:
                continue
            try:
                if key in _BOOL_KEYS:
                    result[key] = section.getboolean(key)
                elif key in _INT_KEYS:
                    result[key] = section.getint(key)
                elif key in _LIST_KEYS:
                    result[key] = [
                        s.strip() for s in section.get(key, "").split(",") if s.strip()
                    ]
                else:
                    result[key] = section.get(key)
            except ValueError as e:
                raise ConfigurationError(f"Invalid value for '{key}': {e}") from e
        return result

    def _migrate_if_needed(self) -> bool:
        """Adds missing default values to an existing config file."""
        defaults = WorkaroundConfig()
        config_section = self._parser["DEFAULT"]
        needs_saving = False

        for key in sorted(WorkaroundConfig.get_ini_keys()):
            if key not in config_section:
                config_section[key] = _to_ini_value(getattr(defaults, key))
                needs_saving = True
                log.debug(
                    f"Migrating config: added missing key '{key}' with "
                    f"value '{config_section[key]}'."
                )

        if needs_saving:
            try:
                with open(self.config_file_path, "w", encoding="utf-8") as f:
                    self._parser.write(f)
            except OSError as e:
                log.debug(f"Could not save migrated configuration file: {e}")
                return False

        return needs_saving
