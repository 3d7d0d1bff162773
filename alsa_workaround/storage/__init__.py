"""
Storage Layer.

This package handles data persistence: the INI configuration file and the
package version status file used by the APT hook.
"""

from .config_manager import ConfigManager
from .status_file import PackageStatusFile

__all__ = ["ConfigManager", "PackageStatusFile"]
