"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class WorkaroundError(Exception):
    """Base exception for all application-specific errors."""


class ConfigurationError(WorkaroundError):
    """Raised for issues related to configuration loading or validation."""


class NotRootError(WorkaroundError):
    """Raised when an operation that modifies system files runs without root."""


class PatchError(WorkaroundError):
    """
    Raised when the workaround cannot be written anywhere: neither the mixer
    profiles nor any soft-mixer location is writable.
    """


class HookInstallError(WorkaroundError):
    """Raised when a package-manager hook file cannot be written or removed."""


class StatusFileError(WorkaroundError):
    """Raised when the package version status file cannot be read or written."""
