"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class NerdFontCliError(Exception):
    """Base exception for all application-specific errors."""


class ConfigurationError(NerdFontCliError):
    """Raised for issues related to configuration loading or validation."""


class StateLoadError(NerdFontCliError):
    """Raised when the state file exists but cannot be read."""


class StateSaveError(NerdFontCliError):
    """Raised when the state file cannot be written."""


class RegistryError(NerdFontCliError):
    """Raised when the release registry cannot be queried or returns bad data."""


class DownloadError(NerdFontCliError):
    """Raised when a package archive cannot be downloaded."""


class ExtractionError(NerdFontCliError):
    """Raised when a package archive cannot be extracted."""


class PathTraversalError(ExtractionError):
    """
    Raised when an archive entry would be written outside the destination directory.
    """


class FontCacheError(NerdFontCliError):
    """Raised when the system font cache could not be refreshed."""
