"""
Exceptions raised by the File Scope engine and its collaborators.

The core engine reports structural problems as boolean results rather than
exceptions; these types are used at the configuration, storage and manager
boundaries.
"""


class FileScopeError(Exception):
    """Base class for all File Scope errors."""


class ConfigError(FileScopeError):
    """Raised when a configuration file has invalid content."""


class StorageError(FileScopeError):
    """Raised when a persisted file tree cannot be read or written."""


class TreeNotLoadedError(FileScopeError):
    """Raised when an operation needs a file tree but none has been built or loaded."""
