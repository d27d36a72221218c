"""Custom exceptions for lexicam.

Each exception type represents a category of error.
Catch specific exceptions to handle errors appropriately.
"""


class LexicamError(Exception):
    """Base exception for all lexicam errors."""

    pass


class ConfigError(LexicamError):
    """Raised when configuration is invalid or missing."""

    pass


class SyncError(LexicamError):
    """Raised when a remote sync operation fails."""

    pass


class SyncUnavailableError(SyncError):
    """Raised when sync preconditions (opt-in, network, account) don't hold."""

    pass


class GatewayError(SyncError):
    """Raised when the remote record service rejects or fails a request."""

    pass


class ModelLoadError(LexicamError):
    """Raised when a recognition model file cannot be compiled or loaded."""

    pass
