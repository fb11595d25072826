"""
Exception classes for todo-sync.
"""


class TodoSyncError(Exception):
    """Base exception for all todo-sync errors."""
    pass


class ConfigurationError(TodoSyncError):
    """Raised when configuration is invalid or missing."""
    pass


class ConnectivityError(TodoSyncError):
    """Raised when the remote task store is unreachable or answers non-2xx."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(ConnectivityError):
    """Raised when the remote store rejects the access token."""
    pass


class NotFoundError(TodoSyncError):
    """Raised when a task, note, or note line no longer exists."""
    pass


class FileIOError(TodoSyncError):
    """Raised when the daily note cannot be read or written."""
    pass


class ValidationError(TodoSyncError):
    """Raised when input is rejected before any I/O is attempted."""
    pass
