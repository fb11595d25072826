"""
Core module for todo-sync - contains domain models, configuration, and exceptions.
"""

from .models import (
    TaskStatus,
    RemoteTask,
    LocalTask,
    NoteHandle,
    SyncPhaseResult,
    SyncResult,
    SyncPlan,
    SyncConfig
)

from .exceptions import (
    TodoSyncError,
    ConfigurationError,
    ConnectivityError,
    AuthenticationError,
    NotFoundError,
    FileIOError,
    ValidationError
)

__all__ = [
    # Models
    'TaskStatus',
    'RemoteTask',
    'LocalTask',
    'NoteHandle',
    'SyncPhaseResult',
    'SyncResult',
    'SyncPlan',
    'SyncConfig',
    # Exceptions
    'TodoSyncError',
    'ConfigurationError',
    'ConnectivityError',
    'AuthenticationError',
    'NotFoundError',
    'FileIOError',
    'ValidationError'
]
