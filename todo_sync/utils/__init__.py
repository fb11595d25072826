"""
Utility functions for todo-sync.
"""

from .date import parse_date, parse_datetime
from .io import atomic_write, read_lines, file_lock
from .logging_setup import setup_logging, resolve_level

__all__ = [
    # Date utilities
    'parse_date',
    'parse_datetime',
    # I/O utilities
    'atomic_write',
    'read_lines',
    'file_lock',
    # Logging
    'setup_logging',
    'resolve_level',
]
