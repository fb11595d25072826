"""Microsoft To Do remote store."""

from .client import TodoClient

__all__ = ['TodoClient']
