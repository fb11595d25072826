"""Sync module for bidirectional task synchronization."""

from .engine import SyncEngine, SyncRun
from .matcher import TaskMatcher, normalize_title

__all__ = ['SyncEngine', 'SyncRun', 'TaskMatcher', 'normalize_title']
