"""
Obsidian daily note integration for todo-sync.
"""

from .daily_note import DailyNoteManager
from .parser import parse_markdown_task, format_task_line

__all__ = [
    'DailyNoteManager',
    'parse_markdown_task',
    'format_task_line'
]
