"""
Markdown task parsing utilities.

Daily note tasks are plain checkbox lines. Two Dataview-style inline fields
are understood and kept out of the task title:

    - [x] Buy milk [completion:: 2024-01-01] [todo-id:: AAMkAG...]
"""

import re
from datetime import date
from typing import Optional, Dict, Any

from todo_sync.utils.date import parse_date


# Regular expressions for parsing tasks
TASK_RE = re.compile(r'^(\s*)([-*])\s*\[([xX ])\]\s*(.*)$')
COMPLETION_RE = re.compile(r'\s*\[completion::\s*(\d{4}-\d{2}-\d{2})\]')
REMOTE_ID_RE = re.compile(r'\s*\[todo-id::\s*([^\]\s]+)\s*\]')


def strip_annotations(text: str) -> str:
    """Remove completion and remote-id fields from task text."""
    text = COMPLETION_RE.sub('', text)
    text = REMOTE_ID_RE.sub('', text)
    return text.strip()


def parse_markdown_task(line: str) -> Optional[Dict[str, Any]]:
    """
    Parse a markdown task line into components.

    Args:
        line: Raw markdown line

    Returns:
        Dictionary with parsed task data or None if not a task. Checkbox
        lines with nothing but whitespace after the box are not tasks.
    """
    match = TASK_RE.match(line.rstrip('\r\n'))
    if not match:
        return None

    indent, marker, status_char, content = match.groups()

    title = strip_annotations(content)
    if not title:
        return None

    completion_date = None
    completion_match = COMPLETION_RE.search(content)
    if completion_match:
        completion_date = parse_date(completion_match.group(1))

    remote_id = None
    id_match = REMOTE_ID_RE.search(content)
    if id_match:
        remote_id = id_match.group(1)

    return {
        'completed': status_char.lower() == 'x',
        'title': title,
        'completion_date': completion_date,
        'remote_id': remote_id,
        'indent': indent,
        'marker': marker,
        'content': content,
        'raw_line': line,
    }


def format_task_line(
    title: str,
    completed: bool = False,
    completion_date: Optional[date] = None,
    remote_id: Optional[str] = None,
    indent: str = "",
    marker: str = "-",
) -> str:
    """
    Format a task into markdown line format.

    Args:
        title: Task title
        completed: Whether the box is checked
        completion_date: Optional completion date field
        remote_id: Optional remote task id field
        indent: Indentation string
        marker: List marker ("-" or "*")

    Returns:
        Formatted markdown task line
    """
    status_char = 'x' if completed else ' '
    parts = [f"{indent}{marker} [{status_char}]", ' '.join(title.split())]

    if completion_date:
        parts.append(f"[completion:: {completion_date.strftime('%Y-%m-%d')}]")

    if remote_id:
        parts.append(f"[todo-id:: {remote_id}]")

    return ' '.join(parts)


def mark_line_completed(line: str, completion_date: date) -> str:
    """
    Rewrite a task line as checked with the given completion date.

    Any previous completion field is replaced; other text (including the
    remote-id field) is kept as written.

    Raises:
        ValueError: if the line is not a checkbox line
    """
    parsed = parse_markdown_task(line)
    if not parsed:
        raise ValueError("No checkbox found on line")

    body = COMPLETION_RE.sub('', parsed['content']).strip()
    return (
        f"{parsed['indent']}{parsed['marker']} [x] {body} "
        f"[completion:: {completion_date.strftime('%Y-%m-%d')}]"
    )


def set_line_remote_id(line: str, remote_id: str) -> str:
    """
    Add or replace the remote-id field on a task line.

    Raises:
        ValueError: if the line is not a checkbox line
    """
    parsed = parse_markdown_task(line)
    if not parsed:
        raise ValueError("No checkbox found on line")

    status_char = 'x' if parsed['completed'] else ' '
    body = REMOTE_ID_RE.sub('', parsed['content']).strip()
    return f"{parsed['indent']}{parsed['marker']} [{status_char}] {body} [todo-id:: {remote_id}]"
