"""Daily note management: the local side of the sync."""

import os
from datetime import date, datetime, timezone
from typing import Callable, List, Optional
import logging
import re

from ..core.exceptions import FileIOError, NotFoundError
from ..core.models import LocalTask, NoteHandle
from ..utils.io import atomic_write, read_lines
from .parser import format_task_line, mark_line_completed, parse_markdown_task, set_line_remote_id


HEADING_RE = re.compile(r"^#{1,6}\s")


class DailyNoteManager:
    """Reads and edits tasks in today's daily note."""

    def __init__(
        self,
        vault_path: str,
        daily_note_dir: str = "Daily Notes",
        date_format: str = "%Y-%m-%d",
        todo_section_header: str = "## ToDo",
        logger: Optional[logging.Logger] = None,
        clock: Optional[Callable[[], date]] = None,
    ):
        self.vault_path = os.path.abspath(os.path.expanduser(vault_path))
        self.daily_note_dir = daily_note_dir
        self.date_format = date_format
        self.todo_section_header = todo_section_header
        self.logger = logger or logging.getLogger(__name__)
        self._clock = clock or date.today

    @classmethod
    def from_config(cls, config, logger: Optional[logging.Logger] = None) -> "DailyNoteManager":
        return cls(
            vault_path=config.vault_path,
            daily_note_dir=config.daily_note_dir,
            date_format=config.date_format,
            todo_section_header=config.todo_section_header,
            logger=logger,
        )

    def today(self) -> date:
        return self._clock()

    def get_today_path(self, today: Optional[date] = None) -> str:
        """Get path to the daily note for ``today`` (defaults to the current date)."""
        today = today or self._clock()
        filename = f"{today.strftime(self.date_format)}.md"
        return os.path.join(self.vault_path, self.daily_note_dir, filename)

    def ensure_today_note(self, today: Optional[date] = None) -> NoteHandle:
        """Return today's note, creating it from the template if absent."""
        today = today or self._clock()
        note_path = self.get_today_path(today)

        if os.path.exists(note_path):
            self.logger.debug(f"Today's note already exists: {note_path}")
            return NoteHandle(path=note_path, created=False)

        content = self._create_new_daily_note(today)
        atomic_write(note_path, content)
        self.logger.info(f"Created today's note: {note_path}")
        return NoteHandle(path=note_path, created=True)

    def _create_new_daily_note(self, today: date) -> str:
        """Create content for a new daily note."""
        return f"# {today.strftime(self.date_format)}\n\n{self.todo_section_header}\n\n"

    def list_tasks(self, path: str) -> List[LocalTask]:
        """Parse every checkbox line in the note.

        Raises:
            NotFoundError: if the note does not exist
            FileIOError: if it cannot be read
        """
        lines = read_lines(path)
        tasks: List[LocalTask] = []

        for index, line in enumerate(lines):
            parsed = parse_markdown_task(line)
            if not parsed:
                continue
            tasks.append(
                LocalTask(
                    title=parsed["title"],
                    completed=parsed["completed"],
                    line_index=index,
                    completion_date=parsed["completion_date"],
                    remote_id=parsed["remote_id"],
                    raw_line=line,
                )
            )

        self.logger.debug(f"Parsed {len(tasks)} tasks from {path}")
        return tasks

    def _find_section(self, lines: List[str]) -> int:
        for index, line in enumerate(lines):
            if line.strip() == self.todo_section_header:
                return index
        return -1

    def append_task(self, path: str, title: str, remote_id: Optional[str] = None) -> None:
        """Insert an unchecked task at the end of the to-do section.

        The section runs from its header to the next heading. A missing
        section is appended to the end of the note first.
        """
        lines = read_lines(path)

        section_index = self._find_section(lines)
        if section_index == -1:
            # Drop the trailing "" of a newline-terminated file before appending
            if lines and lines[-1] == "":
                lines.pop()
            lines.extend(["", self.todo_section_header, ""])
            section_index = len(lines) - 2
            self.logger.info(f"Created todo section in {path}")

        insert_index = section_index + 1
        for index in range(section_index + 1, len(lines)):
            if HEADING_RE.match(lines[index]):
                break
            if lines[index].strip():
                insert_index = index + 1

        lines.insert(insert_index, format_task_line(title, remote_id=remote_id))
        atomic_write(path, "\n".join(lines))
        self.logger.info(f"Added task to {path}: {title}")

    def _rewrite_line(self, path: str, line_index: int, rewrite: Callable[[str], str]) -> None:
        lines = read_lines(path)

        if line_index < 0 or line_index >= len(lines):
            raise NotFoundError(f"Line number {line_index} is out of range for {path}")

        try:
            lines[line_index] = rewrite(lines[line_index])
        except ValueError as exc:
            raise NotFoundError(f"No checkbox found at line {line_index} in {path}") from exc

        atomic_write(path, "\n".join(lines))

    def mark_completed(self, path: str, line_index: int, completion_date: date) -> None:
        """Check the task at ``line_index`` and record its completion date."""
        self._rewrite_line(path, line_index, lambda line: mark_line_completed(line, completion_date))
        self.logger.info(
            f"Updated task completion at line {line_index + 1}: {completion_date.isoformat()}"
        )

    def annotate_remote_id(self, path: str, line_index: int, remote_id: str) -> None:
        """Attach the remote task id to the task at ``line_index``."""
        self._rewrite_line(path, line_index, lambda line: set_line_remote_id(line, remote_id))
        self.logger.debug(f"Linked line {line_index + 1} of {path} to remote task {remote_id}")

    def get_note_modified_date(self, path: str) -> date:
        """UTC calendar date of the note's last modification."""
        try:
            mtime = os.stat(path).st_mtime
        except FileNotFoundError as exc:
            raise NotFoundError(f"File not found: {path}") from exc
        except OSError as exc:
            raise FileIOError(f"Failed to stat {path}: {exc}") from exc
        return datetime.fromtimestamp(mtime, timezone.utc).date()
