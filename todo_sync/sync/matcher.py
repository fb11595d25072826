"""Task matching between the remote list and the daily note.

A pair matches when the local line carries the remote task's id, or, for
lines without an id, when the normalized titles are equal.
"""

from typing import Callable, Iterable, List, Optional, Set, TypeVar
import logging

from ..core.models import LocalTask, RemoteTask


T = TypeVar("T")


def normalize_title(title: Optional[str]) -> str:
    """Lowercase and trim a title for comparison."""
    return (title or "").strip().lower()


def _first(items: Iterable[T], predicate: Optional[Callable[[T], bool]]) -> Optional[T]:
    for item in items:
        if predicate is None or predicate(item):
            return item
    return None


class TaskMatcher:
    """Pairs remote tasks with local checkbox lines."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def _warn_duplicates(self, local_tasks: List[LocalTask]) -> None:
        seen: Set[str] = set()
        reported: Set[str] = set()
        for task in local_tasks:
            key = normalize_title(task.title)
            if key in seen and key not in reported:
                self.logger.warning(f"Duplicate task title in daily note, only the first is synced: {task.title}")
                reported.add(key)
            seen.add(key)

    def find_new_remote(self, remote_tasks: List[RemoteTask], local_tasks: List[LocalTask]) -> List[RemoteTask]:
        """Remote tasks with no counterpart in the note."""
        self._warn_duplicates(local_tasks)

        local_ids = {task.remote_id for task in local_tasks if task.remote_id}
        local_titles = {normalize_title(task.title) for task in local_tasks}

        new_tasks = [
            task for task in remote_tasks
            if task.id not in local_ids and normalize_title(task.title) not in local_titles
        ]
        self.logger.debug(f"Found {len(new_tasks)} new remote tasks out of {len(remote_tasks)}")
        return new_tasks

    def find_new_local(self, local_tasks: List[LocalTask], remote_tasks: List[RemoteTask]) -> List[LocalTask]:
        """Local tasks with no counterpart in the remote list.

        Of several lines sharing a title only the first can be new; the
        rest are treated as already synced.
        """
        self._warn_duplicates(local_tasks)

        remote_ids = {task.id for task in remote_tasks}
        remote_titles = {normalize_title(task.title) for task in remote_tasks}

        new_tasks: List[LocalTask] = []
        claimed: Set[str] = set()
        for task in local_tasks:
            key = normalize_title(task.title)
            if task.remote_id and task.remote_id in remote_ids:
                continue
            if key in remote_titles or key in claimed:
                continue
            claimed.add(key)
            new_tasks.append(task)

        self.logger.debug(f"Found {len(new_tasks)} new local tasks out of {len(local_tasks)}")
        return new_tasks

    def find_local_match(
        self,
        remote_task: RemoteTask,
        local_tasks: List[LocalTask],
        predicate: Optional[Callable[[LocalTask], bool]] = None,
    ) -> Optional[LocalTask]:
        """First local line matching ``remote_task``.

        Lines linked to the task's id win outright. Only lines without an
        id are compared by title.
        """
        linked = [t for t in local_tasks if t.remote_id == remote_task.id]
        if linked:
            return _first(linked, predicate)

        key = normalize_title(remote_task.title)
        return _first(
            (t for t in local_tasks if t.remote_id is None and normalize_title(t.title) == key),
            predicate,
        )

    def find_remote_match(
        self,
        local_task: LocalTask,
        remote_tasks: List[RemoteTask],
        predicate: Optional[Callable[[RemoteTask], bool]] = None,
        claimed_ids: Optional[Set[str]] = None,
    ) -> Optional[RemoteTask]:
        """First remote task matching ``local_task``.

        A line whose id is still in the remote list matches that task or
        nothing. Otherwise titles are compared, skipping ids in
        ``claimed_ids`` (tasks already linked to other lines).
        """
        if local_task.remote_id:
            linked = [t for t in remote_tasks if t.id == local_task.remote_id]
            if linked:
                return _first(linked, predicate)

        claimed = claimed_ids or set()
        key = normalize_title(local_task.title)
        return _first(
            (t for t in remote_tasks if t.id not in claimed and normalize_title(t.title) == key),
            predicate,
        )
