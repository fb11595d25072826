"""Main sync engine orchestrating the synchronization process."""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Dict, List, Optional, Set, Tuple
import logging
import os
import threading

from ..core.exceptions import NotFoundError, TodoSyncError
from ..core.models import LocalTask, RemoteTask, SyncPhaseResult, SyncPlan, SyncResult
from ..obsidian.daily_note import DailyNoteManager
from ..todo.client import TodoClient
from .matcher import TaskMatcher, normalize_title


_registry_lock = threading.Lock()
_note_locks: Dict[str, threading.Lock] = {}


def _note_lock(note_path: str) -> threading.Lock:
    """Process-wide lock for one note path, created on first use."""
    key = os.path.normcase(os.path.abspath(note_path))
    with _registry_lock:
        return _note_locks.setdefault(key, threading.Lock())


@dataclass(frozen=True)
class SyncRun:
    """State for a single sync invocation."""

    note_path: str
    today: date
    started_at: datetime


class SyncEngine:
    """Main engine for bidirectional task synchronization.

    A full sync runs three phases in order: remote tasks into the daily
    note, note tasks into the remote list, then completion status in both
    directions. Each phase reports its own errors and never raises.
    """

    def __init__(
        self,
        remote: TodoClient,
        notes: DailyNoteManager,
        matcher: Optional[TaskMatcher] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.remote = remote
        self.notes = notes
        self.logger = logger or logging.getLogger(__name__)
        self.matcher = matcher or TaskMatcher(logger=self.logger)

    def start_run(self) -> SyncRun:
        today = self.notes.today()
        return SyncRun(
            note_path=self.notes.get_today_path(today),
            today=today,
            started_at=datetime.now(timezone.utc),
        )

    def _phase_failed(self, label: str, exc: Exception) -> SyncPhaseResult:
        message = f"{label}: {exc}"
        self.logger.error(message)
        if not isinstance(exc, TodoSyncError):
            self.logger.debug("Unexpected error during sync phase", exc_info=True)
        return SyncPhaseResult(created=0, errors=[message])

    def _fetch_remote(self) -> List[RemoteTask]:
        tasks = self.remote.list_tasks()
        self.logger.debug(f"Found {len(tasks)} remote tasks")
        return tasks

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------
    def sync_remote_to_local(self, run: Optional[SyncRun] = None) -> SyncPhaseResult:
        """Append remote tasks missing from today's note."""
        run = run or self.start_run()
        result = SyncPhaseResult()

        try:
            self.logger.info("Starting remote → local sync")
            remote_tasks = self._fetch_remote()
            note = self.notes.ensure_today_note(run.today)
            local_tasks = self.notes.list_tasks(note.path)

            candidates = [task for task in remote_tasks if task.title.strip()]
            if len(candidates) < len(remote_tasks):
                self.logger.debug(f"Skipping {len(remote_tasks) - len(candidates)} remote tasks without a title")

            for task in self.matcher.find_new_remote(candidates, local_tasks):
                try:
                    self.notes.append_task(note.path, task.title, remote_id=task.id)
                    result.created += 1
                    self.logger.info(f"Added task from remote list: {task.title}")
                except TodoSyncError as exc:
                    message = f'Failed to add task "{task.title}": {exc}'
                    self.logger.error(message)
                    result.errors.append(message)

            self.logger.info(f"Remote → local sync completed: {result.created} new tasks")
        except Exception as exc:
            return self._phase_failed("Remote to local sync failed", exc)

        return result

    def sync_local_to_remote(self, run: Optional[SyncRun] = None) -> SyncPhaseResult:
        """Create remote tasks for incomplete note tasks missing from the list."""
        run = run or self.start_run()
        result = SyncPhaseResult()

        try:
            self.logger.info("Starting local → remote sync")
            note = self.notes.ensure_today_note(run.today)
            incomplete = [task for task in self.notes.list_tasks(note.path) if not task.completed]
            self.logger.debug(f"Found {len(incomplete)} incomplete local tasks")

            if not incomplete:
                self.logger.info("No incomplete tasks found in daily note")
                return result

            remote_tasks = self._fetch_remote()
            new_tasks = self.matcher.find_new_local(incomplete, remote_tasks)
            if not new_tasks:
                self.logger.info("Local → remote sync completed: 0 new tasks")
                return result

            start_date = self.notes.get_note_modified_date(note.path)

            for task in new_tasks:
                try:
                    created = self.remote.create_task(task.title, start_date=start_date)
                except TodoSyncError as exc:
                    message = f'Failed to create task "{task.title}": {exc}'
                    self.logger.error(message)
                    result.errors.append(message)
                    continue

                result.created += 1
                self.logger.info(f"Created remote task: {task.title}")
                self._link_created(note.path, task, created)

            self.logger.info(f"Local → remote sync completed: {result.created} new tasks")
        except Exception as exc:
            return self._phase_failed("Local to remote sync failed", exc)

        return result

    def _link_created(self, note_path: str, task: LocalTask, created: RemoteTask) -> None:
        # The remote task exists either way; a title match still pairs them later.
        if not created.id:
            return
        try:
            fresh = self.notes.list_tasks(note_path)
            key = normalize_title(task.title)
            line = next(
                (t for t in fresh if not t.completed and not t.remote_id and normalize_title(t.title) == key),
                None,
            )
            if line is None:
                raise NotFoundError(f"Task line for '{task.title}' is no longer in the note")
            self.notes.annotate_remote_id(note_path, line.line_index, created.id)
        except TodoSyncError as exc:
            self.logger.warning(f"Could not link '{task.title}' to remote task {created.id}: {exc}")

    def sync_completions(self, run: Optional[SyncRun] = None) -> SyncPhaseResult:
        """Propagate completion status in both directions."""
        run = run or self.start_run()
        result = SyncPhaseResult()

        try:
            self.logger.info("Starting completion status sync")
            note = self.notes.ensure_today_note(run.today)
            local_tasks = self.notes.list_tasks(note.path)
            remote_tasks = self._fetch_remote()

            self._complete_local(note.path, local_tasks, remote_tasks, result)
            self._complete_remote(local_tasks, remote_tasks, result)

            self.logger.info(f"Completion sync completed: {result.created} tasks updated")
        except Exception as exc:
            return self._phase_failed("Completion sync failed", exc)

        return result

    def _complete_local(
        self,
        note_path: str,
        local_tasks: List[LocalTask],
        remote_tasks: List[RemoteTask],
        result: SyncPhaseResult,
    ) -> None:
        checked: List[LocalTask] = []
        for remote_task in remote_tasks:
            completion_date = remote_task.completion_date
            if not remote_task.is_completed or completion_date is None:
                continue

            match = self.matcher.find_local_match(
                remote_task, local_tasks, predicate=lambda t: not t.completed and t not in checked
            )
            if match is None:
                continue

            try:
                # Earlier writes in this run may have shifted lines
                fresh = self.notes.list_tasks(note_path)
                current = self.matcher.find_local_match(
                    remote_task, fresh, predicate=lambda t: not t.completed
                )
                if current is None:
                    raise NotFoundError(f"Task line for '{remote_task.title}' is no longer in the note")

                self.notes.mark_completed(note_path, current.line_index, completion_date)
                checked.append(match)
                result.created += 1
                self.logger.info(f"Completed local task: {remote_task.title}")
            except TodoSyncError as exc:
                message = f'Failed to complete local task "{remote_task.title}": {exc}'
                self.logger.error(message)
                result.errors.append(message)

    def _complete_remote(
        self,
        local_tasks: List[LocalTask],
        remote_tasks: List[RemoteTask],
        result: SyncPhaseResult,
    ) -> None:
        completed_ids: Set[str] = set()
        linked_ids = {task.remote_id for task in local_tasks if task.remote_id}
        # Iterates the pre-phase snapshot, so lines checked by _complete_local are skipped
        for local_task in local_tasks:
            if not local_task.completed:
                continue

            match = self.matcher.find_remote_match(
                local_task,
                remote_tasks,
                predicate=lambda t: not t.is_completed and t.id not in completed_ids,
                claimed_ids=linked_ids,
            )
            if match is None:
                continue

            try:
                self.remote.complete_task(match.id)
                completed_ids.add(match.id)
                result.created += 1
                self.logger.info(f"Completed remote task: {local_task.title}")
            except TodoSyncError as exc:
                message = f'Failed to complete remote task "{local_task.title}": {exc}'
                self.logger.error(message)
                result.errors.append(message)

    # ------------------------------------------------------------------
    # Full sync
    # ------------------------------------------------------------------
    def perform_full_sync(self, blocking: bool = True) -> SyncResult:
        """Run all three phases against today's note.

        Only one full sync per note path runs at a time. With
        ``blocking=False`` a sync that finds the note busy returns a
        failed result instead of waiting.
        """
        run = self.start_run()
        lock = _note_lock(run.note_path)

        if not lock.acquire(blocking=blocking):
            message = f"Sync already in progress for {run.note_path}"
            self.logger.warning(message)
            return SyncResult(success=False, errors=[message])

        try:
            self.logger.info(f"Starting full bidirectional sync for {run.note_path}")
            remote_to_local = self.sync_remote_to_local(run)
            local_to_remote = self.sync_local_to_remote(run)
            completions = self.sync_completions(run)
        finally:
            lock.release()

        result = SyncResult.from_phases(remote_to_local, local_to_remote, completions)
        elapsed = (datetime.now(timezone.utc) - run.started_at).total_seconds()
        self.logger.info(
            f"Full sync completed in {elapsed:.1f}s - Success: {result.success}, "
            f"New from remote: {result.new_from_remote}, "
            f"New from local: {result.new_from_local}, "
            f"Completed: {result.completed_count}, "
            f"Errors: {len(result.errors)}"
        )
        return result

    def preview(self) -> SyncPlan:
        """Work out what a full sync would change without applying it.

        Raises:
            TodoSyncError: if either side cannot be read
        """
        run = self.start_run()
        remote_tasks, local_tasks = self._snapshot(run)
        plan = SyncPlan(note_path=run.note_path)

        plan.to_local = self.matcher.find_new_remote(
            [task for task in remote_tasks if task.title.strip()], local_tasks
        )
        plan.to_remote = self.matcher.find_new_local(
            [task for task in local_tasks if not task.completed], remote_tasks
        )

        for remote_task in remote_tasks:
            if not remote_task.is_completed or remote_task.completion_date is None:
                continue
            match = self.matcher.find_local_match(
                remote_task, local_tasks, predicate=lambda t: not t.completed and t not in plan.complete_local
            )
            if match is not None:
                plan.complete_local.append(match)

        linked_ids = {task.remote_id for task in local_tasks if task.remote_id}
        for local_task in local_tasks:
            if not local_task.completed:
                continue
            match = self.matcher.find_remote_match(
                local_task,
                remote_tasks,
                predicate=lambda t: not t.is_completed and t not in plan.complete_remote,
                claimed_ids=linked_ids,
            )
            if match is not None:
                plan.complete_remote.append(match)

        return plan

    def _snapshot(self, run: SyncRun) -> Tuple[List[RemoteTask], List[LocalTask]]:
        remote_tasks = self._fetch_remote()
        try:
            local_tasks = self.notes.list_tasks(run.note_path)
        except NotFoundError:
            self.logger.debug(f"Today's note does not exist yet: {run.note_path}")
            local_tasks = []
        return remote_tasks, local_tasks
