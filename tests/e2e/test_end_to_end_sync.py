#!/usr/bin/env python3
"""
End-to-end sync flows: real DailyNoteManager on a temp vault, fake remote.
"""

import os
import threading
from datetime import datetime, timezone

import pytest

from todo_sync.obsidian.daily_note import DailyNoteManager
from todo_sync.sync.engine import SyncEngine, _note_lock

from tests.e2e.fake_todo_client import FakeTodoClient
from tests.helpers import TODAY, read_note


@pytest.fixture
def fake():
    return FakeTodoClient()


@pytest.fixture
def engine(fake, note_manager):
    return SyncEngine(remote=fake, notes=note_manager)


@pytest.mark.e2e
def test_empty_sync_creates_note_and_reports_nothing(engine, note_manager):
    result = engine.perform_full_sync()

    assert result.to_dict() == {
        "success": True,
        "new_from_remote": 0,
        "new_from_local": 0,
        "completed_count": 0,
        "errors": [],
    }
    path = note_manager.get_today_path()
    assert read_note(path) == "# 2024-03-15\n\n## ToDo\n\n"


@pytest.mark.e2e
def test_remote_task_lands_in_note_with_id(engine, fake, note_manager):
    task = fake.seed("Buy milk")

    phase = engine.sync_remote_to_local()

    assert phase.created == 1
    assert phase.errors == []
    content = read_note(note_manager.get_today_path())
    assert f"- [ ] Buy milk [todo-id:: {task.id}]" in content


@pytest.mark.e2e
def test_remote_to_local_is_idempotent(engine, fake):
    fake.seed("Buy milk")
    fake.seed("Walk dog")

    first = engine.sync_remote_to_local()
    second = engine.sync_remote_to_local()

    assert first.created == 2
    assert second.created == 0
    assert second.errors == []


@pytest.mark.e2e
def test_local_task_created_remotely_and_linked(engine, fake, write_note, note_manager):
    path = write_note("# 2024-03-15\n\n## ToDo\n- [ ] Write report\n")
    mtime = datetime(2024, 3, 10, 12, 0).timestamp()
    os.utime(path, (mtime, mtime))

    phase = engine.sync_local_to_remote()

    assert phase.created == 1
    assert fake.titles() == ["Write report"]
    (task_id,) = fake.created_start_dates
    assert fake.created_start_dates[task_id] == datetime.fromtimestamp(mtime, timezone.utc).date()

    tasks = note_manager.list_tasks(path)
    assert tasks[0].remote_id == task_id
    assert tasks[0].title == "Write report"


@pytest.mark.e2e
def test_completed_remote_task_checks_local_line(engine, fake, write_note):
    path = write_note("# 2024-03-15\n\n## ToDo\n- [ ] Task A\n")
    fake.seed("Task A", completed_at=datetime(2024, 3, 2, 0, 0, tzinfo=timezone.utc))

    phase = engine.sync_completions()

    assert phase.created == 1
    assert "- [x] Task A [completion:: 2024-03-02]" in read_note(path)


@pytest.mark.e2e
def test_completed_local_task_completes_remote(engine, fake, write_note):
    write_note("## ToDo\n- [x] Task B [completion:: 2024-03-14]\n")
    task = fake.seed("task b")

    phase = engine.sync_completions()

    assert phase.created == 1
    assert fake.get(task.id).is_completed


@pytest.mark.e2e
def test_full_sync_round_trip_then_steady_state(engine, fake, write_note, note_manager):
    write_note("# 2024-03-15\n\n## ToDo\n- [ ] Local only\n- [x] Done locally\n\n## Notes\nSome text\n")
    fake.seed("Remote only")
    fake.seed("Done locally")
    fake.seed("Done remotely", completed_at=datetime(2024, 3, 14, 23, 30, tzinfo=timezone.utc))

    result = engine.perform_full_sync()

    assert result.success, result.errors
    assert result.new_from_remote == 2  # "Remote only" and "Done remotely"
    assert result.new_from_local == 1
    assert result.completed_count == 2

    content = read_note(note_manager.get_today_path())
    assert content.index("Remote only") < content.index("## Notes")
    assert "- [x] Done remotely" in content
    assert "[completion:: 2024-03-14]" in content
    assert sorted(fake.titles()) == ["Done locally", "Done remotely", "Local only", "Remote only"]

    again = engine.perform_full_sync()
    assert again.to_dict() == {
        "success": True,
        "new_from_remote": 0,
        "new_from_local": 0,
        "completed_count": 0,
        "errors": [],
    }


@pytest.mark.e2e
def test_renamed_remote_task_stays_linked_by_id(engine, fake, write_note, note_manager):
    task = fake.seed("Old name")
    engine.sync_remote_to_local()

    fake.get(task.id).title = "New name"
    fake.remote_complete(task.id, datetime(2024, 3, 15, 8, 0, tzinfo=timezone.utc))

    result = engine.perform_full_sync()

    # Linked by id: no duplicate line, and the completion lands on the old line
    assert result.new_from_remote == 0
    assert result.new_from_local == 0
    assert result.completed_count == 1
    tasks = note_manager.list_tasks(note_manager.get_today_path())
    assert [t.title for t in tasks] == ["Old name"]
    assert tasks[0].completed


@pytest.mark.e2e
def test_linked_completion_leaves_same_titled_task_open(engine, fake, write_note):
    done = fake.seed("Call mom", completed_at=datetime(2024, 3, 14, 9, 0, tzinfo=timezone.utc))
    still_open = fake.seed("Call mom")
    path = write_note(f"## ToDo\n- [x] Call mom [completion:: 2024-03-14] [todo-id:: {done.id}]\n")

    phase = engine.sync_completions()

    assert phase.created == 0
    assert phase.errors == []
    assert not fake.get(still_open.id).is_completed
    assert read_note(path).count("- [x]") == 1


@pytest.mark.e2e
def test_lines_linked_to_same_titled_tasks_stay_independent(engine, fake, write_note):
    done = fake.seed("Call mom", completed_at=datetime(2024, 3, 14, 9, 0, tzinfo=timezone.utc))
    still_open = fake.seed("Call mom")
    path = write_note(
        "## ToDo\n"
        f"- [x] Call mom [completion:: 2024-03-14] [todo-id:: {done.id}]\n"
        f"- [ ] Call mom [todo-id:: {still_open.id}]\n"
    )

    phase = engine.sync_completions()

    assert phase.created == 0
    assert not fake.get(still_open.id).is_completed
    assert f"- [ ] Call mom [todo-id:: {still_open.id}]" in read_note(path)


@pytest.mark.e2e
def test_partial_failure_keeps_successful_items(engine, fake, write_note):
    write_note("## ToDo\n- [ ] Task X\n- [ ] Task Y\n")
    fake.fail_create_titles.add("Task X")

    result = engine.perform_full_sync()

    assert result.success is False
    assert result.new_from_local == 1
    assert fake.titles() == ["Task Y"]
    assert len(result.errors) == 1
    assert 'Failed to create task "Task X"' in result.errors[0]


@pytest.mark.e2e
def test_unreachable_remote_reports_each_phase(engine, fake, write_note):
    write_note("## ToDo\n- [ ] Task X\n")
    fake.fail_list = True

    result = engine.perform_full_sync()

    assert result.success is False
    assert [error.split(":")[0] for error in result.errors] == [
        "Remote to local sync failed",
        "Local to remote sync failed",
        "Completion sync failed",
    ]


@pytest.mark.e2e
def test_concurrent_sync_rejected_without_wait(engine, note_manager):
    lock = _note_lock(note_manager.get_today_path())
    assert lock.acquire(blocking=False)
    try:
        result = engine.perform_full_sync(blocking=False)
    finally:
        lock.release()

    assert result.success is False
    assert result.errors == [f"Sync already in progress for {note_manager.get_today_path()}"]


@pytest.mark.e2e
def test_concurrent_syncs_serialize_when_waiting(fake, vault_path):
    fake.seed("Shared task")
    results = []

    def run():
        notes = DailyNoteManager(vault_path, clock=lambda: TODAY)
        results.append(SyncEngine(remote=fake, notes=notes).perform_full_sync())

    threads = [threading.Thread(target=run) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert all(r.success for r in results)
    assert sorted(r.new_from_remote for r in results) == [0, 1]
    notes = DailyNoteManager(vault_path, clock=lambda: TODAY)
    assert read_note(notes.get_today_path()).count("Shared task") == 1
