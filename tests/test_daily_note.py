#!/usr/bin/env python3
"""Tests for DailyNoteManager."""

import os
from datetime import date, datetime, timedelta, timezone

import pytest

from todo_sync.core.exceptions import FileIOError, NotFoundError
from todo_sync.core.models import SyncConfig
from todo_sync.obsidian.daily_note import DailyNoteManager

from tests.helpers import TODAY, read_note


def test_today_path_uses_date_format(vault_path):
    manager = DailyNoteManager(vault_path, date_format="%d.%m.%Y", clock=lambda: TODAY)

    assert manager.get_today_path() == os.path.join(vault_path, "Daily Notes", "15.03.2024.md")
    assert manager.get_today_path(date(2024, 1, 2)).endswith("02.01.2024.md")


def test_from_config(vault_path):
    config = SyncConfig(vault_path=vault_path, daily_note_dir="Journal", todo_section_header="## Tasks")

    manager = DailyNoteManager.from_config(config)

    assert manager.vault_path == vault_path
    assert manager.daily_note_dir == "Journal"
    assert manager.todo_section_header == "## Tasks"


def test_ensure_today_note_creates_template_once(note_manager, temp_dir):
    manager = DailyNoteManager(os.path.join(temp_dir, "fresh-vault"), clock=lambda: TODAY)

    first = manager.ensure_today_note()
    second = manager.ensure_today_note()

    assert first.created is True
    assert second.created is False
    assert first.path == second.path
    assert read_note(first.path) == "# 2024-03-15\n\n## ToDo\n\n"


def test_list_tasks_reports_zero_based_lines(note_manager, write_note):
    path = write_note(
        "# 2024-03-15\n"
        "\n"
        "## ToDo\n"
        "- [ ] First\n"
        "  - [x] Nested done [completion:: 2024-03-14]\n"
        "- [ ]\n"
        "* [ ] Linked [todo-id:: abc]\n"
    )

    tasks = note_manager.list_tasks(path)

    assert [(t.title, t.completed, t.line_index) for t in tasks] == [
        ("First", False, 3),
        ("Nested done", True, 4),
        ("Linked", False, 6),
    ]
    assert tasks[1].completion_date == date(2024, 3, 14)
    assert tasks[2].remote_id == "abc"


def test_list_tasks_missing_note(note_manager):
    with pytest.raises(NotFoundError):
        note_manager.list_tasks(note_manager.get_today_path())


def test_append_task_inserts_at_end_of_section(note_manager, write_note):
    path = write_note("# Day\n\n## ToDo\n- [ ] One\n\n## Notes\nText\n")

    note_manager.append_task(path, "Two", remote_id="r2")

    assert read_note(path) == "# Day\n\n## ToDo\n- [ ] One\n- [ ] Two [todo-id:: r2]\n\n## Notes\nText\n"


def test_append_task_into_empty_section(note_manager, write_note):
    path = write_note("# Day\n\n## ToDo\n\n")

    note_manager.append_task(path, "Only")

    assert read_note(path) == "# Day\n\n## ToDo\n- [ ] Only\n\n"


def test_append_task_adds_missing_section(note_manager, write_note):
    path = write_note("# Day\nSome journal text\n")

    note_manager.append_task(path, "New task")

    assert read_note(path) == "# Day\nSome journal text\n\n## ToDo\n- [ ] New task\n"


def test_append_task_section_survives_tag_lines(note_manager, write_note):
    path = write_note("# Day\n\n## ToDo\n#work\n- [ ] One\n\n## Notes\n")

    note_manager.append_task(path, "Two")

    assert read_note(path) == "# Day\n\n## ToDo\n#work\n- [ ] One\n- [ ] Two\n\n## Notes\n"


def test_append_task_flattens_multiline_title(note_manager, write_note):
    path = write_note("## ToDo\n- [ ] One\n")

    note_manager.append_task(path, "Call\nthe   bank", remote_id="r3")

    assert read_note(path) == "## ToDo\n- [ ] One\n- [ ] Call the bank [todo-id:: r3]\n"


def test_mark_completed_rewrites_line(note_manager, write_note):
    path = write_note("## ToDo\n- [ ] Task A [todo-id:: r1]\n")

    note_manager.mark_completed(path, 1, date(2024, 3, 2))

    assert read_note(path) == "## ToDo\n- [x] Task A [todo-id:: r1] [completion:: 2024-03-02]\n"


@pytest.mark.parametrize("line_index", [0, 5, -1])
def test_mark_completed_rejects_bad_lines(note_manager, write_note, line_index):
    path = write_note("## ToDo\n- [ ] Task A\n")

    with pytest.raises(NotFoundError):
        note_manager.mark_completed(path, line_index, date(2024, 3, 2))

    assert read_note(path) == "## ToDo\n- [ ] Task A\n"


def test_annotate_remote_id(note_manager, write_note):
    path = write_note("## ToDo\n- [ ] Task A\n")

    note_manager.annotate_remote_id(path, 1, "r7")

    assert note_manager.list_tasks(path)[0].remote_id == "r7"


def test_get_note_modified_date(note_manager, write_note):
    path = write_note("## ToDo\n")
    stamp = datetime(2024, 2, 29, 18, 45, tzinfo=timezone.utc).timestamp()
    os.utime(path, (stamp, stamp))

    assert note_manager.get_note_modified_date(path) == date(2024, 2, 29)


def test_get_note_modified_date_is_utc(note_manager, write_note):
    path = write_note("## ToDo\n")
    stamp = datetime(2024, 3, 1, 0, 30, tzinfo=timezone(timedelta(hours=5))).timestamp()
    os.utime(path, (stamp, stamp))

    assert note_manager.get_note_modified_date(path) == date(2024, 2, 29)


def test_get_note_modified_date_missing(note_manager):
    with pytest.raises(NotFoundError):
        note_manager.get_note_modified_date(note_manager.get_today_path())


def test_unreadable_note_raises_file_error(note_manager, write_note):
    path = write_note("")
    with open(path, "wb") as handle:
        handle.write(b"\xff\xfe\x00bad")

    with pytest.raises(FileIOError):
        note_manager.list_tasks(path)
