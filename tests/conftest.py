#!/usr/bin/env python3
"""
Global pytest configuration and fixtures.

This module provides:
- Isolation of the todo-sync working directory per test
- Temp vault and daily note fixtures
- A fixed "today" for daily note paths
"""

import os
import shutil
import sys
import tempfile
from typing import Generator

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from todo_sync.core.paths import reset_path_manager
from todo_sync.obsidian.daily_note import DailyNoteManager
from tests.helpers import TODAY


def pytest_configure(config):
    """Configure pytest environment."""
    config.addinivalue_line("markers", "e2e: end-to-end flow against a temp vault and a fake remote")


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point TODO_SYNC_HOME at a temp dir and keep real credentials out."""
    home = tmp_path / "todo-sync-home"
    monkeypatch.setenv("TODO_SYNC_HOME", str(home))
    monkeypatch.delenv("TODO_SYNC_ACCESS_TOKEN", raising=False)
    monkeypatch.delenv("TODO_SYNC_VAULT_PATH", raising=False)
    reset_path_manager()
    yield home
    reset_path_manager()


@pytest.fixture
def temp_dir() -> Generator[str, None, None]:
    """Create a temporary directory for test isolation."""
    temp_path = tempfile.mkdtemp(prefix="todo_sync_test_")
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def vault_path(temp_dir: str) -> str:
    """Create an empty vault with a daily notes folder."""
    path = os.path.join(temp_dir, "vault")
    os.makedirs(os.path.join(path, "Daily Notes"))
    return path


@pytest.fixture
def note_manager(vault_path: str) -> DailyNoteManager:
    """Daily note manager pinned to TODAY."""
    return DailyNoteManager(vault_path, clock=lambda: TODAY)


@pytest.fixture
def write_note(note_manager: DailyNoteManager):
    """Write today's daily note and return its path."""

    def _write(content: str) -> str:
        path = note_manager.get_today_path()
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as handle:
            handle.write(content)
        return path

    return _write
