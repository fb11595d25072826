"""Status command - show configuration and connection state."""

import logging
import os

from ..core.exceptions import TodoSyncError
from ..core.models import SyncConfig
from ..obsidian.daily_note import DailyNoteManager
from .sync import build_client


class StatusCommand:
    """Shows what a sync would operate on."""

    def __init__(self, config: SyncConfig, verbose: bool = False):
        self.config = config
        self.verbose = verbose
        self.logger = logging.getLogger(__name__)

    def run(self) -> bool:
        ok = True

        print("\n📋 Configuration")
        print(f"  Vault: {self.config.vault_path or '(not set)'}")
        print(f"  Daily notes folder: {self.config.daily_note_dir}")
        print(f"  To Do list: {self.config.list_name}")
        print(f"  Access token: {'set' if self.config.has_token else '(not set)'}")

        if self.config.has_vault:
            ok = self._show_note() and ok
        else:
            print("\n⚠️  No vault configured. Run 'todo-sync config --set vault_path=PATH'.")
            ok = False

        if self.config.has_token:
            ok = self._show_remote() and ok
        else:
            print("\n⚠️  No access token. Set TODO_SYNC_ACCESS_TOKEN or 'todo-sync config --set access_token=...'.")
            ok = False

        return ok

    def _show_note(self) -> bool:
        notes = DailyNoteManager.from_config(self.config)
        note_path = notes.get_today_path()

        print("\n📝 Today's note")
        print(f"  Path: {note_path}")
        if not os.path.exists(note_path):
            print("  Not created yet (the next sync will create it)")
            return True

        try:
            tasks = notes.list_tasks(note_path)
        except TodoSyncError as exc:
            print(f"  ❌ Cannot read note: {exc}")
            return False

        done = sum(1 for task in tasks if task.completed)
        linked = sum(1 for task in tasks if task.remote_id)
        print(f"  Tasks: {len(tasks)} ({len(tasks) - done} open, {done} completed, {linked} linked)")
        return True

    def _show_remote(self) -> bool:
        print("\n☁️  Microsoft To Do")
        try:
            client = build_client(self.config)
            user = client.get_user_info()
        except TodoSyncError as exc:
            self.logger.debug("Remote status check failed", exc_info=True)
            print(f"  ❌ {exc}")
            return False

        print(f"  Signed in as: {user['display_name']} <{user['email']}>")
        print(f"  List ID: {client.list_id}")
        return True
