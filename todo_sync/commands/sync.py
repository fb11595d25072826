"""Sync command - synchronize the remote list with today's daily note."""

import json
import logging
from typing import Optional

from ..core.exceptions import TodoSyncError
from ..core.models import SyncConfig, SyncPhaseResult, SyncPlan, SyncResult
from ..obsidian.daily_note import DailyNoteManager
from ..sync.engine import SyncEngine
from ..todo.client import TodoClient


PHASES = ("remote-to-local", "local-to-remote", "completions")


def build_client(config: SyncConfig, logger: Optional[logging.Logger] = None) -> TodoClient:
    """Create a client bound to the configured task list."""
    client = TodoClient.from_config(config, logger=logger)
    if not client.list_id:
        client.get_or_create_task_list(config.list_name)
    return client


def build_engine(config: SyncConfig, logger: Optional[logging.Logger] = None) -> SyncEngine:
    config.validate_for_sync()
    return SyncEngine(
        remote=build_client(config, logger=logger),
        notes=DailyNoteManager.from_config(config, logger=logger),
        logger=logger,
    )


class SyncCommand:
    """Command for synchronizing tasks between Microsoft To Do and the daily note."""

    def __init__(self, config: SyncConfig, verbose: bool = False):
        self.config = config
        self.verbose = verbose
        self.logger = logging.getLogger(__name__)

    def run(
        self,
        phase: Optional[str] = None,
        dry_run: bool = False,
        wait: bool = True,
        as_json: bool = False,
    ) -> bool:
        """Run the sync command.

        Returns True when every requested step finished without errors.
        """
        try:
            engine = build_engine(self.config)
            if dry_run:
                plan = engine.preview()
                self._print_plan(plan, as_json)
                return True
        except TodoSyncError as exc:
            self.logger.debug("Sync setup failed", exc_info=True)
            print(f"Error: {exc}")
            return False

        if phase:
            phase_result = self._run_phase(engine, phase)
            self._print_phase(phase, phase_result, as_json)
            return phase_result.ok

        result = engine.perform_full_sync(blocking=wait)
        self._print_result(result, as_json)
        return result.success

    def _run_phase(self, engine: SyncEngine, phase: str) -> SyncPhaseResult:
        if phase == "remote-to-local":
            return engine.sync_remote_to_local()
        if phase == "local-to-remote":
            return engine.sync_local_to_remote()
        if phase == "completions":
            return engine.sync_completions()
        raise ValueError(f"Unknown sync phase: {phase}")

    def _print_plan(self, plan: SyncPlan, as_json: bool) -> None:
        if as_json:
            print(json.dumps(plan.to_dict(), indent=2, ensure_ascii=False))
            return

        print(f"\nSync Preview for {plan.note_path}:")
        if plan.is_empty:
            print("\nNo changes needed - everything is in sync!")
            return

        sections = (
            ("📥 Tasks to add to the daily note", plan.to_local),
            ("📤 Tasks to create in Microsoft To Do", plan.to_remote),
            ("✅ Note tasks to mark completed", plan.complete_local),
            ("✅ Remote tasks to mark completed", plan.complete_remote),
        )
        for heading, tasks in sections:
            if not tasks:
                continue
            print(f"\n{heading}:")
            for task in tasks:
                print(f"  • {task.title}")

        print("\n💡 This was a dry run. Run without --dry-run to apply changes.")

    def _print_phase(self, phase: str, result: SyncPhaseResult, as_json: bool) -> None:
        if as_json:
            payload = {"phase": phase, "success": result.ok, "count": result.created, "errors": result.errors}
            print(json.dumps(payload, indent=2, ensure_ascii=False))
            return

        status = "✅" if result.ok else "⚠️ "
        print(f"\n{status} {phase}: {result.created} task(s) changed")
        self._print_errors(result.errors)

    def _print_result(self, result: SyncResult, as_json: bool) -> None:
        if as_json:
            print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
            return

        print("\n🔄 Sync Summary")
        print(f"  New from Microsoft To Do: {result.new_from_remote}")
        print(f"  New from daily note: {result.new_from_local}")
        print(f"  Completions synced: {result.completed_count}")
        self._print_errors(result.errors)

        if result.success:
            print("\n✅ Sync completed")
        else:
            print("\n⚠️  Sync finished with errors. Check the output above.")

    def _print_errors(self, errors) -> None:
        if not errors:
            return
        print(f"\nErrors ({len(errors)}):")
        for error in errors:
            print(f"  ❌ {error}")
