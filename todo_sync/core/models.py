"""
Domain models for todo-sync.

This module contains the core data structures shared by the remote client,
the daily note manager and the sync engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
import json
import os

import jsonschema

from .exceptions import ConfigurationError
from ..utils.date import parse_datetime


def _normalize_path(path: str) -> str:
    """Expand user and convert to absolute path."""
    return os.path.abspath(os.path.expanduser(path))


class TaskStatus(Enum):
    """Remote task status, using the Graph wire values."""

    NOT_STARTED = "notStarted"
    IN_PROGRESS = "inProgress"
    COMPLETED = "completed"

    @classmethod
    def from_value(cls, value: Optional[str]) -> TaskStatus:
        try:
            return cls(value)
        except ValueError:
            return cls.NOT_STARTED


def _graph_datetime(value: Any) -> Optional[datetime]:
    # dateTimeTimeZone objects carry the timestamp under "dateTime"
    if isinstance(value, dict):
        value = value.get("dateTime")
    return parse_datetime(value)


@dataclass
class RemoteTask:
    """Represents a task in the remote task list."""

    id: str
    title: str
    status: TaskStatus = TaskStatus.NOT_STARTED
    created_at: Optional[datetime] = None
    start_at: Optional[datetime] = None
    due_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    body: Optional[str] = None

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    @property
    def completion_date(self) -> Optional[date]:
        """Date portion of the completion timestamp, in UTC."""
        if self.completed_at is None:
            return None
        return self.completed_at.astimezone(timezone.utc).date()

    @classmethod
    def from_graph(cls, data: Dict[str, Any]) -> RemoteTask:
        """Build a task from a Graph ``todoTask`` payload."""
        body = data.get("body")
        if isinstance(body, dict):
            body = body.get("content") or None

        return cls(
            id=data.get("id", ""),
            title=data.get("title") or "",
            status=TaskStatus.from_value(data.get("status")),
            created_at=_graph_datetime(data.get("createdDateTime")),
            start_at=_graph_datetime(data.get("startDateTime")),
            due_at=_graph_datetime(data.get("dueDateTime")),
            completed_at=_graph_datetime(data.get("completedDateTime")),
            body=body,
        )


@dataclass
class LocalTask:
    """Represents a checkbox line parsed from the daily note.

    ``line_index`` is 0-based and only valid against the snapshot of the
    file it was parsed from.
    """

    title: str
    completed: bool
    line_index: int
    completion_date: Optional[date] = None
    remote_id: Optional[str] = None
    raw_line: str = ""


@dataclass
class NoteHandle:
    """Today's note as returned by ``ensure_today_note``."""

    path: str
    created: bool = False


@dataclass
class SyncPhaseResult:
    """Outcome of one sync phase."""

    created: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass
class SyncResult:
    """Outcome of a full sync across all three phases."""

    success: bool
    new_from_remote: int = 0
    new_from_local: int = 0
    completed_count: int = 0
    errors: List[str] = field(default_factory=list)

    @classmethod
    def from_phases(
        cls,
        remote_to_local: SyncPhaseResult,
        local_to_remote: SyncPhaseResult,
        completions: SyncPhaseResult,
    ) -> SyncResult:
        errors = remote_to_local.errors + local_to_remote.errors + completions.errors
        return cls(
            success=len(errors) == 0,
            new_from_remote=remote_to_local.created,
            new_from_local=local_to_remote.created,
            completed_count=completions.created,
            errors=errors,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "new_from_remote": self.new_from_remote,
            "new_from_local": self.new_from_local,
            "completed_count": self.completed_count,
            "errors": list(self.errors),
        }


@dataclass
class SyncPlan:
    """What a full sync would change, computed without mutating anything."""

    note_path: str
    to_local: List[RemoteTask] = field(default_factory=list)
    to_remote: List[LocalTask] = field(default_factory=list)
    complete_local: List[LocalTask] = field(default_factory=list)
    complete_remote: List[RemoteTask] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.to_local or self.to_remote or self.complete_local or self.complete_remote)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "note_path": self.note_path,
            "to_local": [task.title for task in self.to_local],
            "to_remote": [task.title for task in self.to_remote],
            "complete_local": [task.title for task in self.complete_local],
            "complete_remote": [task.title for task in self.complete_remote],
        }


CONFIG_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "vault_path": {"type": ["string", "null"]},
        "daily_note_dir": {"type": "string"},
        "date_format": {"type": "string", "minLength": 1},
        "todo_section_header": {"type": "string", "minLength": 1},
        "list_name": {"type": "string", "minLength": 1},
        "list_id": {"type": ["string", "null"]},
        "access_token": {"type": ["string", "null"]},
        "graph_base_url": {"type": "string", "minLength": 1},
        "request_timeout": {"type": "number", "exclusiveMinimum": 0},
        "log_level": {"enum": ["debug", "info", "warning", "error"]},
    },
    "additionalProperties": False,
}


@dataclass
class SyncConfig:
    """Configuration for sync operations."""

    vault_path: Optional[str] = None
    daily_note_dir: str = "Daily Notes"
    date_format: str = "%Y-%m-%d"
    todo_section_header: str = "## ToDo"
    list_name: str = "Obsidian Tasks"
    list_id: Optional[str] = None
    access_token: Optional[str] = None
    graph_base_url: str = "https://graph.microsoft.com/v1.0"
    request_timeout: float = 30.0
    log_level: str = "info"

    def __post_init__(self) -> None:
        if self.vault_path:
            self.vault_path = _normalize_path(self.vault_path)

    # ------------------------------------------------------------------
    # Convenience helpers
    # ------------------------------------------------------------------
    @property
    def has_vault(self) -> bool:
        return bool(self.vault_path)

    @property
    def has_token(self) -> bool:
        return bool(self.access_token and self.access_token.strip())

    def validate_for_sync(self) -> None:
        """Raise ConfigurationError if a sync cannot run with this config."""
        missing = []
        if not self.has_vault:
            missing.append("vault_path")
        if not self.has_token:
            missing.append("access_token")
        if missing:
            raise ConfigurationError(
                f"Missing required setting(s): {', '.join(missing)}. "
                "Use 'todo-sync config --set KEY=VALUE' or the TODO_SYNC_* environment variables."
            )

    def apply_env_overrides(self, environ: Optional[Dict[str, str]] = None) -> None:
        env = os.environ if environ is None else environ
        token = env.get("TODO_SYNC_ACCESS_TOKEN")
        if token:
            self.access_token = token
        vault = env.get("TODO_SYNC_VAULT_PATH")
        if vault:
            self.vault_path = _normalize_path(vault)

    # ------------------------------------------------------------------
    # Persistence helpers
    # ------------------------------------------------------------------
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SyncConfig:
        try:
            jsonschema.validate(instance=data, schema=CONFIG_SCHEMA)
        except jsonschema.ValidationError as exc:
            location = ".".join(str(part) for part in exc.absolute_path) or "<root>"
            raise ConfigurationError(f"Invalid configuration at {location}: {exc.message}") from exc
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "vault_path": self.vault_path,
            "daily_note_dir": self.daily_note_dir,
            "date_format": self.date_format,
            "todo_section_header": self.todo_section_header,
            "list_name": self.list_name,
            "list_id": self.list_id,
            "access_token": self.access_token,
            "graph_base_url": self.graph_base_url,
            "request_timeout": self.request_timeout,
            "log_level": self.log_level,
        }

    @classmethod
    def load_from_file(cls, config_path: str) -> SyncConfig:
        config_path = _normalize_path(config_path)
        if not os.path.exists(config_path):
            return cls()

        try:
            with open(config_path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Config file {config_path} is not valid JSON: {exc}") from exc
        except OSError as exc:
            raise ConfigurationError(f"Cannot read config file {config_path}: {exc}") from exc

        return cls.from_dict(data)

    def save_to_file(self, config_path: str) -> None:
        config_path = _normalize_path(config_path)
        os.makedirs(os.path.dirname(config_path), exist_ok=True)

        with open(config_path, "w", encoding="utf-8") as handle:
            json.dump(self.to_dict(), handle, indent=2, ensure_ascii=False)
