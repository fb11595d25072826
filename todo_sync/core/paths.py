"""
Centralized path management for todo-sync.

All configuration and log locations are resolved here so the CLI, the
config loader and the logging setup agree on one working directory.
"""

import os
from pathlib import Path
from typing import Optional
import logging


class PathManager:
    """Manages todo-sync file paths."""

    WORKING_DIR_NAME = ".todo-sync"
    CONFIG_FILE = "config.json"

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self._working_dir: Optional[Path] = None

    @property
    def working_dir(self) -> Path:
        """
        Get the working directory for todo-sync data.

        Priority order:
        1. TODO_SYNC_HOME environment variable (explicit override)
        2. ~/.todo-sync
        """
        if self._working_dir is not None:
            return self._working_dir

        env_override = os.environ.get("TODO_SYNC_HOME")
        if env_override:
            env_path = Path(env_override).expanduser().resolve()
            self.logger.debug(f"Using TODO_SYNC_HOME override: {env_path}")
            self._working_dir = env_path
        else:
            self._working_dir = Path.home() / self.WORKING_DIR_NAME

        return self._working_dir

    def ensure_directories(self) -> None:
        """Create the working and log directories if they are missing."""
        for directory in (self.working_dir, self.log_dir):
            directory.mkdir(parents=True, exist_ok=True)
            self.logger.debug(f"Ensured directory exists: {directory}")

    @property
    def log_dir(self) -> Path:
        """Get the log directory."""
        return self.working_dir / "logs"

    @property
    def config_path(self) -> Path:
        """Get the configuration file path."""
        return self.working_dir / self.CONFIG_FILE


_path_manager = None


def get_path_manager() -> PathManager:
    """Get the global PathManager instance."""
    global _path_manager
    if _path_manager is None:
        _path_manager = PathManager()
    return _path_manager


def reset_path_manager() -> None:
    """Drop the cached PathManager so TODO_SYNC_HOME is re-read."""
    global _path_manager
    _path_manager = None
