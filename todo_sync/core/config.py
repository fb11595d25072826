"""
Configuration management for todo-sync.
"""

import os
from pathlib import Path
from typing import Optional

from .models import SyncConfig
from .paths import get_path_manager


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    return get_path_manager().config_path


def load_config(config_path: Optional[str] = None, apply_env: bool = True) -> SyncConfig:
    """
    Load configuration from file or return defaults.

    Args:
        config_path: Optional path to config file. Uses default if not provided.
        apply_env: Whether TODO_SYNC_* environment variables override file values.

    Returns:
        SyncConfig object
    """
    if config_path is None:
        config_path = str(get_default_config_path())

    config = SyncConfig.load_from_file(config_path)
    if apply_env:
        config.apply_env_overrides()
    return config


def save_config(config: SyncConfig, config_path: Optional[str] = None):
    """
    Save configuration to file.

    Args:
        config: SyncConfig object to save
        config_path: Optional path to save to. Uses default if not provided.
    """
    if config_path is None:
        manager = get_path_manager()
        manager.ensure_directories()
        config_path = str(manager.config_path)

    config_dir = os.path.dirname(os.path.abspath(os.path.expanduser(config_path)))
    os.makedirs(config_dir, exist_ok=True)

    config.save_to_file(config_path)


def get_log_dir() -> Path:
    """Get the log directory."""
    manager = get_path_manager()
    manager.ensure_directories()
    return manager.log_dir
