"""Logging configuration for the todo-sync CLI."""

import logging
import sys
from pathlib import Path
from typing import Optional, Union


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}
NOISY_LIBRARIES = ("urllib3", "requests")


def resolve_level(name: Optional[str], default: int = logging.INFO) -> int:
    if not name:
        return default
    return LOG_LEVELS.get(name.lower(), default)


def setup_logging(
    level: int = logging.INFO,
    log_dir: Optional[Union[str, Path]] = None,
    log_file: str = "todo-sync.log",
) -> None:
    """
    Configure the root logger.

    Console output goes to stderr at ``level``. When ``log_dir`` is given a
    file handler records everything at DEBUG for later troubleshooting.
    Call this once, early, from the CLI entry point.
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    for handler in list(root.handlers):
        root.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(str(log_dir / log_file), encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    for name in NOISY_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)
