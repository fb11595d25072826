"""Config command - show and edit the JSON configuration."""

import json
import logging
from dataclasses import fields
from typing import Any, Dict, List, Optional, Tuple

from ..core.config import save_config
from ..core.exceptions import ConfigurationError
from ..core.models import SyncConfig


NULLABLE_KEYS = {"vault_path", "list_id", "access_token"}
FLOAT_KEYS = {"request_timeout"}
SECRET_KEYS = {"access_token"}


def parse_assignment(assignment: str) -> Tuple[str, Any]:
    """Split ``KEY=VALUE`` and coerce the value for its field.

    Raises:
        ConfigurationError: for a malformed assignment or an unknown key
    """
    if "=" not in assignment:
        raise ConfigurationError(f"Expected KEY=VALUE, got '{assignment}'")

    key, value = assignment.split("=", 1)
    key = key.strip()
    known = {f.name for f in fields(SyncConfig)}
    if key not in known:
        raise ConfigurationError(f"Unknown configuration key: {key}. Valid keys: {', '.join(sorted(known))}")

    if key in NULLABLE_KEYS and value.strip().lower() in ("", "none", "null"):
        return key, None
    if key in FLOAT_KEYS:
        try:
            return key, float(value)
        except ValueError as exc:
            raise ConfigurationError(f"{key} must be a number, got '{value}'") from exc
    return key, value


def redacted(config: SyncConfig) -> Dict[str, Any]:
    data = config.to_dict()
    for key in SECRET_KEYS:
        if data.get(key):
            data[key] = "********"
    return data


class ConfigCommand:
    """Command for viewing and updating settings."""

    def __init__(self, config: SyncConfig, config_path: Optional[str] = None, verbose: bool = False):
        self.config = config
        self.config_path = config_path
        self.verbose = verbose
        self.logger = logging.getLogger(__name__)

    def run(self, assignments: Optional[List[str]] = None, show: bool = False) -> bool:
        if assignments:
            try:
                self.config = self._apply(assignments)
                save_config(self.config, self.config_path)
            except ConfigurationError as exc:
                print(f"Error: {exc}")
                return False
            except OSError as exc:
                print(f"Error: could not save configuration: {exc}")
                return False
            print(f"✅ Updated {len(assignments)} setting(s)")

        if show or not assignments:
            print(json.dumps(redacted(self.config), indent=2, ensure_ascii=False))

        return True

    def _apply(self, assignments: List[str]) -> SyncConfig:
        data = self.config.to_dict()
        for assignment in assignments:
            key, value = parse_assignment(assignment)
            data[key] = value
            self.logger.debug(f"Setting {key}")
        # Re-validate the merged settings as a whole
        return SyncConfig.from_dict(data)
