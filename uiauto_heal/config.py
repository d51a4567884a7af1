# uiauto_heal/config.py
"""
@file config.py
@brief Settings for catalog/history locations and engine behaviour.
"""

from __future__ import annotations
import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import yaml
from jsonschema import Draft202012Validator

from .actionlogger import ACTION_LOGGER
from .exceptions import ConfigError

SCHEMA_PATH = os.path.join(os.path.dirname(__file__), "schemas", "healing_config.schema.json")

DEFAULT_LOCATORS_DIR = os.path.join("src", "main", "resources", "locators")
DEFAULT_HISTORY_FILE = os.path.join("logs", "healing", "healing-history.properties")
DEFAULT_EVENTS_FILE = os.path.join("logs", "healing", "healing-events.csv")


@dataclass(frozen=True)
class ActionLogSettings:
    enabled: bool = False
    console: bool = True
    file: Optional[str] = None
    format: str = "line"
    level: str = "INFO"


@dataclass(frozen=True)
class HealingConfig:
    locators_dir: str = DEFAULT_LOCATORS_DIR
    catalog_extension: str = ".properties"
    history_file: str = DEFAULT_HISTORY_FILE
    events_file: str = DEFAULT_EVENTS_FILE
    artifacts_dir: str = "artifacts"
    persist_on_heal: bool = True
    liveness_probe: bool = True
    action_log: ActionLogSettings = field(default_factory=ActionLogSettings)

    @classmethod
    def from_dict(cls, d: Dict[str, Any], base_dir: Optional[str] = None) -> HealingConfig:
        """Build a config from a validated mapping; relative paths are taken from base_dir."""
        def path(key: str, default: str) -> str:
            value = str(d.get(key, default))
            if base_dir and not os.path.isabs(value):
                value = os.path.join(base_dir, value)
            return value

        log_d = d.get("action_log", {}) or {}
        log_file = log_d.get("file")
        if log_file and base_dir and not os.path.isabs(log_file):
            log_file = os.path.join(base_dir, log_file)

        return cls(
            locators_dir=path("locators_dir", DEFAULT_LOCATORS_DIR),
            catalog_extension=str(d.get("catalog_extension", ".properties")),
            history_file=path("history_file", DEFAULT_HISTORY_FILE),
            events_file=path("events_file", DEFAULT_EVENTS_FILE),
            artifacts_dir=path("artifacts_dir", "artifacts"),
            persist_on_heal=bool(d.get("persist_on_heal", True)),
            liveness_probe=bool(d.get("liveness_probe", True)),
            action_log=ActionLogSettings(
                enabled=bool(log_d.get("enabled", False)),
                console=bool(log_d.get("console", True)),
                file=log_file,
                format=str(log_d.get("format", "line")),
                level=str(log_d.get("level", "INFO")),
            ),
        )

    def apply_action_log(self) -> None:
        """Push the action_log section into the process-wide ACTION_LOGGER."""
        settings = self.action_log
        ACTION_LOGGER.configure(
            console=settings.console,
            file_path=settings.file,
            level=settings.level,
            format=settings.format,
        )
        if settings.enabled:
            ACTION_LOGGER.enable()
        else:
            ACTION_LOGGER.disable()


def _load_schema() -> Dict[str, Any]:
    with open(SCHEMA_PATH, "r", encoding="utf-8") as f:
        return json.load(f)


def validate_config(data: Dict[str, Any]) -> None:
    """Validate a settings mapping against the bundled JSON schema."""
    validator = Draft202012Validator(_load_schema())
    errors = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.path])
    if errors:
        lines = []
        for e in errors:
            where = ".".join(str(p) for p in e.path) or "<root>"
            lines.append(f"{where}: {e.message}")
        raise ConfigError("Invalid healing settings:\n  " + "\n  ".join(lines))


def load_config(path: str) -> HealingConfig:
    """Load settings YAML; a missing file is a ConfigError."""
    path = os.path.abspath(path)
    if not os.path.exists(path):
        raise ConfigError(f"Settings YAML not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("Settings YAML must be a mapping at root.")
    validate_config(data)
    return HealingConfig.from_dict(data, base_dir=os.path.dirname(path))
