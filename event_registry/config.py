"""
Configuration for event registries.

Settings come from an optional JSON/YAML file and from
``EVENT_REGISTRY_*`` environment variables, with the environment
taking precedence.

Example:
    from event_registry.config import load_settings

    settings = load_settings(Path("registry.yaml"))
    registry = EventRegistry(settings)
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

ENV_PREFIX = "EVENT_REGISTRY_"

HANDLER_ERROR_MODES = ("raise", "continue")

_TRUE_VALUES = ("1", "true", "yes", "on")


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


@dataclass
class RegistrySettings:
    """
    Settings for registry behavior and logging.

    Args:
        handler_errors: "raise" to propagate a failing callback out of emit,
            "continue" to log it, record it and keep dispatching
        max_failures: Number of callback failures kept for inspection
        log_level: Logging level name
        log_json: Render logs as JSON instead of console output
    """

    handler_errors: str = "raise"
    max_failures: int = 100
    log_level: str = "INFO"
    log_json: bool = False

    def __post_init__(self):
        self.handler_errors = str(self.handler_errors).strip().lower()
        if self.handler_errors not in HANDLER_ERROR_MODES:
            raise ValueError(
                f"handler_errors must be one of {HANDLER_ERROR_MODES}, got {self.handler_errors!r}"
            )
        try:
            self.max_failures = int(self.max_failures)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"max_failures must be an integer, got {self.max_failures!r}") from exc
        if self.max_failures < 1:
            raise ValueError("max_failures must be >= 1")
        self.log_level = str(self.log_level).strip().upper()
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f"unknown log_level {self.log_level!r}")
        self.log_json = _as_bool(self.log_json)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> RegistrySettings:
        """Create from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known and v is not None})

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> RegistrySettings:
        """Create from EVENT_REGISTRY_* environment variables."""
        return cls.from_mapping(_env_values(environ))

    @classmethod
    def from_file(cls, config_path: Path) -> RegistrySettings:
        """Create from a JSON or YAML file."""
        return cls.from_mapping(read_config_file(config_path))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _env_values(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    env = os.environ if environ is None else environ
    values: dict[str, str] = {}
    for f in fields(RegistrySettings):
        key = ENV_PREFIX + f.name.upper()
        if key in env:
            values[f.name] = env[key]
    return values


def read_config_file(config_path: Path) -> dict:
    """
    Read a configuration file (JSON or YAML).

    Args:
        config_path: Path to config file

    Returns:
        Dict with configuration

    Raises:
        ValueError: If the file does not hold a mapping
    """
    if not config_path.exists():
        return {}

    content = config_path.read_text(encoding="utf-8")

    if config_path.suffix == ".json":
        data = json.loads(content)
    elif config_path.suffix in (".yml", ".yaml"):
        data = yaml.safe_load(content)
    else:
        return {}

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{config_path} must contain a mapping")
    return data


def load_settings(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> RegistrySettings:
    """
    Load settings from an optional file, then apply env overrides.

    Args:
        config_path: Optional JSON/YAML config file
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Validated settings
    """
    data: dict[str, Any] = {}
    if config_path is not None:
        data.update(read_config_file(config_path))
    data.update(_env_values(environ))
    return RegistrySettings.from_mapping(data)
