"""Configuration for the registry CLI and web API.

Settings come from an optional YAML file and are then overridden by
``SEEDREG_*`` environment variables. The file location is taken from the
``--config`` option, ``SEEDREG_CONFIG``, or ``./seedreg.yaml`` when it exists.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG_FILE = "seedreg.yaml"

_ENV_OVERRIDES = {
    "state_path": "SEEDREG_STATE_PATH",
    "audit_dir": "SEEDREG_AUDIT_DIR",
    "audit_enabled": "SEEDREG_AUDIT_ENABLED",
    "log_level": "SEEDREG_LOG_LEVEL",
    "log_file": "SEEDREG_LOG_FILE",
    "default_caller": "SEEDREG_CALLER",
}


class ConfigError(Exception):
    """The configuration file is malformed."""


@dataclass
class Settings:
    """Registry settings."""

    state_path: str = ".seedreg/state.json"
    audit_dir: str = ".seedreg/audit"
    audit_enabled: bool = True
    log_level: str = "INFO"
    log_file: str = ""
    default_caller: str = ""  # Used when --caller is not given


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def load_settings(path: Optional[str | Path] = None) -> Settings:
    """Load settings from YAML (if any) and apply environment overrides."""
    if path is None:
        path = os.getenv("SEEDREG_CONFIG")
        if path is None and Path(DEFAULT_CONFIG_FILE).exists():
            path = DEFAULT_CONFIG_FILE

    values: dict = {}
    if path is not None:
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Cannot read config file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        known = {f.name for f in fields(Settings)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown config keys in {path}: {', '.join(unknown)}")
        values.update(data)

    for name, env_var in _ENV_OVERRIDES.items():
        if env_var in os.environ:
            values[name] = os.environ[env_var]

    if "audit_enabled" in values:
        values["audit_enabled"] = _parse_bool(values["audit_enabled"])
    for name in ("state_path", "audit_dir", "log_level", "log_file", "default_caller"):
        if name in values and values[name] is not None:
            values[name] = str(values[name])

    return Settings(**values)
