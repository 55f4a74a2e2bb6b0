"""Runtime settings.

Resolution order: built-in defaults, then an optional YAML file, then
``APPREG_*`` environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_HOME = Path.home() / ".appreg"
CONFIG_FILE = "appreg.yaml"


def _int_env(name: str, default: int) -> int:
    raw = str(os.getenv(name, str(default))).strip()
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass
class Settings:
    """Where the registry keeps its files and how it logs."""

    state_path: str = str(DEFAULT_HOME / "registry.json")
    audit_dir: str = str(DEFAULT_HOME / "audit_logs")
    webhook_dir: str = str(DEFAULT_HOME / "webhooks")
    webhook_timeout: int = 10
    log_level: str = "WARNING"
    log_file: str = ""


def load_settings(path: Optional[str | Path] = None) -> Settings:
    """Build :class:`Settings` from *path* (or ``./appreg.yaml``) and the environment."""
    settings = Settings()

    config_path = Path(path) if path else Path(CONFIG_FILE)
    if config_path.exists():
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{config_path}: expected a mapping of settings")
        known = {f.name for f in fields(Settings)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"{config_path}: unknown settings {unknown}")
        for key, value in data.items():
            setattr(settings, key, int(value) if key == "webhook_timeout" else str(value))
    elif path:
        raise FileNotFoundError(f"Config file not found: {config_path}")

    settings.state_path = os.environ.get("APPREG_STATE_PATH", settings.state_path)
    settings.audit_dir = os.environ.get("APPREG_AUDIT_DIR", settings.audit_dir)
    settings.webhook_dir = os.environ.get("APPREG_WEBHOOK_DIR", settings.webhook_dir)
    settings.webhook_timeout = _int_env("APPREG_WEBHOOK_TIMEOUT", settings.webhook_timeout)
    settings.log_level = os.environ.get("APPREG_LOG_LEVEL", settings.log_level)
    settings.log_file = os.environ.get("APPREG_LOG_FILE", settings.log_file)
    return settings
