"""Configuration for bt. Optional defaults live in ~/.bt/config.json.

Values resolve in order: command-line options, environment variables (bound
through click), the config file, then built-in defaults.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.braintrust.dev"


@dataclass
class Config:
    """Connection settings shared by every command."""

    api_key: str | None = None
    api_url: str | None = None
    app_url: str | None = None
    org_name: str | None = None
    project: str | None = None
    json_output: bool = False


def _get_config_dir() -> Path:
    return Path(os.environ.get("BT_CONFIG_DIR", Path.home() / ".bt"))


def _get_config_path() -> Path:
    return _get_config_dir() / "config.json"


def load_config_file() -> dict[str, str]:
    """Read the config file, returning an empty mapping when absent or invalid."""
    config_path = _get_config_path()
    if not config_path.exists():
        return {}
    try:
        data = json.loads(config_path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Ignoring unreadable config %s: %s", config_path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: expected a JSON object", config_path)
        return {}
    return data


def resolve_config(**overrides: object) -> Config:
    """Build a :class:`Config` from the config file and explicit *overrides*.

    ``None`` overrides fall through to the file value.
    """
    names = {f.name for f in fields(Config)}
    values: dict[str, object] = {
        key: value for key, value in load_config_file().items() if key in names
    }
    for key, value in overrides.items():
        if key not in names:
            raise TypeError(f"unknown config option: {key}")
        if value is not None:
            values[key] = value
    return Config(**values)  # type: ignore[arg-type]
