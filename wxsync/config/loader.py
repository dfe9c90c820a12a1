"""YAML config loader with runtime get/set."""

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from wxsync.config.defaults import DEFAULT_LOCATION
from wxsync.config.schema import AppConfig


def load_config(path: str | Path | None) -> AppConfig:
    """Load and validate config from a YAML file.

    A missing or empty file yields defaults. If no location is given,
    injects DEFAULT_LOCATION.
    """
    raw: dict = {}
    if path is not None:
        path = Path(path)
        if path.exists():
            with open(path) as f:
                raw = yaml.safe_load(f) or {}

    location = raw.get("location") or {}
    if not location.get("query") and location.get("latitude") is None:
        raw["location"] = {**DEFAULT_LOCATION.model_dump(), **location}

    return AppConfig(**raw)


def config_hash(config: AppConfig) -> str:
    """Compute a deterministic SHA256 hash of the config."""
    data = config.model_dump_json(indent=None)
    return hashlib.sha256(data.encode()).hexdigest()[:16]


def get_config_value(config: AppConfig, dotted_key: str) -> Any:
    """Get a config value by dotted key path. E.g. 'sync.interval_hours'."""
    obj: Any = config
    for part in dotted_key.split("."):
        if hasattr(obj, part):
            obj = getattr(obj, part)
        elif isinstance(obj, dict):
            obj = obj[part]
        else:
            raise KeyError(f"Config key not found: {dotted_key}")
    return obj


def set_config_value(config: AppConfig, dotted_key: str, value: Any) -> AppConfig:
    """Set a config value by dotted key path and re-validate.

    Returns a new AppConfig instance.
    """
    data = json.loads(config.model_dump_json())
    parts = dotted_key.split(".")
    target = data
    for part in parts[:-1]:
        if part not in target:
            raise KeyError(f"Config key not found: {dotted_key}")
        target = target[part]
    if parts[-1] not in target:
        raise KeyError(f"Config key not found: {dotted_key}")
    old_value = target.get(parts[-1])
    if isinstance(old_value, bool) and isinstance(value, str):
        value = value.lower() in ("1", "true", "yes", "on")
    elif isinstance(old_value, int) and isinstance(value, str):
        value = int(value)
    elif isinstance(old_value, float) and isinstance(value, str):
        value = float(value)
    target[parts[-1]] = value
    return AppConfig(**data)


def save_config(config: AppConfig, path: str | Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.safe_dump(json.loads(config.model_dump_json()), f, sort_keys=False)
