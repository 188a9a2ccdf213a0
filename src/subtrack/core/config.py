"""Configuration management — TOML config at ~/.config/subtrack/subtrack.toml."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any

import tomli_w

from subtrack.core.exceptions import ConfigError

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

DATA_FILENAME = "subscriptions.json"

_DEFAULT_CONFIG: dict[str, Any] = {
    "general": {
        "data_dir": "~/.local/share/subtrack",
    },
    "display": {
        "currency_symbol": "$",
        "date_format": "%b %d, %Y",
    },
    "renewals": {
        "upcoming_window_days": 14,
        "include_today": False,
    },
    "logging": {
        "level": "WARNING",
    },
}


def get_config_dir() -> Path:
    """Return the config directory, creating it if needed."""
    config_dir = Path(os.environ.get("SUBTRACK_CONFIG_DIR", "~/.config/subtrack")).expanduser()
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_config_path() -> Path:
    """Return the path to the config TOML file."""
    return get_config_dir() / "subtrack.toml"


def get_data_dir(config: dict[str, Any] | None = None) -> Path:
    """Return the data directory, creating it if needed."""
    if config is None:
        config = load_config()
    data_dir = Path(config.get("general", {}).get("data_dir", "~/.local/share/subtrack")).expanduser()
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def get_data_file(config: dict[str, Any] | None = None) -> Path:
    """Return the subscriptions document path.

    ``SUBTRACK_DATA_FILE`` wins over the configured data directory.
    """
    override = os.environ.get("SUBTRACK_DATA_FILE")
    if override:
        return Path(override).expanduser()
    return get_data_dir(config) / DATA_FILENAME


def load_config() -> dict[str, Any]:
    """Load configuration from TOML file, returning defaults if not found."""
    config_path = get_config_path()
    if not config_path.exists():
        return _deep_copy_dict(_DEFAULT_CONFIG)
    try:
        with open(config_path, "rb") as f:
            user_config = tomllib.load(f)
        return _merge_config(_deep_copy_dict(_DEFAULT_CONFIG), user_config)
    except Exception as e:
        raise ConfigError(f"Failed to load config: {e}") from e


def save_config(config: dict[str, Any]) -> None:
    """Save configuration to TOML file."""
    config_path = get_config_path()
    try:
        with open(config_path, "wb") as f:
            tomli_w.dump(config, f)
    except Exception as e:
        raise ConfigError(f"Failed to save config: {e}") from e


def update_config(**updates: Any) -> dict[str, Any]:
    """Load config, apply nested updates, save, and return the result.

    Usage: update_config(renewals={"upcoming_window_days": 30})
    """
    config = load_config()
    for section, values in updates.items():
        if section not in config:
            config[section] = {}
        if isinstance(values, dict):
            config[section].update(values)
        else:
            config[section] = values
    save_config(config)
    return config


def set_value(dotted_key: str, raw_value: str) -> dict[str, Any]:
    """Set ``section.key`` from a string, coerced to the default's type."""
    section, _, key = dotted_key.partition(".")
    if not key or section not in _DEFAULT_CONFIG or key not in _DEFAULT_CONFIG[section]:
        known = ", ".join(
            f"{s}.{k}" for s, values in _DEFAULT_CONFIG.items() for k in values
        )
        raise ConfigError(f"Unknown config key '{dotted_key}'. Known keys: {known}")
    value = _coerce(raw_value, _DEFAULT_CONFIG[section][key])
    return update_config(**{section: {key: value}})


def upcoming_window_days(config: dict[str, Any]) -> int:
    return int(config.get("renewals", {}).get("upcoming_window_days", 14))


def include_today(config: dict[str, Any]) -> bool:
    return bool(config.get("renewals", {}).get("include_today", False))


def _coerce(raw: str, default: Any) -> Any:
    """Convert a CLI string to the type of the default value."""
    if isinstance(default, bool):
        lowered = raw.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
        raise ConfigError(f"Expected a boolean, got '{raw}'")
    if isinstance(default, int):
        try:
            value = int(raw)
        except ValueError as e:
            raise ConfigError(f"Expected an integer, got '{raw}'") from e
        if value < 0:
            raise ConfigError("Value cannot be negative.")
        return value
    return raw


def _merge_config(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge override into base."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _merge_config(base[key], value)
        else:
            base[key] = value
    return base


def _deep_copy_dict(d: dict[str, Any]) -> dict[str, Any]:
    """Simple deep copy for nested dicts of simple types."""
    result: dict[str, Any] = {}
    for k, v in d.items():
        if isinstance(v, dict):
            result[k] = _deep_copy_dict(v)
        else:
            result[k] = v
    return result
