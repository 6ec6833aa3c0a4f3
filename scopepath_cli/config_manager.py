"""Configuration manager for ScopePath using TOML files."""

from __future__ import annotations

import logging
from typing import Any, Dict

import toml

from . import config

logger = logging.getLogger(__name__)


def load_full_config() -> Dict[str, Any]:
    """Load the entire TOML config (all sections)."""
    if not config.CONFIG_FILE.exists():
        return {}
    try:
        with open(config.CONFIG_FILE, "r", encoding="utf-8") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Could not read %s: %s", config.CONFIG_FILE, exc)
        return {}


def _save_full_config(data: Dict[str, Any]) -> bool:
    """Write entire config dict to TOML file, preserving all sections."""
    config.ensure_base_dir()
    try:
        with open(config.CONFIG_FILE, "w", encoding="utf-8") as f:
            toml.dump(data, f)
        return True
    except OSError as exc:
        logger.error("Could not write %s: %s", config.CONFIG_FILE, exc)
        return False


def load_scope_config() -> Dict[str, Any]:
    """Load the ``[scope]`` section merged over the defaults.

    Returns:
        Dict with every key of ``DEFAULT_SCOPE_CONFIG``. Keys in the file
        that are not known defaults are ignored.
    """
    merged = dict(config.DEFAULT_SCOPE_CONFIG)
    section = load_full_config().get("scope", {})
    if not isinstance(section, dict):
        logger.warning("Ignoring malformed [scope] section in %s", config.CONFIG_FILE)
        return merged
    for key, value in section.items():
        if key in merged:
            merged[key] = value
    return merged


def save_scope_config(**values: Any) -> bool:
    """Update keys of the ``[scope]`` section.

    Preserves other sections and keys not named in *values*.

    Raises:
        ValueError: If a key is not a known scope setting.
    """
    unknown = sorted(set(values) - set(config.DEFAULT_SCOPE_CONFIG))
    if unknown:
        raise ValueError(f"Unknown setting(s): {', '.join(unknown)}")

    data = load_full_config()
    section = data.get("scope", {})
    if not isinstance(section, dict):
        section = {}
    section.update(values)
    data["scope"] = section
    return _save_full_config(data)


def clear_scope_config() -> bool:
    """Remove ``[scope]`` section from config, resetting to defaults."""
    data = load_full_config()
    data.pop("scope", None)
    return _save_full_config(data)
