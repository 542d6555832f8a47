"""
Shared route helpers.

Every blueprint reaches the engine through :func:`engine`; the first
request loads it when the app was created without one.
"""

from __future__ import annotations

from pathlib import Path

from flask import current_app

from kaspa_aio.core.engine import Engine


def engine() -> Engine:
    """The app's engine (raises ConfigError if it cannot be loaded)."""
    loaded = current_app.config.get("ENGINE")
    if loaded is None:
        settings = current_app.config.get("SETTINGS_PATH")
        loaded = Engine.load(settings_path=Path(settings) if settings else None)
        current_app.config["ENGINE"] = loaded
    return loaded


def string_list(data: dict, key: str) -> list[str] | None:
    """``data[key]`` if it is a list of strings, else None."""
    value = data.get(key)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        return None
    return value


def current_profiles(data: dict) -> list[str] | None:
    """``currentProfiles`` from the body, else the installed set.

    Returns None when the body carries a malformed value.
    """
    if "currentProfiles" not in data:
        return engine().load_state().installed_profiles
    return string_list(data, "currentProfiles")
