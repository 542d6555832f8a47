"""
State file persistence — atomic read/write for InstallationState.

State is stored as JSON in .kaspa-aio/installation-state.json.  Writes
are atomic (write to temp file, then rename) so a crash mid-write never
leaves a truncated file behind.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from kaspa_aio.core.config.loader import ConfigError
from kaspa_aio.core.models.state import InstallationState

logger = logging.getLogger(__name__)

# Default state file path (relative to project root)
DEFAULT_STATE_DIR = ".kaspa-aio"
DEFAULT_STATE_FILE = "installation-state.json"


def default_state_path(project_root: Path) -> Path:
    """Get the default state file path for an installation."""
    return project_root / DEFAULT_STATE_DIR / DEFAULT_STATE_FILE


def load_state(path: Path) -> InstallationState:
    """Load installation state from a JSON file.

    Returns:
        InstallationState. A missing file yields a fresh (not installed)
        state.

    Raises:
        ConfigError: If the file exists but cannot be read, decoded or
            validated.
    """
    if not path.is_file():
        logger.info("No state file at %s, nothing installed yet", path)
        return InstallationState()

    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read state file {path}: {e}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Corrupt state file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(
            f"Expected a JSON object in state file {path}, got {type(data).__name__}"
        )

    try:
        state = _from_json(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid state file {path}: {e}") from e

    logger.debug(
        "Loaded state from %s (%d profiles, last_modified=%s)",
        path, len(state.installed_profiles), state.last_modified,
    )
    return state


def save_state(state: InstallationState, path: Path) -> None:
    """Save installation state to a JSON file (atomic write).

    The engine itself never calls this during validation; it exists for
    the installer that applies validated changes.
    """
    state.touch()

    path.parent.mkdir(parents=True, exist_ok=True)

    data = _to_json(state)
    content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"

    try:
        fd, tmp_path = tempfile.mkstemp(
            dir=path.parent,
            prefix=".state_",
            suffix=".tmp",
        )
        os.close(fd)
        tmp = Path(tmp_path)
        try:
            tmp.write_text(content, encoding="utf-8")
            tmp.rename(path)
            logger.debug("State saved to %s", path)
        except Exception:
            tmp.unlink(missing_ok=True)
            raise
    except Exception as e:
        logger.error("Failed to save state to %s: %s", path, e)
        raise


# The wizard writes camelCase keys; accept both and write camelCase.
_KEY_MAP = {
    "installedProfiles": "installed_profiles",
    "installedAt": "installed_at",
    "lastModified": "last_modified",
}


def _from_json(data: dict) -> InstallationState:
    normalized = {_KEY_MAP.get(k, k): v for k, v in data.items()}
    for entry in normalized.get("history") or []:
        if isinstance(entry, dict) and "profileId" in entry:
            entry["profile_id"] = entry.pop("profileId")
    return InstallationState.model_validate(normalized)


def _to_json(state: InstallationState) -> dict:
    reverse = {v: k for k, v in _KEY_MAP.items()}
    data = state.model_dump(mode="json")
    out = {reverse.get(k, k): v for k, v in data.items()}
    out["history"] = [
        {("profileId" if k == "profile_id" else k): v for k, v in entry.items()}
        for entry in out.get("history", [])
    ]
    return out
