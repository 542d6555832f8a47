"""
Settings loader — reads kaspa-aio.yml into EngineSettings.

The settings file is optional.  When present it tunes the engine
(catalog location, state file, thresholds, probe limits).  Environment
variables take precedence over the file for the two paths:

    KASPA_AIO_CATALOG      path to an alternative catalog.yml
    KASPA_AIO_STATE_FILE   path to the installation state JSON
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

# Default settings filename
SETTINGS_FILE = "kaspa-aio.yml"

DEFAULT_STATE_FILE = ".kaspa-aio/installation-state.json"


class ConfigError(Exception):
    """Raised when the catalog or settings are unreadable or invalid."""


class EngineSettings(BaseModel):
    """Tunables for validation and dependency probing."""

    catalog: str | None = None
    state_file: str = DEFAULT_STATE_FILE

    # Aggregate minimum memory (GB) above which additions get a sizing warning
    high_memory_threshold_gb: int = Field(default=32, ge=1)

    # Overrides the per-dependency timeout declared in the catalog
    probe_timeout_seconds: float | None = Field(default=None, gt=0)
    probe_workers: int = Field(default=8, ge=1)

    # How long startup dependency checks are reused
    startup_cache_ttl_seconds: int = Field(default=300, ge=0)

    # Directory the settings file was found in (not read from YAML)
    root: str | None = Field(default=None, exclude=True)

    def project_root(self) -> Path:
        return Path(self.root) if self.root else Path.cwd()

    def state_path(self) -> Path:
        """Absolute path of the installation state file."""
        path = Path(self.state_file)
        return path if path.is_absolute() else self.project_root() / path

    def catalog_path(self) -> Path | None:
        if not self.catalog:
            return None
        path = Path(self.catalog)
        return path if path.is_absolute() else self.project_root() / path


def find_settings_file(start_dir: Path | None = None) -> Path | None:
    """Search for kaspa-aio.yml starting from the given directory, walking up.

    Returns:
        Path to kaspa-aio.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / SETTINGS_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_settings(path: Path | None = None) -> EngineSettings:
    """Load engine settings.

    Args:
        path: Explicit path to kaspa-aio.yml. If None, searches upward
            from the working directory; a missing file yields defaults.

    Returns:
        Validated EngineSettings with environment overrides applied.

    Raises:
        ConfigError: If an explicit path is missing, or any file is invalid.
    """
    explicit = path is not None
    if path is None:
        path = find_settings_file()

    data: dict = {}
    root: Path | None = None

    if path is not None:
        if not path.is_file():
            if explicit:
                raise ConfigError(f"Settings file not found: {path}")
        else:
            logger.debug("Loading settings from %s", path)
            data = _read_yaml_mapping(path)
            root = path.parent.resolve()

    env_catalog = os.environ.get("KASPA_AIO_CATALOG")
    if env_catalog:
        data["catalog"] = env_catalog
    env_state = os.environ.get("KASPA_AIO_STATE_FILE")
    if env_state:
        data["state_file"] = env_state

    try:
        settings = EngineSettings.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid settings: {e}") from e

    if root is not None:
        settings.root = str(root)
    return settings


def _read_yaml_mapping(path: Path) -> dict:
    """Read a YAML file that must contain a mapping."""
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")
    return data
