"""
Catalog loader — reads catalog.yml into a ProfileCatalog.

The bundled catalog ships inside ``kaspa_aio/core/data``.  An alternative
file can be supplied explicitly, through settings (``catalog:``) or the
``KASPA_AIO_CATALOG`` environment variable.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from kaspa_aio.core.config.loader import ConfigError, EngineSettings
from kaspa_aio.core.data import DEFAULT_CATALOG_PATH
from kaspa_aio.core.services.catalog import ProfileCatalog

logger = logging.getLogger(__name__)


def resolve_catalog_path(
    path: Path | None = None,
    settings: EngineSettings | None = None,
) -> Path:
    """Pick the catalog file: explicit path > settings > bundled default."""
    if path is not None:
        return path
    if settings is not None:
        configured = settings.catalog_path()
        if configured is not None:
            return configured
    return DEFAULT_CATALOG_PATH


def load_catalog(
    path: Path | None = None,
    settings: EngineSettings | None = None,
) -> ProfileCatalog:
    """Load and validate a profile catalog.

    Raises:
        ConfigError: If the file is missing, unreadable, or invalid.
    """
    path = resolve_catalog_path(path, settings)

    if not path.is_file():
        raise ConfigError(f"Catalog file not found: {path}")

    logger.debug("Loading catalog from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    catalog = ProfileCatalog.from_dict(data)
    logger.info(
        "Loaded catalog with %d profiles and %d templates",
        len(catalog),
        len(catalog.templates),
    )
    return catalog
