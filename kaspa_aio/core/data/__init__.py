"""
Bundled static data for the engine.

``catalog.yml`` holds the shipped profile catalog: profiles, templates,
the developer-mode overlay and per-service external dependencies.  It
is read by :func:`kaspa_aio.core.config.catalog_loader.load_catalog`
when no other catalog path is configured.
"""

from __future__ import annotations

from pathlib import Path

DATA_DIR = Path(__file__).parent

DEFAULT_CATALOG_PATH = DATA_DIR / "catalog.yml"
