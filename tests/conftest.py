"""
Shared test fixtures and configuration.
"""

from collections.abc import Callable
from pathlib import Path

import pytest

from kaspa_aio.core.config.catalog_loader import load_catalog
from kaspa_aio.core.config.loader import EngineSettings
from kaspa_aio.core.engine import Engine
from kaspa_aio.core.services.catalog import ProfileCatalog


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep the developer's environment out of settings resolution."""
    for name in (
        "KASPA_AIO_CATALOG",
        "KASPA_AIO_STATE_FILE",
        "KASPA_AIO_LOG_LEVEL",
        "KASPA_AIO_LOG_FILE",
        "KASPA_AIO_LOG_FILE_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def catalog() -> ProfileCatalog:
    """The bundled catalog."""
    return load_catalog()


@pytest.fixture
def make_catalog() -> Callable[..., ProfileCatalog]:
    """Build a small catalog from profile dicts.

    Usage::

        cat = make_catalog({"id": "a", "dependencies": ["b"]}, {"id": "b"})
    """

    def _make(*profiles: dict, **extra) -> ProfileCatalog:
        return ProfileCatalog.from_dict({"profiles": list(profiles), **extra})

    return _make


@pytest.fixture
def settings(tmp_path: Path) -> EngineSettings:
    """Settings rooted in a temporary project directory."""
    return EngineSettings(root=str(tmp_path))


@pytest.fixture
def engine(catalog: ProfileCatalog, settings: EngineSettings) -> Engine:
    return Engine.build(catalog, settings)
