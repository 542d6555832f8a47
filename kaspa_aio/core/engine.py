"""
Engine — one explicitly constructed bundle of catalog and services.

Entry points (CLI, web app, tests) build an Engine and pass it down;
there is no module-level instance.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from kaspa_aio.core.config.catalog_loader import load_catalog
from kaspa_aio.core.config.loader import EngineSettings, load_settings
from kaspa_aio.core.models.state import InstallationState
from kaspa_aio.core.persistence.state_file import load_state
from kaspa_aio.core.services.catalog import ProfileCatalog
from kaspa_aio.core.services.config_sync import ConfigurationSynchronizer
from kaspa_aio.core.services.dependency_validator import DependencyValidator
from kaspa_aio.core.services.external_deps import ExternalDependencyChecker
from kaspa_aio.core.services.resolver import DependencyResolver
from kaspa_aio.core.services.resources import ResourceAggregator
from kaspa_aio.core.services.startup_check import StartupDependencyChecker

logger = logging.getLogger(__name__)


@dataclass
class Engine:
    """Catalog plus every service built on top of it."""

    settings: EngineSettings
    catalog: ProfileCatalog
    resolver: DependencyResolver
    aggregator: ResourceAggregator
    validator: DependencyValidator
    synchronizer: ConfigurationSynchronizer
    checker: ExternalDependencyChecker
    startup: StartupDependencyChecker

    @classmethod
    def build(
        cls,
        catalog: ProfileCatalog,
        settings: EngineSettings | None = None,
    ) -> Engine:
        settings = settings or EngineSettings()
        resolver = DependencyResolver(catalog)
        aggregator = ResourceAggregator(catalog)
        checker = ExternalDependencyChecker(
            catalog,
            timeout=settings.probe_timeout_seconds,
            max_workers=settings.probe_workers,
        )
        return cls(
            settings=settings,
            catalog=catalog,
            resolver=resolver,
            aggregator=aggregator,
            validator=DependencyValidator(catalog, resolver, aggregator, settings),
            synchronizer=ConfigurationSynchronizer(catalog),
            checker=checker,
            startup=StartupDependencyChecker(
                catalog, checker, cache_ttl=settings.startup_cache_ttl_seconds,
            ),
        )

    @classmethod
    def load(
        cls,
        settings_path: Path | None = None,
        catalog_path: Path | None = None,
    ) -> Engine:
        """Read settings and catalog from disk.

        Raises:
            ConfigError: If either cannot be read or validated.
        """
        settings = load_settings(settings_path)
        catalog = load_catalog(catalog_path, settings)
        logger.debug("Engine loaded (root=%s)", settings.project_root())
        return cls.build(catalog, settings)

    @property
    def project_root(self) -> Path:
        return self.settings.project_root()

    @property
    def state_path(self) -> Path:
        return self.settings.state_path()

    def load_state(self) -> InstallationState:
        return load_state(self.state_path)
