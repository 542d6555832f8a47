"""
Startup dependency check — external reachability for a profile set.

Maps the profiles about to start onto the services whose external
dependencies matter, runs the checker and adds startup advice (usually:
run the dependency locally instead).  Results are cached per profile
set for a few minutes because the wizard re-renders the review page
often.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from datetime import UTC, datetime

from kaspa_aio.core.services.catalog import ProfileCatalog
from kaspa_aio.core.services.external_deps import ExternalDependencyChecker

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = 300  # seconds


class StartupDependencyChecker:
    """Cached external-dependency check for the services of a profile set."""

    def __init__(
        self,
        catalog: ProfileCatalog,
        checker: ExternalDependencyChecker | None = None,
        cache_ttl: float = DEFAULT_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.catalog = catalog
        self.checker = checker or ExternalDependencyChecker(catalog)
        self.cache_ttl = cache_ttl
        self._clock = clock
        self._cache: dict[tuple[str, ...], tuple[float, dict]] = {}

    def check_profiles(self, profile_ids: Iterable[str], force: bool = False) -> dict:
        """Check the external dependencies gating startup of ``profile_ids``."""
        ids = tuple(self.catalog.ordered(profile_ids))

        if not force and ids in self._cache:
            stored_at, cached = self._cache[ids]
            if self._clock() - stored_at < self.cache_ttl:
                logger.debug("Startup check cache hit for %s", ids)
                return {**cached, "cached": True}

        services = self.catalog.startup_check_services(ids)
        if services:
            batch = self.checker.validate_multiple_services(services, check_connectivity=False)
            results = batch["services"]
        else:
            results = {}

        critical = {
            name: r["summary"]["critical_failures"]
            for name, r in results.items()
            if r["summary"]["critical_failures"]
        }
        report = {
            "profiles": list(ids),
            "services": services,
            "results": results,
            "ready": not critical,
            "criticalFailures": critical,
            "recommendations": self._recommendations(ids, critical),
            "checkedAt": datetime.now(UTC).isoformat(),
            "cached": False,
        }
        self._cache[ids] = (self._clock(), report)
        return report

    def clear_cache(self) -> None:
        self._cache.clear()

    def _recommendations(self, ids: tuple[str, ...], critical: dict[str, int]) -> list[dict]:
        recs = []
        app_services = self._services_of("kaspa-user-applications")
        indexer_services = self._services_of("indexer-services")

        if app_services & critical.keys() and "indexer-services" not in ids:
            recs.append({
                "priority": "high",
                "title": "Run Indexers Locally",
                "message": "Public indexer APIs are unreachable. Adding the indexer-services "
                           "profile removes the dependency on them.",
                "profile": "indexer-services",
            })
        has_node = any(self.catalog.get(pid).provides_node for pid in ids)
        if indexer_services & critical.keys() and not has_node:
            recs.append({
                "priority": "high",
                "title": "Add a Local Node",
                "message": "Indexers cannot reach a Kaspa node. Add the core profile so "
                           "they can connect to kaspa-node on the Compose network.",
                "profile": "core",
            })
        return recs

    def _services_of(self, profile_id: str) -> set[str]:
        if profile_id not in self.catalog:
            return set()
        return set(self.catalog.startup_check_services([profile_id]))
