"""
Resource aggregation — sum profile requirements and compare with the host.

Aggregation deliberately does not deduplicate shared services: the
estimate errs on the side of too much headroom.

Host detection reads /proc/meminfo, ``os.cpu_count()`` and
``shutil.disk_usage``; it is best-effort and returns zeros for anything
it cannot read.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Iterable

from kaspa_aio.core.models.resources import (
    ResourceRequirement,
    SufficiencyReport,
    SystemResources,
)
from kaspa_aio.core.models.template import ConfigTemplate
from kaspa_aio.core.models.validation import RESOURCE_SHORTFALL, Issue
from kaspa_aio.core.services.catalog import ProfileCatalog

logger = logging.getLogger(__name__)

# (requirement metric, system field, unit label)
_METRICS = (
    ("memory", "memory", "GB RAM"),
    ("cpu", "cpu", "CPU cores"),
    ("disk", "disk", "GB disk"),
)


class ResourceAggregator:
    """Sum and check resource requirements for profile sets."""

    def __init__(self, catalog: ProfileCatalog):
        self.catalog = catalog

    def aggregate(self, profile_ids: Iterable[str]) -> ResourceRequirement:
        """Sum minimum and recommended resources across the given profiles."""
        ids = self.catalog.ordered(profile_ids)
        totals = ResourceRequirement(profiles=ids)
        for profile in self.catalog.require(ids):
            res = profile.resources
            totals.min_cpu += res.min_cpu
            totals.min_memory += res.min_memory
            totals.min_disk += res.min_disk
            totals.recommended_cpu += res.recommended_cpu
            totals.recommended_memory += res.recommended_memory
            totals.recommended_disk += res.recommended_disk
        return totals

    def check_sufficiency(
        self,
        requirement: ResourceRequirement,
        system: SystemResources,
    ) -> SufficiencyReport:
        return check_sufficiency(requirement, system)

    def additional(
        self,
        current: Iterable[str],
        proposed: Iterable[str],
    ) -> dict:
        """Resource impact of moving from ``current`` to ``proposed``."""
        before = self.aggregate(current)
        after = self.aggregate(proposed)
        return {
            "current": before.to_dict(),
            "new": after.to_dict(),
            "additional": {
                "minCpu": after.min_cpu - before.min_cpu,
                "minMemory": after.min_memory - before.min_memory,
                "minDisk": after.min_disk - before.min_disk,
            },
        }


def check_sufficiency(
    requirement: ResourceRequirement,
    system: SystemResources,
) -> SufficiencyReport:
    """Compare host capacity with a requirement.

    Below minimum is a shortfall (``sufficient`` becomes False); between
    minimum and recommended is a soft warning.
    """
    report = SufficiencyReport()
    for metric, field, unit in _METRICS:
        have = getattr(system, field)
        minimum = getattr(requirement, f"min_{metric}")
        recommended = getattr(requirement, f"recommended_{metric}")

        if have < minimum:
            report.sufficient = False
            report.shortfalls.append(Issue(
                type=RESOURCE_SHORTFALL,
                message=f"Requires at least {minimum} {unit}, system has {have:g}",
                severity="high",
                metric=metric,
                required=minimum,
                available=have,
            ).to_dict())
        elif have < recommended:
            report.warnings.append(Issue(
                type=RESOURCE_SHORTFALL,
                message=f"Recommended {recommended} {unit}, system has {have:g}",
                severity="medium",
                metric=metric,
                required=recommended,
                available=have,
            ).to_dict())
    return report


def recommend_templates(
    templates: Iterable[ConfigTemplate],
    system: SystemResources,
    use_case: str | None = None,
) -> list[dict]:
    """Score templates against the host and the stated use case.

    Returns entries sorted by score, highest first::

        {"template": "home-node", "score": 12, "suitability": "suitable",
         "reasons": [...], "recommended": True}
    """
    scored: list[dict] = []
    for template in templates:
        res = template.resources
        score = 0
        suitability = "suitable"
        reasons: list[str] = []

        if system.memory >= res.recommended_memory:
            score += 3
            reasons.append("Meets recommended memory requirements")
        elif system.memory >= res.min_memory:
            score += 1
            reasons.append("Meets minimum memory requirements")
        else:
            suitability = "insufficient"
            reasons.append(f"Requires {res.min_memory}GB RAM (you have {system.memory:g}GB)")

        if system.cpu >= res.recommended_cpu:
            score += 2
        elif system.cpu >= res.min_cpu:
            score += 1

        if system.disk >= res.recommended_disk:
            score += 2
        elif system.disk >= res.min_disk:
            score += 1

        if use_case and template.use_case == use_case:
            score += 5
            reasons.append("Perfect match for your use case")
        if use_case == "personal" and template.category == "beginner":
            score += 2
            reasons.append("Beginner-friendly")

        scored.append({
            "template": template.id,
            "name": template.name,
            "score": score,
            "suitability": suitability,
            "reasons": reasons,
            "recommended": score >= 5 and suitability == "suitable",
        })

    # sorted() is stable, so equal scores keep catalog order
    return sorted(scored, key=lambda r: -r["score"])


# ── Host detection ─────────────────────────────────────────────


def _read_total_ram_gb() -> float:
    """Read total RAM in GB from /proc/meminfo."""
    try:
        with open("/proc/meminfo") as f:
            for line in f:
                if line.startswith("MemTotal:"):
                    return round(int(line.split()[1]) / (1024 * 1024), 1)
    except (FileNotFoundError, ValueError):
        pass
    return 0.0


def _read_disk_free_gb(path: str = "/") -> float:
    """Read free disk space in GB."""
    try:
        return round(shutil.disk_usage(path).free / (1024 ** 3), 1)
    except OSError:
        return 0.0


def detect_system_resources(path: str = "/") -> SystemResources:
    """Snapshot CPU count, total RAM and free disk on ``path``."""
    snapshot = SystemResources(
        cpu=os.cpu_count() or 0,
        memory=_read_total_ram_gb(),
        disk=_read_disk_free_gb(path),
    )
    logger.debug("Detected system resources: %s", snapshot)
    return snapshot
