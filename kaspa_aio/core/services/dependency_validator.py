"""
Dependency validator — can this selection, addition or removal proceed?

Every operation returns a result model.  Expected problems (conflicts,
missing prerequisites, orphaned dependents...) become entries in
``errors``/``warnings``; they are never raised.  Only an unknown
profile id raises (``UnknownProfileError``).

    validate_selection  fresh install of a profile set
    validate_addition   one profile joins an existing installation
    validate_removal    one profile leaves an existing installation
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC, datetime

from kaspa_aio.core.config.loader import EngineSettings
from kaspa_aio.core.models.graph import DependencyGraph, GraphEdge, GraphNode
from kaspa_aio.core.models.resources import ResourceRequirement
from kaspa_aio.core.models.validation import (
    ALREADY_INSTALLED,
    DATA_LOSS,
    DEPENDENT_PROFILE,
    LAST_NODE_REMOVAL,
    MISSING_PREREQUISITE,
    NOT_INSTALLED,
    PREREQUISITE_BREAK,
    RESOURCE_SHORTFALL,
    SHARED_SERVICE,
    AdditionResult,
    Issue,
    RemovalResult,
    SelectionResult,
)
from kaspa_aio.core.services.catalog import ProfileCatalog
from kaspa_aio.core.services.integration import integration_suggestions
from kaspa_aio.core.services.recommendations import build_recommendations
from kaspa_aio.core.services.resolver import DependencyResolver, conflict_issue
from kaspa_aio.core.services.resources import ResourceAggregator

logger = logging.getLogger(__name__)


class DependencyValidator:
    """Validate profile selections and changes against a catalog."""

    def __init__(
        self,
        catalog: ProfileCatalog,
        resolver: DependencyResolver | None = None,
        aggregator: ResourceAggregator | None = None,
        settings: EngineSettings | None = None,
    ):
        self.catalog = catalog
        self.resolver = resolver or DependencyResolver(catalog)
        self.aggregator = aggregator or ResourceAggregator(catalog)
        self.settings = settings or EngineSettings()

    # ── Fresh selection ─────────────────────────────────────────

    def validate_selection(self, profiles: Iterable[str]) -> SelectionResult:
        """Validate a not-yet-installed profile set.

        An empty selection is valid (it is the fully uninstalled state).
        """
        resolution = self.resolver.resolve(profiles)
        errors = list(resolution.errors)
        dependency_issues = [
            {
                "type": "circular_dependency",
                "cycle": cycle,
                "message": "Circular dependency detected: " + " -> ".join(cycle),
            }
            for cycle in resolution.cycles
        ]

        warnings: list[Issue] = []
        requirements = ResourceRequirement()
        if not resolution.cycles:
            resolved = resolution.resolved
            errors += self._missing_prerequisites(resolved, resolved)
            errors += self.resolver.find_port_collisions(resolved)
            requirements = self.aggregator.aggregate(resolved)
            warnings += self._memory_warnings(requirements)

        result = SelectionResult(
            valid=not errors,
            errors=errors,
            warnings=warnings,
            recommendations=build_recommendations([*errors, *warnings], "select"),
            resolved_profiles=resolution.resolved,
            profile_order=resolution.profile_order,
            startup_order=resolution.startup_order,
            requirements=requirements,
            dependency_issues=dependency_issues,
            has_dependency_issues=bool(dependency_issues),
        )
        logger.debug(
            "Selection %s: valid=%s errors=%s",
            resolution.requested, result.valid, result.error_types(),
        )
        return result

    # ── Addition ────────────────────────────────────────────────

    def validate_addition(
        self,
        profile_id: str,
        current_profiles: Iterable[str],
    ) -> AdditionResult:
        """Check whether ``profile_id`` can join ``current_profiles``."""
        profile = self.catalog.get(profile_id)
        current = self.catalog.ordered(current_profiles)
        errors: list[Issue] = []
        warnings: list[Issue] = []

        if profile_id in current:
            errors.append(Issue(
                type=ALREADY_INSTALLED,
                message=f"{profile.name} is already installed",
                profile=profile_id,
            ))
            return self._addition_result(profile_id, current, errors, warnings)

        proposed = [*current, profile_id]
        cycles = self.resolver.detect_cycles(proposed)
        if cycles:
            errors += self.resolver.resolve(proposed).errors
            return self._addition_result(profile_id, current, errors, warnings)

        new_set = self.resolver.expand(proposed)
        added = [pid for pid in new_set if pid not in current]

        # Conflicts, whichever side declared them
        for i, pid in enumerate(added):
            incoming = self.catalog.get(pid)
            for other_id in (*current, *added[i + 1:]):
                other = self.catalog.get(other_id)
                if incoming.conflicts_with(other):
                    errors.append(conflict_issue(pid, other_id, incoming.name, other.name))

        errors += self._missing_prerequisites(added, new_set)
        errors += self.resolver.find_order_loops(new_set)

        # Only collisions the new profiles introduce
        for issue in self.resolver.find_port_collisions(new_set):
            if set(issue.profiles) & set(added):
                errors.append(issue)

        requirements = self.aggregator.aggregate(new_set)
        warnings += self._memory_warnings(requirements)

        suggestions = integration_suggestions(profile_id, current)
        integration = {
            "suggestions": suggestions,
            "newServices": profile.service_names,
            "autoIncluded": [pid for pid in added if pid != profile_id],
            "requirements": requirements.to_dict(),
            "resourceImpact": self.aggregator.additional(current, new_set),
        }

        return self._addition_result(
            profile_id, current, errors, warnings,
            integration=integration,
            startup_order=self.resolver.service_order(self.resolver.profile_order(new_set)),
        )

    def _addition_result(
        self,
        profile_id: str,
        current: list[str],
        errors: list[Issue],
        warnings: list[Issue],
        integration: dict | None = None,
        startup_order: list[str] | None = None,
    ) -> AdditionResult:
        integration = integration or {}
        result = AdditionResult(
            profile_id=profile_id,
            valid=not errors,
            can_add=not errors,
            errors=errors,
            warnings=warnings,
            recommendations=build_recommendations(
                [*errors, *warnings], "add", integration.get("suggestions"),
            ),
            profile=self.catalog.get(profile_id).summary(),
            integration=integration,
            startup_order=startup_order or [],
        )
        logger.info(
            "Addition of %s to %s: canAdd=%s errors=%s",
            profile_id, current, result.can_add, result.error_types(),
        )
        return result

    # ── Removal ─────────────────────────────────────────────────

    def validate_removal(
        self,
        profile_id: str,
        current_profiles: Iterable[str],
    ) -> RemovalResult:
        """Check whether ``profile_id`` can leave ``current_profiles``."""
        profile = self.catalog.get(profile_id)
        current = self.catalog.ordered(current_profiles)
        errors: list[Issue] = []
        warnings: list[Issue] = []

        if profile_id not in current:
            errors.append(Issue(
                type=NOT_INSTALLED,
                message=f"{profile.name} is not installed",
                profile=profile_id,
            ))
            return RemovalResult(
                profile_id=profile_id,
                valid=False,
                can_remove=False,
                errors=errors,
                remaining_profiles=current,
                recommendations=build_recommendations(errors, "remove"),
            )

        survivors = [pid for pid in current if pid != profile_id]

        # 1. Hard dependents
        dependents = [
            pid for pid in survivors if profile_id in self.catalog.get(pid).dependencies
        ]
        if dependents:
            errors.append(Issue(
                type=DEPENDENT_PROFILE,
                message=f"Cannot remove {profile.name}: required by {', '.join(dependents)}",
                profile=profile_id,
                dependentProfiles=dependents,
            ))

        # 2. Prerequisites left without any satisfier
        prerequisite_issues = []
        for pid in survivors:
            survivor = self.catalog.get(pid)
            if profile_id not in survivor.prerequisites:
                continue
            if any(p in survivors for p in survivor.prerequisites):
                continue
            prerequisite_issues.append({
                "profile": pid,
                "prerequisites": list(survivor.prerequisites),
                "message": f"{survivor.name} requires one of: {', '.join(survivor.prerequisites)}",
            })
        if prerequisite_issues:
            affected = [i["profile"] for i in prerequisite_issues]
            alternatives = [
                p for i in prerequisite_issues for p in i["prerequisites"] if p != profile_id
            ]
            errors.append(Issue(
                type=PREREQUISITE_BREAK,
                message=(
                    f"Removing {profile.name} leaves {', '.join(affected)} "
                    "without a required prerequisite"
                ),
                profile=profile_id,
                profiles=affected,
                alternatives=list(dict.fromkeys(alternatives)),
            ))

        # 3. Last node provider
        if profile.provides_node and not any(
            self.catalog.get(pid).provides_node for pid in survivors
        ):
            errors.append(Issue(
                type=LAST_NODE_REMOVAL,
                message=(
                    f"{profile.name} is the only Kaspa node; services relying "
                    "on a local node would stop working"
                ),
                severity="critical",
                profile=profile_id,
                alternatives=[p for p in self.catalog.node_providers() if p != profile_id],
            ))

        # 4. Services other profiles still use
        service_impacts = []
        for name in profile.service_names:
            users = [pid for pid in survivors if name in self.catalog.get(pid).service_names]
            if users:
                service_impacts.append({"service": name, "sharedWith": users})
        shared = [impact["service"] for impact in service_impacts]
        if shared:
            warnings.append(Issue(
                type=SHARED_SERVICE,
                message=f"Shared services will keep running: {', '.join(shared)}",
                severity="medium",
                services=shared,
            ))

        # 5. Data that goes away with the profile
        data_impact = [
            {
                "profile": profile_id,
                "type": volume.type,
                "name": volume.name,
                "description": volume.description,
                "estimatedSize": volume.estimated_size,
                "critical": volume.critical,
            }
            for volume in profile.data
        ]
        critical = [v.name for v in profile.data if v.critical]
        if critical:
            warnings.append(Issue(
                type=DATA_LOSS,
                message=f"Removing {profile.name} deletes critical data: {', '.join(critical)}",
                severity="medium",
                volumes=critical,
            ))

        result = RemovalResult(
            profile_id=profile_id,
            valid=not errors,
            can_remove=not errors,
            errors=errors,
            warnings=warnings,
            recommendations=build_recommendations([*errors, *warnings], "remove"),
            remaining_profiles=survivors,
            dependent_profiles=dependents,
            prerequisite_issues=prerequisite_issues,
            service_impacts=service_impacts,
            shared_services=shared,
            services_to_stop=[n for n in profile.service_names if n not in shared],
            data_impact=data_impact,
        )
        logger.info(
            "Removal of %s from %s: canRemove=%s errors=%s",
            profile_id, current, result.can_remove, result.error_types(),
        )
        return result

    # ── Graph and report ────────────────────────────────────────

    def build_dependency_graph(self, profiles: Iterable[str]) -> DependencyGraph:
        """Nodes for the resolved set, edges for every declared relation inside it."""
        selected = self.catalog.ordered(profiles)
        resolved = self.resolver.expand(selected)
        members = set(resolved)

        nodes = []
        edges: list[GraphEdge] = []
        for pid in resolved:
            profile = self.catalog.get(pid)
            nodes.append(GraphNode(
                id=pid,
                name=profile.name,
                category=profile.category,
                services=profile.service_names,
                ports=profile.ports,
                selected=pid in selected,
                required=pid not in selected,
            ))
            for dep in profile.dependencies:
                edges.append(GraphEdge(source=pid, target=dep, type="dependency"))
            for pre in profile.prerequisites:
                if pre in members:
                    edges.append(GraphEdge(source=pid, target=pre, type="prerequisite"))
            for other in profile.conflicts:
                if other in members:
                    edges.append(GraphEdge(source=pid, target=other, type="conflict"))

        graph = DependencyGraph(nodes=nodes, edges=edges)
        graph.metadata = {
            "profileCount": len(nodes),
            "dependencyCount": len(graph.edges_of("dependency")),
            "prerequisiteCount": len(graph.edges_of("prerequisite")),
            "conflictCount": len(graph.edges_of("conflict")),
        }
        return graph

    def get_validation_report(self, profiles: Iterable[str]) -> dict:
        """Everything the wizard's review step shows, in one payload."""
        selected = self.catalog.ordered(profiles)
        selection = self.validate_selection(selected)
        return {
            "profiles": selected,
            "validation": selection.to_dict(),
            "requirements": selection.requirements.to_dict(),
            "startupOrder": selection.startup_order,
            "graph": self.build_dependency_graph(selected).to_dict(),
            "summary": {
                "valid": selection.valid,
                "profileCount": len(selection.resolved_profiles),
                "errorCount": len(selection.errors),
                "warningCount": len(selection.warnings),
                "recommendationCount": len(selection.recommendations),
            },
            "timestamp": datetime.now(UTC).isoformat(),
        }

    # ── Helpers ─────────────────────────────────────────────────

    def _missing_prerequisites(
        self,
        profile_ids: Iterable[str],
        available: Iterable[str],
    ) -> list[Issue]:
        present = set(available)
        issues = []
        for pid in profile_ids:
            profile = self.catalog.get(pid)
            if profile.prerequisites and not present & set(profile.prerequisites):
                issues.append(Issue(
                    type=MISSING_PREREQUISITE,
                    message=(
                        f"{profile.name} requires one of: {', '.join(profile.prerequisites)}"
                    ),
                    profile=pid,
                    prerequisites=list(profile.prerequisites),
                ))
        return issues

    def _memory_warnings(self, requirements: ResourceRequirement) -> list[Issue]:
        threshold = self.settings.high_memory_threshold_gb
        if requirements.min_memory <= threshold:
            return []
        return [Issue(
            type=RESOURCE_SHORTFALL,
            message=(
                f"Combined minimum memory is {requirements.min_memory}GB, "
                f"above the {threshold}GB sizing guideline"
            ),
            severity="medium",
            requiredMemory=requirements.min_memory,
            threshold=threshold,
        )]
