"""
Recommendations — fixed mapping from issue types to next steps.

The text is not generated from the situation beyond filling in ids:
each issue type always yields the same card, so the wizard output is
stable and testable.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

from kaspa_aio.core.models.validation import (
    ALREADY_INSTALLED,
    CIRCULAR_DEPENDENCY,
    CONFLICT,
    DATA_LOSS,
    DEPENDENT_PROFILE,
    LAST_NODE_REMOVAL,
    MISSING_PREREQUISITE,
    NOT_INSTALLED,
    PORT_COLLISION,
    PREREQUISITE_BREAK,
    PRIORITY_ORDER,
    RESOURCE_SHORTFALL,
    SHARED_SERVICE,
    Issue,
    Recommendation,
)


def _ctx(issue: Issue, key: str, default: Any = None) -> Any:
    return (issue.model_extra or {}).get(key, default)


def _flatten(issues: list[Issue], key: str) -> list[str]:
    values: list[str] = []
    for issue in issues:
        for value in _ctx(issue, key, []):
            if value not in values:
                values.append(value)
    return values


# ── Per issue type ──────────────────────────────────────────────


def _cycle(issues: list[Issue]) -> Recommendation:
    return Recommendation(
        priority="critical",
        category="catalog",
        title="Fix Circular Dependency",
        message="The profile catalog declares a dependency cycle; no startup order exists.",
        actions=[i.message for i in issues],
    )


def _conflict(issues: list[Issue]) -> Recommendation:
    pairs = [_ctx(i, "profiles", []) for i in issues]
    return Recommendation(
        priority="high",
        category="conflicts",
        title="Resolve Profile Conflicts",
        message="Conflicting profiles cannot run together. Remove one side of each conflict.",
        actions=[f"Choose between {a} and {b}" for a, b in pairs],
    )


def _missing_prerequisite(issues: list[Issue]) -> Recommendation:
    options = _flatten(issues, "prerequisites")
    return Recommendation(
        priority="high",
        category="prerequisites",
        title="Install Required Prerequisites",
        message=f"Install one of: {', '.join(options)}",
        actions=[f"Install {pid}" for pid in options],
    )


def _port_collision(issues: list[Issue]) -> Recommendation:
    return Recommendation(
        priority="high",
        category="ports",
        title="Resolve Port Conflicts",
        message="Two services cannot listen on the same host port.",
        actions=[
            f"Change port {_ctx(i, 'port')} for one of: {', '.join(_ctx(i, 'services', []))}"
            for i in issues
        ],
    )


def _already_installed(issues: list[Issue]) -> Recommendation:
    return Recommendation(
        priority="low",
        category="configuration",
        title="Reconfigure Instead",
        message="The profile is already installed. Use reconfiguration to change its settings.",
        actions=["Open the reconfiguration view"],
    )


def _not_installed(issues: list[Issue]) -> Recommendation:
    return Recommendation(
        priority="low",
        category="configuration",
        title="Nothing To Remove",
        message="The profile is not part of the current installation.",
        actions=["Refresh the installation state"],
    )


def _dependent_profiles(issues: list[Issue]) -> Recommendation:
    dependents = _flatten(issues, "dependentProfiles")
    return Recommendation(
        priority="high",
        category="dependencies",
        title="Remove Dependent Profiles First",
        message=f"These profiles depend on it: {', '.join(dependents)}",
        actions=[f"Remove {pid}" for pid in dependents],
    )


def _prerequisite_break(issues: list[Issue]) -> Recommendation:
    alternatives = _flatten(issues, "alternatives")
    return Recommendation(
        priority="high",
        category="prerequisites",
        title="Install Alternative Prerequisites",
        message="Some remaining profiles would lose their only satisfied prerequisite.",
        actions=[f"Install {pid} first" for pid in alternatives] or ["Remove the affected profiles"],
    )


def _last_node(issues: list[Issue]) -> Recommendation:
    alternatives = _flatten(issues, "alternatives")
    return Recommendation(
        priority="critical",
        category="node",
        title="Install Alternative Node Profile",
        message="Removing the only node leaves node-dependent services non-functional.",
        actions=[f"Install {pid} before removing this profile" for pid in alternatives],
    )


def _shared_services(issues: list[Issue]) -> Recommendation:
    services = _flatten(issues, "services")
    return Recommendation(
        priority="medium",
        category="services",
        title="Shared Services Stay Running",
        message=f"Still used by other profiles: {', '.join(services)}",
        actions=["Leave shared containers running"],
    )


def _resources(issues: list[Issue]) -> Recommendation:
    return Recommendation(
        priority="medium",
        category="resources",
        title="Check System Resources",
        message="The resulting installation needs more resources than typical hosts provide.",
        actions=[i.message for i in issues],
    )


def _data_loss(issues: list[Issue]) -> Recommendation:
    volumes = _flatten(issues, "volumes")
    return Recommendation(
        priority="medium",
        category="data",
        title="Preserve Critical Data",
        message=f"Removal deletes: {', '.join(volumes)}",
        actions=["Keep data volumes when removing", "Export data you cannot re-sync"],
    )


_BUILDERS: dict[str, Callable[[list[Issue]], Recommendation]] = {
    CIRCULAR_DEPENDENCY: _cycle,
    CONFLICT: _conflict,
    MISSING_PREREQUISITE: _missing_prerequisite,
    PORT_COLLISION: _port_collision,
    ALREADY_INSTALLED: _already_installed,
    NOT_INSTALLED: _not_installed,
    DEPENDENT_PROFILE: _dependent_profiles,
    PREREQUISITE_BREAK: _prerequisite_break,
    LAST_NODE_REMOVAL: _last_node,
    SHARED_SERVICE: _shared_services,
    RESOURCE_SHORTFALL: _resources,
    DATA_LOSS: _data_loss,
}


# ── Assembly ────────────────────────────────────────────────────


def build_recommendations(
    issues: Iterable[Issue],
    operation: str,
    integration_suggestions: list[dict] | None = None,
) -> list[Recommendation]:
    """Map issues to recommendations, highest priority first.

    Args:
        issues: Errors followed by warnings, in emission order.
        operation: ``"add"``, ``"remove"`` or ``"select"``.  Additions and
            removals always end with a backup reminder.
        integration_suggestions: Suggestions from the integration table.
    """
    grouped: dict[str, list[Issue]] = {}
    for issue in issues:
        grouped.setdefault(issue.type, []).append(issue)

    recs = [_BUILDERS[t](group) for t, group in grouped.items() if t in _BUILDERS]

    if integration_suggestions:
        recs.append(Recommendation(
            priority="medium",
            category="integration",
            title="Review Integration Options",
            message="The new profile can be connected to services you already run.",
            actions=[s["title"] for s in integration_suggestions],
        ))

    if operation == "remove":
        recs.append(Recommendation(
            priority="low",
            category="backup",
            title="Backup Data Before Removal",
            message="Create a backup of profile data before removing it.",
            actions=["Back up data volumes", "Back up the .env configuration"],
        ))
    elif operation == "add":
        recs.append(Recommendation(
            priority="low",
            category="backup",
            title="Backup Configuration Before Adding",
            message="Save the current configuration so the change can be rolled back.",
            actions=["Back up the .env configuration"],
        ))

    # sorted() is stable: equal priorities keep emission order
    return sorted(recs, key=lambda r: PRIORITY_ORDER[r.priority])
