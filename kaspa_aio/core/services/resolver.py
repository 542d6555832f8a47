"""
Dependency resolver — expands a profile request into an ordered topology.

Pure functions over the catalog; no I/O.

    requested ──expand──▶ resolved set ──Kahn──▶ profile order ──▶ service order

Cycles among ``dependencies`` fail the resolution closed (nothing is
returned but the cycle errors).  Conflicts and port collisions are
collected exhaustively rather than stopping at the first one.
"""

from __future__ import annotations

import heapq
import logging
from collections.abc import Iterable

from kaspa_aio.core.models.resolution import Resolution
from kaspa_aio.core.models.validation import CIRCULAR_DEPENDENCY, CONFLICT, PORT_COLLISION, Issue
from kaspa_aio.core.services.catalog import ProfileCatalog

logger = logging.getLogger(__name__)


class DependencyResolver:
    """Resolve requested profiles against a catalog."""

    def __init__(self, catalog: ProfileCatalog):
        self.catalog = catalog

    # ── Public API ──────────────────────────────────────────────

    def resolve(self, requested: Iterable[str]) -> Resolution:
        """Expand, check and order a requested profile set.

        Raises:
            UnknownProfileError: If any requested id is not in the catalog.
        """
        requested_ids = self.catalog.ordered(requested)
        if not requested_ids:
            return Resolution()

        cycles = self.detect_cycles(requested_ids)
        if cycles:
            logger.info("Resolution of %s failed: %d cycle(s)", requested_ids, len(cycles))
            return Resolution(
                requested=requested_ids,
                errors=[_cycle_issue(c) for c in cycles],
                cycles=cycles,
            )

        resolved = self.expand(requested_ids)
        errors = self.find_conflicts(resolved)
        profile_order, stuck = self._kahn(resolved)
        if stuck:
            # No order satisfies every edge
            logger.info("Resolution of %s has no startup order: loop among %s", requested_ids, stuck)
            errors.append(_order_loop_issue(stuck))
            profile_order = []

        resolution = Resolution(
            requested=requested_ids,
            resolved=resolved,
            profile_order=profile_order,
            startup_order=self.service_order(profile_order),
            errors=errors,
        )
        logger.debug("Resolved %s -> %s", requested_ids, profile_order)
        return resolution

    def expand(self, requested: Iterable[str]) -> list[str]:
        """Transitive closure under ``dependencies``, in catalog order."""
        pending = list(self.catalog.ordered(requested))
        seen: set[str] = set(pending)
        while pending:
            profile = self.catalog.get(pending.pop())
            for dep in profile.dependencies:
                if dep not in seen:
                    seen.add(dep)
                    pending.append(dep)
        return self.catalog.ordered(seen)

    def detect_cycles(self, requested: Iterable[str] | None = None) -> list[list[str]]:
        """Find dependency cycles reachable from ``requested``.

        Each cycle is reported once, as the path that closes it, e.g.
        ``["a", "b", "a"]``.  With no argument the whole catalog is scanned.
        """
        roots = (
            self.catalog.profile_ids if requested is None else self.catalog.ordered(requested)
        )
        cycles: list[list[str]] = []
        reported: set[frozenset[str]] = set()
        finished: set[str] = set()

        def visit(pid: str, path: list[str]) -> None:
            if pid in path:
                cycle = path[path.index(pid):] + [pid]
                key = frozenset(cycle)
                if key not in reported:
                    reported.add(key)
                    cycles.append(cycle)
                return
            if pid in finished:
                return
            path.append(pid)
            for dep in self.catalog.get(pid).dependencies:
                visit(dep, path)
            path.pop()
            finished.add(pid)

        for root in roots:
            visit(root, [])
        return cycles

    def find_conflicts(self, profile_ids: Iterable[str]) -> list[Issue]:
        """One ConflictError per conflicting pair, whichever side declared it."""
        ids = self.catalog.ordered(profile_ids)
        issues: list[Issue] = []
        for i, a_id in enumerate(ids):
            a = self.catalog.get(a_id)
            for b_id in ids[i + 1:]:
                b = self.catalog.get(b_id)
                if a.conflicts_with(b):
                    issues.append(conflict_issue(a.id, b.id, a.name, b.name))
        return issues

    def find_port_collisions(self, profile_ids: Iterable[str]) -> list[Issue]:
        """One PortCollisionError per port claimed by two or more distinct services.

        The same service name appearing in several profiles is one
        container, so it never collides with itself.
        """
        claims: dict[int, list[tuple[str, str]]] = {}
        for pid in self.catalog.ordered(profile_ids):
            for service in self.catalog.get(pid).services:
                for port in sorted(service.ports):
                    owners = claims.setdefault(port, [])
                    if all(name != service.name for name, _ in owners):
                        owners.append((service.name, pid))

        issues: list[Issue] = []
        for port in sorted(claims):
            owners = claims[port]
            if len(owners) < 2:
                continue
            described = " and ".join(f"{name} ({pid})" for name, pid in owners)
            issues.append(Issue(
                type=PORT_COLLISION,
                message=f"Port {port} is claimed by {described}",
                port=port,
                services=[name for name, _ in owners],
                profiles=[pid for _, pid in owners],
            ))
        return issues

    def profile_order(self, profile_ids: Iterable[str]) -> list[str]:
        """Topologically sort profiles (Kahn), ties broken by catalog order.

        Edges: dependency → dependent, and prerequisite → profile when the
        prerequisite is part of the set.  Profiles caught in a loop of
        those edges are appended in catalog order; ``resolve`` reports
        such a loop as an error instead.
        """
        order, stuck = self._kahn(profile_ids)
        if stuck:
            logger.warning("Ordering loop among %s, appending in catalog order", stuck)
            order.extend(stuck)
        return order

    def find_order_loops(self, profile_ids: Iterable[str]) -> list[Issue]:
        """CircularDependencyError when dependencies and prerequisites leave no startup order."""
        _, stuck = self._kahn(profile_ids)
        return [_order_loop_issue(stuck)] if stuck else []

    def _kahn(self, profile_ids: Iterable[str]) -> tuple[list[str], list[str]]:
        """(ordered profiles, profiles left unordered by a loop)."""
        ids = self.catalog.ordered(profile_ids)
        members = set(ids)
        in_degree: dict[str, int] = {pid: 0 for pid in ids}
        successors: dict[str, list[str]] = {pid: [] for pid in ids}

        for pid in ids:
            profile = self.catalog.get(pid)
            for before in (*profile.dependencies, *profile.prerequisites):
                if before in members and pid not in successors[before]:
                    successors[before].append(pid)
                    in_degree[pid] += 1

        heap = [(self.catalog.position(pid), pid) for pid in ids if in_degree[pid] == 0]
        heapq.heapify(heap)
        order: list[str] = []
        while heap:
            _, pid = heapq.heappop(heap)
            order.append(pid)
            for succ in successors[pid]:
                in_degree[succ] -= 1
                if in_degree[succ] == 0:
                    heapq.heappush(heap, (self.catalog.position(succ), succ))

        # Only loops through a prerequisite edge are left here; pure
        # dependency cycles are rejected before ordering.
        stuck = [pid for pid in ids if pid not in order]
        return order, stuck

    def service_order(self, profile_order: Iterable[str]) -> list[str]:
        """Flatten ordered profiles into a deduplicated service start sequence."""
        services: list[str] = []
        for pid in profile_order:
            for name in self.catalog.get(pid).service_names:
                if name not in services:
                    services.append(name)
        return services


def _cycle_issue(cycle: list[str]) -> Issue:
    return Issue(
        type=CIRCULAR_DEPENDENCY,
        message="Circular dependency detected: " + " -> ".join(cycle),
        severity="critical",
        cycle=cycle,
    )


def _order_loop_issue(profile_ids: list[str]) -> Issue:
    return Issue(
        type=CIRCULAR_DEPENDENCY,
        message=(
            "No startup order exists: dependencies and prerequisites form a loop involving "
            + ", ".join(profile_ids)
        ),
        severity="critical",
        profiles=profile_ids,
    )


def conflict_issue(a_id: str, b_id: str, a_name: str = "", b_name: str = "") -> Issue:
    """ConflictError naming both profiles."""
    return Issue(
        type=CONFLICT,
        message=f"{a_name or a_id} conflicts with {b_name or b_id}",
        profiles=[a_id, b_id],
    )
