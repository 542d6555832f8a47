"""
Profile routes — selection validation and reconfiguration checks.

Blueprint: profiles_bp
Prefix: /api

Endpoints:
    GET  /profiles                    — catalog profiles, installed flag
    POST /profiles/validate           — validate a fresh selection
    POST /profiles/validate-addition  — can a profile join the installation?
    POST /profiles/validate-removal   — can a profile leave the installation?
    POST /profiles/graph              — dependency graph of a selection
    POST /profiles/startup-order      — service startup sequence
"""

from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request

from kaspa_aio.core.services.catalog import UnknownProfileError
from kaspa_aio.ui.web.helpers import current_profiles, engine, string_list

logger = logging.getLogger(__name__)

profiles_bp = Blueprint("profiles", __name__)


# ── Catalog ─────────────────────────────────────────────────────────


@profiles_bp.route("/profiles")
def api_profiles():  # type: ignore[no-untyped-def]
    """All profiles in catalog order."""
    eng = engine()
    installed = set(eng.load_state().installed_profiles)
    return jsonify({
        "profiles": [
            {
                **p.summary(),
                "dependencies": list(p.dependencies),
                "prerequisites": list(p.prerequisites),
                "conflicts": list(p.conflicts),
                "ports": p.ports,
                "providesNode": p.provides_node,
                "resources": p.resources.model_dump(),
                "installed": p.id in installed,
            }
            for p in eng.catalog
        ],
        "version": eng.catalog.version,
    })


# ── Selection ───────────────────────────────────────────────────────


@profiles_bp.route("/profiles/validate", methods=["POST"])
def api_validate():  # type: ignore[no-untyped-def]
    """Validate a profile selection.

    JSON body:
        profiles:  list of profile ids
        report:    optional, return the full review-page report
    """
    data = request.get_json(silent=True) or {}
    profiles = string_list(data, "profiles")
    if profiles is None:
        return jsonify({"error": "'profiles' must be a list of profile ids"}), 400

    try:
        if data.get("report"):
            return jsonify(engine().validator.get_validation_report(profiles))
        result = engine().validator.validate_selection(profiles)
    except UnknownProfileError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(result.to_dict())


@profiles_bp.route("/profiles/graph", methods=["POST"])
def api_graph():  # type: ignore[no-untyped-def]
    """Dependency graph for visualization."""
    data = request.get_json(silent=True) or {}
    profiles = string_list(data, "profiles")
    if profiles is None:
        return jsonify({"error": "'profiles' must be a list of profile ids"}), 400

    try:
        graph = engine().validator.build_dependency_graph(profiles)
    except UnknownProfileError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(graph.to_dict())


@profiles_bp.route("/profiles/startup-order", methods=["POST"])
def api_startup_order():  # type: ignore[no-untyped-def]
    """Service startup order of the resolved selection."""
    data = request.get_json(silent=True) or {}
    profiles = string_list(data, "profiles")
    if profiles is None:
        return jsonify({"error": "'profiles' must be a list of profile ids"}), 400

    try:
        resolution = engine().resolver.resolve(profiles)
    except UnknownProfileError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({
        "valid": resolution.ok,
        "profiles": resolution.profile_order,
        "startupOrder": resolution.startup_order,
        "errors": [e.to_dict() for e in resolution.errors],
    })


# ── Reconfiguration ─────────────────────────────────────────────────


def _reconfiguration_body() -> tuple[str, list[str]] | tuple[None, str]:
    data = request.get_json(silent=True) or {}
    profile_id = data.get("profileId")
    if not isinstance(profile_id, str) or not profile_id:
        return None, "Missing 'profileId'"
    current = current_profiles(data)
    if current is None:
        return None, "'currentProfiles' must be a list of profile ids"
    return profile_id, current


@profiles_bp.route("/profiles/validate-addition", methods=["POST"])
def api_validate_addition():  # type: ignore[no-untyped-def]
    """Check adding a profile.

    JSON body:
        profileId:        profile to add
        currentProfiles:  optional, defaults to the installation state
    """
    profile_id, current = _reconfiguration_body()
    if profile_id is None:
        return jsonify({"error": current}), 400

    try:
        result = engine().validator.validate_addition(profile_id, current)
    except UnknownProfileError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(result.to_dict())


@profiles_bp.route("/profiles/validate-removal", methods=["POST"])
def api_validate_removal():  # type: ignore[no-untyped-def]
    """Check removing a profile.

    JSON body:
        profileId:        profile to remove
        currentProfiles:  optional, defaults to the installation state
    """
    profile_id, current = _reconfiguration_body()
    if profile_id is None:
        return jsonify({"error": current}), 400

    try:
        result = engine().validator.validate_removal(profile_id, current)
    except UnknownProfileError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(result.to_dict())
