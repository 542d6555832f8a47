"""
Dependency routes — external reachability checks.

Blueprint: dependencies_bp
Prefix: /api

Endpoints:
    GET  /dependencies/<service>   — probe one service's external deps
    POST /dependencies/check       — probe several services + connectivity
    POST /dependencies/startup     — startup gate for a profile set
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from kaspa_aio.core.services.catalog import UnknownProfileError
from kaspa_aio.ui.web.helpers import current_profiles, engine, string_list

dependencies_bp = Blueprint("dependencies", __name__)


def _timeout() -> float | None:
    raw = request.args.get("timeout")
    if raw is None:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if value > 0 else None


@dependencies_bp.route("/dependencies/<service>")
def api_service_dependencies(service: str):  # type: ignore[no-untyped-def]
    """External dependencies of one service (?timeout=, ?requireCritical=)."""
    require_critical = request.args.get("requireCritical", "false").lower() in ("true", "1", "yes")
    result = engine().checker.validate_service_dependencies(
        service, timeout=_timeout(), require_critical=require_critical,
    )
    return jsonify(result)


@dependencies_bp.route("/dependencies/check", methods=["POST"])
def api_check_dependencies():  # type: ignore[no-untyped-def]
    """Probe several services.

    JSON body:
        services:           optional, defaults to every declared service
        checkConnectivity:  optional, default true
    """
    data = request.get_json(silent=True) or {}
    if "services" in data:
        services = string_list(data, "services")
        if services is None:
            return jsonify({"error": "'services' must be a list of service names"}), 400
    else:
        services = engine().catalog.services_with_dependencies

    result = engine().checker.validate_multiple_services(
        services,
        timeout=_timeout(),
        check_connectivity=bool(data.get("checkConnectivity", True)),
    )
    return jsonify(result)


@dependencies_bp.route("/dependencies/startup", methods=["POST"])
def api_startup_dependencies():  # type: ignore[no-untyped-def]
    """Startup gate.

    JSON body:
        currentProfiles:  optional, defaults to the installation state
        force:            optional, bypass the result cache
    """
    data = request.get_json(silent=True) or {}
    profiles = current_profiles(data)
    if profiles is None:
        return jsonify({"error": "'currentProfiles' must be a list of profile ids"}), 400

    try:
        report = engine().startup.check_profiles(profiles, force=bool(data.get("force")))
    except UnknownProfileError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(report)
