"""
Template routes — list, validate, apply and recommend templates.

Blueprint: templates_bp
Prefix: /api

Endpoints:
    GET  /templates                 — all templates (?useCase=, ?tag=)
    GET  /templates/<id>/validate   — profile-set check of one template
    POST /templates/<id>/apply      — merged configuration, diff, warnings
    POST /templates/recommend       — templates ranked for a host
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from kaspa_aio.core.models.resources import SystemResources
from kaspa_aio.core.services.catalog import UnknownTemplateError
from kaspa_aio.core.services.resources import recommend_templates
from kaspa_aio.ui.web.helpers import engine

templates_bp = Blueprint("templates", __name__)


@templates_bp.route("/templates")
def api_templates():  # type: ignore[no-untyped-def]
    """Templates, optionally filtered by use case or tags."""
    catalog = engine().catalog
    use_case = request.args.get("useCase")
    tags = request.args.getlist("tag")
    if use_case:
        found = catalog.templates_by_use_case(use_case)
    elif tags:
        found = catalog.templates_by_tags(tags)
    else:
        found = catalog.templates
    return jsonify({"templates": [t.model_dump(mode="json") for t in found]})


@templates_bp.route("/templates/<template_id>/validate")
def api_template_validate(template_id: str):  # type: ignore[no-untyped-def]
    try:
        return jsonify(engine().synchronizer.validate_template(template_id))
    except UnknownTemplateError as e:
        return jsonify({"error": str(e)}), 400


@templates_bp.route("/templates/<template_id>/apply", methods=["POST"])
def api_template_apply(template_id: str):  # type: ignore[no-untyped-def]
    """Preview a template on top of the current configuration.

    JSON body:
        currentConfig:  optional, defaults to the installation state's
        overrides:      optional KEY → value; null removes the key
    """
    data = request.get_json(silent=True) or {}
    current = data.get("currentConfig")
    if current is None:
        current = engine().load_state().configuration
    if not isinstance(current, dict):
        return jsonify({"error": "'currentConfig' must be an object"}), 400

    overrides = data.get("overrides") or {}
    if not isinstance(overrides, dict):
        return jsonify({"error": "'overrides' must be an object"}), 400

    try:
        update = engine().synchronizer.apply_template(
            template_id,
            {k: str(v) for k, v in current.items()},
            overrides,
        )
    except UnknownTemplateError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(update.to_dict())


@templates_bp.route("/templates/recommend", methods=["POST"])
def api_template_recommend():  # type: ignore[no-untyped-def]
    """Rank templates.

    JSON body:
        systemResources:  {cpu, memory, disk}
        useCase:          optional
    """
    data = request.get_json(silent=True) or {}
    system = data.get("systemResources")
    if not isinstance(system, dict):
        return jsonify({"error": "Missing 'systemResources'"}), 400
    try:
        resources = SystemResources.model_validate(system)
    except ValueError as e:
        return jsonify({"error": f"Invalid 'systemResources': {e}"}), 400

    ranked = recommend_templates(engine().catalog.templates, resources, data.get("useCase"))
    return jsonify({"recommendations": ranked})
