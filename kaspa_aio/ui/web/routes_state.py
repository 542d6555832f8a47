"""
State routes — the installation as the engine sees it.

Blueprint: state_bp
Prefix: /api

Endpoints:
    GET  /state   — installed profiles, timestamps, re-validation
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from kaspa_aio.core.use_cases.status import get_status
from kaspa_aio.ui.web.helpers import engine

state_bp = Blueprint("state", __name__)


@state_bp.route("/state")
def api_state():  # type: ignore[no-untyped-def]
    """Installation state (?resources=true adds a host resource check)."""
    detect = request.args.get("resources", "false").lower() in ("true", "1", "yes")
    result = get_status(engine(), detect_resources=detect)
    payload = result.to_dict()
    payload["history"] = [h.model_dump(mode="json") for h in result.state.history]
    return jsonify(payload)
