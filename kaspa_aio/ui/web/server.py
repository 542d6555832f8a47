"""
Validation API server — Flask app factory.

Creates the Flask application the installation wizard talks to.  All
endpoints are JSON under ``/api``; the engine is built once and shared
by every request.
"""

from __future__ import annotations

import logging
from pathlib import Path

from flask import Flask, jsonify

from kaspa_aio.core.config.loader import ConfigError
from kaspa_aio.core.engine import Engine

logger = logging.getLogger(__name__)


def create_app(
    project_root: Path | None = None,
    settings_path: Path | None = None,
    engine: Engine | None = None,
) -> Flask:
    """Create and configure the Flask application.

    Args:
        project_root: Root directory of the installation.
        settings_path: Path to kaspa-aio.yml.
        engine: Prebuilt engine. When omitted it is loaded on the first
            request from ``settings_path``.

    Returns:
        Configured Flask application.
    """
    app = Flask(__name__)

    app.config["ENGINE"] = engine
    app.config["SETTINGS_PATH"] = str(settings_path) if settings_path else None
    if project_root is None and engine is not None:
        project_root = engine.project_root
    app.config["PROJECT_ROOT"] = str(project_root or Path.cwd())

    # Register blueprints
    from kaspa_aio.ui.web.routes_dependencies import dependencies_bp
    from kaspa_aio.ui.web.routes_profiles import profiles_bp
    from kaspa_aio.ui.web.routes_state import state_bp
    from kaspa_aio.ui.web.routes_templates import templates_bp

    app.register_blueprint(profiles_bp, url_prefix="/api")
    app.register_blueprint(templates_bp, url_prefix="/api")
    app.register_blueprint(dependencies_bp, url_prefix="/api")
    app.register_blueprint(state_bp, url_prefix="/api")

    @app.errorhandler(ConfigError)
    def _config_error(e: ConfigError):  # type: ignore[no-untyped-def]
        logger.error("Configuration error: %s", e)
        return jsonify({"error": str(e)}), 500

    logger.info("Validation API app created (root=%s)", app.config["PROJECT_ROOT"])
    return app


def run_server(
    app: Flask,
    host: str = "127.0.0.1",
    port: int = 8000,
    debug: bool = False,
) -> None:
    """Run the Flask development server."""
    logger.info("Starting validation API on %s:%d", host, port)
    app.run(host=host, port=port, debug=debug, use_reloader=False)
