"""
Tests for the validation API — app factory and JSON routes.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from flask.testing import FlaskClient

from kaspa_aio.core.engine import Engine
from kaspa_aio.core.models.state import InstallationState
from kaspa_aio.core.persistence.state_file import save_state
from kaspa_aio.core.services import external_deps
from kaspa_aio.ui.web.server import create_app


@pytest.fixture()
def client(engine: Engine) -> FlaskClient:
    """Test client over an engine rooted in tmp_path."""
    app = create_app(engine=engine)
    app.config["TESTING"] = True
    return app.test_client()


@pytest.fixture()
def installed(engine: Engine) -> InstallationState:
    state = InstallationState(configuration={"KASPA_NETWORK": "mainnet"})
    state.record("install")
    state.record("add-profile", "core")
    state.record("add-profile", "indexer-services")
    save_state(state, engine.state_path)
    return state


class TestAppFactory:
    """Tests for create_app."""

    def test_config(self, engine: Engine):
        app = create_app(engine=engine)
        assert app.config["ENGINE"] is engine
        assert app.config["PROJECT_ROOT"] == str(engine.project_root)

    def test_blueprints_under_api(self, engine: Engine):
        app = create_app(engine=engine)
        rules = {r.rule for r in app.url_map.iter_rules()}
        assert "/api/profiles" in rules
        assert "/api/templates/recommend" in rules
        assert "/api/dependencies/startup" in rules
        assert "/api/state" in rules

    def test_lazy_engine_from_settings(self, tmp_path: Path):
        settings = tmp_path / "kaspa-aio.yml"
        settings.write_text("state_file: state.json\n")
        app = create_app(settings_path=settings)
        app.config["TESTING"] = True
        resp = app.test_client().get("/api/profiles")
        assert resp.status_code == 200
        assert isinstance(app.config["ENGINE"], Engine)

    def test_config_error_is_500(self, tmp_path: Path):
        app = create_app(settings_path=tmp_path / "missing.yml")
        app.config["TESTING"] = True
        resp = app.test_client().get("/api/profiles")
        assert resp.status_code == 500
        assert "Settings file not found" in resp.get_json()["error"]


class TestProfilesAPI:
    """Tests for /api/profiles*."""

    def test_list(self, client: FlaskClient, installed):
        data = client.get("/api/profiles").get_json()
        by_id = {p["id"]: p for p in data["profiles"]}
        assert by_id["core"]["installed"] is True
        assert by_id["mining"]["installed"] is False
        assert by_id["mining"]["prerequisites"] == ["core", "archive-node"]
        assert by_id["core"]["providesNode"] is True
        assert 16110 in by_id["core"]["ports"]
        assert data["version"]

    def test_validate(self, client: FlaskClient):
        resp = client.post("/api/profiles/validate", json={"profiles": ["core", "mining"]})
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["valid"] is True
        assert data["startupOrder"] == ["kaspa-node", "wallet", "kaspa-stratum"]

    def test_validate_invalid_selection_is_200(self, client: FlaskClient):
        resp = client.post("/api/profiles/validate", json={"profiles": ["mining"]})
        assert resp.status_code == 200
        assert resp.get_json()["valid"] is False

    def test_validate_report(self, client: FlaskClient):
        resp = client.post("/api/profiles/validate", json={"profiles": ["core"], "report": True})
        data = resp.get_json()
        assert data["summary"]["valid"] is True
        assert "graph" in data

    def test_validate_unknown(self, client: FlaskClient):
        resp = client.post("/api/profiles/validate", json={"profiles": ["ghost"]})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Unknown profile: ghost"

    def test_validate_bad_body(self, client: FlaskClient):
        resp = client.post("/api/profiles/validate", json={"profiles": "core"})
        assert resp.status_code == 400

    def test_graph(self, client: FlaskClient):
        resp = client.post("/api/profiles/graph", json={"profiles": ["core", "mining"]})
        data = resp.get_json()
        assert {n["id"] for n in data["nodes"]} == {"core", "mining"}
        assert data["metadata"]["prerequisiteCount"] == 1

    def test_startup_order(self, client: FlaskClient):
        resp = client.post("/api/profiles/startup-order", json={"profiles": ["core"]})
        data = resp.get_json()
        assert data["valid"] is True
        assert data["startupOrder"][0] == "kaspa-node"

    def test_addition_with_current(self, client: FlaskClient):
        resp = client.post(
            "/api/profiles/validate-addition",
            json={"profileId": "mining", "currentProfiles": []},
        )
        data = resp.get_json()
        assert resp.status_code == 200
        assert data["canAdd"] is False
        assert data["errors"][0]["prerequisites"] == ["core", "archive-node"]

    def test_addition_defaults_to_installed(self, client: FlaskClient, installed):
        resp = client.post("/api/profiles/validate-addition", json={"profileId": "mining"})
        assert resp.get_json()["canAdd"] is True

    def test_addition_missing_profile_id(self, client: FlaskClient):
        resp = client.post("/api/profiles/validate-addition", json={})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Missing 'profileId'"

    def test_removal(self, client: FlaskClient, installed):
        resp = client.post("/api/profiles/validate-removal", json={"profileId": "core"})
        data = resp.get_json()
        assert data["canRemove"] is False
        assert data["errors"][0]["type"] == "LastNodeRemovalError"

    def test_removal_unknown(self, client: FlaskClient):
        resp = client.post(
            "/api/profiles/validate-removal",
            json={"profileId": "ghost", "currentProfiles": ["core"]},
        )
        assert resp.status_code == 400

    def test_corrupt_state_is_500(self, client: FlaskClient, engine: Engine):
        engine.state_path.parent.mkdir(parents=True, exist_ok=True)
        engine.state_path.write_text('{"installedProfiles": ["core"], "configura')
        resp = client.post(
            "/api/profiles/validate-addition", json={"profileId": "archive-node"},
        )
        assert resp.status_code == 500
        assert "Corrupt state file" in resp.get_json()["error"]


class TestTemplatesAPI:
    """Tests for /api/templates*."""

    def test_list(self, client: FlaskClient):
        data = client.get("/api/templates").get_json()
        assert [t["id"] for t in data["templates"]][:2] == ["beginner-setup", "full-node"]

    def test_list_by_tag(self, client: FlaskClient):
        data = client.get("/api/templates?tag=testnet").get_json()
        assert [t["id"] for t in data["templates"]] == ["developer-setup"]

    def test_validate(self, client: FlaskClient):
        data = client.get("/api/templates/full-node/validate").get_json()
        assert data["valid"] is True

    def test_apply(self, client: FlaskClient):
        resp = client.post(
            "/api/templates/developer-setup/apply",
            json={"currentConfig": {"KASPA_NETWORK": "mainnet"}, "overrides": {"LOG_LEVEL": None}},
        )
        data = resp.get_json()
        assert data["requiresConfirmation"] is True
        assert "LOG_LEVEL" not in data["configuration"]
        assert data["profiles"][-1] == "developer-mode"

    def test_apply_defaults_to_state_config(self, client: FlaskClient, installed):
        data = client.post("/api/templates/developer-setup/apply", json={}).get_json()
        network = [c for c in data["changes"] if c["key"] == "KASPA_NETWORK"]
        assert network[0]["type"] == "modified"

    def test_apply_unknown(self, client: FlaskClient):
        resp = client.post("/api/templates/nope/apply", json={})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Unknown template: nope"

    def test_recommend(self, client: FlaskClient):
        resp = client.post(
            "/api/templates/recommend",
            json={"systemResources": {"cpu": 16, "memory": 64, "disk": 5000}, "useCase": "mining"},
        )
        assert resp.get_json()["recommendations"][0]["template"] == "mining-setup"

    def test_recommend_missing_resources(self, client: FlaskClient):
        resp = client.post("/api/templates/recommend", json={"useCase": "mining"})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Missing 'systemResources'"


class TestDependenciesAPI:
    """Tests for /api/dependencies* with probes stubbed."""

    @pytest.fixture(autouse=True)
    def _all_up(self, monkeypatch):
        def fake(dependency, timeout=None):
            return {"reachable": True, "url": dependency.url, "status": 200, "latency_ms": 1}

        monkeypatch.setattr(external_deps, "probe", fake)

    def test_single_service(self, client: FlaskClient):
        data = client.get("/api/dependencies/kasia-app?requireCritical=true").get_json()
        assert data["valid"] is True
        assert data["blocking"] is False
        assert data["summary"]["total"] == 2

    def test_check(self, client: FlaskClient):
        resp = client.post(
            "/api/dependencies/check",
            json={"services": ["k-social"], "checkConnectivity": False},
        )
        data = resp.get_json()
        assert data["valid"] is True
        assert list(data["services"]) == ["k-social"]

    def test_check_bad_services(self, client: FlaskClient):
        resp = client.post("/api/dependencies/check", json={"services": "k-social"})
        assert resp.status_code == 400

    def test_startup(self, client: FlaskClient):
        resp = client.post(
            "/api/dependencies/startup",
            json={"currentProfiles": ["core", "kaspa-user-applications"]},
        )
        data = resp.get_json()
        assert data["ready"] is True
        assert data["services"] == ["kaspa-explorer", "kasia-app", "k-social"]

    def test_startup_unknown(self, client: FlaskClient):
        resp = client.post("/api/dependencies/startup", json={"currentProfiles": ["ghost"]})
        assert resp.status_code == 400


class TestStateAPI:
    """Tests for /api/state."""

    def test_empty(self, client: FlaskClient):
        data = client.get("/api/state").get_json()
        assert data["installed"] is False
        assert data["history"] == []
        assert "system" not in data

    def test_installed(self, client: FlaskClient, installed):
        data = client.get("/api/state?resources=true").get_json()
        assert data["installedProfiles"] == ["core", "indexer-services"]
        assert data["validation"]["valid"] is True
        assert [h["action"] for h in data["history"]] == ["install", "add-profile", "add-profile"]
        assert "sufficiency" in data

    def test_corrupt_state_is_500(self, client: FlaskClient, engine: Engine):
        engine.state_path.parent.mkdir(parents=True, exist_ok=True)
        engine.state_path.write_text("not json")
        resp = client.get("/api/state")
        assert resp.status_code == 500
        assert "Corrupt state file" in resp.get_json()["error"]
