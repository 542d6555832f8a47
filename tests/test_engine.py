"""
Tests for the engine bundle and the status use case.
"""

import textwrap
from pathlib import Path

import pytest

from kaspa_aio.core.config.loader import ConfigError, EngineSettings
from kaspa_aio.core.engine import Engine
from kaspa_aio.core.models.state import InstallationState
from kaspa_aio.core.persistence.state_file import save_state
from kaspa_aio.core.use_cases.status import get_status


class TestEngine:
    """Tests for building and loading the engine."""

    def test_build_wires_settings(self, catalog):
        settings = EngineSettings(probe_timeout_seconds=2, probe_workers=3,
                                  startup_cache_ttl_seconds=10)
        engine = Engine.build(catalog, settings)
        assert engine.checker.timeout == 2
        assert engine.checker.max_workers == 3
        assert engine.startup.cache_ttl == 10
        assert engine.startup.checker is engine.checker
        assert engine.validator.catalog is catalog

    def test_load_from_settings_file(self, tmp_path: Path):
        (tmp_path / "kaspa-aio.yml").write_text(textwrap.dedent("""\
            state_file: data/state.json
            high_memory_threshold_gb: 16
        """))
        engine = Engine.load(settings_path=tmp_path / "kaspa-aio.yml")
        assert engine.project_root == tmp_path.resolve()
        assert engine.state_path == tmp_path.resolve() / "data" / "state.json"
        assert engine.settings.high_memory_threshold_gb == 16
        assert "core" in engine.catalog

    def test_load_missing_settings(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="Settings file not found"):
            Engine.load(settings_path=tmp_path / "missing.yml")

    def test_state_file_env_override(self, tmp_path: Path, monkeypatch):
        (tmp_path / "kaspa-aio.yml").write_text("state_file: a.json\n")
        monkeypatch.setenv("KASPA_AIO_STATE_FILE", str(tmp_path / "b.json"))
        engine = Engine.load(settings_path=tmp_path / "kaspa-aio.yml")
        assert engine.state_path == tmp_path / "b.json"


class TestStatus:
    """Tests for get_status."""

    def test_fresh_installation(self, engine):
        result = get_status(engine, detect_resources=False)
        assert not result.installed
        assert result.validation.valid
        data = result.to_dict()
        assert data["installedProfiles"] == []
        assert "system" not in data

    def test_installed_profiles_revalidated(self, engine):
        state = InstallationState()
        state.record("install")
        state.record("add-profile", "core")
        state.record("add-profile", "archive-node")
        save_state(state, engine.state_path)

        result = get_status(engine, detect_resources=False)
        assert result.installed
        assert not result.validation.valid
        assert "ConflictError" in result.validation.error_types()

    def test_unknown_profiles_are_reported(self, engine):
        save_state(InstallationState(installed_profiles=["core", "retired"]), engine.state_path)
        result = get_status(engine, detect_resources=False)
        assert result.unknown_profiles == ["retired"]
        assert result.validation.resolved_profiles == ["core"]
        assert result.to_dict()["unknownProfiles"] == ["retired"]

    def test_with_resources(self, engine):
        save_state(InstallationState(installed_profiles=["core"]), engine.state_path)
        result = get_status(engine)
        assert result.system is not None
        assert result.sufficiency is not None
        assert "sufficiency" in result.to_dict()
