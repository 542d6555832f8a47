"""
Tests for persistence — installation state file and .env files.
"""

import json
import textwrap
from pathlib import Path

import pytest

from kaspa_aio.core.config.loader import ConfigError
from kaspa_aio.core.models.state import InstallationState
from kaspa_aio.core.persistence.env_file import (
    load_env_file,
    parse_env,
    render_env,
    save_env_file,
)
from kaspa_aio.core.persistence.state_file import default_state_path, load_state, save_state


class TestStateFile:
    """Tests for state file persistence."""

    def test_save_and_load(self, tmp_path: Path):
        """State roundtrips through save/load."""
        path = default_state_path(tmp_path)
        state = InstallationState(configuration={"KASPA_NETWORK": "mainnet"})
        state.record("install")
        state.record("add-profile", "core")

        save_state(state, path)
        assert path.is_file()

        loaded = load_state(path)
        assert loaded.installed_profiles == ["core"]
        assert loaded.configuration == {"KASPA_NETWORK": "mainnet"}
        assert loaded.installed_at == state.installed_at
        assert loaded.history[1].profile_id == "core"

    def test_written_keys_are_camel_case(self, tmp_path: Path):
        path = tmp_path / "state.json"
        state = InstallationState(installed_profiles=["core"])
        state.record("add-profile", "mining")
        save_state(state, path)

        data = json.loads(path.read_text())
        assert data["installedProfiles"] == ["core", "mining"]
        assert "lastModified" in data
        assert data["history"][0]["profileId"] == "mining"

    def test_reads_wizard_file(self, tmp_path: Path):
        path = tmp_path / "state.json"
        path.write_text(textwrap.dedent("""\
            {
              "version": "1",
              "installedProfiles": ["core", "indexer-services"],
              "configuration": {"PUBLIC_NODE": false, "KASPA_NODE_RPC_PORT": 16110},
              "installedAt": "2025-01-01T00:00:00+00:00",
              "lastModified": "2025-01-02T00:00:00+00:00",
              "history": [
                {"timestamp": "2025-01-01T00:00:00+00:00", "action": "install"}
              ]
            }
        """))
        state = load_state(path)
        assert state.installed_profiles == ["core", "indexer-services"]
        assert state.configuration["PUBLIC_NODE"] == "false"
        assert state.configuration["KASPA_NODE_RPC_PORT"] == "16110"
        assert state.is_installed

    def test_load_missing_returns_fresh(self, tmp_path: Path):
        """Missing state file returns a fresh state."""
        state = load_state(tmp_path / "nonexistent.json")
        assert state.installed_profiles == []
        assert not state.is_installed

    def test_load_truncated_raises(self, tmp_path: Path):
        """A half-written state file is an error, not an empty install."""
        path = tmp_path / "state.json"
        path.write_text('{"installedProfiles": ["core"], "configura')
        with pytest.raises(ConfigError, match="Corrupt state file"):
            load_state(path)

    def test_load_invalid_shape_raises(self, tmp_path: Path):
        path = tmp_path / "state.json"
        path.write_text('{"installedProfiles": "core"}')
        with pytest.raises(ConfigError, match="Invalid state file"):
            load_state(path)

    def test_load_non_object_raises(self, tmp_path: Path):
        path = tmp_path / "state.json"
        path.write_text('["core"]')
        with pytest.raises(ConfigError, match="Expected a JSON object"):
            load_state(path)

    def test_load_unreadable_raises(self, tmp_path: Path):
        path = tmp_path / "state.json"
        path.write_bytes(b"\xff\xfe not utf-8")
        with pytest.raises(ConfigError):
            load_state(path)

    def test_save_leaves_no_temp_files(self, tmp_path: Path):
        path = tmp_path / "deep" / "nested" / "state.json"
        save_state(InstallationState(), path)
        assert [p.name for p in path.parent.iterdir()] == ["state.json"]


class TestEnvFile:
    """Tests for .env parsing and rendering."""

    def test_parse(self):
        text = textwrap.dedent("""\
            # comment
            KASPA_NETWORK=mainnet

            export PUBLIC_NODE=false
            MINING_ADDRESS="kaspa:qr0 abc"
            SINGLE='quoted'
            not a pair
        """)
        assert parse_env(text) == {
            "KASPA_NETWORK": "mainnet",
            "PUBLIC_NODE": "false",
            "MINING_ADDRESS": "kaspa:qr0 abc",
            "SINGLE": "quoted",
        }

    def test_render_sorted_and_quoted(self):
        text = render_env({"B": "two words", "A": "1", "EMPTY": ""}, header="Generated")
        assert text == '# Generated\n\nA=1\nB="two words"\nEMPTY=\n'

    def test_save_and_load(self, tmp_path: Path):
        path = tmp_path / ".env"
        config = {"KASPA_NETWORK": "testnet", "MINING_ADDRESS": "kaspa:q q"}
        save_env_file(config, path, header="test")
        assert load_env_file(path) == config

    def test_load_missing(self, tmp_path: Path):
        assert load_env_file(tmp_path / ".env") == {}

    def test_escaped_values_read_back_unchanged(self, tmp_path: Path):
        config = {
            "POSTGRES_PASSWORD": 'p"w\\x',
            "TRAILING_BACKSLASH": "dir\\",
            "HASHED": "a # not a comment",
            "QUOTE_ONLY": '"',
            "SINGLE_QUOTED": "'kept'",
        }
        assert parse_env(render_env(config)) == config

        path = tmp_path / ".env"
        save_env_file(config, path)
        save_env_file(load_env_file(path), path)
        assert load_env_file(path) == config

    def test_unknown_escapes_are_kept(self):
        assert parse_env('WIN_PATH="C:\\tmp\\n"') == {"WIN_PATH": "C:\\tmp\\n"}
