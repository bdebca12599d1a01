"""
Unit tests for configuration loader.

Tests multi-layer config merging, environment variable overrides,
caching, XDG directory handling, layered .env files and the user record.
"""

import json
import logging
import os
import stat
from pathlib import Path

import pytest
from pydantic import ValidationError

from ceramic_sync.core.config import (
    TOKEN_ENV_VAR,
    UserRecord,
    clear_cache,
    get_project_config_path,
    get_user_config_path,
    get_user_record_path,
    load_config,
    load_layered_env,
    load_user_record,
    save_user_record,
)
from ceramic_sync.core.config.loader import (
    apply_env_overrides,
    deep_merge,
    get_default_config,
    get_xdg_config_home,
    load_json_file,
)
from ceramic_sync.core.config.models import SyncConfig

# ==============================================================================
# Helper Functions Tests
# ==============================================================================


class TestDeepMerge:
    """Test the deep_merge helper function."""

    def test_simple_merge(self):
        base = {"a": 1, "b": 2}
        override = {"b": 3, "c": 4}
        assert deep_merge(base, override) == {"a": 1, "b": 3, "c": 4}

    def test_nested_merge(self):
        """Nested dicts are merged key by key."""
        base = {"git": {"binary": "git", "clone_depth": 1}}
        override = {"git": {"clone_depth": 5}}
        assert deep_merge(base, override) == {"git": {"binary": "git", "clone_depth": 5}}

    def test_override_replaces_non_dict(self):
        base = {"layout": {"gitignore_entries": [".DS_Store"]}}
        override = {"layout": {"gitignore_entries": ["build/"]}}
        assert deep_merge(base, override)["layout"]["gitignore_entries"] == ["build/"]

    def test_base_not_mutated(self):
        base = {"git": {"binary": "git"}}
        deep_merge(base, {"git": {"binary": "/usr/bin/git"}})
        assert base == {"git": {"binary": "git"}}


class TestLoadJsonFile:
    """Test JSON file loading."""

    def test_load_existing_file(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"key": "value", "number": 42}))

        assert load_json_file(config_file) == {"key": "value", "number": 42}

    def test_load_nonexistent_file(self, tmp_path):
        assert load_json_file(tmp_path / "nonexistent.json") is None

    def test_load_invalid_json(self, tmp_path, caplog):
        """Invalid JSON returns None and logs a warning."""
        config_file = tmp_path / "invalid.json"
        config_file.write_text("{ invalid json }")

        with caplog.at_level(logging.WARNING):
            assert load_json_file(config_file) is None

        assert "Failed to parse config" in caplog.text

    def test_non_object_ignored(self, tmp_path):
        config_file = tmp_path / "list.json"
        config_file.write_text("[1, 2]")

        assert load_json_file(config_file) is None


class TestApplyEnvOverrides:
    """Test environment variable overrides."""

    def test_git_binary(self, monkeypatch):
        monkeypatch.setenv("CERAMIC_SYNC_GIT_BINARY", "/opt/git/bin/git")

        result = apply_env_overrides({"git": {"binary": "git", "clone_depth": 1}})

        assert result["git"] == {"binary": "/opt/git/bin/git", "clone_depth": 1}

    def test_git_timeout(self, monkeypatch):
        monkeypatch.setenv("CERAMIC_SYNC_GIT_TIMEOUT", "30")

        assert apply_env_overrides({})["git"]["timeout_seconds"] == 30.0

    @pytest.mark.parametrize("value", ["0", "-5", "soon"])
    def test_git_timeout_invalid_ignored(self, monkeypatch, caplog, value):
        monkeypatch.setenv("CERAMIC_SYNC_GIT_TIMEOUT", value)

        with caplog.at_level(logging.WARNING):
            result = apply_env_overrides({})

        assert "git" not in result
        assert "CERAMIC_SYNC_GIT_TIMEOUT" in caplog.text

    def test_temp_root_and_machine_id(self, monkeypatch, tmp_path):
        monkeypatch.setenv("CERAMIC_SYNC_TEMP_ROOT", str(tmp_path / "clones"))
        monkeypatch.setenv("CERAMIC_SYNC_MACHINE_ID_PATH", str(tmp_path / "id"))

        result = apply_env_overrides({})

        assert result["temp_root"] == str(tmp_path / "clones")
        assert result["machine_id_path"] == str(tmp_path / "id")

    def test_no_env_overrides(self, monkeypatch):
        monkeypatch.delenv("CERAMIC_SYNC_MACHINE_ID_PATH")
        config = {"git": {"binary": "git"}}

        assert apply_env_overrides(config) == config


class TestGetDefaultConfig:
    """Test default configuration."""

    def test_default_config_structure(self):
        config = SyncConfig(**get_default_config())

        assert config.git.binary == "git"
        assert config.git.timeout_seconds == 120.0
        assert config.git.clone_depth == 1
        assert config.layout.project_file_name == "project.ceramic"
        assert config.layout.sync_dir_names == ["assets", "files"]
        assert config.layout.gitignore_entries == [".DS_Store", "__MACOSX", "thumbs.db"]

    def test_default_temp_root(self):
        config = SyncConfig()

        assert config.temp_root is None
        assert config.resolved_temp_root.name == "ceramic-sync"

    def test_default_machine_id_path(self):
        assert SyncConfig().machine_id_path == Path.home() / ".ceramic" / ".machine"

    def test_paths_expand_user(self):
        config = SyncConfig(temp_root="~/clones")

        assert config.temp_root == Path.home() / "clones"

    def test_sync_dir_names_accept_editor(self):
        config = SyncConfig(layout={"sync_dir_names": ["assets", "files", "editor"]})

        assert config.layout.sync_dir_names == ["assets", "files", "editor"]

    def test_unknown_sync_dir_name_rejected(self):
        with pytest.raises(ValidationError):
            SyncConfig(layout={"sync_dir_names": ["assets", "build"]})


class TestXdgDirectories:
    """Test XDG directory handling."""

    def test_get_xdg_config_home_default(self, monkeypatch):
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        assert get_xdg_config_home() == Path.home() / ".config"

    def test_get_xdg_config_home_custom(self, monkeypatch, tmp_path):
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert get_xdg_config_home() == tmp_path

    def test_get_user_config_path(self, monkeypatch, tmp_path):
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert get_user_config_path() == tmp_path / "ceramic-sync" / "config.json"
        assert get_user_record_path() == tmp_path / "ceramic-sync" / "user.json"

    def test_get_project_config_path_custom(self, tmp_path):
        assert get_project_config_path(tmp_path) == tmp_path / ".ceramic-sync.json"


class TestLoadConfig:
    """Test the main load_config function."""

    def _write_user_config(self, tmp_path, data):
        user_dir = tmp_path / "xdg" / "ceramic-sync"
        user_dir.mkdir(parents=True, exist_ok=True)
        (user_dir / "config.json").write_text(json.dumps(data))

    def test_load_config_defaults_only(self, tmp_path):
        config = load_config(project_dir=tmp_path)

        assert isinstance(config, SyncConfig)
        assert config.git.binary == "git"

    def test_user_overrides_defaults(self, tmp_path):
        self._write_user_config(tmp_path, {"git": {"timeout_seconds": 10}})

        config = load_config(project_dir=tmp_path)

        assert config.git.timeout_seconds == 10
        assert config.git.binary == "git"

    def test_project_overrides_user(self, tmp_path):
        self._write_user_config(tmp_path, {"git": {"timeout_seconds": 10, "clone_depth": 3}})
        project_dir = tmp_path / "game"
        project_dir.mkdir()
        (project_dir / ".ceramic-sync.json").write_text(json.dumps({"git": {"clone_depth": 2}}))

        config = load_config(project_dir=project_dir)

        assert config.git.clone_depth == 2
        assert config.git.timeout_seconds == 10

    def test_env_overrides_all(self, tmp_path, monkeypatch):
        self._write_user_config(tmp_path, {"git": {"binary": "user-git"}})
        monkeypatch.setenv("CERAMIC_SYNC_GIT_BINARY", "env-git")

        assert load_config(project_dir=tmp_path).git.binary == "env-git"

    def test_caching(self, tmp_path):
        first = load_config(project_dir=tmp_path)
        self._write_user_config(tmp_path, {"git": {"clone_depth": 4}})

        assert load_config(project_dir=tmp_path) is first

        clear_cache()
        assert load_config(project_dir=tmp_path).git.clone_depth == 4

    def test_no_cache(self, tmp_path):
        first = load_config(project_dir=tmp_path)

        assert load_config(project_dir=tmp_path, use_cache=False) is not first

    def test_invalid_json_ignored(self, tmp_path):
        (tmp_path / ".ceramic-sync.json").write_text("{ invalid json }")

        assert load_config(project_dir=tmp_path).git.clone_depth == 1

    def test_validation_error(self, tmp_path):
        (tmp_path / ".ceramic-sync.json").write_text(json.dumps({"git": {"clone_depth": 0}}))

        with pytest.raises(ValidationError):
            load_config(project_dir=tmp_path)


class TestLayeredEnv:
    """Test .env layering."""

    def test_project_env_overrides_user_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CERAMIC_SYNC_EXAMPLE", "unset")
        monkeypatch.delenv("CERAMIC_SYNC_EXAMPLE")
        user_env = tmp_path / "user.env"
        user_env.write_text("CERAMIC_SYNC_EXAMPLE=user\n")
        project_env = tmp_path / "project.env"
        project_env.write_text("CERAMIC_SYNC_EXAMPLE=project\n")

        keys = load_layered_env(user_env_paths=[user_env], project_env_paths=[project_env])

        assert os.environ["CERAMIC_SYNC_EXAMPLE"] == "project"
        assert keys == {"CERAMIC_SYNC_EXAMPLE"}

    def test_os_environment_wins(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CERAMIC_SYNC_EXAMPLE", "shell")
        project_env = tmp_path / ".env"
        project_env.write_text("CERAMIC_SYNC_EXAMPLE=project\n")

        keys = load_layered_env(project_dir=tmp_path, user_env_paths=[])

        assert os.environ["CERAMIC_SYNC_EXAMPLE"] == "shell"
        assert keys == set()

    def test_missing_files(self, tmp_path):
        assert load_layered_env(project_dir=tmp_path, user_env_paths=[tmp_path / "nope"]) == set()


class TestUserRecord:
    """Test the user record holding the token."""

    def test_missing_record_is_empty(self):
        record = load_user_record()

        assert record.project_path is None
        assert record.git_token is None

    def test_round_trip(self, tmp_path):
        record = UserRecord(project_path=tmp_path / "project.ceramic", git_token="ghp_abc")

        save_user_record(record)

        loaded = load_user_record()
        assert loaded.project_path == tmp_path / "project.ceramic"
        assert loaded.git_token == "ghp_abc"

    def test_saved_owner_only(self):
        save_user_record(UserRecord(git_token="ghp_abc"))

        mode = stat.S_IMODE(get_user_record_path().stat().st_mode)
        assert mode == 0o600

    def test_repr_hides_token(self):
        assert "ghp_abc" not in repr(UserRecord(git_token="ghp_abc"))

    def test_environment_token_wins(self, monkeypatch):
        monkeypatch.setenv(TOKEN_ENV_VAR, "ghp_env")

        assert UserRecord(git_token="ghp_stored").effective_token == "ghp_env"

    def test_stored_token_used_without_environment(self):
        assert UserRecord(git_token="ghp_stored").effective_token == "ghp_stored"
        assert UserRecord().effective_token is None

    def test_corrupt_record_logged_without_content(self, caplog):
        path = get_user_record_path()
        path.parent.mkdir(parents=True)
        path.write_text('{"git_token": "ghp_leak", ')

        with caplog.at_level(logging.WARNING):
            record = load_user_record()

        assert record.git_token is None
        assert "ghp_leak" not in caplog.text
