"""
Tests for config.py - environment overrides and configuration files.
"""

import json
from pathlib import Path

import pytest

from ulink_verify.config import (
    ENV_LOG_LEVEL,
    ENV_MAX_WALK_DEPTH,
    load_config_from_env,
    load_directory_project_id,
    load_remote_config,
)
from ulink_verify.errors import ConfigurationError, RemoteConfigError

from conftest import remote_payload, write_file


class TestLoadConfigFromEnv:
    def test_defaults(self):
        config = load_config_from_env(Path("/project"), environ={})
        assert config.project_root == Path("/project")
        assert config.max_walk_depth == 5
        assert config.log_level == "WARNING"
        assert config.requested_bundle_id is None

    def test_environment_overrides(self):
        config = load_config_from_env(Path("/p"), environ={ENV_MAX_WALK_DEPTH: "3", ENV_LOG_LEVEL: "debug"})
        assert config.max_walk_depth == 3
        assert config.log_level == "DEBUG"

    def test_explicit_overrides_win_and_none_is_ignored(self):
        config = load_config_from_env(
            Path("/p"),
            environ={ENV_MAX_WALK_DEPTH: "3"},
            max_walk_depth=7,
            requested_bundle_id=None,
            verbose=True,
        )
        assert config.max_walk_depth == 7
        assert config.verbose
        assert config.requested_bundle_id is None

    @pytest.mark.parametrize("raw", ["deep", "0", "-2"])
    def test_invalid_depth(self, raw):
        with pytest.raises(ConfigurationError):
            load_config_from_env(Path("/p"), environ={ENV_MAX_WALK_DEPTH: raw})


class TestLoadRemoteConfig:
    def test_valid(self, tmp_project):
        path = write_file(tmp_project, "remote.json", json.dumps(remote_payload()))
        assert load_remote_config(path).project_id == "proj_123"

    def test_missing_file(self, tmp_project):
        with pytest.raises(ConfigurationError):
            load_remote_config(tmp_project / "missing.json")

    def test_invalid_json(self, tmp_project):
        path = write_file(tmp_project, "remote.json", "{not json")
        with pytest.raises(RemoteConfigError):
            load_remote_config(path)

    def test_schema_violation(self, tmp_project):
        path = write_file(tmp_project, "remote.json", json.dumps({"projectId": ""}))
        with pytest.raises(RemoteConfigError):
            load_remote_config(path)


class TestDirectoryProjectId:
    def test_absent(self, tmp_project):
        assert load_directory_project_id(tmp_project) is None

    def test_present(self, tmp_project):
        write_file(tmp_project, ".ulink/project.json", json.dumps({"projectId": " proj_9 "}))
        assert load_directory_project_id(tmp_project) == "proj_9"

    @pytest.mark.parametrize("content", ["{broken", "[]", '{"projectId": 5}', '{"projectId": "  "}'])
    def test_malformed(self, tmp_project, content):
        write_file(tmp_project, ".ulink/project.json", content)
        assert load_directory_project_id(tmp_project) is None
