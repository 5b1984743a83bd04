"""
Tests for cli.py - command exit codes and output files.
"""

import json

from typer.testing import CliRunner

from ulink_verify import __version__
from ulink_verify.cli import EXIT_BAD_INPUT, EXIT_FAILED, app
from ulink_verify.reporting import JSON_REPORT_NAME, MARKDOWN_REPORT_NAME

from conftest import build_android_project, build_flutter_project, build_ios_target, remote_payload, write_file

runner = CliRunner()


def _remote_file(root, **overrides):
    return write_file(root, "remote.json", json.dumps(remote_payload(**overrides)))


class TestVersionAndDetect:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_detect_flutter(self, tmp_project):
        build_flutter_project(tmp_project)
        result = runner.invoke(app, ["detect", str(tmp_project)])
        assert result.exit_code == 0
        assert result.output.strip() == "flutter"

    def test_detect_unknown(self, tmp_project):
        result = runner.invoke(app, ["detect", str(tmp_project)])
        assert result.exit_code == EXIT_FAILED
        assert "unknown" in result.output


# =============================================================================
# VERIFY
# =============================================================================


class TestVerifyCommand:
    def test_consistent_project(self, tmp_project):
        build_flutter_project(tmp_project)
        remote = _remote_file(tmp_project)
        result = runner.invoke(app, ["verify", str(tmp_project), "--remote-config", str(remote)])
        assert result.exit_code == 0, result.output
        assert "Detected flutter project" in result.output
        assert "Summary: " in result.output

    def test_mismatch_fails(self, tmp_project):
        build_android_project(tmp_project)
        remote = _remote_file(tmp_project, android_package_name="com.other")
        result = runner.invoke(app, ["verify", str(tmp_project), "-r", str(remote)])
        assert result.exit_code == EXIT_FAILED
        assert "Package name mismatch" in result.output

    def test_json_output(self, tmp_project):
        build_android_project(tmp_project)
        remote = _remote_file(tmp_project)
        result = runner.invoke(app, ["verify", str(tmp_project), "-r", str(remote), "--json"])
        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["projectType"] == "android"
        assert payload["passed"] is True

    def test_output_dir(self, tmp_project):
        build_android_project(tmp_project)
        out = tmp_project / "out"
        result = runner.invoke(app, ["verify", str(tmp_project), "--output-dir", str(out)])
        assert result.exit_code == 0, result.output
        assert (out / JSON_REPORT_NAME).is_file()
        assert (out / MARKDOWN_REPORT_NAME).is_file()
        payload = json.loads((out / JSON_REPORT_NAME).read_text())
        assert payload["results"][-1]["status"] == "skipped"

    def test_missing_path(self, tmp_project):
        result = runner.invoke(app, ["verify", str(tmp_project / "nope")])
        assert result.exit_code == EXIT_BAD_INPUT

    def test_invalid_remote_config(self, tmp_project):
        build_android_project(tmp_project)
        remote = write_file(tmp_project, "remote.json", "{not json")
        result = runner.invoke(app, ["verify", str(tmp_project), "-r", str(remote)])
        assert result.exit_code == EXIT_BAD_INPUT

    def test_invalid_depth_environment(self, tmp_project):
        build_android_project(tmp_project)
        result = runner.invoke(
            app, ["verify", str(tmp_project)], env={"ULINK_VERIFY_MAX_WALK_DEPTH": "zero"}
        )
        assert result.exit_code == EXIT_BAD_INPUT

    def test_unmatched_bundle_id(self, tmp_project):
        (tmp_project / "Sample.xcodeproj").mkdir()
        build_ios_target(tmp_project, "App", "com.example.app")
        build_ios_target(tmp_project, "Widget", "com.example.widget")
        result = runner.invoke(app, ["verify", str(tmp_project), "--bundle-id", "com.missing"])
        assert result.exit_code == EXIT_BAD_INPUT
        assert "com.example.widget" in result.output


# =============================================================================
# TARGETS
# =============================================================================


class TestTargetsCommand:
    def test_lists_targets_and_marks_selection(self, tmp_project):
        (tmp_project / "Sample.xcodeproj").mkdir()
        build_ios_target(tmp_project, "App", "com.example.app")
        build_ios_target(tmp_project, "Widget", "com.example.widget")
        result = runner.invoke(app, ["targets", str(tmp_project), "--bundle-id", "com.example.widget"])
        assert result.exit_code == 0, result.output
        assert "   App: com.example.app" in result.output
        assert " * Widget: com.example.widget" in result.output

    def test_unmatched(self, tmp_project):
        (tmp_project / "Sample.xcodeproj").mkdir()
        build_ios_target(tmp_project, "App", "com.example.app")
        result = runner.invoke(app, ["targets", str(tmp_project), "-b", "com.missing"])
        assert result.exit_code == EXIT_FAILED

    def test_not_an_ios_project(self, tmp_project):
        build_android_project(tmp_project)
        result = runner.invoke(app, ["targets", str(tmp_project)])
        assert result.exit_code == EXIT_BAD_INPUT

    def test_no_targets(self, tmp_project):
        (tmp_project / "Sample.xcodeproj").mkdir()
        result = runner.invoke(app, ["targets", str(tmp_project)])
        assert result.exit_code == 0
        assert "No targets found" in result.output
