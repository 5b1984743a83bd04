"""
Tests for reporting.py - Output structure and format tests.

These tests verify that the reporting functions produce a dashboard
payload matching schema_v1.json, a markdown report and console text.
"""

import json
import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

import jsonschema
import pytest

from ulink_verify.models import Finding, ProjectKind, Severity
from ulink_verify.reporting import (
    JSON_REPORT_NAME,
    MARKDOWN_REPORT_NAME,
    build_report,
    render_text,
    report_to_dict,
    summarize,
    write_json_snapshot,
    write_markdown_report,
)


SCHEMA_PATH = Path(__file__).resolve().parent.parent / "schema_v1.json"
FIXED_TIME = datetime(2024, 1, 1, 12, 30, tzinfo=timezone.utc)


def load_schema() -> Dict[str, Any]:
    return json.loads(SCHEMA_PATH.read_text())


def _sample_findings():
    return [
        Finding("SDK Package - Flutter", Severity.SUCCESS, "flutter_ulink_sdk is installed and resolved", None, {"version": "^0.1.0"}),
        Finding(
            "iOS Extra URL Schemes",
            Severity.WARNING,
            "Local has 1 extra URL scheme(s) not configured in ULink",
            "These schemes are in your Info.plist but not in ULink config: myapp-dev",
            {"extra_schemes": ["myapp-dev"], "remote_scheme": "myapp"},
        ),
        Finding(
            "iOS Associated Domain Match",
            Severity.ERROR,
            'Domain "example.com" exists in ULink but is not verified (status: pending)',
            'Complete domain verification in ULink dashboard for "example.com"',
            {"local": ["example.com"], "remote": "example.com", "status": "pending"},
        ),
        Finding("ULink Configuration", Severity.SKIPPED, "cross-reference checks skipped"),
    ]


@pytest.fixture
def output_dir():
    tmp = Path(tempfile.mkdtemp())
    try:
        yield tmp
    finally:
        shutil.rmtree(tmp, ignore_errors=True)


# =============================================================================
# SUMMARY
# =============================================================================


class TestSummary:
    def test_counts_by_severity(self):
        summary = summarize(_sample_findings())
        assert summary.success_count == 1
        assert summary.warning_count == 1
        assert summary.error_count == 1
        assert summary.skipped_count == 1
        assert summary.has_errors
        assert summary.has_warnings

    def test_empty(self):
        summary = summarize([])
        assert not summary.has_errors
        assert not summary.has_warnings

    def test_report_properties(self):
        report = build_report(ProjectKind.FLUTTER, _sample_findings(), FIXED_TIME)
        assert report.error_count == 1
        assert report.warning_count == 1
        assert report.success_count == 1
        assert report.has_errors
        assert isinstance(report.findings, tuple)

    def test_default_timestamp_is_utc(self):
        report = build_report(ProjectKind.IOS, [])
        assert report.timestamp.tzinfo is not None


# =============================================================================
# JSON PAYLOAD
# =============================================================================


class TestJsonPayload:
    """Dashboard payload shape."""

    def test_validates_against_schema(self):
        payload = report_to_dict(build_report(ProjectKind.FLUTTER, _sample_findings(), FIXED_TIME))
        jsonschema.validate(instance=payload, schema=load_schema())

    def test_fields(self):
        payload = report_to_dict(build_report(ProjectKind.ANDROID, _sample_findings(), FIXED_TIME))
        assert payload["projectType"] == "android"
        assert payload["timestamp"] == "2024-01-01T12:30:00Z"
        assert payload["summary"] == {"success": 1, "warnings": 1, "errors": 1}
        assert payload["passed"] is False
        assert [r["status"] for r in payload["results"]] == ["success", "warning", "error", "skipped"]
        assert payload["results"][1]["details"]["extra_schemes"] == ["myapp-dev"]

    def test_result_keys(self):
        payload = report_to_dict(build_report(ProjectKind.IOS, _sample_findings()[:1], FIXED_TIME))
        assert set(payload["results"][0]) == {"checkName", "status", "message", "fixSuggestion", "details"}

    def test_passed_without_errors(self):
        payload = report_to_dict(build_report(ProjectKind.IOS, _sample_findings()[:2], FIXED_TIME))
        assert payload["passed"] is True

    def test_naive_timestamp_treated_as_utc(self):
        report = build_report(ProjectKind.IOS, [], datetime(2024, 1, 1, 0, 0))
        assert report_to_dict(report)["timestamp"] == "2024-01-01T00:00:00Z"

    def test_unknown_project_validates(self):
        finding = Finding("Project Detection", Severity.ERROR, "Could not detect project type", None, {"path": "/x"})
        payload = report_to_dict(build_report(ProjectKind.UNKNOWN, [finding], FIXED_TIME))
        jsonschema.validate(instance=payload, schema=load_schema())

    def test_write_json_snapshot(self, output_dir):
        report = build_report(ProjectKind.FLUTTER, _sample_findings(), FIXED_TIME)
        path = write_json_snapshot(output_dir, report)
        assert path.name == JSON_REPORT_NAME
        loaded = json.loads(path.read_text())
        assert loaded == report_to_dict(report)
        jsonschema.validate(instance=loaded, schema=load_schema())


# =============================================================================
# MARKDOWN
# =============================================================================


class TestMarkdownReport:
    def _write(self, output_dir, findings=None):
        report = build_report(ProjectKind.FLUTTER, findings or _sample_findings(), FIXED_TIME)
        path = write_markdown_report(output_dir, report)
        return path, path.read_text()

    def test_file_name(self, output_dir):
        path, _ = self._write(output_dir)
        assert path.name == MARKDOWN_REPORT_NAME

    def test_sections(self, output_dir):
        _, content = self._write(output_dir)
        assert content.startswith("# ULink Verification Report")
        assert "## Run Metadata" in content
        assert "- Result: FAILED" in content
        assert "- Skipped: 1" in content
        assert content.index("## Errors") < content.index("## Warnings") < content.index("## Passed Checks")
        assert "## Skipped Checks" in content

    def test_details_rendered_for_problems(self, output_dir):
        _, content = self._write(output_dir)
        assert "  - extra schemes: myapp-dev" in content
        assert "  - status: pending" in content
        assert "  - version: ^0.1.0" not in content

    def test_passing_report(self, output_dir):
        _, content = self._write(output_dir, _sample_findings()[:1])
        assert "- Result: PASSED" in content
        assert "## Errors" not in content


# =============================================================================
# CONSOLE TEXT
# =============================================================================


class TestRenderText:
    def test_errors_before_warnings(self):
        text = render_text(build_report(ProjectKind.IOS, _sample_findings(), FIXED_TIME))
        lines = text.splitlines()
        assert lines[0].startswith("[error] iOS Associated Domain Match")
        assert any(line.startswith("[warn] iOS Extra URL Schemes") for line in lines)
        assert not any(line.startswith("[ok]") for line in lines)
        assert lines[-1] == "Summary: 1 passed, 1 warning(s), 1 error(s)"

    def test_verbose_includes_passed_and_skipped(self):
        text = render_text(build_report(ProjectKind.IOS, _sample_findings(), FIXED_TIME), verbose=True)
        assert "[ok] SDK Package - Flutter" in text
        assert "[skip] ULink Configuration" in text

    def test_fix_suggestions_are_indented(self):
        text = render_text(build_report(ProjectKind.IOS, _sample_findings(), FIXED_TIME))
        assert '    Complete domain verification in ULink dashboard for "example.com"' in text.splitlines()

    def test_no_findings(self):
        text = render_text(build_report(ProjectKind.IOS, [], FIXED_TIME))
        assert text == "Summary: 0 passed, 0 warning(s), 0 error(s)"
