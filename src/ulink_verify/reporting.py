from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .models import Finding, ProjectKind, Severity

JSON_REPORT_NAME = "ulink_verify.json"
MARKDOWN_REPORT_NAME = "ulink_verify_report.md"

STATUS_ICONS = {
    Severity.SUCCESS: "[ok]",
    Severity.WARNING: "[warn]",
    Severity.ERROR: "[error]",
    Severity.SKIPPED: "[skip]",
}


@dataclass(frozen=True)
class ReportSummary:
    success_count: int
    warning_count: int
    error_count: int
    skipped_count: int = 0

    @property
    def has_errors(self) -> bool:
        return self.error_count > 0

    @property
    def has_warnings(self) -> bool:
        return self.warning_count > 0


@dataclass(frozen=True)
class Report:
    kind: ProjectKind
    findings: Tuple[Finding, ...]
    timestamp: datetime

    @property
    def summary(self) -> ReportSummary:
        return summarize(self.findings)

    @property
    def success_count(self) -> int:
        return self.summary.success_count

    @property
    def warning_count(self) -> int:
        return self.summary.warning_count

    @property
    def error_count(self) -> int:
        return self.summary.error_count

    @property
    def has_errors(self) -> bool:
        return self.summary.has_errors

    @property
    def has_warnings(self) -> bool:
        return self.summary.has_warnings


def summarize(findings: Sequence[Finding]) -> ReportSummary:
    counts = {severity: 0 for severity in Severity}
    for finding in findings:
        counts[finding.severity] += 1
    return ReportSummary(
        success_count=counts[Severity.SUCCESS],
        warning_count=counts[Severity.WARNING],
        error_count=counts[Severity.ERROR],
        skipped_count=counts[Severity.SKIPPED],
    )


def build_report(
    kind: ProjectKind,
    findings: Sequence[Finding],
    timestamp: Optional[datetime] = None,
) -> Report:
    return Report(
        kind=kind,
        findings=tuple(findings),
        timestamp=timestamp or datetime.now(timezone.utc),
    )


def _format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def report_to_dict(report: Report) -> Dict[str, Any]:
    """Dashboard payload; field names follow the ULink API."""
    summary = report.summary
    return {
        "projectType": report.kind.value,
        "timestamp": _format_timestamp(report.timestamp),
        "summary": {
            "success": summary.success_count,
            "warnings": summary.warning_count,
            "errors": summary.error_count,
        },
        "passed": not summary.has_errors,
        "results": [finding.to_dict() for finding in report.findings],
    }


def write_json_snapshot(output_dir: Path, report: Report) -> Path:
    output_path = output_dir / JSON_REPORT_NAME
    with output_path.open("w", encoding="utf-8") as fp:
        json.dump(report_to_dict(report), fp, indent=2, sort_keys=True)
        fp.write("\n")
    return output_path


def _format_details(details: Dict[str, Any]) -> List[str]:
    lines: List[str] = []
    for key, value in details.items():
        if isinstance(value, (list, tuple)):
            rendered = ", ".join(str(item) for item in value) or "(none)"
        else:
            rendered = "n/a" if value is None else str(value)
        lines.append(f"  - {key.replace('_', ' ')}: {rendered}")
    return lines


def write_markdown_report(output_dir: Path, report: Report) -> Path:
    report_path = output_dir / MARKDOWN_REPORT_NAME
    summary = report.summary
    lines: List[str] = []
    lines.append("# ULink Verification Report")
    lines.append("")

    lines.append("## Run Metadata")
    lines.append(f"- Timestamp (UTC): {_format_timestamp(report.timestamp)}")
    lines.append(f"- Project type: {report.kind.value}")
    lines.append(f"- Result: {'FAILED' if summary.has_errors else 'PASSED'}")
    lines.append("")

    lines.append("## Summary")
    lines.append(f"- Passed: {summary.success_count}")
    lines.append(f"- Warnings: {summary.warning_count}")
    lines.append(f"- Errors: {summary.error_count}")
    if summary.skipped_count:
        lines.append(f"- Skipped: {summary.skipped_count}")
    lines.append("")

    for severity, heading in (
        (Severity.ERROR, "Errors"),
        (Severity.WARNING, "Warnings"),
        (Severity.SUCCESS, "Passed Checks"),
        (Severity.SKIPPED, "Skipped Checks"),
    ):
        selected = [finding for finding in report.findings if finding.severity == severity]
        if not selected:
            continue
        lines.append(f"## {heading}")
        for finding in selected:
            message = f": {finding.message}" if finding.message else ""
            lines.append(f"- **{finding.check_name}**{message}")
            if finding.fix_suggestion:
                fix = finding.fix_suggestion.replace("\n", " ")
                lines.append(f"  - Fix: {fix}")
            if finding.details and severity != Severity.SUCCESS:
                lines.extend(_format_details(finding.details))
        lines.append("")

    with report_path.open("w", encoding="utf-8") as fp:
        fp.write("\n".join(lines) + "\n")
    return report_path


def _render_finding(finding: Finding) -> List[str]:
    icon = STATUS_ICONS[finding.severity]
    message = f": {finding.message}" if finding.message else ""
    lines = [f"{icon} {finding.check_name}{message}"]
    if finding.fix_suggestion and finding.severity in (Severity.ERROR, Severity.WARNING):
        for row in finding.fix_suggestion.splitlines():
            lines.append(f"    {row}")
    return lines


def render_text(report: Report, verbose: bool = False) -> str:
    """Console summary: errors first, then warnings; verbose adds the rest."""
    order = [Severity.ERROR, Severity.WARNING]
    if verbose:
        order.extend([Severity.SUCCESS, Severity.SKIPPED])
    lines: List[str] = []
    for severity in order:
        for finding in report.findings:
            if finding.severity == severity:
                lines.extend(_render_finding(finding))
    summary = report.summary
    if lines:
        lines.append("")
    lines.append(
        f"Summary: {summary.success_count} passed, "
        f"{summary.warning_count} warning(s), {summary.error_count} error(s)"
    )
    return "\n".join(lines)
