"""
End-to-end verification run.

Detects the project, extracts its LocalConfig, and appends findings in a
fixed order: SDK packages, local parsing, local file checks, then the
cross-reference against the ULink project.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from .analysis import build_context, extract_local_config
from .config import load_directory_project_id
from .constants import (
    CHECK_LOCAL_PARSING,
    CHECK_PROJECT_DETECTION,
    CHECK_PROJECT_SELECTION,
    CHECK_REMOTE_CONFIG,
    MAX_WALK_DEPTH,
)
from .models import (
    Finding,
    LocalConfig,
    ProjectKind,
    RemoteConfig,
    Severity,
    TargetDiscoveryResult,
)
from .reporting import Report, build_report
from .sdk_packages import validate_sdk_packages
from .validation import (
    validate_android,
    validate_android_files,
    validate_ios,
    validate_ios_files,
)

logger = logging.getLogger(__name__)

PARSED_SOURCES = ("info_plist", "entitlements", "android_manifest")


@dataclass(frozen=True)
class VerificationOutcome:
    report: Report
    local_config: LocalConfig
    discovery: Optional[TargetDiscoveryResult]


def _parsing_finding(local: LocalConfig) -> Finding:
    parsed = [key for key in PARSED_SOURCES if key in local.sources]
    if not parsed:
        return Finding(
            CHECK_LOCAL_PARSING,
            Severity.ERROR,
            "Failed to parse local configuration files",
            "Ensure project files are properly configured",
        )
    return Finding(
        CHECK_LOCAL_PARSING,
        Severity.SUCCESS,
        "Successfully parsed local configuration",
        None,
        {"sources": dict(local.sources)},
    )


def _project_selection_finding(root: Path, remote: RemoteConfig) -> Optional[Finding]:
    selected = load_directory_project_id(root)
    if selected is None or selected == remote.project_id:
        return None
    return Finding(
        CHECK_PROJECT_SELECTION,
        Severity.WARNING,
        "This directory is linked to a different ULink project than the supplied configuration",
        "Re-run with the configuration of the linked project, or update .ulink/project.json",
        {"local": selected, "remote": remote.project_id},
    )


def cross_reference(local: LocalConfig, remote: RemoteConfig) -> List[Finding]:
    findings: List[Finding] = []
    if local.kind.has_ios:
        findings.extend(validate_ios(local, remote))
    if local.kind.has_android:
        findings.extend(validate_android(local, remote))
    return findings


def verify_project(
    root: Path,
    remote: Optional[RemoteConfig],
    requested_bundle_id: Optional[str] = None,
    now: Optional[datetime] = None,
    max_walk_depth: int = MAX_WALK_DEPTH,
) -> VerificationOutcome:
    ctx = build_context(root, requested_bundle_id, max_walk_depth)
    kind = ctx.plan.kind
    logger.debug("detected %s project at %s", kind.value, ctx.root)

    if kind == ProjectKind.UNKNOWN:
        finding = Finding(
            CHECK_PROJECT_DETECTION,
            Severity.ERROR,
            "Could not detect project type",
            "Run the command from your Flutter, iOS or Android project root",
            {"path": str(ctx.root)},
        )
        return VerificationOutcome(
            report=build_report(kind, [finding], now),
            local_config=LocalConfig.empty(kind),
            discovery=None,
        )

    findings: List[Finding] = []
    findings.extend(validate_sdk_packages(ctx.plan, ctx.read_text))

    local = extract_local_config(ctx)
    findings.append(_parsing_finding(local))
    if kind.has_ios:
        findings.extend(validate_ios_files(local))
    if kind.has_android:
        findings.extend(validate_android_files(local))

    if remote is None:
        findings.append(
            Finding(
                CHECK_REMOTE_CONFIG,
                Severity.SKIPPED,
                "No ULink project configuration supplied; cross-reference checks skipped",
                "Pass --remote-config with the project configuration JSON",
            )
        )
    else:
        selection = _project_selection_finding(ctx.root, remote)
        if selection is not None:
            findings.append(selection)
        local = local.with_remote_fingerprints(remote)
        findings.extend(cross_reference(local, remote))

    logger.debug("read %d file(s)", len(ctx.files_read))
    return VerificationOutcome(
        report=build_report(kind, findings, now),
        local_config=local,
        discovery=ctx.discovery,
    )
