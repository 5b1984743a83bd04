"""Checks that the ULink SDK is declared, and resolved, in the project's package manager."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List, Optional

from .constants import (
    CHECK_SDK_ANDROID,
    CHECK_SDK_FLUTTER,
    CHECK_SDK_IOS,
    CHECK_SDK_IOS_PODS,
    CHECK_SDK_IOS_SPM,
    FLUTTER_SDK_PACKAGE,
    IOS_SDK_POD,
)
from .models import Finding, ProjectKind, Severity
from .plan import ScanPlan
from .readers import (
    find_gradle_dependency,
    find_pod_dependency,
    find_pubspec_dependency,
    find_swift_package,
    parse_pubspec,
    podfile_lock_version,
)
from .utils import relative_path

logger = logging.getLogger(__name__)

TextReader = Callable[[Path], Optional[str]]


def read_text(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        logger.debug("unable to read %s: %s", path, exc)
        return None


def _version_details(version: Optional[str], **extra) -> Optional[dict]:
    details = {key: value for key, value in extra.items() if value is not None}
    if version:
        details["version"] = version
    return details or None


def validate_flutter_sdk(plan: ScanPlan, reader: TextReader) -> List[Finding]:
    pubspec_path = plan.first("pubspec")
    text = reader(pubspec_path) if pubspec_path else None
    if text is None:
        return [
            Finding(
                CHECK_SDK_FLUTTER,
                Severity.ERROR,
                "pubspec.yaml not found",
                "Ensure you are running the command from a Flutter project root",
            )
        ]
    pubspec = parse_pubspec(text)
    if pubspec is None:
        return [Finding(CHECK_SDK_FLUTTER, Severity.ERROR, "Unable to parse pubspec.yaml")]
    if not isinstance(pubspec.get("dependencies"), dict):
        return [
            Finding(
                CHECK_SDK_FLUTTER,
                Severity.ERROR,
                "No dependencies section found in pubspec.yaml",
                "Add a dependencies section to pubspec.yaml",
            )
        ]

    match = find_pubspec_dependency(text)
    if match.commented_out:
        return [
            Finding(
                CHECK_SDK_FLUTTER,
                Severity.ERROR,
                f"{FLUTTER_SDK_PACKAGE} is commented out in pubspec.yaml",
                f"Uncomment the {FLUTTER_SDK_PACKAGE} dependency",
                _version_details(match.version, line=match.line),
            )
        ]
    if not match.present:
        return [
            Finding(
                CHECK_SDK_FLUTTER,
                Severity.ERROR,
                f"{FLUTTER_SDK_PACKAGE} not found in dependencies",
                f"Add {FLUTTER_SDK_PACKAGE} to your pubspec.yaml dependencies:\n"
                f"  dependencies:\n    {FLUTTER_SDK_PACKAGE}: ^0.1.0",
            )
        ]

    lock_path = plan.first("pubspec_locks")
    lock_text = reader(lock_path) if lock_path else None
    if lock_text is None:
        return [
            Finding(
                CHECK_SDK_FLUTTER,
                Severity.WARNING,
                "pubspec.lock not found",
                "Run: flutter pub get",
                _version_details(match.version),
            )
        ]
    if FLUTTER_SDK_PACKAGE not in lock_text:
        return [
            Finding(
                CHECK_SDK_FLUTTER,
                Severity.WARNING,
                f"{FLUTTER_SDK_PACKAGE} found in pubspec.yaml but not in pubspec.lock",
                "Run: flutter pub get",
                _version_details(match.version),
            )
        ]
    return [
        Finding(
            CHECK_SDK_FLUTTER,
            Severity.SUCCESS,
            f"{FLUTTER_SDK_PACKAGE} is installed and resolved",
            None,
            _version_details(match.version),
        )
    ]


def validate_android_sdk(plan: ScanPlan, reader: TextReader) -> List[Finding]:
    scripts = plan.files("gradle_files")
    if not scripts:
        return [
            Finding(
                CHECK_SDK_ANDROID,
                Severity.ERROR,
                "No build.gradle files found",
                "Ensure you are running the command from an Android project root",
            )
        ]
    # Dependencies usually live in the app module.
    ordered = sorted(
        scripts,
        key=lambda path: "app" not in path.relative_to(plan.root).parts[:-1],
    )
    commented_in: Optional[str] = None
    for script in ordered:
        text = reader(script)
        if text is None:
            continue
        match = find_gradle_dependency(text)
        rel = relative_path(script, plan.root)
        if match.present:
            return [
                Finding(
                    CHECK_SDK_ANDROID,
                    Severity.SUCCESS,
                    f"ULink SDK found in {rel}",
                    None,
                    _version_details(match.version, path=rel, syntax=match.requirement),
                )
            ]
        if match.commented_out and commented_in is None:
            commented_in = rel

    if commented_in is not None:
        return [
            Finding(
                CHECK_SDK_ANDROID,
                Severity.ERROR,
                f"ULink SDK dependency is commented out in {commented_in}",
                "Uncomment the ULink SDK dependency",
                {"path": commented_in},
            )
        ]
    return [
        Finding(
            CHECK_SDK_ANDROID,
            Severity.ERROR,
            "ULink SDK not found in build.gradle files",
            'Add ULink SDK to your dependencies:\n  dependencies {\n    implementation("ly.ulink:ulink-sdk:1.0.5")\n  }',
        )
    ]


def _validate_cocoapods(plan: ScanPlan, reader: TextReader) -> Optional[Finding]:
    podfile = plan.first("podfiles")
    text = reader(podfile) if podfile else None
    if text is None:
        return None
    match = find_pod_dependency(text)
    if match.commented_out:
        return Finding(
            CHECK_SDK_IOS_PODS,
            Severity.ERROR,
            f"{IOS_SDK_POD} dependency is commented out in Podfile",
            f"Uncomment the {IOS_SDK_POD} pod",
            _version_details(match.version, line=match.line),
        )
    if not match.present:
        return None

    lock_path = plan.first("podfile_locks")
    lock_text = reader(lock_path) if lock_path else None
    if lock_text is None:
        return Finding(
            CHECK_SDK_IOS_PODS,
            Severity.WARNING,
            "Podfile.lock not found",
            "Run: pod install",
            _version_details(match.version),
        )
    locked = podfile_lock_version(lock_text)
    if locked is None:
        return Finding(
            CHECK_SDK_IOS_PODS,
            Severity.WARNING,
            f"{IOS_SDK_POD} found in Podfile but not in Podfile.lock",
            "Run: pod install",
            _version_details(match.version),
        )
    return Finding(
        CHECK_SDK_IOS_PODS,
        Severity.SUCCESS,
        f"{IOS_SDK_POD} found in Podfile and Podfile.lock",
        None,
        _version_details(match.version, locked=locked),
    )


def _validate_spm(plan: ScanPlan, reader: TextReader) -> Optional[Finding]:
    for manifest in plan.files("package_swift"):
        text = reader(manifest)
        if text is None:
            continue
        match = find_swift_package(text)
        rel = relative_path(manifest, plan.root)
        if match.present:
            return Finding(
                CHECK_SDK_IOS_SPM,
                Severity.SUCCESS,
                f"{IOS_SDK_POD} found in {rel}",
                None,
                _version_details(match.version, path=rel, requirement=match.requirement, url=match.declaration),
            )
        if match.commented_out:
            return Finding(
                CHECK_SDK_IOS_SPM,
                Severity.ERROR,
                f"{IOS_SDK_POD} package is commented out in {rel}",
                "Uncomment the ULink package dependency",
                {"path": rel},
            )
    return None


def validate_ios_sdk(plan: ScanPlan, reader: TextReader) -> List[Finding]:
    findings = [
        finding
        for finding in (_validate_cocoapods(plan, reader), _validate_spm(plan, reader))
        if finding is not None
    ]
    if not findings:
        findings.append(
            Finding(
                CHECK_SDK_IOS,
                Severity.ERROR,
                f"{IOS_SDK_POD} not found in Podfile or Package.swift",
                f"Add {IOS_SDK_POD} to your Podfile:\n  pod '{IOS_SDK_POD}', '~> 1.0.0'\n"
                "Or add it via Swift Package Manager in Xcode",
            )
        )
    return findings


def validate_sdk_packages(plan: ScanPlan, reader: Optional[TextReader] = None) -> List[Finding]:
    reader = reader or read_text
    if plan.kind == ProjectKind.FLUTTER:
        return validate_flutter_sdk(plan, reader)
    if plan.kind == ProjectKind.ANDROID:
        return validate_android_sdk(plan, reader)
    if plan.kind == ProjectKind.IOS:
        return validate_ios_sdk(plan, reader)
    return []
