"""
Cross-reference checks between local project files and the ULink project.

Every check returns Finding values; nothing here raises. The order in which
findings are appended is the order they appear in the report.
"""
from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from .constants import (
    CHECK_ANDROID_APP_LINKS,
    CHECK_ANDROID_EXTRA_SCHEMES,
    CHECK_ANDROID_FINGERPRINTS,
    CHECK_ANDROID_HOST_MATCH,
    CHECK_ANDROID_MANIFEST,
    CHECK_ANDROID_PACKAGE,
    CHECK_ANDROID_PACKAGE_MATCH,
    CHECK_ANDROID_SCHEME_MATCH,
    CHECK_ANDROID_URL_SCHEMES,
    CHECK_IOS_ASSOCIATED_DOMAINS,
    CHECK_IOS_BUNDLE_ID,
    CHECK_IOS_BUNDLE_ID_MATCH,
    CHECK_IOS_DOMAIN_MATCH,
    CHECK_IOS_ENTITLEMENTS,
    CHECK_IOS_EXTRA_SCHEMES,
    CHECK_IOS_INFO_PLIST,
    CHECK_IOS_SCHEME_MATCH,
    CHECK_IOS_TEAM_ID,
    CHECK_IOS_TEAM_ID_MATCH,
    CHECK_IOS_URL_SCHEMES,
)
from .models import Finding, LocalConfig, RemoteConfig, Severity
from .pbxproj import is_build_variable
from .readers import normalize_scheme

NOT_CONFIGURED = "(not configured)"


def _identifier_match(
    check_name: str,
    label: str,
    local_value: Optional[str],
    remote_value: Optional[str],
    local_file: str,
) -> Finding:
    if not local_value or not remote_value:
        return Finding(
            check_name,
            Severity.WARNING,
            f"{label} not found in local config or ULink config",
            f"Ensure {label.lower()} is set in both {local_file} and ULink dashboard",
            {"local": local_value, "remote": remote_value},
        )
    if local_value != remote_value:
        return Finding(
            check_name,
            Severity.ERROR,
            f"{label} mismatch",
            f"Update ULink config: {local_value}\nOr update {local_file}: {remote_value}",
            {"local": local_value, "remote": remote_value},
        )
    return Finding(check_name, Severity.SUCCESS, f"{label} matches", None, {"local": local_value, "remote": remote_value})


def _scheme_match(
    check_name: str,
    extra_check_name: str,
    platform: str,
    local_schemes: Sequence[str],
    remote_schema: Optional[str],
    local_file: str,
    missing_hint: str,
) -> List[Finding]:
    local = list(local_schemes)
    expected = normalize_scheme(remote_schema).lower() if remote_schema else ""

    if not expected:
        if not local:
            return []
        return [
            Finding(
                check_name,
                Severity.WARNING,
                f"Local {platform} has URL schemes but ULink {platform} deeplink schema is not configured",
                f"Configure {platform} deeplink schema in ULink dashboard to: {local[0]}",
                {"local": local, "remote": NOT_CONFIGURED},
            )
        ]

    if not any(scheme.lower() == expected for scheme in local):
        message = f"No URL schemes found in {local_file}. {missing_hint}" if not local else "URL scheme mismatch"
        return [
            Finding(
                check_name,
                Severity.ERROR,
                message,
                f'Add URL scheme "{expected}" to {local_file}\n'
                f"Or update ULink config to match: {', '.join(local) if local else '(none found)'}",
                {"local": local, "remote": expected},
            )
        ]

    findings = [
        Finding(
            check_name,
            Severity.SUCCESS,
            f"URL scheme matches (ULink: {expected})",
            None,
            {"matched": expected, "local": local, "remote": expected},
        )
    ]
    extra = [scheme for scheme in local if scheme.lower() != expected]
    if extra:
        findings.append(
            Finding(
                extra_check_name,
                Severity.WARNING,
                f"Local has {len(extra)} extra URL scheme(s) not configured in ULink",
                f"These schemes are in your {local_file} but not in ULink config: {', '.join(extra)}\n"
                f'If these are intentional, you can ignore this warning. Otherwise, remove them or add "{expected}" to ULink.',
                {"extra_schemes": extra, "remote_scheme": expected},
            )
        )
    return findings


def _domain_match(
    check_name: str,
    local_entries: Sequence[str],
    remote: RemoteConfig,
    empty_message: str,
    empty_hint: str,
    link_kind: str,
) -> Optional[Finding]:
    """Resolve local domains against ULink domains, reporting the first match only."""
    local = list(local_entries)
    verified = remote.verified_domains()
    all_hosts = remote.all_hosts()

    if local:
        matched = next((entry for entry in local if entry in verified), None)
        if matched is not None:
            return Finding(
                check_name,
                Severity.SUCCESS,
                "Domain matches verified ULink domain",
                None,
                {"matched": matched, "local": local},
            )
        known = next((entry for entry in local if entry in all_hosts), None)
        if known is not None:
            record = remote.domain_for(known)
            status = record.status if record else None
            return Finding(
                check_name,
                Severity.ERROR,
                f'Domain "{known}" exists in ULink but is not verified (status: {status})',
                f'Complete domain verification in ULink dashboard for "{known}"',
                {"local": local, "remote": known, "status": status},
            )
        return Finding(
            check_name,
            Severity.ERROR,
            f'Local domain "{local[0]}" not found in ULink',
            f'Add domain "{local[0]}" to ULink dashboard and verify it',
            {"local": local, "remote": all_hosts},
        )

    if verified:
        return Finding(
            check_name,
            Severity.WARNING,
            empty_message,
            empty_hint + "\n" + "\n".join(f"  {link_kind.format(host)}" for host in verified),
            {"local": local, "remote": verified},
        )
    if remote.domains:
        return Finding(
            check_name,
            Severity.WARNING,
            "ULink has domains but none are verified",
            "Verify your domains in the ULink dashboard",
            {"local": local, "remote": [f"{d.host} ({d.status})" for d in remote.domains]},
        )
    return None


def validate_ios(local: LocalConfig, remote: RemoteConfig) -> List[Finding]:
    findings: List[Finding] = [
        _identifier_match(
            CHECK_IOS_BUNDLE_ID_MATCH,
            "Bundle identifier",
            local.bundle_id,
            remote.ios_bundle_identifier,
            "Info.plist",
        )
    ]
    findings.extend(
        _scheme_match(
            CHECK_IOS_SCHEME_MATCH,
            CHECK_IOS_EXTRA_SCHEMES,
            "iOS",
            local.ios_schemes(),
            remote.ios_deeplink_schema,
            "Info.plist",
            "Add CFBundleURLTypes with CFBundleURLSchemes.",
        )
    )
    domain = _domain_match(
        CHECK_IOS_DOMAIN_MATCH,
        local.associated_domains,
        remote,
        "No associated domains in local config",
        "Add at least one verified domain to your entitlements file:",
        "applinks:{}",
    )
    if domain is not None:
        findings.append(domain)

    if not remote.ios_team_id:
        findings.append(
            Finding(
                CHECK_IOS_TEAM_ID,
                Severity.WARNING,
                "Team ID not configured in ULink",
                "Add your Apple Team ID to ULink project configuration",
            )
        )
    elif local.team_id:
        if local.team_id != remote.ios_team_id:
            findings.append(
                Finding(
                    CHECK_IOS_TEAM_ID_MATCH,
                    Severity.ERROR,
                    "Team ID mismatch",
                    f"Update ULink Team ID to: {local.team_id}\n"
                    f"Or update your Xcode project to use: {remote.ios_team_id}",
                    {"local": local.team_id, "remote": remote.ios_team_id},
                )
            )
        else:
            findings.append(Finding(CHECK_IOS_TEAM_ID_MATCH, Severity.SUCCESS, "Team ID matches"))
    else:
        findings.append(
            Finding(
                CHECK_IOS_TEAM_ID,
                Severity.SUCCESS,
                "Team ID is configured in ULink",
                None,
                {"remote": remote.ios_team_id},
            )
        )
    return findings


def validate_android(local: LocalConfig, remote: RemoteConfig) -> List[Finding]:
    findings: List[Finding] = [
        _identifier_match(
            CHECK_ANDROID_PACKAGE_MATCH,
            "Package name",
            local.package_name,
            remote.android_package_name,
            "AndroidManifest.xml",
        )
    ]
    findings.extend(
        _scheme_match(
            CHECK_ANDROID_SCHEME_MATCH,
            CHECK_ANDROID_EXTRA_SCHEMES,
            "Android",
            local.android_schemes(),
            remote.android_deeplink_schema,
            "AndroidManifest.xml",
            "Intent filters need a VIEW action, a BROWSABLE or DEFAULT category and a data scheme.",
        )
    )
    host = _domain_match(
        CHECK_ANDROID_HOST_MATCH,
        local.app_link_hosts,
        remote,
        "No App Link hosts in local config",
        "Add at least one verified domain to your AndroidManifest.xml:",
        'android:host="{}"',
    )
    if host is not None:
        findings.append(host)

    fingerprints = remote.android_sha256_fingerprints
    if not fingerprints:
        findings.append(
            Finding(
                CHECK_ANDROID_FINGERPRINTS,
                Severity.WARNING,
                "SHA-256 fingerprints not configured in ULink",
                "Add your app signing key SHA-256 fingerprints to ULink project configuration",
            )
        )
    else:
        findings.append(
            Finding(
                CHECK_ANDROID_FINGERPRINTS,
                Severity.SUCCESS,
                f"SHA-256 fingerprints are configured ({len(fingerprints)} fingerprints)",
                None,
                {"count": len(fingerprints)},
            )
        )
    return findings


# =============================================================================
# LOCAL FILE CHECKS
# =============================================================================


def validate_ios_files(local: LocalConfig, sources: Optional[Dict[str, str]] = None) -> List[Finding]:
    sources = local.sources if sources is None else sources
    info_plist = sources.get("info_plist")
    if not info_plist:
        return [
            Finding(
                CHECK_IOS_INFO_PLIST,
                Severity.ERROR,
                "Info.plist not found",
                "Ensure Info.plist exists in your iOS project",
            )
        ]
    findings = [
        Finding(CHECK_IOS_INFO_PLIST, Severity.SUCCESS, "Info.plist found", None, {"path": info_plist})
    ]

    schemes = local.ios_schemes()
    if schemes:
        findings.append(
            Finding(CHECK_IOS_URL_SCHEMES, Severity.SUCCESS, f"URL schemes found: {', '.join(schemes)}")
        )
    else:
        findings.append(
            Finding(
                CHECK_IOS_URL_SCHEMES,
                Severity.WARNING,
                "No URL schemes found in Info.plist",
                "Add CFBundleURLTypes with CFBundleURLSchemes to Info.plist",
            )
        )

    if not local.bundle_id:
        findings.append(
            Finding(
                CHECK_IOS_BUNDLE_ID,
                Severity.ERROR,
                "Bundle identifier not found in Info.plist",
                "Add CFBundleIdentifier to Info.plist",
            )
        )
    elif is_build_variable(local.bundle_id):
        findings.append(
            Finding(
                CHECK_IOS_BUNDLE_ID,
                Severity.WARNING,
                f"Bundle identifier {local.bundle_id} could not be resolved from project.pbxproj",
                "Check that the .xcodeproj bundle sits within a few directories of Info.plist",
                {"local": local.bundle_id},
            )
        )
    else:
        findings.append(
            Finding(CHECK_IOS_BUNDLE_ID, Severity.SUCCESS, f"Bundle identifier found: {local.bundle_id}")
        )

    if local.associated_domains:
        findings.append(
            Finding(
                CHECK_IOS_ASSOCIATED_DOMAINS,
                Severity.SUCCESS,
                f"Associated domains found: {', '.join(local.associated_domains)}",
            )
        )
    elif sources.get("entitlements"):
        findings.append(
            Finding(
                CHECK_IOS_ENTITLEMENTS,
                Severity.SUCCESS,
                "Entitlements file found",
                None,
                {"path": sources["entitlements"]},
            )
        )
        findings.append(
            Finding(
                CHECK_IOS_ASSOCIATED_DOMAINS,
                Severity.ERROR,
                "No associated domains found in entitlements",
                "Add com.apple.developer.associated-domains array to entitlements file",
            )
        )
    else:
        findings.append(
            Finding(
                CHECK_IOS_ENTITLEMENTS,
                Severity.WARNING,
                "Entitlements file not found",
                "Create an entitlements file and add com.apple.developer.associated-domains",
            )
        )
    return findings


def validate_android_files(local: LocalConfig, sources: Optional[Dict[str, str]] = None) -> List[Finding]:
    sources = local.sources if sources is None else sources
    manifest = sources.get("android_manifest")
    if not manifest:
        return [
            Finding(
                CHECK_ANDROID_MANIFEST,
                Severity.ERROR,
                "AndroidManifest.xml not found",
                "Ensure AndroidManifest.xml exists in your Android project",
            )
        ]
    findings = [
        Finding(CHECK_ANDROID_MANIFEST, Severity.SUCCESS, "AndroidManifest.xml found", None, {"path": manifest})
    ]

    if local.package_name:
        details = {"source": sources["gradle"]} if sources.get("gradle") else None
        findings.append(
            Finding(
                CHECK_ANDROID_PACKAGE,
                Severity.SUCCESS,
                f"Package name found: {local.package_name}",
                None,
                details,
            )
        )
    else:
        findings.append(
            Finding(
                CHECK_ANDROID_PACKAGE,
                Severity.ERROR,
                "Package name not found in AndroidManifest.xml or Gradle scripts",
                "Add a namespace (or applicationId) to the module build.gradle",
            )
        )

    schemes = local.android_schemes()
    if schemes:
        findings.append(
            Finding(CHECK_ANDROID_URL_SCHEMES, Severity.SUCCESS, f"URL schemes found: {', '.join(schemes)}")
        )
    else:
        findings.append(
            Finding(
                CHECK_ANDROID_URL_SCHEMES,
                Severity.WARNING,
                "No custom URL schemes found in AndroidManifest.xml",
                "Add intent filter with custom scheme (e.g., myapp://)",
            )
        )

    if local.app_link_hosts:
        findings.append(
            Finding(
                CHECK_ANDROID_APP_LINKS,
                Severity.SUCCESS,
                f"App link hosts found: {', '.join(local.app_link_hosts)}",
            )
        )
    else:
        findings.append(
            Finding(
                CHECK_ANDROID_APP_LINKS,
                Severity.WARNING,
                "No App Links (HTTPS) intent filters found",
                'Add intent filter with android:autoVerify="true" and android:scheme="https"',
            )
        )
    return findings
