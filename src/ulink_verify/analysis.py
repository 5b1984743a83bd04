"""
ULink Verify - Configuration Extraction Module

Composes the format readers, the build-setting resolver and the target
matcher into one normalized LocalConfig per project. Extraction never
fails outright: each missing or malformed file only empties the fields it
would have supplied.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

from .constants import GRADLE_PROJECT_SCRIPTS, MAX_WALK_DEPTH
from .models import LocalConfig, ProjectKind, TargetDiscoveryResult
from .pbxproj import extract_team_id, is_build_variable, resolve_build_variable
from .plan import ScanPlan, build_scan_plan
from .readers import (
    ManifestInfo,
    extract_associated_domains,
    extract_bundle_identifier,
    extract_gradle_package_name,
    extract_url_schemes,
    parse_manifest,
    parse_plist,
)
from .targets import discover_targets
from .utils import dedupe, relative_path, walk_up

logger = logging.getLogger(__name__)


@dataclass
class AnalysisContext:
    root: Path
    plan: ScanPlan
    requested_bundle_id: Optional[str] = None
    max_walk_depth: int = MAX_WALK_DEPTH
    discovery: Optional[TargetDiscoveryResult] = None
    files_read: Set[Path] = field(default_factory=set)
    pbx_text_cache: Dict[Path, str] = field(default_factory=dict)
    text_cache: Dict[Path, Optional[str]] = field(default_factory=dict)

    def record_read(self, path: Path) -> None:
        self.files_read.add(path.resolve())

    def rel(self, path: Path) -> str:
        return relative_path(path, self.root)

    def read_text(self, path: Path) -> Optional[str]:
        return _safe_read_text(self, path)


def build_context(
    root: Path,
    requested_bundle_id: Optional[str] = None,
    max_walk_depth: int = MAX_WALK_DEPTH,
    kind: Optional[ProjectKind] = None,
) -> AnalysisContext:
    plan = build_scan_plan(root, kind)
    return AnalysisContext(
        root=plan.root,
        plan=plan,
        requested_bundle_id=requested_bundle_id,
        max_walk_depth=max_walk_depth,
    )


def _safe_read_bytes(ctx: AnalysisContext, path: Path) -> Optional[bytes]:
    try:
        data = path.read_bytes()
    except OSError as exc:
        logger.debug("unable to read %s: %s", path, exc)
        return None
    ctx.record_read(path)
    return data


def _safe_read_text(ctx: AnalysisContext, path: Path) -> Optional[str]:
    if path in ctx.text_cache:
        return ctx.text_cache[path]
    data = _safe_read_bytes(ctx, path)
    text: Optional[str] = None
    if data is not None:
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError:
            text = data.decode("latin-1", errors="ignore")
    ctx.text_cache[path] = text
    return text


def _read_plist(ctx: AnalysisContext, path: Path) -> Optional[Dict[str, Any]]:
    data = _safe_read_bytes(ctx, path)
    if data is None:
        return None
    plist = parse_plist(data)
    if plist is None:
        logger.debug("malformed property list %s", path)
    return plist


# =============================================================================
# iOS
# =============================================================================


def _ios_sources(ctx: AnalysisContext) -> Tuple[Optional[Path], Optional[Path]]:
    """Info.plist and entitlements of the matched target, else the first found."""
    discovery = discover_targets(
        ctx.root,
        ctx.plan.kind,
        ctx.requested_bundle_id,
        plan=ctx.plan,
        max_depth=ctx.max_walk_depth,
        cache=ctx.pbx_text_cache,
    )
    ctx.discovery = discovery
    if discovery.matched_target is not None:
        target = discovery.matched_target
        return target.identity_file, target.entitlements_file
    return ctx.plan.first("info_plists"), ctx.plan.first("entitlements")


def extract_ios_config(ctx: AnalysisContext) -> LocalConfig:
    info_plist, entitlements = _ios_sources(ctx)
    sources: Dict[str, str] = {}
    bundle_id: Optional[str] = None
    schemes: List[str] = []
    domains: List[str] = []
    team_id: Optional[str] = None

    plist = _read_plist(ctx, info_plist) if info_plist else None
    if plist is not None and info_plist is not None:
        sources["info_plist"] = ctx.rel(info_plist)
        schemes = extract_url_schemes(plist)
        bundle_id = extract_bundle_identifier(plist)
        if bundle_id and is_build_variable(bundle_id):
            resolved = resolve_build_variable(
                bundle_id, info_plist.parent, ctx.max_walk_depth, ctx.pbx_text_cache
            )
            bundle_id = resolved or bundle_id
        if bundle_id:
            team_id = extract_team_id(info_plist.parent, ctx.max_walk_depth, ctx.pbx_text_cache)

    if entitlements is not None:
        entitlement_plist = _read_plist(ctx, entitlements)
        if entitlement_plist is not None:
            sources["entitlements"] = ctx.rel(entitlements)
            domains = extract_associated_domains(entitlement_plist)

    return LocalConfig(
        kind=ProjectKind.IOS,
        bundle_id=bundle_id,
        url_schemes=tuple(schemes),
        ios_url_schemes=tuple(schemes),
        associated_domains=tuple(domains),
        team_id=team_id,
        sources=sources,
    )


# =============================================================================
# ANDROID
# =============================================================================


def _gradle_package_near(ctx: AnalysisContext, manifest: Path) -> Tuple[Optional[str], Optional[Path]]:
    for directory in walk_up(manifest.parent, ctx.max_walk_depth):
        for parts in GRADLE_PROJECT_SCRIPTS:
            script = directory.joinpath(*parts)
            if not script.is_file():
                continue
            text = _safe_read_text(ctx, script)
            package = extract_gradle_package_name(text) if text else None
            if package:
                return package, script
    return None, None


def _gradle_package_from_plan(ctx: AnalysisContext) -> Tuple[Optional[str], Optional[Path]]:
    for script in ctx.plan.files("gradle_files"):
        text = _safe_read_text(ctx, script)
        package = extract_gradle_package_name(text) if text else None
        if package:
            return package, script
    return None, None


def extract_android_config(ctx: AnalysisContext) -> LocalConfig:
    manifest_path = ctx.plan.first("android_manifests")
    sources: Dict[str, str] = {}
    info: Optional[ManifestInfo] = None

    if manifest_path is not None:
        text = _safe_read_text(ctx, manifest_path)
        info = parse_manifest(text) if text is not None else None
        if info is None:
            logger.debug("malformed manifest %s", manifest_path)
        else:
            sources["android_manifest"] = ctx.rel(manifest_path)

    package = info.package if info else None
    if not package:
        # Modern projects declare the namespace in Gradle instead.
        script: Optional[Path] = None
        if manifest_path is not None:
            package, script = _gradle_package_near(ctx, manifest_path)
        if not package:
            package, script = _gradle_package_from_plan(ctx)
        if package and script is not None:
            sources["gradle"] = ctx.rel(script)

    schemes = tuple(info.url_schemes) if info else ()
    return LocalConfig(
        kind=ProjectKind.ANDROID,
        package_name=package,
        url_schemes=schemes,
        android_url_schemes=schemes,
        app_link_hosts=tuple(info.app_link_hosts) if info else (),
        sources=sources,
    )


# =============================================================================
# COMPOSITION
# =============================================================================


def merge_configs(ios: LocalConfig, android: LocalConfig) -> LocalConfig:
    sources = dict(ios.sources)
    sources.update(android.sources)
    return LocalConfig(
        kind=ProjectKind.FLUTTER,
        bundle_id=ios.bundle_id,
        package_name=android.package_name,
        url_schemes=tuple(dedupe(ios.ios_url_schemes + android.android_url_schemes)),
        ios_url_schemes=ios.ios_url_schemes,
        android_url_schemes=android.android_url_schemes,
        associated_domains=ios.associated_domains,
        team_id=ios.team_id,
        app_link_hosts=android.app_link_hosts,
        sources=sources,
    )


def extract_cross_platform_config(ctx: AnalysisContext) -> LocalConfig:
    return merge_configs(extract_ios_config(ctx), extract_android_config(ctx))


def extract_local_config(ctx: AnalysisContext) -> LocalConfig:
    kind = ctx.plan.kind
    if kind == ProjectKind.FLUTTER:
        return extract_cross_platform_config(ctx)
    if kind == ProjectKind.IOS:
        return extract_ios_config(ctx)
    if kind == ProjectKind.ANDROID:
        return extract_android_config(ctx)
    return LocalConfig.empty(kind)
