"""
iOS target discovery.

A target is an entitlements file paired with the Info.plist that describes
the same bundle. Projects with app extensions or white-label variants carry
several, and the requested bundle identifier picks one.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Dict, List, Optional

from .constants import IGNORED_DIRS, MAX_WALK_DEPTH
from .models import ProjectKind, TargetDiscoveryResult, TargetInfo
from .pbxproj import is_build_variable, resolve_build_variable
from .plan import ScanPlan, find_all
from .readers import extract_bundle_identifier, parse_plist
from .utils import list_subdirectories

logger = logging.getLogger(__name__)

IDENTITY_FILE = "Info.plist"


def _same_directory(entitlements: Path) -> Optional[Path]:
    candidate = entitlements.parent / IDENTITY_FILE
    return candidate if candidate.is_file() else None


def _parent_directory(entitlements: Path) -> Optional[Path]:
    candidate = entitlements.parent.parent / IDENTITY_FILE
    return candidate if candidate.is_file() else None


def _child_directories(directory: Path) -> Optional[Path]:
    for child in list_subdirectories(directory):
        candidate = child / IDENTITY_FILE
        if candidate.is_file():
            return candidate
    return None


def _own_subdirectories(entitlements: Path) -> Optional[Path]:
    return _child_directories(entitlements.parent)


def _parent_subdirectories(entitlements: Path) -> Optional[Path]:
    return _child_directories(entitlements.parent.parent)


def _recursive_subtree(entitlements: Path) -> Optional[Path]:
    for dirpath, dirnames, filenames in os.walk(entitlements.parent):
        dirnames[:] = sorted(name for name in dirnames if name not in IGNORED_DIRS)
        for filename in sorted(filenames):
            if filename.endswith(IDENTITY_FILE):
                return Path(dirpath) / filename
    return None


IDENTITY_SEARCH: List[Callable[[Path], Optional[Path]]] = [
    _same_directory,
    _parent_directory,
    _own_subdirectories,
    _parent_subdirectories,
    _recursive_subtree,
]


def find_identity_file(entitlements: Path) -> Optional[Path]:
    """Locate the Info.plist owning ``entitlements``; first search step wins."""
    for step in IDENTITY_SEARCH:
        found = step(entitlements)
        if found is not None:
            return found
    return None


def read_bundle_identifier(
    identity_file: Path,
    max_depth: int = MAX_WALK_DEPTH,
    cache: Optional[Dict[Path, str]] = None,
) -> Optional[str]:
    """Bundle id from ``identity_file`` with build variables resolved.

    An unresolvable variable is returned verbatim so callers can report it.
    """
    try:
        data = identity_file.read_bytes()
    except OSError as exc:
        logger.debug("unable to read %s: %s", identity_file, exc)
        return None
    plist = parse_plist(data)
    if plist is None:
        return None
    bundle_id = extract_bundle_identifier(plist)
    if bundle_id and is_build_variable(bundle_id):
        resolved = resolve_build_variable(bundle_id, identity_file.parent, max_depth, cache)
        if resolved:
            return resolved
    return bundle_id


def discover_targets(
    root: Path,
    kind: ProjectKind,
    requested_bundle_id: Optional[str] = None,
    plan: Optional[ScanPlan] = None,
    max_depth: int = MAX_WALK_DEPTH,
    cache: Optional[Dict[Path, str]] = None,
) -> TargetDiscoveryResult:
    if plan is not None:
        entitlements_files = plan.files("entitlements")
    else:
        entitlements_files = find_all(root, kind, "entitlements")

    targets: List[TargetInfo] = []
    matched: Optional[TargetInfo] = None

    for entitlements in entitlements_files:
        identity = find_identity_file(entitlements)
        if identity is None:
            logger.debug("no Info.plist for %s; skipping", entitlements)
            continue
        bundle_id = read_bundle_identifier(identity, max_depth, cache)
        if not bundle_id:
            logger.debug("no bundle identifier in %s; skipping", identity)
            continue

        target = TargetInfo(
            entitlements_file=entitlements,
            identity_file=identity,
            bundle_id=bundle_id,
            target_name=entitlements.parent.name,
        )
        targets.append(target)

        if matched is not None:
            continue
        if requested_bundle_id is None or bundle_id == requested_bundle_id:
            matched = target

    return TargetDiscoveryResult(
        matched_target=matched,
        all_targets=tuple(targets),
        requested_bundle_id=requested_bundle_id,
    )
