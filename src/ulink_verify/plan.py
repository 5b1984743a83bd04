"""Project classification and configuration-file discovery."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .constants import (
    ANDROID_CONVENTIONAL_MANIFESTS,
    ANDROID_PLATFORM_DIR,
    ANDROID_ROLES,
    FILE_ROLE_SUFFIXES,
    FLUTTER_MANIFEST,
    FLUTTER_PATHS,
    IGNORED_DIRS,
    IOS_BUNDLE_SUFFIXES,
    IOS_PLATFORM_DIR,
    IOS_ROLES,
    MANIFEST_EXCLUDED_DIRS,
    ROOT_GRADLE_SCRIPTS,
)
from .models import ProjectKind
from .utils import dedupe

logger = logging.getLogger(__name__)


def detect_project_kind(root: Path) -> ProjectKind:
    """Classify ``root``: Flutter beats native iOS beats native Android."""
    if not root.is_dir():
        return ProjectKind.UNKNOWN
    if (root / FLUTTER_MANIFEST).is_file():
        return ProjectKind.FLUTTER
    if (root / IOS_PLATFORM_DIR).is_dir():
        return ProjectKind.IOS
    try:
        entries = list(root.iterdir())
    except OSError as exc:
        logger.debug("unable to list %s: %s", root, exc)
        entries = []
    if any(entry.name.endswith(IOS_BUNDLE_SUFFIXES) for entry in entries):
        return ProjectKind.IOS
    if (root / ANDROID_PLATFORM_DIR).is_dir():
        return ProjectKind.ANDROID
    if any((root / script).is_file() for script in ROOT_GRADLE_SCRIPTS):
        return ProjectKind.ANDROID
    return ProjectKind.UNKNOWN


def roles_for(kind: ProjectKind) -> List[str]:
    if kind == ProjectKind.FLUTTER:
        return list(FLUTTER_PATHS)
    if kind == ProjectKind.IOS:
        return sorted(IOS_ROLES)
    if kind == ProjectKind.ANDROID:
        return sorted(ANDROID_ROLES)
    return []


def _walk_files(root: Path) -> Iterable[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(name for name in dirnames if name not in IGNORED_DIRS)
        for filename in sorted(filenames):
            yield Path(dirpath) / filename


def _is_source_manifest(path: Path, root: Path) -> bool:
    parts = path.relative_to(root).parts[:-1]
    if MANIFEST_EXCLUDED_DIRS.intersection(parts):
        return False
    return "src" in parts and "main" in parts


def _find_flutter(root: Path, role: str) -> List[Path]:
    found = [root.joinpath(*parts) for parts in FLUTTER_PATHS.get(role, [])]
    return [path for path in found if path.is_file()]


def _find_native(root: Path, role: str) -> List[Path]:
    suffixes = FILE_ROLE_SUFFIXES.get(role)
    if not suffixes:
        return []
    matches = [path for path in _walk_files(root) if path.name.endswith(suffixes)]

    if role == "android_manifests":
        conventional = [
            root.joinpath(*parts)
            for parts in ANDROID_CONVENTIONAL_MANIFESTS
            if root.joinpath(*parts).is_file()
        ]
        nested = [path for path in matches if _is_source_manifest(path, root)]
        return [Path(p) for p in dedupe(str(path) for path in conventional + nested)]

    if role == "gradle_files":
        # Module-level scripts carry dependencies and applicationId.
        return sorted(matches, key=lambda path: (path.parent == root, str(path)))

    return sorted(matches)


def find_all(root: Path, kind: ProjectKind, role: str) -> List[Path]:
    """Every candidate file of ``role`` for a project of ``kind``.

    Flutter projects are looked up at fixed conventional paths; native
    projects are enumerated recursively.
    """
    if kind == ProjectKind.FLUTTER:
        return _find_flutter(root, role)
    if kind == ProjectKind.IOS and role in IOS_ROLES:
        return _find_native(root, role)
    if kind == ProjectKind.ANDROID and role in ANDROID_ROLES:
        return _find_native(root, role)
    return []


@dataclass
class ScanPlan:
    root: Path
    kind: ProjectKind
    files_by_role: Dict[str, List[Path]] = field(default_factory=dict)

    def files(self, role: str) -> List[Path]:
        return self.files_by_role.get(role, [])

    def first(self, role: str) -> Optional[Path]:
        files = self.files(role)
        return files[0] if files else None


def build_scan_plan(root: Path, kind: Optional[ProjectKind] = None) -> ScanPlan:
    root = root.resolve()
    if kind is None:
        kind = detect_project_kind(root)
    plan = ScanPlan(root=root, kind=kind)
    for role in roles_for(kind):
        plan.files_by_role[role] = find_all(root, kind, role)
        logger.debug("%s: %d candidate(s)", role, len(plan.files_by_role[role]))
    return plan
