"""
Xcode build-setting lookups.

Info.plist values such as ``$(PRODUCT_BUNDLE_IDENTIFIER)`` are only resolved
at build time. These helpers walk up from a plist's directory to the nearest
``*.xcodeproj`` bundle and read the assignment from ``project.pbxproj``.
"""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from .constants import (
    BUILD_VARIABLE_PATTERN,
    MAX_WALK_DEPTH,
    PBXPROJ_FILE,
    TEAM_ID_PATTERN,
    TEST_CONFIGURATION_MARKER,
    XCODEPROJ_SUFFIX,
)
from .utils import list_subdirectories, walk_up

logger = logging.getLogger(__name__)


def is_build_variable(value: Optional[str]) -> bool:
    return bool(value) and BUILD_VARIABLE_PATTERN.search(value) is not None


def find_pbxproj_files(start_dir: Path, max_depth: int = MAX_WALK_DEPTH) -> Iterator[Path]:
    """Yield ``project.pbxproj`` files, nearest project bundle first."""
    for directory in walk_up(start_dir, max_depth):
        for bundle in list_subdirectories(directory):
            if not bundle.name.endswith(XCODEPROJ_SUFFIX):
                continue
            candidate = bundle / PBXPROJ_FILE
            if candidate.is_file():
                yield candidate


def _read_pbxproj(path: Path, cache: Optional[Dict[Path, str]] = None) -> Optional[str]:
    if cache is not None and path in cache:
        return cache[path]
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        logger.debug("unable to read %s: %s", path, exc)
        return None
    if cache is not None:
        cache[path] = text
    return text


def find_assignments(text: str, name: str) -> List[str]:
    pattern = re.compile(rf"^\s*{re.escape(name)}\s*=\s*([^;]+);", re.MULTILINE)
    return [match.group(1).strip() for match in pattern.finditer(text)]


def _clean(value: str) -> str:
    return value.replace('"', "").replace("'", "").strip()


def pick_assignment(values: List[str]) -> Optional[str]:
    """Choose the main-target value among every assignment of one setting.

    Test-bundle values and values that are themselves variable references are
    skipped first; when only test values remain the first literal one is used.
    """
    for value in values:
        if TEST_CONFIGURATION_MARKER not in value and not is_build_variable(value):
            return _clean(value)
    for value in values:
        if not is_build_variable(value):
            return _clean(value)
    return None


def resolve_build_variable(
    token: str,
    start_dir: Path,
    max_depth: int = MAX_WALK_DEPTH,
    cache: Optional[Dict[Path, str]] = None,
) -> Optional[str]:
    """Substitute every ``$(NAME)`` / ``${NAME}`` in ``token``.

    Returns ``None`` when any referenced setting cannot be found within the
    walk bound.
    """
    names = [match.group(1) for match in BUILD_VARIABLE_PATTERN.finditer(token)]
    if not names:
        return token

    resolved: Dict[str, str] = {}
    for pbxproj in find_pbxproj_files(start_dir, max_depth):
        text = _read_pbxproj(pbxproj, cache)
        if text is None:
            continue
        for name in names:
            if name in resolved:
                continue
            value = pick_assignment(find_assignments(text, name))
            if value:
                resolved[name] = value
        if len(resolved) == len(set(names)):
            break

    if len(resolved) != len(set(names)):
        logger.debug("unresolved build variable %s below %s", token, start_dir)
        return None
    return BUILD_VARIABLE_PATTERN.sub(lambda match: resolved[match.group(1)], token)


def team_id_from_text(text: str) -> Optional[str]:
    match = TEAM_ID_PATTERN.search(text)
    return match.group(1) if match else None


def extract_team_id(
    start_dir: Path,
    max_depth: int = MAX_WALK_DEPTH,
    cache: Optional[Dict[Path, str]] = None,
) -> Optional[str]:
    for pbxproj in find_pbxproj_files(start_dir, max_depth):
        text = _read_pbxproj(pbxproj, cache)
        if text is None:
            continue
        team_id = team_id_from_text(text)
        if team_id:
            return team_id
    return None
