"""
Tolerant readers for the configuration formats found in mobile projects.

Every reader takes raw text (or bytes) and returns a best-effort structured
value. Malformed input yields ``None`` or an empty result; nothing raises
past these functions.
"""
from __future__ import annotations

import logging
import plistlib
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union
from xml.parsers.expat import ExpatError

import yaml

from .constants import (
    ACTION_VIEW,
    ANDROID_NAMESPACE,
    ANDROID_PREFIX,
    APP_LINK_SCHEME,
    APPLINKS_PREFIX,
    CATEGORY_BROWSABLE,
    CATEGORY_DEFAULT,
    ENTITLEMENT_ASSOCIATED_DOMAINS,
    FLUTTER_SDK_PACKAGE,
    GRADLE_COMMENT_PREFIXES,
    GRADLE_COORDINATE_PATTERN,
    GRADLE_JITPACK_PATTERN,
    GRADLE_MAP_PATTERN,
    GRADLE_PACKAGE_PATTERNS,
    IOS_SDK_PACKAGE_MARKERS,
    PACKAGE_SWIFT_REQUIREMENT_PATTERNS,
    PACKAGE_SWIFT_URL_PATTERN,
    PLIST_BUNDLE_IDENTIFIER,
    PLIST_URL_SCHEMES,
    PLIST_URL_TYPES,
    PODFILE_LOCK_PATTERN,
    PODFILE_POD_PATTERN,
    SCHEME_SEPARATOR,
    UNBOUND_PREFIX_MARKER,
)
from .utils import dedupe

logger = logging.getLogger(__name__)

Text = Union[str, bytes]


# =============================================================================
# NORMALIZATION
# =============================================================================


def normalize_scheme(value: str) -> str:
    """Return a bare scheme: ``myapp://`` and ``myapp:`` both become ``myapp``."""
    scheme = value.strip()
    if scheme.endswith(SCHEME_SEPARATOR):
        scheme = scheme[: -len(SCHEME_SEPARATOR)]
    elif scheme.endswith(":"):
        scheme = scheme[:-1]
    return scheme


def normalize_domain(value: str) -> str:
    if value.startswith(APPLINKS_PREFIX):
        return value[len(APPLINKS_PREFIX):]
    return value


def _as_bytes(data: Text) -> bytes:
    return data.encode("utf-8") if isinstance(data, str) else data


def _as_text(data: Text) -> str:
    if isinstance(data, str):
        return data
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data.decode("latin-1", errors="ignore")


# =============================================================================
# PROPERTY LISTS
# =============================================================================


def parse_plist(data: Text) -> Optional[Dict[str, Any]]:
    """Parse an XML or binary property list whose root is a dictionary."""
    try:
        value = plistlib.loads(_as_bytes(data))
    except (
        plistlib.InvalidFileException,
        ExpatError,
        ValueError,
        TypeError,
        OverflowError,
        AttributeError,
        IndexError,
        KeyError,
    ) as exc:
        logger.debug("property list parse failed: %s", exc)
        return None
    if not isinstance(value, dict):
        return None
    return value


def extract_bundle_identifier(plist: Dict[str, Any]) -> Optional[str]:
    value = plist.get(PLIST_BUNDLE_IDENTIFIER)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def extract_url_schemes(plist: Dict[str, Any]) -> List[str]:
    """Collect ``CFBundleURLTypes[*].CFBundleURLSchemes[*]`` in document order."""
    schemes: List[str] = []
    url_types = plist.get(PLIST_URL_TYPES)
    if not isinstance(url_types, list):
        return schemes
    for url_type in url_types:
        if not isinstance(url_type, dict):
            continue
        entries = url_type.get(PLIST_URL_SCHEMES)
        if not isinstance(entries, list):
            continue
        for entry in entries:
            if isinstance(entry, str):
                scheme = normalize_scheme(entry)
                if scheme:
                    schemes.append(scheme)
    return dedupe(schemes)


def extract_associated_domains(plist: Dict[str, Any]) -> List[str]:
    entries = plist.get(ENTITLEMENT_ASSOCIATED_DOMAINS)
    if not isinstance(entries, list):
        return []
    domains = [
        normalize_domain(entry.strip())
        for entry in entries
        if isinstance(entry, str) and entry.strip()
    ]
    return dedupe(domain for domain in domains if domain)


# =============================================================================
# ANDROID MANIFEST
# =============================================================================


@dataclass
class ManifestInfo:
    package: Optional[str] = None
    url_schemes: List[str] = field(default_factory=list)
    app_link_hosts: List[str] = field(default_factory=list)


def _parse_xml_as_is(text: str) -> ET.Element:
    return ET.fromstring(text)


def _parse_xml_binding_android_prefix(text: str) -> ET.Element:
    # Fragments copied from docs often use android: without declaring it.
    bound = re.sub(
        r"<manifest\b",
        f'<manifest xmlns:{ANDROID_PREFIX}="{ANDROID_NAMESPACE}"',
        text,
        count=1,
    )
    return ET.fromstring(bound)


XML_PARSE_STRATEGIES: List[Callable[[str], ET.Element]] = [
    _parse_xml_as_is,
    _parse_xml_binding_android_prefix,
]


def _parse_manifest_xml(text: str) -> Optional[ET.Element]:
    last_error: Optional[Exception] = None
    for strategy in XML_PARSE_STRATEGIES:
        try:
            return strategy(text)
        except ET.ParseError as exc:
            last_error = exc
            if UNBOUND_PREFIX_MARKER not in str(exc):
                break
    logger.debug("manifest parse failed: %s", last_error)
    return None


def _namespaced_attribute(element: ET.Element, name: str) -> Optional[str]:
    return element.get(f"{{{ANDROID_NAMESPACE}}}{name}")


def _bare_attribute(element: ET.Element, name: str) -> Optional[str]:
    return element.get(name)


def _any_namespace_attribute(element: ET.Element, name: str) -> Optional[str]:
    suffix = "}" + name
    for key, value in element.attrib.items():
        if key.endswith(suffix):
            return value
    return None


ATTRIBUTE_STRATEGIES: List[Callable[[ET.Element, str], Optional[str]]] = [
    _namespaced_attribute,
    _bare_attribute,
    _any_namespace_attribute,
]


def manifest_attribute(element: ET.Element, name: str) -> Optional[str]:
    """Read ``android:name`` or bare ``name``, first non-empty wins."""
    for strategy in ATTRIBUTE_STRATEGIES:
        value = strategy(element, name)
        if value:
            return value.strip()
    return None


def _names(elements: Iterable[ET.Element]) -> List[str]:
    return [name for name in (manifest_attribute(e, "name") for e in elements) if name]


def classify_intent_filter(intent_filter: ET.Element) -> Tuple[List[str], List[str]]:
    """Return ``(custom_schemes, app_link_hosts)`` declared by one filter."""
    actions = _names(intent_filter.findall("action"))
    categories = _names(intent_filter.findall("category"))
    if ACTION_VIEW not in actions:
        return [], []

    data_elements = intent_filter.findall("data")
    schemes = [
        normalize_scheme(scheme)
        for scheme in (manifest_attribute(data, "scheme") for data in data_elements)
        if scheme
    ]
    # Hosts on custom-scheme <data> elements are not App Link hosts.
    hosts = [
        host
        for host, scheme in (
            (manifest_attribute(data, "host"), manifest_attribute(data, "scheme")) for data in data_elements
        )
        if host and (not scheme or normalize_scheme(scheme) == APP_LINK_SCHEME)
    ]
    custom_schemes = [scheme for scheme in schemes if scheme and scheme != APP_LINK_SCHEME]

    if CATEGORY_BROWSABLE not in categories and CATEGORY_DEFAULT not in categories:
        # Loose mode: harvest custom schemes only.
        return custom_schemes, []

    auto_verify = (manifest_attribute(intent_filter, "autoVerify") or "").lower() == "true"
    app_link_hosts: List[str] = []
    if auto_verify and APP_LINK_SCHEME in schemes:
        app_link_hosts = hosts
    return custom_schemes, app_link_hosts


def parse_manifest(data: Text) -> Optional[ManifestInfo]:
    root = _parse_manifest_xml(_as_text(data))
    if root is None:
        return None
    info = ManifestInfo(package=(root.get("package") or "").strip() or None)
    schemes: List[str] = []
    hosts: List[str] = []
    for tag in ("activity", "activity-alias"):
        for activity in root.iter(tag):
            for intent_filter in activity.findall("intent-filter"):
                filter_schemes, filter_hosts = classify_intent_filter(intent_filter)
                schemes.extend(filter_schemes)
                hosts.extend(filter_hosts)
    info.url_schemes = dedupe(schemes)
    info.app_link_hosts = dedupe(hosts)
    return info


# =============================================================================
# DEPENDENCY DECLARATIONS
# =============================================================================


class DependencyStatus(str, Enum):
    PRESENT = "present"
    COMMENTED_OUT = "commented_out"
    ABSENT = "absent"


@dataclass(frozen=True)
class DependencyMatch:
    status: DependencyStatus
    version: Optional[str] = None
    requirement: Optional[str] = None
    line: Optional[int] = None
    declaration: Optional[str] = None

    @property
    def present(self) -> bool:
        return self.status == DependencyStatus.PRESENT

    @property
    def commented_out(self) -> bool:
        return self.status == DependencyStatus.COMMENTED_OUT


ABSENT = DependencyMatch(status=DependencyStatus.ABSENT)


def _resolve_matches(
    found: Sequence[Tuple[bool, DependencyMatch]],
) -> DependencyMatch:
    """First live declaration wins; commented-only declarations are reported as such."""
    for commented, match in found:
        if not commented:
            return match
    if found:
        first = found[0][1]
        return DependencyMatch(
            status=DependencyStatus.COMMENTED_OUT,
            version=first.version,
            requirement=first.requirement,
            line=first.line,
            declaration=first.declaration,
        )
    return ABSENT


def _c_style_comment_flags(lines: Sequence[str]) -> List[Tuple[bool, str]]:
    """Pair each line with whether it starts inside a comment, and its live code."""
    flagged: List[Tuple[bool, str]] = []
    in_block = False
    for line in lines:
        stripped = line.strip()
        starts_commented = in_block or stripped.startswith(GRADLE_COMMENT_PREFIXES)
        code = line
        if in_block:
            end = line.find("*/")
            if end == -1:
                flagged.append((True, line))
                continue
            in_block = False
            code = line[end + 2:]
        start = code.find("/*")
        if start != -1 and code.find("*/", start + 2) == -1:
            in_block = True
        flagged.append((starts_commented, code))
    return flagged


def _commented_before(code: str, position: int) -> bool:
    prefix = code[:position]
    return "//" in prefix or "/*" in prefix.replace("*/", "")


GRADLE_DEPENDENCY_STRATEGIES = [
    ("coordinate", GRADLE_COORDINATE_PATTERN),
    ("jitpack", GRADLE_JITPACK_PATTERN),
    ("map", GRADLE_MAP_PATTERN),
]


def find_gradle_dependency(data: Text) -> DependencyMatch:
    """Locate the ULink SDK dependency in a Groovy or Kotlin build script."""
    text = _as_text(data)
    lines = text.splitlines()
    found: List[Tuple[bool, DependencyMatch]] = []
    for index, (starts_commented, code) in enumerate(_c_style_comment_flags(lines), start=1):
        raw = lines[index - 1]
        for syntax, pattern in GRADLE_DEPENDENCY_STRATEGIES:
            match = pattern.search(raw)
            if not match:
                continue
            commented = starts_commented or pattern.search(code) is None
            if not commented:
                live = pattern.search(code)
                commented = live is None or _commented_before(code, live.start())
            found.append(
                (
                    commented,
                    DependencyMatch(
                        status=DependencyStatus.PRESENT,
                        version=match.group(1),
                        requirement=syntax,
                        line=index,
                        declaration=raw.strip(),
                    ),
                )
            )
            break
    return _resolve_matches(found)


def extract_gradle_package_name(data: Text) -> Optional[str]:
    text = "\n".join(
        code for commented, code in _c_style_comment_flags(_as_text(data).splitlines())
        if not commented
    )
    for pattern in GRADLE_PACKAGE_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1).strip()
    return None


def find_pod_dependency(data: Text) -> DependencyMatch:
    found: List[Tuple[bool, DependencyMatch]] = []
    for index, line in enumerate(_as_text(data).splitlines(), start=1):
        stripped = line.strip()
        commented = stripped.startswith("#")
        candidate = stripped.lstrip("#").strip() if commented else line
        match = PODFILE_POD_PATTERN.match(candidate)
        if not match:
            continue
        found.append(
            (
                commented,
                DependencyMatch(
                    status=DependencyStatus.PRESENT,
                    version=match.group(1),
                    requirement="pod",
                    line=index,
                    declaration=stripped,
                ),
            )
        )
    return _resolve_matches(found)


def podfile_lock_version(data: Text) -> Optional[str]:
    match = PODFILE_LOCK_PATTERN.search(_as_text(data))
    return match.group(1).strip() if match else None


def _is_ulink_package_url(url: str) -> bool:
    lowered = url.lower()
    return any(marker.lower() in lowered for marker in IOS_SDK_PACKAGE_MARKERS)


def _swift_requirement(window: str) -> Tuple[Optional[str], Optional[str]]:
    for kind, pattern in PACKAGE_SWIFT_REQUIREMENT_PATTERNS:
        match = pattern.search(window)
        if not match:
            continue
        if kind == "range":
            return kind, f"{match.group(1)}..<{match.group(2)}"
        return kind, match.group(1)
    return None, None


def find_swift_package(data: Text) -> DependencyMatch:
    lines = _as_text(data).splitlines()
    flags = _c_style_comment_flags(lines)
    found: List[Tuple[bool, DependencyMatch]] = []
    for index, line in enumerate(lines):
        match = PACKAGE_SWIFT_URL_PATTERN.search(line)
        if not match or not _is_ulink_package_url(match.group(1)):
            continue
        starts_commented, code = flags[index]
        commented = starts_commented or _commented_before(code, code.find(".package"))
        window = "\n".join(lines[index:index + 3])
        next_package = window.find(".package", match.end())
        if next_package != -1:
            window = window[:next_package]
        requirement, version = _swift_requirement(window[match.end():])
        found.append(
            (
                commented,
                DependencyMatch(
                    status=DependencyStatus.PRESENT,
                    version=version,
                    requirement=requirement,
                    line=index + 1,
                    declaration=match.group(1),
                ),
            )
        )
    return _resolve_matches(found)


def parse_pubspec(data: Text) -> Optional[Dict[str, Any]]:
    try:
        value = yaml.safe_load(_as_text(data))
    except yaml.YAMLError as exc:
        logger.debug("pubspec parse failed: %s", exc)
        return None
    return value if isinstance(value, dict) else None


def _pubspec_version(spec: Any) -> Optional[str]:
    if spec is None:
        return None
    if isinstance(spec, (str, int, float)):
        return str(spec)
    if isinstance(spec, dict):
        if "version" in spec:
            return str(spec["version"])
        git = spec.get("git")
        if isinstance(git, dict) and git.get("ref"):
            return f"git:{git['ref']}"
        if git:
            return "git"
        if "path" in spec:
            return f"path:{spec['path']}"
    return None


def find_pubspec_dependency(data: Text, package: str = FLUTTER_SDK_PACKAGE) -> DependencyMatch:
    text = _as_text(data)
    pubspec = parse_pubspec(text)
    dependencies = pubspec.get("dependencies") if pubspec else None
    if isinstance(dependencies, dict) and package in dependencies:
        return DependencyMatch(
            status=DependencyStatus.PRESENT,
            version=_pubspec_version(dependencies[package]),
            requirement="pubspec",
            declaration=package,
        )
    commented = re.compile(rf"^\s*#\s*{re.escape(package)}\s*:\s*(\S+)?")
    for index, line in enumerate(text.splitlines(), start=1):
        match = commented.match(line)
        if match:
            return DependencyMatch(
                status=DependencyStatus.COMMENTED_OUT,
                version=match.group(1),
                requirement="pubspec",
                line=index,
                declaration=line.strip(),
            )
    return ABSENT
