"""Value objects shared by the extraction and verification layers."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import jsonschema

from .constants import (
    DOMAIN_STATUS_DEFAULT,
    DOMAIN_STATUS_VERIFIED,
    REMOTE_CONFIG_SCHEMA,
)
from .errors import RemoteConfigError


class ProjectKind(str, Enum):
    FLUTTER = "flutter"
    IOS = "ios"
    ANDROID = "android"
    UNKNOWN = "unknown"

    @property
    def has_ios(self) -> bool:
        return self in (ProjectKind.FLUTTER, ProjectKind.IOS)

    @property
    def has_android(self) -> bool:
        return self in (ProjectKind.FLUTTER, ProjectKind.ANDROID)


class Severity(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class LocalConfig:
    """Normalized deep-link configuration read from project files.

    Schemes never carry a trailing ``://`` and domains never carry the
    ``applinks:`` prefix. ``url_schemes`` is the merged set; the platform
    tagged sets are kept apart for per-platform cross-referencing.
    """

    kind: ProjectKind
    bundle_id: Optional[str] = None
    package_name: Optional[str] = None
    url_schemes: Tuple[str, ...] = ()
    ios_url_schemes: Tuple[str, ...] = ()
    android_url_schemes: Tuple[str, ...] = ()
    associated_domains: Tuple[str, ...] = ()
    team_id: Optional[str] = None
    app_link_hosts: Tuple[str, ...] = ()
    sha256_fingerprints: Tuple[str, ...] = ()
    sources: Dict[str, str] = field(default_factory=dict, compare=False)

    @classmethod
    def empty(cls, kind: ProjectKind) -> "LocalConfig":
        return cls(kind=kind)

    @property
    def is_empty(self) -> bool:
        return not any(
            (
                self.bundle_id,
                self.package_name,
                self.url_schemes,
                self.associated_domains,
                self.team_id,
                self.app_link_hosts,
            )
        )

    def ios_schemes(self) -> Tuple[str, ...]:
        # Flutter keeps each platform's schemes to itself.
        if self.kind == ProjectKind.FLUTTER:
            return self.ios_url_schemes
        return self.ios_url_schemes or self.url_schemes

    def android_schemes(self) -> Tuple[str, ...]:
        if self.kind == ProjectKind.FLUTTER:
            return self.android_url_schemes
        return self.android_url_schemes or self.url_schemes

    def with_remote_fingerprints(self, remote: "RemoteConfig") -> "LocalConfig":
        """Signing fingerprints are not in project files; copy them from ULink."""
        if not self.kind.has_android:
            return self
        return replace(self, sha256_fingerprints=remote.android_sha256_fingerprints)


@dataclass(frozen=True)
class DomainRecord:
    id: str
    host: str
    status: str = DOMAIN_STATUS_DEFAULT
    is_primary: bool = False

    @property
    def is_verified(self) -> bool:
        return self.status == DOMAIN_STATUS_VERIFIED

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DomainRecord":
        return cls(
            id=str(data["id"]),
            host=data["host"],
            status=data.get("status") or DOMAIN_STATUS_DEFAULT,
            is_primary=bool(data.get("isPrimary") or False),
        )


@dataclass(frozen=True)
class RemoteConfig:
    project_id: str
    ios_bundle_identifier: Optional[str] = None
    ios_team_id: Optional[str] = None
    ios_deeplink_schema: Optional[str] = None
    android_package_name: Optional[str] = None
    android_deeplink_schema: Optional[str] = None
    android_sha256_fingerprints: Tuple[str, ...] = ()
    domains: Tuple[DomainRecord, ...] = ()

    @classmethod
    def from_dict(cls, payload: Any) -> "RemoteConfig":
        try:
            jsonschema.validate(instance=payload, schema=REMOTE_CONFIG_SCHEMA)
        except jsonschema.ValidationError as exc:
            location = "/".join(str(part) for part in exc.absolute_path) or "<root>"
            raise RemoteConfigError(
                f"Invalid ULink project configuration at {location}: {exc.message}"
            ) from exc
        return cls(
            project_id=payload["projectId"],
            ios_bundle_identifier=payload.get("ios_bundle_identifier"),
            ios_team_id=payload.get("ios_team_id"),
            ios_deeplink_schema=payload.get("ios_deeplink_schema"),
            android_package_name=payload.get("android_package_name"),
            android_deeplink_schema=payload.get("android_deeplink_schema"),
            android_sha256_fingerprints=tuple(
                payload.get("android_sha256_fingerprints") or ()
            ),
            domains=tuple(
                DomainRecord.from_dict(item) for item in payload.get("domains") or ()
            ),
        )

    def verified_domains(self) -> List[str]:
        return [domain.host for domain in self.domains if domain.is_verified]

    def all_hosts(self) -> List[str]:
        return [domain.host for domain in self.domains]

    def domain_for(self, host: str) -> Optional[DomainRecord]:
        for domain in self.domains:
            if domain.host == host:
                return domain
        return None


@dataclass(frozen=True)
class TargetInfo:
    entitlements_file: Path
    identity_file: Path
    bundle_id: str
    target_name: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "target_name": self.target_name,
            "bundle_id": self.bundle_id,
            "entitlements_file": str(self.entitlements_file),
            "identity_file": str(self.identity_file),
        }


@dataclass(frozen=True)
class TargetDiscoveryResult:
    matched_target: Optional[TargetInfo]
    all_targets: Tuple[TargetInfo, ...]
    requested_bundle_id: Optional[str]

    @property
    def has_match(self) -> bool:
        return self.matched_target is not None

    @property
    def has_multiple_targets(self) -> bool:
        return len(self.all_targets) > 1


@dataclass(frozen=True)
class Finding:
    check_name: str
    severity: Severity
    message: Optional[str] = None
    fix_suggestion: Optional[str] = None
    details: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "checkName": self.check_name,
            "status": self.severity.value,
            "message": self.message,
            "fixSuggestion": self.fix_suggestion,
            "details": self.details,
        }
