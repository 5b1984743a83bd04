"""Run configuration: environment overrides and per-directory project selection."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping, Optional

from .constants import MAX_WALK_DEPTH, PROJECT_CONFIG_DIR, PROJECT_CONFIG_FILE
from .errors import ConfigurationError, RemoteConfigError
from .models import RemoteConfig

logger = logging.getLogger(__name__)

ENV_LOG_LEVEL = "ULINK_VERIFY_LOG_LEVEL"
ENV_MAX_WALK_DEPTH = "ULINK_VERIFY_MAX_WALK_DEPTH"


@dataclass(frozen=True)
class VerifyConfig:
    project_root: Path
    requested_bundle_id: Optional[str] = None
    remote_config_path: Optional[Path] = None
    output_dir: Optional[Path] = None
    verbose: bool = False
    max_walk_depth: int = MAX_WALK_DEPTH
    log_level: str = "WARNING"


def _parse_depth(raw: str) -> int:
    try:
        depth = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{ENV_MAX_WALK_DEPTH} must be an integer, got {raw!r}") from exc
    if depth < 1:
        raise ConfigurationError(f"{ENV_MAX_WALK_DEPTH} must be at least 1, got {depth}")
    return depth


def load_config_from_env(
    project_root: Path,
    environ: Optional[Mapping[str, str]] = None,
    **overrides: Any,
) -> VerifyConfig:
    """Build a VerifyConfig from defaults, then the environment, then ``overrides``."""
    env = os.environ if environ is None else environ
    config = VerifyConfig(project_root=project_root)

    raw_depth = env.get(ENV_MAX_WALK_DEPTH, "").strip()
    if raw_depth:
        config = replace(config, max_walk_depth=_parse_depth(raw_depth))
    raw_level = env.get(ENV_LOG_LEVEL, "").strip()
    if raw_level:
        config = replace(config, log_level=raw_level.upper())

    explicit = {key: value for key, value in overrides.items() if value is not None}
    return replace(config, **explicit)


def load_remote_config(path: Path) -> RemoteConfig:
    """Read an already-fetched ULink project configuration from disk."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigurationError(f"Unable to read remote config {path}: {exc}") from exc
    except ValueError as exc:
        raise RemoteConfigError(f"Remote config {path} is not valid JSON: {exc}") from exc
    return RemoteConfig.from_dict(payload)


def load_directory_project_id(project_root: Path) -> Optional[str]:
    """Project id selected for this directory, or None when absent or malformed."""
    path = project_root / PROJECT_CONFIG_DIR / PROJECT_CONFIG_FILE
    if not path.is_file():
        return None
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.debug("ignoring unreadable %s: %s", path, exc)
        return None
    if not isinstance(payload, dict):
        return None
    project_id = payload.get("projectId")
    if isinstance(project_id, str) and project_id.strip():
        return project_id.strip()
    return None
