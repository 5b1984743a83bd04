"""Exceptions raised at the package boundary.

The verification core never raises these; they guard the inputs handed to it
(remote configuration payloads, CLI and environment configuration).
"""
from __future__ import annotations


class UlinkVerifyError(Exception):
    """Base class for boundary errors."""


class RemoteConfigError(UlinkVerifyError, ValueError):
    """The remote project configuration payload is unusable."""


class ConfigurationError(UlinkVerifyError):
    """Invalid runtime configuration (paths, environment overrides)."""
