"""Shared data structures for license scanning.

The definitions live in domain-focused modules; this module re-exports them
so callers have one stable import path.
"""

from __future__ import annotations

from .types_licenses import (
    NO_LICENSE,
    UNKNOWN_LICENSE,
    LicenseCatalog,
    LicenseDefinition,
    LicenseInfo,
    normalize_text,
    override_bucket,
)
from .types_remote import Credentials, RateLimitState, RepoLicense
from .types_report import ScanResult
from .types_rules import Override, RuleSet

__all__ = [
    "Credentials",
    "LicenseCatalog",
    "LicenseDefinition",
    "LicenseInfo",
    "NO_LICENSE",
    "Override",
    "RateLimitState",
    "RepoLicense",
    "RuleSet",
    "ScanResult",
    "UNKNOWN_LICENSE",
    "normalize_text",
    "override_bucket",
]
