from __future__ import annotations

from typing import Optional

from .types_remote import RateLimitState


class LicenseInspectorError(Exception):
    """Base class for errors raised by license-inspector."""


class ConfigError(LicenseInspectorError):
    def __init__(self, path, message: str) -> None:
        self.path = path
        super().__init__(f"{path}: {message}")


class GitHubAPIError(LicenseInspectorError):
    def __init__(self, message: str, rate_limit: Optional[RateLimitState] = None) -> None:
        self.rate_limit = rate_limit
        super().__init__(message)


class LaunchError(LicenseInspectorError):
    pass
