from __future__ import annotations

from datetime import datetime, timezone
from typing import Mapping, Optional

import requests  # type: ignore[import-untyped]
import structlog

from .errors import GitHubAPIError
from .types import Credentials, RateLimitState, RepoLicense


log = structlog.get_logger(__name__)

GITHUB_HOST = "github.com"
GITHUB_API = "https://api.github.com"
API_HEADERS = {
    "Accept": "application/vnd.github+json",
    "X-GitHub-Api-Version": "2022-11-28",
}


def _header_int(headers: Mapping[str, str], name: str) -> Optional[int]:
    raw = headers.get(name)
    if raw is None:
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        log.warning("github.bad_header", header=name, value=raw)
        return None


def parse_rate_limit(headers: Mapping[str, str]) -> Optional[RateLimitState]:
    limit = _header_int(headers, "X-RateLimit-Limit")
    remaining = _header_int(headers, "X-RateLimit-Remaining")
    if limit is None or remaining is None:
        return None
    reset = _header_int(headers, "X-RateLimit-Reset")
    reset_at = datetime.fromtimestamp(reset, tz=timezone.utc) if reset is not None else None
    return RateLimitState(limit=limit, remaining=remaining, reset_at=reset_at)


def fetch_repo_license(
    owner: str,
    repo: str,
    credentials: Credentials | None = None,
    timeout: float = 10.0,
) -> RepoLicense:
    """Ask GitHub which license it reports for ``owner/repo``.

    Any transport failure or non-2xx status raises :class:`GitHubAPIError`;
    the error carries the rate-limit state when the response had one.
    """

    url = f"{GITHUB_API}/repos/{owner}/{repo}"
    auth = (credentials.user, credentials.token) if credentials else None
    try:
        response = requests.get(url, headers=API_HEADERS, auth=auth, timeout=timeout)
    except requests.RequestException as exc:
        raise GitHubAPIError(f"unable to reach {url}: {exc}") from exc

    rate_limit = parse_rate_limit(response.headers)
    if response.status_code < 200 or response.status_code >= 400:
        raise GitHubAPIError(f"received invalid status code {response.status_code} for {owner}/{repo}", rate_limit)

    try:
        payload = response.json()
    except ValueError as exc:
        raise GitHubAPIError(f"invalid JSON from {url}: {exc}", rate_limit) from exc

    license_data = (payload or {}).get("license") or {}
    return RepoLicense(name=license_data.get("name") or None, rate_limit=rate_limit)
