from __future__ import annotations

import json
import re
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

import structlog

from .dependency_resolver import unescape_path
from .errors import ConfigError, GitHubAPIError
from .github_api import GITHUB_HOST, fetch_repo_license
from .types import Credentials, RateLimitState, RepoLicense


log = structlog.get_logger(__name__)

SUPPORTED_HOSTS = frozenset({GITHUB_HOST})
FLUSH_EVERY = 10

_VERSION_SUFFIX = re.compile(r"@v.*")


def relative_to_roots(path: Path, roots: Iterable[Path]) -> Optional[str]:
    """Return ``path`` relative to the first root containing it, with ``/`` separators."""

    for root in roots:
        try:
            relative = path.relative_to(root)
        except ValueError:
            continue
        return relative.as_posix()
    return None


def repository_parts(path: Path, roots: Iterable[Path]) -> List[str]:
    """Split a cached module path into ``[host, owner, repo, ...]``."""

    target = path.parent if path.is_file() else path
    relative = relative_to_roots(target, roots)
    if not relative or relative == ".":
        return []
    cleaned = _VERSION_SUFFIX.sub("", unescape_path(relative))
    return [part for part in cleaned.split("/") if part]


def repository_link(path: Path, roots: Iterable[Path]) -> str:
    parts = repository_parts(path, roots)
    if len(parts) < 3:
        return ""
    return f"https://{parts[0]}/{parts[1]}/{parts[2]}"


@dataclass
class RateLimitGovernor:
    """Paces remote lookups from the last reported rate-limit state."""

    floor: int = 400
    fast_delay: float = 0.05
    slow_delay: float = 2.0
    sleep: Callable[[float], None] = time.sleep

    def govern(self, state: RateLimitState) -> bool:
        """Sleep as needed; return True once lookups must stop for this run."""

        if state.remaining > state.limit / 2:
            self.sleep(self.fast_delay)
            return False
        if state.remaining < self.floor:
            log.warning(
                "github.rate_floor",
                remaining=state.remaining,
                limit=state.limit,
                floor=self.floor,
                reset_at=state.reset_at.isoformat() if state.reset_at else None,
            )
            return True
        self.sleep(self.slow_delay)
        return False


Fetcher = Callable[..., RepoLicense]


@dataclass
class RemoteLicenseCache:
    path: Path
    entries: Dict[str, str] = field(default_factory=dict)
    credentials: Optional[Credentials] = None
    roots: tuple[Path, ...] = ()
    governor: RateLimitGovernor = field(default_factory=RateLimitGovernor)
    fetch: Fetcher = fetch_repo_license
    timeout: float = 10.0
    insertions: int = 0

    @classmethod
    def load(cls, path: Path, **kwargs) -> "RemoteLicenseCache":
        entries: Dict[str, str] = {}
        if path.exists():
            raw = path.read_text()
            if len(raw.strip()) >= 2:
                try:
                    data = json.loads(raw)
                except json.JSONDecodeError as exc:
                    raise ConfigError(path, f"invalid JSON: {exc}") from exc
                if not isinstance(data, dict):
                    raise ConfigError(path, "expected an object of owner/repo keys")
                entries = {str(key): str(value or "") for key, value in data.items()}
        return cls(path=path, entries=entries, **kwargs)

    @property
    def enabled(self) -> bool:
        return bool(self.credentials)

    def disable(self) -> None:
        self.credentials = None

    def lookup(self, dependency_path: Path) -> Optional[str]:
        parts = repository_parts(dependency_path, self.roots)
        if len(parts) < 3 or parts[0] not in SUPPORTED_HOSTS or not self.enabled:
            return None

        owner, repo = parts[1:3]
        key = f"{owner}/{repo}"
        if key in self.entries:
            return self.entries[key] or None

        name: Optional[str] = None
        state: Optional[RateLimitState] = None
        try:
            result = self.fetch(owner, repo, credentials=self.credentials, timeout=self.timeout)
            name, state = result.name, result.rate_limit
        except GitHubAPIError as exc:
            state = exc.rate_limit
            log.warning("github.lookup_failed", repo=key, error=str(exc))
            log.info("github.private_repo_hint", hint="private repositories need a user and personal access token")

        if state is not None and self.governor.govern(state):
            self.disable()

        self.store(key, name)
        return name

    def store(self, key: str, name: Optional[str]) -> None:
        self.entries[key] = name or ""
        self.insertions += 1
        if self.insertions % FLUSH_EVERY == 0:
            self.flush()

    def flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self.entries, indent=2, sort_keys=True))
