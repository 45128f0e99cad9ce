from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class RateLimitState:
    limit: int
    remaining: int
    reset_at: Optional[datetime] = None


@dataclass(frozen=True)
class RepoLicense:
    name: Optional[str]
    rate_limit: Optional[RateLimitState] = None


@dataclass(frozen=True)
class Credentials:
    user: str
    token: str

    def __bool__(self) -> bool:
        return bool(self.user and self.token)
