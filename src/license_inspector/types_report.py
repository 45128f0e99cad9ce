from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from .types_licenses import NO_LICENSE, LicenseInfo


@dataclass
class ScanResult:
    """License buckets in discovery order."""

    buckets: Dict[str, List[LicenseInfo]] = field(default_factory=dict)

    def add(self, bucket: str, info: LicenseInfo) -> None:
        self.buckets.setdefault(bucket, []).append(info)

    def record_no_license(self, info: LicenseInfo) -> None:
        self.add(NO_LICENSE, info)

    def get(self, bucket: str) -> List[LicenseInfo]:
        return self.buckets.get(bucket, [])

    @property
    def total(self) -> int:
        return sum(len(entries) for entries in self.buckets.values())

    def as_dict(self) -> dict:
        return {bucket: [info.as_dict() for info in entries] for bucket, entries in self.buckets.items()}
