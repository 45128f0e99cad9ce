from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List


UNKNOWN_LICENSE = "Unknown License"
NO_LICENSE = "No License"
OVERRIDE_SUFFIX = "OVERRIDE"

_NON_LETTERS = re.compile(r"[^A-Za-z]+")


def normalize_text(text: str) -> str:
    """Strip everything that is not an ASCII letter and uppercase the rest."""

    return _NON_LETTERS.sub("", text).upper()


def override_bucket(license_name: str) -> str:
    return f"{license_name} {OVERRIDE_SUFFIX}"


@dataclass(frozen=True)
class LicenseDefinition:
    name: str
    fragments: tuple[str, ...] = ()

    @classmethod
    def from_lines(cls, name: str, lines: List[str]) -> "LicenseDefinition":
        fragments = tuple(f for f in (normalize_text(line) for line in lines) if f)
        return cls(name=name, fragments=fragments)

    def as_dict(self) -> dict:
        return {"Name": self.name, "Lines": list(self.fragments)}


@dataclass
class LicenseInfo:
    source_path: str
    output_path: str
    remote_link: str = ""
    remote_license: str = ""

    def as_dict(self) -> dict:
        return {
            "Filepath": self.output_path,
            "Filename": self.source_path,
            "GitLink": self.remote_link,
            "GitLicense": self.remote_license,
        }


@dataclass
class LicenseCatalog:
    """Ordered license definitions; the first full match wins."""

    definitions: List[LicenseDefinition] = field(default_factory=list)

    def __iter__(self):
        return iter(self.definitions)

    def __len__(self) -> int:
        return len(self.definitions)

    def find(self, name: str) -> LicenseDefinition | None:
        for definition in self.definitions:
            if definition.name.lower() == name.lower():
                return definition
        return None

    def add(self, definition: LicenseDefinition) -> bool:
        if self.find(definition.name):
            return False
        self.definitions.append(definition)
        return True
