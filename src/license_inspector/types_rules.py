from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Set


@dataclass(frozen=True)
class Override:
    license: str
    filename: str


@dataclass
class RuleSet:
    excluded: Set[str] = field(default_factory=set)
    excluded_extensions: Set[str] = field(default_factory=set)
    included: Set[str] = field(default_factory=set)
    overrides: Dict[str, Override] = field(default_factory=dict)
    classified: Set[str] = field(default_factory=set)

    def is_classified(self, path: Path | str) -> bool:
        return str(path) in self.classified

    def is_excluded_path(self, path: Path | str) -> bool:
        key = str(path)
        if self.is_classified(key) or key in self.excluded:
            return True
        return Path(key).name in self.excluded

    def is_excluded_ext(self, name: str) -> bool:
        return Path(name).suffix.lower() in self.excluded_extensions

    def is_included(self, name: str) -> bool:
        return name in self.included

    def override_for(self, relative_path: str) -> Optional[Override]:
        return self.overrides.get(relative_path)

    def mark_classified(self, path: Path | str) -> None:
        """Remember a classified path so a run never classifies it twice.

        This is run state, not configuration: ``excluded`` keeps only the
        entries read from the exclusion file.
        """

        self.classified.add(str(path))
