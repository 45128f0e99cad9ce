from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import structlog


log = structlog.get_logger(__name__)

GO_MOD_MARKER = "/go.mod"

_UPPER = re.compile(r"[A-Z]")
_ESCAPED = re.compile(r"!([a-z])")


def escape_path(text: str) -> str:
    """Escape uppercase letters the way the Go module cache stores them (``A`` -> ``!a``)."""

    return _UPPER.sub(lambda match: "!" + match.group(0).lower(), text)


def unescape_path(text: str) -> str:
    return _ESCAPED.sub(lambda match: match.group(1).upper(), text)


@dataclass(frozen=True)
class DependencyEntry:
    module: str
    version: str

    @property
    def cache_path(self) -> str:
        return f"{escape_path(self.module)}@{escape_path(self.version)}"

    def location(self, module_root: Path) -> Path:
        return module_root.joinpath(*self.cache_path.split("/"))


def parse_sum_line(line: str) -> Optional[DependencyEntry]:
    """Parse one ``go.sum`` line; only ``/go.mod`` version records produce an entry."""

    cleaned = line.strip()
    if GO_MOD_MARKER not in cleaned:
        return None
    head = cleaned.split(GO_MOD_MARKER, 1)[0]
    parts = head.split()
    if len(parts) != 2:
        log.warning("resolver.malformed_line", line=cleaned)
        return None
    module, version = parts
    return DependencyEntry(module=module, version=version)


def resolve_dependency(line: str, module_root: Path) -> Optional[Path]:
    entry = parse_sum_line(line)
    if entry is None:
        return None
    return resolve_entry(entry, module_root)


def resolve_entry(entry: DependencyEntry, module_root: Path) -> Optional[Path]:
    path = entry.location(module_root)
    if not path.exists():
        log.debug("resolver.not_downloaded", module=entry.module, version=entry.version, path=str(path))
        return None
    if not path.is_dir():
        log.warning("resolver.not_a_directory", path=str(path))
        return None
    return path


def read_sum_entries(path: Path) -> List[DependencyEntry]:
    if not path.exists():
        return []

    entries: List[DependencyEntry] = []
    for line in path.read_text().splitlines():
        entry = parse_sum_line(line)
        if entry:
            entries.append(entry)
    return entries
