from __future__ import annotations

from typing import Iterable, List

from .types import UNKNOWN_LICENSE, LicenseDefinition, normalize_text


def _as_text(content: bytes | str) -> str:
    if isinstance(content, bytes):
        return content.decode("utf-8", errors="ignore")
    return content


def matches(normalized: str, definition: LicenseDefinition) -> bool:
    """True when every fragment of ``definition`` occurs in ``normalized``.

    Fragment order is irrelevant and each fragment is a containment test, so
    headers, footers and layout around the license text do not matter.
    """

    if not definition.fragments:
        return False
    return all(fragment in normalized for fragment in definition.fragments)


def classify(content: bytes | str, catalog: Iterable[LicenseDefinition]) -> str:
    normalized = normalize_text(_as_text(content))
    for definition in catalog:
        if matches(normalized, definition):
            return definition.name
    return UNKNOWN_LICENSE


def missing_fragments(content: bytes | str, definition: LicenseDefinition) -> List[str]:
    normalized = normalize_text(_as_text(content))
    return [fragment for fragment in definition.fragments if fragment not in normalized]
