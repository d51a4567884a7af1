# uiauto_heal/strategy.py
"""
@file strategy.py
@brief Locator strategy value type and kind parsing.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

log = logging.getLogger(__name__)


class LocatorKind(str, Enum):
    ID = "id"
    NAME = "name"
    XPATH = "xpath"
    CSS = "css"
    CLASS_NAME = "class_name"
    TAG_NAME = "tag_name"
    LINK_TEXT = "link_text"
    PARTIAL_LINK_TEXT = "partial_link_text"
    ACCESSIBILITY_ID = "accessibility_id"


# Normalized token (lowercase, no '-' or '_') -> kind
_KIND_ALIASES = {
    "id": LocatorKind.ID,
    "name": LocatorKind.NAME,
    "xpath": LocatorKind.XPATH,
    "css": LocatorKind.CSS,
    "cssselector": LocatorKind.CSS,
    "class": LocatorKind.CLASS_NAME,
    "classname": LocatorKind.CLASS_NAME,
    "tag": LocatorKind.TAG_NAME,
    "tagname": LocatorKind.TAG_NAME,
    "linktext": LocatorKind.LINK_TEXT,
    "partiallinktext": LocatorKind.PARTIAL_LINK_TEXT,
    "accessibilityid": LocatorKind.ACCESSIBILITY_ID,
}


def _normalize_token(token: str) -> str:
    t = token.strip().lower().replace("-", "").replace("_", "")
    if t.startswith("by") and t[2:] in _KIND_ALIASES:
        t = t[2:]
    return t


def parse_kind(token: str) -> Optional[LocatorKind]:
    """Map a kind token such as 'id', 'classname' or 'by-xpath' to a LocatorKind."""
    if isinstance(token, LocatorKind):
        return token
    return _KIND_ALIASES.get(_normalize_token(str(token)))


@dataclass(frozen=True)
class LocatorStrategy:
    """
    A (kind, value) pair used by the driver to look up one element.

    Equality and hashing are structural.
    """
    kind: LocatorKind
    value: str

    def __post_init__(self) -> None:
        kind = parse_kind(self.kind)
        if kind is None:
            raise ValueError(f"Unknown locator kind: {self.kind!r}")
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "value", str(self.value))

    @classmethod
    def parse(cls, text: str) -> LocatorStrategy:
        """Parse 'kind=value' (split on the first '=')."""
        kind, sep, value = text.partition("=")
        if not sep:
            raise ValueError(f"Locator must look like 'kind=value': {text!r}")
        return cls(kind.strip(), value.strip())

    def __str__(self) -> str:
        return f"{self.kind.value}={self.value}"


def by_id(value: str) -> LocatorStrategy:
    return LocatorStrategy(LocatorKind.ID, value)


def by_name(value: str) -> LocatorStrategy:
    return LocatorStrategy(LocatorKind.NAME, value)


def by_xpath(value: str) -> LocatorStrategy:
    return LocatorStrategy(LocatorKind.XPATH, value)


def by_css(value: str) -> LocatorStrategy:
    return LocatorStrategy(LocatorKind.CSS, value)


def by_accessibility_id(value: str) -> LocatorStrategy:
    return LocatorStrategy(LocatorKind.ACCESSIBILITY_ID, value)


def create_strategy(kind: str, value: str) -> Optional[LocatorStrategy]:
    """Build a strategy, or log a warning and return None for an unknown kind."""
    parsed = parse_kind(kind)
    if parsed is None:
        log.warning("Unsupported locator type: %s", kind)
        return None
    return LocatorStrategy(parsed, value)


def dedupe(strategies: Iterable[LocatorStrategy]) -> List[LocatorStrategy]:
    """Drop structural duplicates, keeping the first occurrence and the order."""
    seen = set()
    unique: List[LocatorStrategy] = []
    for s in strategies:
        if s in seen:
            continue
        seen.add(s)
        unique.append(s)
    return unique
