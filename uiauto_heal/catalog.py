# uiauto_heal/catalog.py
"""
@file catalog.py
@brief Loads locator definition files into element id -> strategy lists.

One file per page/group; the file name minus extension is the group id.
Each line reads:

    key = kind=value;kind=value;...

and defines the element '<group>.<key>'.
"""

from __future__ import annotations
import logging
import os
from typing import Dict, Iterable, List, Optional, Tuple

from .exceptions import PersistenceError
from .strategy import LocatorStrategy, create_strategy, dedupe

log = logging.getLogger(__name__)

COMMENT_PREFIXES = ("#", "!")


def parse_locators(text: str, where: str = "") -> List[LocatorStrategy]:
    """
    Parse 'kind=value;kind=value' into strategies.
    Entries without '=' and unknown kinds are skipped with a warning.
    """
    strategies: List[LocatorStrategy] = []
    for entry in text.split(";"):
        entry = entry.strip()
        if not entry:
            continue
        kind, sep, value = entry.partition("=")
        if not sep or not kind.strip():
            log.warning("%sInvalid locator format: %s", where, entry)
            continue
        strategy = create_strategy(kind.strip(), value.strip())
        if strategy is not None:
            strategies.append(strategy)
    return dedupe(strategies)


def parse_definition_line(line: str, where: str = "") -> Optional[Tuple[str, List[LocatorStrategy]]]:
    """
    Parse one definition line into (key, strategies).
    Returns None for blank lines, comments and unusable lines.
    """
    stripped = line.strip()
    if not stripped or stripped.startswith(COMMENT_PREFIXES):
        return None
    key, sep, rest = stripped.partition("=")
    key = key.strip()
    if not sep or not key:
        log.warning("%sSkipping line without 'key = locators': %s", where, stripped)
        return None
    strategies = parse_locators(rest, where=where)
    if not strategies:
        log.warning("%sNo usable locators for key '%s'", where, key)
        return None
    return key, strategies


def group_id_for(path: str) -> str:
    return os.path.splitext(os.path.basename(path))[0]


def parse_catalog(lines: Iterable[str], group_id: str) -> Dict[str, List[LocatorStrategy]]:
    """Parse definition lines of one group; later duplicate keys override earlier ones."""
    elements: Dict[str, List[LocatorStrategy]] = {}
    for lineno, line in enumerate(lines, start=1):
        parsed = parse_definition_line(line, where=f"{group_id}:{lineno}: ")
        if parsed is None:
            continue
        key, strategies = parsed
        elements[f"{group_id}.{key}"] = strategies
    return elements


def load_catalog_file(path: str) -> Dict[str, List[LocatorStrategy]]:
    """
    Load one definition file.

    @throws PersistenceError if the file cannot be read
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            lines = f.readlines()
    except (OSError, UnicodeDecodeError) as e:
        raise PersistenceError(path, e) from e
    elements = parse_catalog(lines, group_id_for(path))
    for element_id in elements:
        log.debug("Loaded locator for element: %s", element_id)
    return elements


def load_catalog_dir(directory: str, extension: str = ".properties") -> Dict[str, List[LocatorStrategy]]:
    """
    Load every definition file in a directory (sorted by name).
    Unreadable files are logged and skipped; a missing directory yields an empty catalog.
    """
    catalog: Dict[str, List[LocatorStrategy]] = {}
    if not os.path.isdir(directory):
        log.info("Locator directory not found, starting with an empty catalog: %s", directory)
        return catalog

    names = sorted(n for n in os.listdir(directory) if n.endswith(extension))
    if not names:
        log.info("No locator files found in %s", directory)
        return catalog

    for name in names:
        path = os.path.join(directory, name)
        try:
            catalog.update(load_catalog_file(path))
        except PersistenceError as e:
            log.error("Failed to load locators from file %s: %s", name, e)

    log.info("Loaded %d element locators from %d file(s)", len(catalog), len(names))
    return catalog
