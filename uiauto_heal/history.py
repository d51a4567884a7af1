# uiauto_heal/history.py
"""
@file history.py
@brief Durable element id -> best strategy index mapping.

File format: one 'element_id = index' per line, sorted by element id, under a
fixed comment header, so rewriting an unchanged mapping yields identical bytes.
"""

from __future__ import annotations
import logging
import os
import tempfile
import threading
from typing import Dict, Mapping, Tuple

from .exceptions import PersistenceError

log = logging.getLogger(__name__)

HEADER = "# Auto-healing locator history"

_KEY_ESCAPES = {"\\": "\\\\", "=": "\\=", ":": "\\:", " ": "\\ ", "\t": "\\t", "\n": "\\n", "\r": "\\r", "\f": "\\f"}
_UNESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}
_KEY_TERMINATORS = "=: \t\f"


def _escape_char(c: str) -> str:
    if c in _KEY_ESCAPES:
        return _KEY_ESCAPES[c]
    # Anything str.splitlines() or str.strip() would eat goes out as \uXXXX.
    if c.isspace() or not c.isprintable():
        return f"\\u{ord(c):04x}" if ord(c) <= 0xFFFF else c
    return c


def escape_key(element_id: str) -> str:
    """Escape a key the way .properties files do, so any element id round-trips."""
    escaped = "".join(_escape_char(c) for c in element_id)
    if escaped.startswith(("#", "!")):
        escaped = "\\" + escaped
    return escaped


def split_entry(line: str) -> Tuple[str, str, bool]:
    """
    Split a stripped line at the first unescaped '=', ':' or whitespace.

    @return (unescaped key, raw value, whether a separator was found)
    """
    key = []
    i = 0
    while i < len(line):
        c = line[i]
        if c == "\\" and i + 1 < len(line):
            nxt = line[i + 1]
            code = line[i + 2:i + 6]
            if nxt == "u" and len(code) == 4 and all(h in "0123456789abcdefABCDEF" for h in code):
                key.append(chr(int(code, 16)))
                i += 6
                continue
            key.append(_UNESCAPES.get(nxt, nxt))
            i += 2
            continue
        if c in _KEY_TERMINATORS:
            rest = line[i:].lstrip(" \t\f")
            if rest[:1] in ("=", ":"):
                rest = rest[1:]
            return "".join(key), rest.strip(), True
        key.append(c)
        i += 1
    return "".join(key), "", False


def format_history(entries: Mapping[str, int]) -> str:
    lines = [HEADER]
    for element_id in sorted(entries):
        lines.append(f"{escape_key(element_id)} = {int(entries[element_id])}")
    return "\n".join(lines) + "\n"


def parse_history(text: str, where: str = "") -> Dict[str, int]:
    """Parse history text; malformed lines and non-integer indices are skipped with a warning."""
    entries: Dict[str, int] = {}
    for lineno, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith(("#", "!")):
            continue
        key, value, found = split_entry(stripped)
        if not found or not key:
            log.warning("%s:%d: malformed history line: %s", where, lineno, stripped)
            continue
        try:
            entries[key] = int(value)
        except ValueError:
            log.warning("Invalid healing index for element %s: %s", key, value)
    return entries


class HealingHistoryFile:
    """Reads and rewrites the history file; writes are serialized by a lock."""

    def __init__(self, path: str):
        self.path = os.path.abspath(path)
        self._write_lock = threading.Lock()

    def exists(self) -> bool:
        return os.path.exists(self.path)

    def read(self) -> Dict[str, int]:
        """
        @return mapping from the file, empty when it does not exist
        @throws PersistenceError if the file exists but cannot be read
        """
        if not os.path.exists(self.path):
            log.info("No healing history file found at %s", self.path)
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                text = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceError(self.path, e) from e
        return parse_history(text, where=self.path)

    def write(self, entries: Mapping[str, int]) -> None:
        """
        Replace the file with a full snapshot (temp file + rename).

        @throws PersistenceError on I/O failure
        """
        content = format_history(entries)
        with self._write_lock:
            directory = os.path.dirname(self.path) or "."
            tmp_path = None
            try:
                os.makedirs(directory, exist_ok=True)
                fd, tmp_path = tempfile.mkstemp(prefix=".history-", dir=directory)
                with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
                    f.write(content)
                os.replace(tmp_path, self.path)
                tmp_path = None
            except OSError as e:
                raise PersistenceError(self.path, e) from e
            finally:
                if tmp_path is not None and os.path.exists(tmp_path):
                    os.remove(tmp_path)

    def delete(self) -> bool:
        with self._write_lock:
            if not os.path.exists(self.path):
                return False
            try:
                os.remove(self.path)
            except OSError as e:
                raise PersistenceError(self.path, e) from e
            return True
