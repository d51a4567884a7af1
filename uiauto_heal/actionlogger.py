"""
@file actionlogger.py
@brief Structured log of element operations and healing decisions.

Records go to stdout and/or a file, one per line, either as a readable
'a | b | key=value' line or as JSON (jsonl). Metadata is redacted before
formatting so typed text and credentials never reach a sink verbatim.
"""

from __future__ import annotations

import json
import logging
import os
import threading
import time
import traceback
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .masking import MASK, mask_sensitive

log = logging.getLogger(__name__)

_SENSITIVE_KEYS = {"password", "passwd", "pwd", "secret", "token"}
_TEXT_ACTIONS = {"type", "send_keys"}
_VISIBLE_TEXT_CHARS = 10

# Order of the optional fields in 'line' output; quoted values are locator text.
_LINE_FIELDS = (
    ("event", False),
    ("action_id", False),
    ("element", True),
    ("strategy", True),
    ("attempt", False),
    ("status", False),
    ("duration_ms", False),
    ("run_id", False),
)


def redact_metadata(action: str, metadata: Dict[str, Any]) -> Dict[str, Any]:
    """
    Mask sensitive keys and key=value substrings; text typed by send_keys/type
    is additionally cut to its first few characters.
    """
    redacted: Dict[str, Any] = {}
    for key, value in metadata.items():
        if key.lower() in _SENSITIVE_KEYS:
            redacted[key] = MASK
            continue
        if isinstance(value, str):
            value = mask_sensitive(value)
            if action in _TEXT_ACTIONS and key == "text" and len(value) > _VISIBLE_TEXT_CHARS:
                value = f"{value[:_VISIBLE_TEXT_CHARS]}..."
        redacted[key] = value
    return redacted


@dataclass
class ActionRecord:
    """One logged element operation, healing decision or wait outcome."""
    action: str
    event: str = "action"
    element: Optional[str] = None
    strategy: Optional[str] = None
    status: str = "ok"
    attempt: Optional[int] = None
    duration_ms: Optional[int] = None
    action_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[Dict[str, Any]] = None
    level: str = "INFO"
    run_id: str = "default"
    ts: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat(timespec="milliseconds"))
    timestamp: str = field(default_factory=lambda: time.strftime("%H:%M:%S"))

    def to_line(self) -> str:
        parts = [self.timestamp, self.level, self.action]
        for name, quoted in _LINE_FIELDS:
            value = getattr(self, name)
            if value is None or value == "":
                continue
            parts.append(f"{name}='{value}'" if quoted else f"{name}={value}")
        parts.extend(f"{k}={v}" for k, v in self.metadata.items())
        if self.exception:
            parts.append(f"exc_type={self.exception['type']}")
            parts.append(f"exc_message={self.exception['message']}")
        return " | ".join(parts)

    def to_json(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False, separators=(",", ":"), default=str)


class ActionLogger:
    """Thread-safe action logger; disabled until enable() is called."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._enabled = False
        self._console = True
        self._file_path: Optional[str] = None
        self._level = "INFO"
        self._run_id = "default"
        self._format = "line"
        self._max_traceback_chars = 4000

    def configure(
        self,
        *,
        console: bool = True,
        file_path: Optional[str] = None,
        level: str = "INFO",
        run_id: Optional[str] = None,
        format: str = "line",
        max_traceback_chars: int = 4000,
    ) -> None:
        fmt = (format or "line").lower()
        if fmt not in {"line", "jsonl"}:
            raise ValueError("ActionLogger format must be 'line' or 'jsonl'")

        with self._lock:
            self._console = bool(console)
            self._file_path = file_path
            self._level = level.upper()
            self._format = fmt
            self._max_traceback_chars = max(256, int(max_traceback_chars))
            if run_id:
                self._run_id = run_id

    def enable(self) -> None:
        with self._lock:
            self._enabled = True

    def disable(self) -> None:
        with self._lock:
            self._enabled = False

    def is_enabled(self) -> bool:
        return self._enabled

    def set_run_id(self, run_id: str) -> None:
        if run_id:
            with self._lock:
                self._run_id = run_id

    def log(
        self,
        *,
        action: str,
        element: Optional[str] = None,
        strategy: Optional[str] = None,
        status: str = "ok",
        duration_ms: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
        exception: Optional[BaseException] = None,
        action_id: Optional[str] = None,
        attempt: Optional[int] = None,
        event: Optional[str] = None,
    ) -> None:
        if not self._enabled:
            return
        self.emit(ActionRecord(
            action=action,
            event=event or "action",
            element=element,
            strategy=strategy,
            status=status,
            attempt=attempt,
            duration_ms=duration_ms,
            action_id=action_id,
            metadata=redact_metadata(action, dict(metadata or {})),
            exception=self._describe_exception(exception) if exception is not None else None,
            level=self._level,
            run_id=self._run_id,
        ))

    def healing(self, element: str, original: str, successful: str, attempt: int) -> None:
        """Record that `successful` replaced `original` for an element."""
        self.log(
            action="heal",
            element=element,
            strategy=successful,
            status="healed",
            attempt=attempt,
            metadata={"original": original},
            event="healing",
        )

    def emit(self, record: ActionRecord) -> None:
        line = record.to_json() if self._format == "jsonl" else record.to_line()
        with self._lock:
            if self._console:
                print(line, flush=True)
            if self._file_path:
                self._append(line)

    def _append(self, line: str) -> None:
        try:
            os.makedirs(os.path.dirname(os.path.abspath(self._file_path)) or ".", exist_ok=True)
            with open(self._file_path, "a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError as e:
            log.warning("Could not write action log to %s: %s", self._file_path, e)

    def _describe_exception(self, exception: BaseException) -> Dict[str, Any]:
        tb = "".join(traceback.format_exception(type(exception), exception, exception.__traceback__))
        if len(tb) > self._max_traceback_chars:
            tb = tb[: self._max_traceback_chars] + "...<truncated>"
        cause = exception.__cause__
        return {
            "type": type(exception).__name__,
            "message": mask_sensitive(str(exception)),
            "traceback": mask_sensitive(tb.strip()),
            "cause_type": type(cause).__name__ if cause is not None else None,
        }


ACTION_LOGGER = ActionLogger()
