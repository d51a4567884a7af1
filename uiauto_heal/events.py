# uiauto_heal/events.py
"""
@file events.py
@brief Append-only healing event log and statistics over it.

Each line is CSV: timestamp,original_locator,successful_locator,attempt
"""

from __future__ import annotations
import csv
import io
import logging
import os
import threading
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from .exceptions import PersistenceError
from .strategy import LocatorStrategy

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class HealingEvent:
    timestamp: datetime
    element_id: Optional[str]
    original: str
    successful: str
    attempt: int

    @classmethod
    def create(
        cls,
        element_id: str,
        original: LocatorStrategy,
        successful: LocatorStrategy,
        attempt: int,
    ) -> HealingEvent:
        return cls(
            timestamp=datetime.now().replace(microsecond=0),
            element_id=element_id,
            original=str(original),
            successful=str(successful),
            attempt=int(attempt),
        )

    def to_row(self) -> List[str]:
        return [self.timestamp.isoformat(), self.original, self.successful, str(self.attempt)]


@dataclass(frozen=True)
class HealingStatistics:
    total: int = 0
    by_original: Dict[str, int] = field(default_factory=dict)
    by_successful: Dict[str, int] = field(default_factory=dict)
    mean_attempt: float = 0.0

    def format(self) -> str:
        lines = [f"Total healing events: {self.total}"]
        if self.total:
            lines.append(f"Mean attempt number: {self.mean_attempt:.2f}")
            lines.append("By original locator:")
            for text, count in sorted(self.by_original.items(), key=lambda kv: (-kv[1], kv[0])):
                lines.append(f"  {count:>5}  {text}")
            lines.append("By successful locator:")
            for text, count in sorted(self.by_successful.items(), key=lambda kv: (-kv[1], kv[0])):
                lines.append(f"  {count:>5}  {text}")
        return "\n".join(lines)


class HealingEventLog:
    """Thread-safe append-only CSV log of healing events."""

    def __init__(self, path: str):
        self.path = os.path.abspath(path)
        self._lock = threading.Lock()

    def append(self, event: HealingEvent) -> bool:
        """
        Append one event. I/O failures are logged, never raised.

        @return True if the line was written
        """
        buf = io.StringIO()
        csv.writer(buf, lineterminator="\n").writerow(event.to_row())
        line = buf.getvalue()
        with self._lock:
            try:
                os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
                with open(self.path, "a", encoding="utf-8", newline="") as f:
                    f.write(line)
            except OSError as e:
                log.error("Failed to record healing event: %s", PersistenceError(self.path, e))
                return False
        log.debug(
            "Recorded healing event: element=%s primary=%s successful=%s attempt=%d",
            event.element_id, event.original, event.successful, event.attempt,
        )
        return True

    def read_events(self) -> List[HealingEvent]:
        """
        Parse the log. Element ids are not stored in the file, so they come back as None.
        Malformed rows are skipped with a warning.

        @throws PersistenceError if the file exists but cannot be read
        """
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8", newline="") as f:
                rows = list(csv.reader(f))
        except (OSError, UnicodeDecodeError, csv.Error) as e:
            raise PersistenceError(self.path, e) from e

        events: List[HealingEvent] = []
        for lineno, row in enumerate(rows, start=1):
            if not row:
                continue
            try:
                timestamp, original, successful, attempt = row
                events.append(HealingEvent(
                    timestamp=datetime.fromisoformat(timestamp),
                    element_id=None,
                    original=original,
                    successful=successful,
                    attempt=int(attempt),
                ))
            except ValueError:
                log.warning("%s:%d: skipping malformed healing event row", self.path, lineno)
        return events

    def statistics(self) -> HealingStatistics:
        """Summary derived from the log file; an unreadable or missing log counts as empty."""
        try:
            events = self.read_events()
        except PersistenceError as e:
            log.error("Failed to generate healing statistics: %s", e)
            return HealingStatistics()
        if not events:
            log.info("No healing events recorded yet.")
            return HealingStatistics()

        stats = HealingStatistics(
            total=len(events),
            by_original=dict(Counter(e.original for e in events)),
            by_successful=dict(Counter(e.successful for e in events)),
            mean_attempt=sum(e.attempt for e in events) / len(events),
        )
        log.info("Total healing events: %d", stats.total)
        return stats
