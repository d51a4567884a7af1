# uiauto_heal/repository.py
"""
@file repository.py
@brief Locator repository: element strategies plus healing history.

Each element is held as one immutable ElementRecord (strategies + best index)
that is replaced wholesale on every change. Reads take the current record
without locking; writers of one element id are serialized by a per-element
lock, and different ids never share a lock.
"""

from __future__ import annotations
import logging
import threading
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .catalog import load_catalog_dir
from .config import HealingConfig
from .exceptions import InvalidHealingIndexError, PersistenceError
from .history import HealingHistoryFile
from .strategy import LocatorStrategy, dedupe

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ElementRecord:
    """Strategies of one element and the index of the last strategy that worked."""
    element_id: str
    strategies: Tuple[LocatorStrategy, ...]
    best_index: Optional[int] = None

    @property
    def primary(self) -> LocatorStrategy:
        return self.strategies[0]

    @property
    def best(self) -> LocatorStrategy:
        if self.best_index is not None and 0 <= self.best_index < len(self.strategies):
            return self.strategies[self.best_index]
        return self.strategies[0]

    def index_of(self, strategy: LocatorStrategy) -> int:
        return self.strategies.index(strategy)


class LocatorRepository:
    """
    Thread-safe store of element strategies and healing history.

    One instance is shared by every element handle of a test session.
    """

    def __init__(self, config: Optional[HealingConfig] = None):
        """
        @param config Settings with catalog and history locations (defaults if None)
        """
        self.config = config or HealingConfig()
        self._records: Dict[str, ElementRecord] = {}
        self._element_locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self._persist_lock = threading.Lock()
        self._history_file = HealingHistoryFile(self.config.history_file)
        self._loaded = False

    # --- Locking ---

    def _lock_for(self, element_id: str) -> threading.Lock:
        lock = self._element_locks.get(element_id)
        if lock is None:
            with self._locks_guard:
                lock = self._element_locks.setdefault(element_id, threading.Lock())
        return lock

    # --- Loading ---

    def load_all(self) -> None:
        """
        Load every catalog file, then the persisted history. History records
        whose element is unknown or whose index is out of range are dropped.
        Read failures are logged; the repository stays usable.
        """
        catalog = load_catalog_dir(self.config.locators_dir, self.config.catalog_extension)
        for element_id, strategies in catalog.items():
            with self._lock_for(element_id):
                self._records[element_id] = ElementRecord(element_id, tuple(dedupe(strategies)))

        try:
            history = self._history_file.read()
        except PersistenceError as e:
            log.error("Failed to load healing history: %s", e)
            history = {}

        applied = 0
        for element_id, index in history.items():
            with self._lock_for(element_id):
                record = self._records.get(element_id)
                if record is None:
                    log.warning("Dropping healing record for unknown element %s", element_id)
                    continue
                if not 0 <= index < len(record.strategies):
                    log.warning("%s; dropping", InvalidHealingIndexError(element_id, index, len(record.strategies)))
                    continue
                self._records[element_id] = replace(record, best_index=index)
                applied += 1

        self._loaded = True
        log.info(
            "Repository ready: %d elements, healing history for %d elements",
            len(self._records), applied,
        )

    @property
    def loaded(self) -> bool:
        return self._loaded

    # --- Queries ---

    def snapshot(self, element_id: str) -> Optional[ElementRecord]:
        """Current immutable record for an element, or None if unknown."""
        return self._records.get(element_id)

    def get_strategies(self, element_id: str) -> List[LocatorStrategy]:
        record = self._records.get(element_id)
        return list(record.strategies) if record else []

    def get_best_strategy(self, element_id: str) -> Optional[LocatorStrategy]:
        """
        Healed strategy if a valid healing record exists, else the declared primary.
        None only when the element has no strategies.
        """
        record = self._records.get(element_id)
        if record is None or not record.strategies:
            log.warning("No locators found for element: %s", element_id)
            return None
        if record.best_index is not None:
            log.debug("Using best known locator (index %d) for element %s", record.best_index, element_id)
        return record.best

    def element_ids(self) -> List[str]:
        return sorted(self._records)

    def history(self) -> Dict[str, int]:
        """Copy of element id -> best index for every healed element."""
        return {
            element_id: record.best_index
            for element_id, record in list(self._records.items())
            if record.best_index is not None
        }

    def __contains__(self, element_id: object) -> bool:
        return element_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    # --- Mutations ---

    def set_strategies(self, element_id: str, strategies: Iterable[LocatorStrategy]) -> None:
        """
        Replace an element's strategies (deduplicated, order preserved) and
        drop its healing record. An empty list unregisters the element.
        """
        unique = tuple(dedupe(strategies))
        with self._lock_for(element_id):
            if not unique:
                self._records.pop(element_id, None)
                log.info("Removed locators for element %s", element_id)
                return
            self._records[element_id] = ElementRecord(element_id, unique)
        log.info("Updated locators for element %s: %d strategies", element_id, len(unique))

    def register(
        self,
        element_id: str,
        primary: LocatorStrategy,
        *alternatives: Optional[LocatorStrategy],
    ) -> bool:
        """
        Register an element ad hoc from a primary plus alternatives, unless it
        already has strategies (catalog definitions win).

        @return True if the element was registered by this call
        """
        strategies = [primary] + [a for a in alternatives if a is not None]
        with self._lock_for(element_id):
            if element_id in self._records:
                return False
            self._records[element_id] = ElementRecord(element_id, tuple(dedupe(strategies)))
        log.info("Registered element %s with %d strategies", element_id, len(strategies))
        return True

    def add_strategy(self, element_id: str, strategy: LocatorStrategy) -> None:
        """Append a strategy; resets healing state like any strategy update."""
        with self._lock_for(element_id):
            current = self._records.get(element_id)
            existing = list(current.strategies) if current else []
            if strategy in existing:
                return
            self._records[element_id] = ElementRecord(element_id, tuple(existing + [strategy]))
        log.info("Added new locator strategy for element %s: %s", element_id, strategy)

    def record_healing(
        self,
        element_id: str,
        successful_index: int,
        expected: Optional[Sequence[LocatorStrategy]] = None,
    ) -> bool:
        """
        Remember the strategy at successful_index as the element's best.

        Invalid indices are logged and ignored. When `expected` is given and
        the element's strategies changed since the caller read them, the
        record is not applied.

        @return True if the healing record was written
        """
        with self._lock_for(element_id):
            record = self._records.get(element_id)
            size = len(record.strategies) if record else 0
            if record is None or not 0 <= successful_index < size:
                log.warning("%s; ignoring", InvalidHealingIndexError(element_id, successful_index, size))
                return False
            if expected is not None and tuple(expected) != record.strategies:
                log.warning(
                    "Strategies of element %s changed during resolution; healing index %d not applied",
                    element_id, successful_index,
                )
                return False
            self._records[element_id] = replace(record, best_index=successful_index)

        log.info(
            "Registered successful healing for element %s: using strategy index %d",
            element_id, successful_index,
        )
        if self.config.persist_on_heal:
            self.persist_history()
        return True

    def reset_history(self, element_id: Optional[str] = None) -> None:
        """Forget healing records (one element, or all)."""
        ids = [element_id] if element_id is not None else list(self._records)
        for eid in ids:
            with self._lock_for(eid):
                record = self._records.get(eid)
                if record is not None and record.best_index is not None:
                    self._records[eid] = replace(record, best_index=None)

    # --- Persistence ---

    def persist_history(self) -> bool:
        """
        Write the whole healing history to disk. Failures are logged, never raised.

        @return True if the file was written
        """
        try:
            # Snapshot under the lock so the last writer always holds the newest state.
            with self._persist_lock:
                self._history_file.write(self.history())
        except PersistenceError as e:
            log.error("Failed to save healing history: %s", e)
            return False
        log.debug("Saved healing history to %s", self._history_file.path)
        return True
