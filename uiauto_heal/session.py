# uiauto_heal/session.py
"""
@file session.py
@brief Test-session bootstrap owning the shared repository and event log.
"""

from __future__ import annotations
import logging
import threading
from typing import Dict, Optional

from .config import HealingConfig
from .driver import ElementDriver
from .element import ResolvingElement
from .events import HealingEventLog, HealingStatistics
from .repository import LocatorRepository
from .strategy import LocatorStrategy, create_strategy

log = logging.getLogger(__name__)


class HealingSession:
    """
    Hands out self-healing element handles for one driver.

    The session builds (or receives) the process-wide LocatorRepository and
    passes it to every handle. close() writes the healing history one last time.
    """

    def __init__(
        self,
        driver: ElementDriver,
        config: Optional[HealingConfig] = None,
        repository: Optional[LocatorRepository] = None,
        event_log: Optional[HealingEventLog] = None,
    ):
        """
        @param driver Backend used by all handles of this session
        @param config Settings (defaults if None); when given, its action_log section
                      is applied to the process-wide ACTION_LOGGER
        @param repository Shared repository; built and loaded from config if None
        @param event_log Healing event log; built from config if None
        """
        self.driver = driver
        # Only an explicit config touches the process-wide action logger.
        if config is not None:
            config.apply_action_log()
        self.config = config or (repository.config if repository else HealingConfig())
        if repository is None:
            repository = LocatorRepository(self.config)
        if not repository.loaded:
            repository.load_all()
        self.repository = repository
        self.event_log = event_log or HealingEventLog(self.config.events_file)
        self._handles: Dict[str, ResolvingElement] = {}
        self._handles_lock = threading.Lock()
        self._closed = False
        log.info("Created healing session with %s driver", type(driver).__name__)

    def __enter__(self) -> HealingSession:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def find(self, element_id: str) -> ResolvingElement:
        """
        Get the (cached) handle for an element. Nothing is resolved until
        the first operation.
        """
        with self._handles_lock:
            handle = self._handles.get(element_id)
            if handle is None:
                handle = ResolvingElement(
                    element_id,
                    self.repository,
                    self.driver,
                    event_log=self.event_log,
                    liveness_probe=self.config.liveness_probe,
                    artifacts_dir=self.config.artifacts_dir,
                )
                self._handles[element_id] = handle
        return handle

    def find_with(
        self,
        element_id: str,
        primary: LocatorStrategy,
        *alternatives: Optional[LocatorStrategy],
    ) -> ResolvingElement:
        """
        Get a handle, registering primary + alternatives first if the
        repository does not know the element yet.
        """
        self.repository.register(element_id, primary, *alternatives)
        return self.find(element_id)

    def add_strategy(self, element_id: str, kind: str, value: str) -> bool:
        """Append a strategy parsed from kind/value; unknown kinds are logged and ignored."""
        strategy = create_strategy(kind, value)
        if strategy is None:
            return False
        self.repository.add_strategy(element_id, strategy)
        return True

    def clear_cache(self) -> None:
        with self._handles_lock:
            self._handles.clear()
        log.debug("Element cache cleared")

    def save_healing_data(self) -> bool:
        return self.repository.persist_history()

    def healing_report(self) -> HealingStatistics:
        return self.event_log.statistics()

    def close(self) -> None:
        """Persist healing history; safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self.save_healing_data()
        self.clear_cache()
        log.info("Session closed and healing data saved")
