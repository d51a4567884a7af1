# uiauto_heal/element.py
"""
@file element.py
@brief Element handle that resolves through the repository and heals on failure.

Every operation goes through the same path: make sure a live reference is
held (re-resolving when the liveness probe fails), then hand the operation
to the driver. Resolution tries the repository's best strategy first and
then the remaining strategies in declared order; a win by a non-preferred
strategy is recorded in the repository and in the healing event log.
"""

from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from typing import Any, List, Optional

from .actionlogger import ACTION_LOGGER
from .artifacts import save_png
from .cancellation import CancellationToken
from .context import tracked_action
from .driver import ElementDriver, Operation, Resolution
from .events import HealingEvent, HealingEventLog
from .exceptions import (ActionError, CancellationRequestedError,
                         ElementNotFoundError, HealingError, LocatorAttempt,
                         NoStrategyDefinedError, StaleReferenceError)
from .masking import mask_sensitive
from .repository import ElementRecord, LocatorRepository
from .strategy import LocatorStrategy
from .waits import wait_until, wait_until_not

log = logging.getLogger(__name__)

DEFAULT_WAIT_TIMEOUT = 10.0
DEFAULT_WAIT_INTERVAL = 0.2

# Not retried by state waits.
_FATAL_IN_WAITS = (NoStrategyDefinedError, CancellationRequestedError)


class ElementState(str, Enum):
    UNRESOLVED = "unresolved"
    CACHED = "cached"
    STALE = "stale"
    EXHAUSTED = "exhausted"


class ResolvingElement:
    """
    Lazily-resolved, self-healing handle for one logical element.

    The handle keeps the last resolved reference and the strategy that
    produced it. Operations on one handle are serialized.
    """

    def __init__(
        self,
        element_id: str,
        repository: LocatorRepository,
        driver: ElementDriver,
        event_log: Optional[HealingEventLog] = None,
        liveness_probe: bool = True,
        artifacts_dir: str = "artifacts",
    ):
        """
        @param element_id Logical element id, e.g. 'login.username'
        @param repository Shared locator repository
        @param driver Backend that resolves strategies and runs operations
        @param event_log Healing event sink (events are not recorded if None)
        @param liveness_probe Probe cached references before reuse
        @param artifacts_dir Default directory for save_screenshot()
        """
        self._element_id = element_id
        self._repository = repository
        self._driver = driver
        self._event_log = event_log
        self._liveness_probe = liveness_probe
        self._artifacts_dir = artifacts_dir
        self._lock = threading.RLock()
        self._ref: Any = None
        self._strategy: Optional[LocatorStrategy] = None
        self._state = ElementState.UNRESOLVED

    def __repr__(self) -> str:
        return f"ResolvingElement({self._element_id!r}, state={self._state.value}, strategy={self._strategy})"

    @property
    def element_id(self) -> str:
        return self._element_id

    @property
    def state(self) -> ElementState:
        return self._state

    @property
    def current_strategy(self) -> Optional[LocatorStrategy]:
        """Strategy that produced the cached reference (None before the first resolution)."""
        return self._strategy

    @property
    def ref(self) -> Any:
        """Underlying driver reference, or None when nothing is cached."""
        return self._ref

    def invalidate(self) -> None:
        """Drop the cached reference; the next operation resolves again."""
        with self._lock:
            self._ref = None
            self._state = ElementState.UNRESOLVED

    # --- Resolution ---

    def ensure_resolved(self, token: Optional[CancellationToken] = None) -> Any:
        """
        Return a live reference, resolving (and healing) if needed.

        @throws NoStrategyDefinedError if the repository knows no strategies
        @throws ElementNotFoundError if every strategy failed
        @throws CancellationRequestedError if the token was cancelled
        """
        with self._lock:
            if self._state is ElementState.CACHED:
                if not self._liveness_probe or self._is_alive():
                    return self._ref
                log.debug("Cached element for %s is stale, will find again", self._element_id)
                self._mark_stale()
            return self._resolve(token)

    def _is_alive(self) -> bool:
        try:
            return bool(self._driver.is_alive(self._ref))
        except StaleReferenceError:
            return False

    def _mark_stale(self) -> None:
        self._ref = None
        self._state = ElementState.STALE

    def _attempt(self, strategy: LocatorStrategy, token: Optional[CancellationToken]) -> Resolution:
        if token is not None:
            token.raise_if_cancelled(self._element_id)
        return self._driver.resolve(strategy, token)

    def _resolve(self, token: Optional[CancellationToken]) -> Any:
        record = self._repository.snapshot(self._element_id)
        if record is None or not record.strategies:
            raise NoStrategyDefinedError(self._element_id)

        try:
            return self._resolve_record(record, token)
        except CancellationRequestedError:
            self._ref = None
            self._state = ElementState.UNRESOLVED
            raise

    def _resolve_record(self, record: ElementRecord, token: Optional[CancellationToken]) -> Any:
        best = record.best
        attempts: List[LocatorAttempt] = []

        log.debug("Finding element %s with locator: %s", self._element_id, best)
        result = self._attempt(best, token)
        if result.found:
            return self._cache(result.ref, best)
        attempts.append(LocatorAttempt(str(best), record.index_of(best), result.reason or "not found"))
        log.warning("Failed to find element %s with preferred locator: %s", self._element_id, best)

        alternative = 0
        for index, strategy in enumerate(record.strategies):
            if strategy == best:
                continue
            alternative += 1
            log.debug(
                "Trying alternative locator %d/%d for element %s: %s",
                index + 1, len(record.strategies), self._element_id, strategy,
            )
            result = self._attempt(strategy, token)
            if not result.found:
                attempts.append(LocatorAttempt(str(strategy), index, result.reason or "not found"))
                continue

            log.info("Auto-healing successful for element %s. Using alternative locator: %s",
                     self._element_id, strategy)
            self._repository.record_healing(self._element_id, index, expected=record.strategies)
            self._record_event(record.primary, strategy, alternative)
            return self._cache(result.ref, strategy)

        self._ref = None
        self._state = ElementState.EXHAUSTED
        log.error("Failed to find element %s with any locator strategy", self._element_id)
        raise ElementNotFoundError(self._element_id, attempts)

    def _cache(self, ref: Any, strategy: LocatorStrategy) -> Any:
        self._ref = ref
        self._strategy = strategy
        self._state = ElementState.CACHED
        return ref

    def _record_event(self, original: LocatorStrategy, successful: LocatorStrategy, attempt: int) -> None:
        ACTION_LOGGER.healing(self._element_id, str(original), str(successful), attempt)
        if self._event_log is not None:
            self._event_log.append(HealingEvent.create(self._element_id, original, successful, attempt))

    # --- Delegation ---

    def _perform(self, operation: Operation, *args: Any, token: Optional[CancellationToken] = None) -> Any:
        with self._lock:
            ref = self.ensure_resolved(token)
            try:
                return self._execute(ref, operation, args)
            except StaleReferenceError:
                log.debug("Element %s went stale during %s; re-resolving", self._element_id, operation.value)
                self._mark_stale()
            ref = self.ensure_resolved(token)
            try:
                return self._execute(ref, operation, args)
            except StaleReferenceError as e:
                self._mark_stale()
                raise ActionError(operation.value, self._element_id, "reference went stale twice", cause=e) from e

    def _execute(self, ref: Any, operation: Operation, args: tuple) -> Any:
        try:
            return self._driver.execute(ref, operation, *args)
        except HealingError:
            raise
        except Exception as e:
            raise ActionError(operation.value, self._element_id, cause=e) from e

    # --- Actions ---

    @tracked_action("click")
    def click(self, token: Optional[CancellationToken] = None) -> ResolvingElement:
        """Click the element."""
        log.debug("Clicking on element: %s", self._element_id)
        self._perform(Operation.CLICK, token=token)
        return self

    @tracked_action("submit")
    def submit(self, token: Optional[CancellationToken] = None) -> ResolvingElement:
        self._perform(Operation.SUBMIT, token=token)
        return self

    @tracked_action("send_keys")
    def send_keys(self, text: str, token: Optional[CancellationToken] = None) -> ResolvingElement:
        """Type text; only the masked form is ever logged."""
        log.debug("Sending keys to element %s: %s", self._element_id, mask_sensitive(text))
        self._perform(Operation.SEND_KEYS, text, token=token)
        return self

    def type(self, text: str, clear_first: bool = False, token: Optional[CancellationToken] = None) -> ResolvingElement:
        """Optionally clear, then type text."""
        if clear_first:
            self.clear(token=token)
        return self.send_keys(text, token=token)

    @tracked_action("clear")
    def clear(self, token: Optional[CancellationToken] = None) -> ResolvingElement:
        self._perform(Operation.CLEAR, token=token)
        return self

    # --- Reads ---

    @tracked_action("get_text")
    def get_text(self, token: Optional[CancellationToken] = None) -> str:
        text = self._perform(Operation.TEXT, token=token)
        log.debug("Got text from element %s: %s", self._element_id, mask_sensitive(text))
        return text

    def get_attribute(self, name: str, token: Optional[CancellationToken] = None) -> Any:
        return self._perform(Operation.ATTRIBUTE, name, token=token)

    def get_css_value(self, name: str, token: Optional[CancellationToken] = None) -> Any:
        return self._perform(Operation.CSS_VALUE, name, token=token)

    def tag_name(self, token: Optional[CancellationToken] = None) -> str:
        return self._perform(Operation.TAG_NAME, token=token)

    def is_displayed(self, token: Optional[CancellationToken] = None) -> bool:
        return bool(self._perform(Operation.IS_DISPLAYED, token=token))

    def is_enabled(self, token: Optional[CancellationToken] = None) -> bool:
        return bool(self._perform(Operation.IS_ENABLED, token=token))

    def is_selected(self, token: Optional[CancellationToken] = None) -> bool:
        return bool(self._perform(Operation.IS_SELECTED, token=token))

    def location(self, token: Optional[CancellationToken] = None) -> Any:
        return self._perform(Operation.LOCATION, token=token)

    def size(self, token: Optional[CancellationToken] = None) -> Any:
        return self._perform(Operation.SIZE, token=token)

    def rect(self, token: Optional[CancellationToken] = None) -> Any:
        return self._perform(Operation.RECT, token=token)

    def screenshot(self, token: Optional[CancellationToken] = None) -> bytes:
        """PNG bytes of the element as returned by the driver."""
        return self._perform(Operation.SCREENSHOT, token=token)

    @tracked_action("save_screenshot")
    def save_screenshot(
        self,
        out_dir: Optional[str] = None,
        prefix: Optional[str] = None,
        token: Optional[CancellationToken] = None,
    ) -> str:
        """Store the element screenshot as a PNG and return its path."""
        data = self.screenshot(token=token)
        return save_png(data, out_dir or self._artifacts_dir, prefix or self._element_id)

    # --- State queries and waits ---

    def exists(self, token: Optional[CancellationToken] = None) -> bool:
        """True if any strategy currently resolves."""
        try:
            self.ensure_resolved(token)
            return True
        except ElementNotFoundError:
            return False

    def wait(
        self,
        state: str = "exists",
        timeout: float = DEFAULT_WAIT_TIMEOUT,
        interval: float = DEFAULT_WAIT_INTERVAL,
    ) -> ResolvingElement:
        """
        Wait for element to reach a specific state.

        @param state One of: "exists", "visible", "enabled"
        @param timeout Seconds to wait
        @return self for chaining
        @throws TimeoutError if the state is not reached in time
        """
        if state == "exists":
            predicate = self.exists
        elif state == "visible":
            predicate = self.is_displayed
        elif state == "enabled":
            predicate = lambda: self.is_displayed() and self.is_enabled()
        else:
            raise ValueError(f"Unknown state: {state}. Use 'exists', 'visible', or 'enabled'")

        start = time.time()
        wait_until(
            predicate,
            timeout=timeout,
            interval=interval,
            description=f"element '{self._element_id}' to be {state}",
            fatal=_FATAL_IN_WAITS,
        )
        log.debug("Element %s is %s after %.2fs", self._element_id, state, time.time() - start)
        return self

    def wait_until_visible(self, timeout: float = DEFAULT_WAIT_TIMEOUT) -> ResolvingElement:
        return self.wait("visible", timeout)

    def wait_until_enabled(self, timeout: float = DEFAULT_WAIT_TIMEOUT) -> ResolvingElement:
        return self.wait("enabled", timeout)

    def wait_until_gone(self, timeout: float = DEFAULT_WAIT_TIMEOUT, interval: float = DEFAULT_WAIT_INTERVAL) -> None:
        """Wait for every strategy to stop resolving."""
        def present() -> bool:
            self.invalidate()
            return self.exists()

        wait_until_not(
            present,
            timeout=timeout,
            interval=interval,
            description=f"element '{self._element_id}' to disappear",
            fatal=_FATAL_IN_WAITS,
        )
