# uiauto_heal/exceptions.py
"""
@file exceptions.py
@brief Exception hierarchy for the locator-healing engine.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional


class HealingError(Exception):
    """Base exception for the framework."""
    pass


class ConfigError(HealingError):
    """Raised when the YAML settings file is invalid."""
    pass


class TimeoutError(HealingError):
    """
    Raised when a wait times out.

    Attributes:
        original_exception: The last exception raised by the predicate, if any
        description: Human-readable description of what was being waited for
        timeout: The timeout value in seconds
        attempt_count: Number of predicate evaluations
        elapsed_time: Actual elapsed time in seconds
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.original_exception: Optional[BaseException] = None
        self.description: Optional[str] = None
        self.timeout: Optional[float] = None
        self.attempt_count: Optional[int] = None
        self.elapsed_time: Optional[float] = None

    def __str__(self) -> str:
        base_msg = super().__str__()

        details = []
        if self.original_exception is not None:
            details.append(f"Original exception: {type(self.original_exception).__name__}")
        if self.attempt_count is not None:
            details.append(f"Attempts: {self.attempt_count}")
        if self.elapsed_time is not None:
            details.append(f"Elapsed: {self.elapsed_time:.2f}s")

        if details:
            return f"{base_msg} [{', '.join(details)}]"
        return base_msg


@dataclass
class LocatorAttempt:
    """Records a single strategy attempt for debugging."""
    strategy: str
    index: int
    reason: Optional[str] = None


class NoStrategyDefinedError(HealingError):
    """Raised when the repository holds no strategies for an element."""

    def __init__(self, element_id: str):
        self.element_id = element_id
        super().__init__(f"No locator strategies defined for element '{element_id}'")


class ElementNotFoundError(HealingError):
    """
    Raised when every strategy of an element failed to resolve.

    Contains every attempt made, in the order they were tried.
    """

    def __init__(self, element_id: str, attempts: Optional[List[LocatorAttempt]] = None):
        self.element_id = element_id
        self.attempts = list(attempts or [])
        super().__init__(self.__str__())

    def __str__(self) -> str:
        lines = [f"ElementNotFoundError: element='{self.element_id}'"]
        if self.attempts:
            lines.append("Attempts:")
            for i, a in enumerate(self.attempts, start=1):
                lines.append(f"  {i}. [{a.index}] {a.strategy} reason={a.reason}")
        return "\n".join(lines)


class StaleReferenceError(HealingError):
    """Raised by drivers when a cached element reference no longer refers to a live node."""

    def __init__(self, element_id: Optional[str] = None, message: Optional[str] = None):
        self.element_id = element_id
        msg = "Element reference is stale"
        if element_id:
            msg = f"Element '{element_id}' reference is stale"
        if message:
            msg += f": {message}"
        super().__init__(msg)


class InvalidHealingIndexError(HealingError):
    """A healing index that does not fit the element's current strategy list."""

    def __init__(self, element_id: str, index: int, size: int):
        self.element_id = element_id
        self.index = index
        self.size = size
        super().__init__(
            f"Invalid healing index {index} for element '{element_id}' "
            f"({size} strategies)"
        )


class PersistenceError(HealingError):
    """Reading or writing catalog, history or event files failed."""

    def __init__(self, path: str, cause: Optional[BaseException] = None):
        self.path = path
        self.cause = cause
        msg = f"Persistence failure for '{path}'"
        if cause is not None:
            msg += f": {type(cause).__name__}: {cause}"
        super().__init__(msg)


class CancellationRequestedError(HealingError):
    """Resolution stopped because the caller cancelled or its deadline passed."""

    def __init__(self, element_id: Optional[str] = None, reason: Optional[str] = None):
        self.element_id = element_id
        self.reason = reason
        msg = "Resolution cancelled"
        if element_id:
            msg += f" for element '{element_id}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class ActionError(HealingError):
    """
    Raised when the driver fails while executing an operation
    on a resolved element.
    """

    def __init__(
        self,
        action: str,
        element_id: Optional[str] = None,
        details: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        self.action = action
        self.element_id = element_id
        self.details = details
        self.cause = cause
        super().__init__(self.__str__())

    def __str__(self) -> str:
        base = f"ActionError: action='{self.action}'"
        if self.element_id:
            base += f" element='{self.element_id}'"
        if self.details:
            base += f" details='{self.details}'"
        if self.cause:
            base += f" cause='{type(self.cause).__name__}: {self.cause}'"
        return base
