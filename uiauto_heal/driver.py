"""
@file driver.py
@brief Interface the engine needs from a UI automation driver.

The engine never opens sessions or talks to a device itself. A driver
implementation performs a strategy lookup against the live UI tree and runs
operations on the references it returned.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from .cancellation import CancellationToken
from .strategy import LocatorStrategy


class Operation(str, Enum):
    """Operations a resolved element reference supports."""
    CLICK = "click"
    SUBMIT = "submit"
    SEND_KEYS = "send_keys"
    CLEAR = "clear"
    TEXT = "text"
    ATTRIBUTE = "attribute"
    CSS_VALUE = "css_value"
    TAG_NAME = "tag_name"
    IS_DISPLAYED = "is_displayed"
    IS_ENABLED = "is_enabled"
    IS_SELECTED = "is_selected"
    LOCATION = "location"
    SIZE = "size"
    RECT = "rect"
    SCREENSHOT = "screenshot"


@dataclass(frozen=True)
class Resolution:
    """
    Outcome of one strategy lookup: either a reference or a miss.

    A miss is an expected result, not an error; drivers raise only for
    real failures (transport errors, cancellation).
    """
    ref: Any = None
    found: bool = False
    reason: Optional[str] = None

    @classmethod
    def hit(cls, ref: Any) -> "Resolution":
        return cls(ref=ref, found=True)

    @classmethod
    def miss(cls, reason: Optional[str] = None) -> "Resolution":
        return cls(found=False, reason=reason)


NOT_FOUND = Resolution.miss()


class ElementDriver(ABC):
    """
    Abstract driver interface.

    Implementations wrap a concrete automation backend (Selenium, Appium,
    pywinauto, ...).
    """

    @abstractmethod
    def resolve(self, strategy: LocatorStrategy, token: Optional[CancellationToken] = None) -> Resolution:
        """
        Look up one element.

        Args:
            strategy: Strategy to evaluate against the live UI
            token: Caller cancellation; long lookups should honour it and
                raise CancellationRequestedError

        Returns:
            Resolution.hit(ref) or Resolution.miss()
        """
        pass

    @abstractmethod
    def execute(self, ref: Any, operation: Operation, *args: Any) -> Any:
        """
        Run an operation on a reference returned by resolve().

        Raises StaleReferenceError if the reference no longer refers to a live node.
        """
        pass

    @abstractmethod
    def is_alive(self, ref: Any) -> bool:
        """Cheap liveness probe for a cached reference."""
        pass
