"""
uiauto-heal - self-healing element locators for UI test automation.

This package provides:
- LocatorRepository: element strategies plus persisted healing history
- ResolvingElement: handle that falls back through alternative strategies
- HealingSession: test-session bootstrap owning the shared repository
- HealingEventLog: append-only record of healing events and statistics
- ElementDriver: interface a UI automation backend implements
"""

from uiauto_heal.cancellation import CancellationToken, Deadline
from uiauto_heal.config import ActionLogSettings, HealingConfig, load_config
from uiauto_heal.driver import NOT_FOUND, ElementDriver, Operation, Resolution
from uiauto_heal.element import ElementState, ResolvingElement
from uiauto_heal.events import HealingEvent, HealingEventLog, HealingStatistics
from uiauto_heal.exceptions import (
    ActionError,
    CancellationRequestedError,
    ConfigError,
    ElementNotFoundError,
    HealingError,
    InvalidHealingIndexError,
    LocatorAttempt,
    NoStrategyDefinedError,
    PersistenceError,
    StaleReferenceError,
    TimeoutError,
)
from uiauto_heal.masking import mask_sensitive
from uiauto_heal.repository import ElementRecord, LocatorRepository
from uiauto_heal.session import HealingSession
from uiauto_heal.strategy import LocatorKind, LocatorStrategy

__all__ = [
    "CancellationToken",
    "Deadline",
    "ActionLogSettings",
    "HealingConfig",
    "load_config",
    "NOT_FOUND",
    "ElementDriver",
    "Operation",
    "Resolution",
    "ElementState",
    "ResolvingElement",
    "HealingEvent",
    "HealingEventLog",
    "HealingStatistics",
    "ActionError",
    "CancellationRequestedError",
    "ConfigError",
    "ElementNotFoundError",
    "HealingError",
    "InvalidHealingIndexError",
    "LocatorAttempt",
    "NoStrategyDefinedError",
    "PersistenceError",
    "StaleReferenceError",
    "TimeoutError",
    "mask_sensitive",
    "ElementRecord",
    "LocatorRepository",
    "HealingSession",
    "LocatorKind",
    "LocatorStrategy",
]

__version__ = "1.0.0"
