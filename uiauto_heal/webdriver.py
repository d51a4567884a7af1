# uiauto_heal/webdriver.py
"""
@file webdriver.py
@brief ElementDriver backed by a Selenium (or Appium) WebDriver.

Requires the 'webdriver' extra: pip install uiauto-heal[webdriver]
"""

from __future__ import annotations
import logging
from typing import Any, Callable, Dict, Optional

from selenium.common.exceptions import (NoSuchElementException,
                                        StaleElementReferenceException)
from selenium.webdriver.common.by import By

from .cancellation import CancellationToken
from .driver import ElementDriver, Operation, Resolution
from .exceptions import StaleReferenceError
from .strategy import LocatorKind, LocatorStrategy

log = logging.getLogger(__name__)

# Appium's AppiumBy.ACCESSIBILITY_ID is this string.
ACCESSIBILITY_ID = "accessibility id"

BY_FOR_KIND: Dict[LocatorKind, str] = {
    LocatorKind.ID: By.ID,
    LocatorKind.NAME: By.NAME,
    LocatorKind.XPATH: By.XPATH,
    LocatorKind.CSS: By.CSS_SELECTOR,
    LocatorKind.CLASS_NAME: By.CLASS_NAME,
    LocatorKind.TAG_NAME: By.TAG_NAME,
    LocatorKind.LINK_TEXT: By.LINK_TEXT,
    LocatorKind.PARTIAL_LINK_TEXT: By.PARTIAL_LINK_TEXT,
    LocatorKind.ACCESSIBILITY_ID: ACCESSIBILITY_ID,
}

_OPERATIONS: Dict[Operation, Callable[..., Any]] = {
    Operation.CLICK: lambda el: el.click(),
    Operation.SUBMIT: lambda el: el.submit(),
    Operation.SEND_KEYS: lambda el, text: el.send_keys(text),
    Operation.CLEAR: lambda el: el.clear(),
    Operation.TEXT: lambda el: el.text,
    Operation.ATTRIBUTE: lambda el, name: el.get_attribute(name),
    Operation.CSS_VALUE: lambda el, name: el.value_of_css_property(name),
    Operation.TAG_NAME: lambda el: el.tag_name,
    Operation.IS_DISPLAYED: lambda el: el.is_displayed(),
    Operation.IS_ENABLED: lambda el: el.is_enabled(),
    Operation.IS_SELECTED: lambda el: el.is_selected(),
    Operation.LOCATION: lambda el: el.location,
    Operation.SIZE: lambda el: el.size,
    Operation.RECT: lambda el: el.rect,
    Operation.SCREENSHOT: lambda el: el.screenshot_as_png,
}


class SeleniumDriver(ElementDriver):
    """Adapts a selenium.webdriver.Remote (or Appium driver) instance."""

    def __init__(self, webdriver: Any):
        self.webdriver = webdriver

    def resolve(self, strategy: LocatorStrategy, token: Optional[CancellationToken] = None) -> Resolution:
        by = BY_FOR_KIND[strategy.kind]
        try:
            return Resolution.hit(self.webdriver.find_element(by, strategy.value))
        except NoSuchElementException as e:
            return Resolution.miss(e.msg or "no such element")

    def execute(self, ref: Any, operation: Operation, *args: Any) -> Any:
        try:
            return _OPERATIONS[operation](ref, *args)
        except StaleElementReferenceException as e:
            raise StaleReferenceError(message=e.msg) from e

    def is_alive(self, ref: Any) -> bool:
        try:
            ref.is_displayed()
            return True
        except StaleElementReferenceException:
            return False
