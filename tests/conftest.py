"""
Shared fixtures: an in-memory driver and repository configs rooted in tmp_path.
"""

import os
import threading

import pytest

from uiauto_heal.config import HealingConfig
from uiauto_heal.driver import ElementDriver, Operation, Resolution
from uiauto_heal.exceptions import StaleReferenceError
from uiauto_heal.repository import LocatorRepository


class FakeRef:
    """Stands in for a live UI node."""

    def __init__(self, label):
        self.label = label
        self.alive = True
        self.text = f"text of {label}"
        self.displayed = True
        self.enabled = True
        self.received = []


class FakeDriver(ElementDriver):
    """
    Resolves only the strategies listed in `present`; records every lookup
    and every executed operation.
    """

    def __init__(self, present=()):
        self.present = {s: FakeRef(str(s)) for s in present}
        self.lookups = []
        self.executed = []
        self.stale_on_next_execute = 0
        self._lock = threading.Lock()

    def show(self, strategy):
        self.present[strategy] = FakeRef(str(strategy))

    def hide(self, strategy):
        ref = self.present.pop(strategy, None)
        if ref is not None:
            ref.alive = False

    def resolve(self, strategy, token=None):
        with self._lock:
            self.lookups.append(strategy)
        ref = self.present.get(strategy)
        if ref is None:
            return Resolution.miss("not in fake tree")
        return Resolution.hit(ref)

    def execute(self, ref, operation, *args):
        if self.stale_on_next_execute:
            self.stale_on_next_execute -= 1
            raise StaleReferenceError(message="fake stale")
        if not ref.alive:
            raise StaleReferenceError(message="node removed")
        self.executed.append((ref.label, operation, args))
        if operation is Operation.SEND_KEYS:
            ref.received.append(args[0])
            return None
        if operation is Operation.TEXT:
            return ref.text
        if operation is Operation.IS_DISPLAYED:
            return ref.displayed
        if operation is Operation.IS_ENABLED:
            return ref.enabled
        if operation is Operation.ATTRIBUTE:
            return f"{args[0]}-value"
        return None

    def is_alive(self, ref):
        return ref.alive


@pytest.fixture
def healing_config(tmp_path):
    return HealingConfig(
        locators_dir=str(tmp_path / "locators"),
        history_file=str(tmp_path / "logs" / "healing-history.properties"),
        events_file=str(tmp_path / "logs" / "healing-events.csv"),
        artifacts_dir=str(tmp_path / "artifacts"),
    )


@pytest.fixture
def write_catalog(healing_config):
    def _write(name, text):
        os.makedirs(healing_config.locators_dir, exist_ok=True)
        path = os.path.join(healing_config.locators_dir, name)
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
        return path
    return _write


@pytest.fixture
def repository(healing_config):
    repo = LocatorRepository(healing_config)
    repo.load_all()
    return repo


@pytest.fixture
def fake_driver():
    return FakeDriver()
