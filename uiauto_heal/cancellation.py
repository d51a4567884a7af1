# uiauto_heal/cancellation.py
"""
@file cancellation.py
@brief Caller-supplied cancellation and deadlines for resolution attempts.

The engine never imposes a timeout on its own. Callers that want one pass a
Deadline (or any CancellationToken) to an element operation; the token is
checked before every strategy attempt and handed to the driver.
"""

from __future__ import annotations

import threading
import time
from typing import Optional

from .exceptions import CancellationRequestedError


def _now() -> float:
    """Monotonic time source for deterministic deadline calculations."""
    return time.monotonic()


class CancellationToken:
    """Thread-safe cancellation flag shared between a caller and the engine."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason: Optional[str] = None

    def cancel(self, reason: str = "cancelled by caller") -> None:
        self._reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def raise_if_cancelled(self, element_id: Optional[str] = None) -> None:
        if self.cancelled:
            raise CancellationRequestedError(element_id, self.reason)


class Deadline(CancellationToken):
    """A token that also counts as cancelled once `timeout` seconds have passed."""

    def __init__(self, timeout: float) -> None:
        super().__init__()
        self.timeout = float(timeout)
        self._expires_at = _now() + self.timeout

    @property
    def remaining(self) -> float:
        return max(0.0, self._expires_at - _now())

    @property
    def cancelled(self) -> bool:
        if super().cancelled:
            return True
        return _now() >= self._expires_at

    @property
    def reason(self) -> Optional[str]:
        if self._reason is None and self.cancelled:
            return f"deadline of {self.timeout}s exceeded"
        return self._reason
