# uiauto_heal/waits.py
"""
@file waits.py
@brief Polling waits behind ResolvingElement.wait() and wait_until_gone().
"""

from __future__ import annotations

import time
from typing import Any, Callable, Optional, Tuple, Type, TypeVar

from .actionlogger import ACTION_LOGGER
from .exceptions import TimeoutError

T = TypeVar("T")


def _now() -> float:
    """Monotonic time source for deterministic timeout calculations."""
    return time.monotonic()


def _poll(
    predicate: Callable[[], Any],
    want: bool,
    timeout: float,
    interval: float,
    fatal: Tuple[Type[BaseException], ...] = (),
) -> Tuple[bool, Any, int, float, Optional[BaseException]]:
    """
    Evaluate predicate until bool(result) == want or the timeout passes.
    Exceptions raised by the predicate count as "not yet" and are remembered,
    except those listed in `fatal`, which propagate at once.

    @return (reached, last result, evaluations, elapsed seconds, last exception)
    """
    start = _now()
    evaluations = 0
    last_exception: Optional[BaseException] = None

    while True:
        elapsed = _now() - start
        if elapsed >= timeout:
            return False, None, evaluations, elapsed, last_exception

        evaluations += 1
        try:
            result = predicate()
        except fatal:
            raise
        except Exception as e:
            last_exception = e
        else:
            if bool(result) == want:
                return True, result, evaluations, _now() - start, None

        sleep_time = min(interval, timeout - (_now() - start))
        if sleep_time > 0:
            time.sleep(sleep_time)


def _timed_out(
    description: str,
    timeout: float,
    evaluations: int,
    elapsed: float,
    last_exception: Optional[BaseException],
    kept: str,
) -> TimeoutError:
    ACTION_LOGGER.log(
        action="wait",
        status="error",
        duration_ms=int(elapsed * 1000),
        metadata={"description": description, "attempts": evaluations},
        event="wait_timeout",
    )
    if last_exception is not None:
        message = (
            f"Timed out waiting for {description} after {timeout}s: "
            f"{type(last_exception).__name__}: {last_exception}"
        )
    else:
        message = f"Timed out waiting for {description} after {timeout}s (condition kept returning {kept})"

    error = TimeoutError(message)
    error.original_exception = last_exception
    error.description = description
    error.timeout = timeout
    error.attempt_count = evaluations
    error.elapsed_time = elapsed
    return error


def wait_until(
    predicate: Callable[[], T],
    timeout: float,
    interval: float = 0.2,
    description: str = "condition",
    fatal: Tuple[Type[BaseException], ...] = (),
) -> T:
    """
    Poll predicate until it returns a truthy value and return that value.

    @throws TimeoutError carrying the last predicate exception, if any
    """
    reached, result, evaluations, elapsed, last_exception = _poll(predicate, True, timeout, interval, fatal)
    if reached:
        return result
    raise _timed_out(description, timeout, evaluations, elapsed, last_exception, "falsy")


def wait_until_not(
    predicate: Callable[[], Any],
    timeout: float,
    interval: float = 0.2,
    description: str = "condition to become false",
    fatal: Tuple[Type[BaseException], ...] = (),
) -> None:
    """Poll predicate until it returns a falsy value."""
    reached, _, evaluations, elapsed, last_exception = _poll(predicate, False, timeout, interval, fatal)
    if not reached:
        raise _timed_out(description, timeout, evaluations, elapsed, last_exception, "truthy")
