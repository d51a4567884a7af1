# uiauto_heal/context.py
"""
@file context.py
@brief Per-thread stack of running element operations.

Public operations of a ResolvingElement are wrapped with @tracked_action.
Each call pushes an ActionContext; nested calls (save_screenshot reading
the screenshot, type clearing first) record their parent so the action log
can tie them together.
"""

from __future__ import annotations
import functools
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Generator, List, Optional
from uuid import uuid4

from .actionlogger import ACTION_LOGGER


@dataclass
class ActionContext:
    action_id: str = field(default_factory=lambda: str(uuid4())[:8])
    action_name: str = ""
    element_id: Optional[str] = None
    start_time: float = field(default_factory=time.time)
    parent_id: Optional[str] = None

    @property
    def elapsed_ms(self) -> int:
        return int((time.time() - self.start_time) * 1000)


class ActionContextManager:
    """Thread-local stack of ActionContext objects."""

    _local = threading.local()

    @classmethod
    def _get_stack(cls) -> List[ActionContext]:
        if not hasattr(cls._local, "stack"):
            cls._local.stack = []
        return cls._local.stack

    @classmethod
    def current(cls) -> Optional[ActionContext]:
        stack = cls._get_stack()
        return stack[-1] if stack else None

    @classmethod
    @contextmanager
    def action(cls, action_name: str, element_id: Optional[str] = None) -> Generator[ActionContext, None, None]:
        stack = cls._get_stack()
        parent = stack[-1] if stack else None
        context = ActionContext(
            action_name=action_name,
            element_id=element_id,
            parent_id=parent.action_id if parent else None,
        )
        stack.append(context)
        try:
            yield context
        finally:
            stack.pop()

    @classmethod
    def clear(cls) -> None:
        cls._local.stack = []


def _call_metadata(name: str, args: tuple, kwargs: Dict[str, Any]) -> Dict[str, Any]:
    metadata = {k: v for k, v in kwargs.items() if k != "token" and v is not None}
    if args:
        key = "text" if name in ("type", "send_keys") else "args"
        metadata[key] = args[0] if len(args) == 1 else list(args)
    return metadata


def tracked_action(action_name: Optional[str] = None):
    """
    Decorator for ResolvingElement operations: pushes an ActionContext and
    logs an action_finish record with the outcome and the strategy in use.
    """
    def decorator(func):
        name = action_name or func.__name__

        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            element_id = getattr(self, "element_id", None)
            metadata = _call_metadata(name, args, kwargs)

            with ActionContextManager.action(name, element_id=element_id) as context:
                if context.parent_id:
                    metadata["parent"] = context.parent_id
                try:
                    result = func(self, *args, **kwargs)
                except Exception as exc:
                    ACTION_LOGGER.log(
                        action=name,
                        element=element_id,
                        status="error",
                        duration_ms=context.elapsed_ms,
                        metadata=metadata,
                        exception=exc,
                        action_id=context.action_id,
                        event="action_finish",
                    )
                    raise
                strategy = getattr(self, "current_strategy", None)
                ACTION_LOGGER.log(
                    action=name,
                    element=element_id,
                    strategy=str(strategy) if strategy is not None else None,
                    status="ok",
                    duration_ms=context.elapsed_ms,
                    metadata=metadata,
                    action_id=context.action_id,
                    event="action_finish",
                )
                return result

        return wrapper

    return decorator
