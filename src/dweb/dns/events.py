"""Observational events emitted during resolution.

Listeners are called synchronously in registration order. A listener that
raises is logged and reported to Sentry; it never changes the outcome of a
resolution.
"""

import logging
from collections import defaultdict
from typing import Callable, DefaultDict, Final, List

import sentry_sdk
from pydantic import BaseModel

logger = logging.getLogger(__name__)

RESOLVED: Final = "resolved"
FAILED: Final = "failed"
CACHE_FLUSHED: Final = "cache-flushed"

EVENT_NAMES: Final = frozenset({RESOLVED, FAILED, CACHE_FLUSHED})

Listener = Callable[[BaseModel], None]


class EventChannel:
    def __init__(self) -> None:
        self._listeners: DefaultDict[str, List[Listener]] = defaultdict(list)

    def on(self, event: str, listener: Listener) -> None:
        if event not in EVENT_NAMES:
            raise ValueError(f"Unknown event: {event}")
        self._listeners[event].append(listener)

    def off(self, event: str, listener: Listener) -> None:
        try:
            self._listeners[event].remove(listener)
        except ValueError:
            pass

    def emit(self, event: str, payload: BaseModel) -> None:
        for listener in list(self._listeners.get(event, [])):
            try:
                listener(payload)
            except Exception as e:
                logger.warning("Listener for %s event failed: %s", event, e)
                sentry_sdk.capture_exception(e)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))
