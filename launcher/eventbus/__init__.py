"""Synchronous in-process event bus.

Handlers subscribe per event name and receive a shallow copy of the
payload (with a ``ts`` added when missing). A failing handler is counted
(``handler_exceptions_total{event}``), logged at DEBUG and skipped; the
emitter never sees the exception. Every emit counts
``events_emitted_total{event}``.

Handlers run on the emitting thread: deploy events on the launch thread,
restart events on the restart loop worker.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from threading import RLock
from time import time
from typing import Any, Callable, DefaultDict, Dict, List

from launcher import metrics

Handler = Callable[[Dict[str, Any]], None]

logger = logging.getLogger("launcher.eventbus")


class EventBus:
    def __init__(self) -> None:
        self._handlers: DefaultDict[str, List[Handler]] = defaultdict(list)
        self._guard = RLock()

    def subscribe(self, event: str, handler: Handler) -> Callable[[], None]:
        """Register ``handler``; the returned callable undoes it."""
        with self._guard:
            self._handlers[event].append(handler)

        def _unsubscribe() -> None:
            with self._guard:
                registered = self._handlers.get(event)
                if registered and handler in registered:
                    registered.remove(handler)

        return _unsubscribe

    def emit(self, event: str, payload: Dict[str, Any]) -> None:
        payload.setdefault("ts", time())
        with self._guard:
            targets = tuple(self._handlers.get(event, ()))
        metrics.inc("events_emitted_total", {"event": event})
        for handler in targets:
            try:
                handler(dict(payload))
            except Exception:  # noqa: BLE001
                metrics.inc("handler_exceptions_total", {"event": event})
                logger.debug("%s handler %r failed", event, handler, exc_info=True)

    def clear(self) -> None:
        with self._guard:
            self._handlers.clear()


_default_bus = EventBus()


def subscribe(event: str, handler: Handler) -> Callable[[], None]:
    return _default_bus.subscribe(event, handler)


def emit(event: str, payload: Dict[str, Any]) -> None:
    _default_bus.emit(event, payload)


def reset_for_tests() -> None:  # pragma: no cover
    _default_bus.clear()


__all__ = ["EventBus", "Handler", "subscribe", "emit", "reset_for_tests"]
