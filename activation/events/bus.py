"""Synchronous in-process dispatch of resolution events.

Subscribers register for an event class name or for ANY. Each handler is
called as handler(name, payload) with its own shallow copy of the payload,
so a handler cannot alter what later handlers (or the resolver) see. A
raising handler is counted and logged; the resolution run continues.
"""
from __future__ import annotations

import logging
from threading import RLock
from typing import Any, Callable, Dict, List

from activation import metrics
from activation.errors import validate_error_type

logger = logging.getLogger("activation.events")

Handler = Callable[[str, Dict[str, Any]], None]

ANY = "*"

_HANDLER_ERROR = validate_error_type("event-handler-error")


class EventBus:
    def __init__(self) -> None:
        self._handlers: Dict[str, List[Handler]] = {}
        self._lock = RLock()

    def subscribe(self, name: str, handler: Handler) -> Callable[[], None]:
        """Register handler; returns a callable that removes it again."""
        with self._lock:
            self._handlers.setdefault(name, []).append(handler)

        def _unsubscribe() -> None:
            with self._lock:
                bucket = self._handlers.get(name, [])
                if handler in bucket:
                    bucket.remove(handler)

        return _unsubscribe

    def handlers_for(self, name: str) -> List[Handler]:
        with self._lock:
            return list(self._handlers.get(name, ())) + list(
                self._handlers.get(ANY, ())
            )

    def publish(self, name: str, payload: Dict[str, Any]) -> int:
        """Deliver payload to every matching handler; returns failures."""
        metrics.inc("events_emitted_total", {"event": name})
        failures = 0
        for handler in self.handlers_for(name):
            try:
                handler(name, dict(payload))
            except Exception:  # noqa: BLE001
                failures += 1
                metrics.inc("handler_exceptions_total", {"event": name})
                logger.warning(
                    "[%s] handler %r failed on %s",
                    _HANDLER_ERROR,
                    handler,
                    name,
                    exc_info=True,
                )
        return failures

    def clear(self) -> None:
        with self._lock:
            self._handlers.clear()


__all__ = ["ANY", "EventBus", "Handler"]
