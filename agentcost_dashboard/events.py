"""In-process publish/subscribe channel between the API client and its listeners."""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Any, Callable

logger = logging.getLogger(__name__)

Listener = Callable[[dict[str, Any]], None]


class EventBus:
    """Named-event observer.

    Publishers never learn who listens, which keeps the API client free of any
    import of the session layer that reacts to its refresh results.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, event: str, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` and return a callable that removes it."""
        with self._lock:
            self._listeners[event].append(listener)

        def unsubscribe() -> None:
            self.unsubscribe(event, listener)

        return unsubscribe

    def unsubscribe(self, event: str, listener: Listener) -> None:
        with self._lock:
            listeners = self._listeners.get(event, [])
            if listener in listeners:
                listeners.remove(listener)

    def publish(self, event: str, detail: dict[str, Any] | None = None) -> None:
        with self._lock:
            listeners = list(self._listeners.get(event, []))

        payload = dict(detail or {})
        for listener in listeners:
            try:
                listener(payload)
            except Exception:
                logger.exception("Listener for '%s' failed.", event)

    def listener_count(self, event: str) -> int:
        with self._lock:
            return len(self._listeners.get(event, []))
