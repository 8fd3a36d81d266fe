"""Simple in-process event bus used as the relationship event sink."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from typing import Any

EventHandler = Callable[[dict[str, Any]], None]
WildcardHandler = Callable[[str, dict[str, Any]], None]

logger = logging.getLogger("fg.event_bus")


class EventBus:
    """Dispatches events to subscribers by event name.

    Delivery is fire-and-forget: a handler that raises is logged and the
    remaining handlers still run.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)
        self._wildcard: list[WildcardHandler] = []

    def subscribe(self, event_name: str, handler: EventHandler) -> None:
        """Register a callback for an event."""
        self._handlers[str(event_name)].append(handler)

    def subscribe_all(self, handler: WildcardHandler) -> None:
        """Register a callback that receives every event with its name."""
        self._wildcard.append(handler)

    def emit(self, event_name: str, payload: dict[str, Any]) -> None:
        """Emit an event to all subscribers."""
        name = str(event_name)
        for handler in self._handlers.get(name, []):
            try:
                handler(payload)
            except Exception:
                logger.exception("Handler for %s failed", name)
        for wildcard in self._wildcard:
            try:
                wildcard(name, payload)
            except Exception:
                logger.exception("Wildcard handler for %s failed", name)
