"""
Session event subscription.
"""

import logging
from collections import defaultdict
from enum import Enum
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]


class SessionEvent(str, Enum):
    """Events a presentation layer can subscribe to."""
    CONNECTION_OPENED = "connection-opened"
    CONNECTION_CLOSED = "connection-closed"
    CONNECTION_ERROR = "connection-error"
    SEAT_ASSIGNED = "seat-assigned"
    ROSTER_UPDATED = "roster-updated"
    STATE_UPDATED = "state-updated"
    GAME_RESET = "game-reset"


class EventEmitter:
    """
    Synchronous publish/subscribe.

    Handlers run in subscription order. A handler that raises is logged
    and skipped; the remaining handlers still receive the event.
    """

    def __init__(self):
        self._handlers: Dict[SessionEvent, List[Handler]] = defaultdict(list)

    def subscribe(self, event: SessionEvent, handler: Handler) -> Callable[[], None]:
        """Register ``handler`` and return a function that removes it again."""
        self._handlers[event].append(handler)

        def unsubscribe():
            if handler in self._handlers[event]:
                self._handlers[event].remove(handler)

        return unsubscribe

    def emit(self, event: SessionEvent, payload: Any = None):
        for handler in list(self._handlers[event]):
            try:
                handler(payload)
            except Exception:
                logger.exception(f"Subscriber for {event.value} failed")
