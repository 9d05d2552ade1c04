"""Typed publish/subscribe event bus.

Presentation layers subscribe to engine events to refresh lists and switch
tabs. Delivery is synchronous and fire-and-forget: a failing handler is
logged and does not stop delivery to the others.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Events emitted by the wager engine."""

    WAGERS_PLACED = "wagers_placed"
    PROGRESS_RECORDED = "progress_recorded"
    DAY_ADVANCED = "day_advanced"
    WAGER_SETTLED = "wager_settled"
    PARLAY_WON = "parlay_won"
    PARLAY_LOST = "parlay_lost"
    NAVIGATE_TO_ACTIVE_WAGERS = "navigate_to_active_wagers"
    STATE_CHANGED = "state_changed"


@dataclass(frozen=True)
class Event:
    """A published event and its payload."""

    type: EventType
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


Handler = Callable[[Event], None]


class EventBus:
    """Publish/subscribe hub scoped to one engine."""

    def __init__(self):
        self._handlers: dict[Optional[EventType], list[Handler]] = {}
        self.history: list[Event] = []
        self.keep_history = False

    def subscribe(
        self,
        handler: Handler,
        event_type: Optional[EventType] = None,
    ) -> Callable[[], None]:
        """Register a handler.

        Args:
            handler: Callable receiving each matching Event
            event_type: Event to listen for (None = every event)

        Returns:
            A callable that removes the subscription
        """
        self._handlers.setdefault(event_type, []).append(handler)

        def unsubscribe() -> None:
            self.unsubscribe(handler, event_type)

        return unsubscribe

    def unsubscribe(self, handler: Handler, event_type: Optional[EventType] = None) -> bool:
        """Remove a handler. Returns True if it was registered."""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)
            return True
        return False

    def publish(self, event_type: EventType, **payload: Any) -> Event:
        """Deliver an event to its subscribers in registration order.

        Args:
            event_type: Type of event
            **payload: Event data

        Returns:
            The published Event
        """
        event = Event(type=event_type, payload=payload)
        if self.keep_history:
            self.history.append(event)

        handlers = list(self._handlers.get(event_type, [])) + list(self._handlers.get(None, []))
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception("Event handler failed for %s", event_type.value)
        return event

    def clear(self) -> None:
        """Drop every subscription and recorded event."""
        self._handlers.clear()
        self.history.clear()
