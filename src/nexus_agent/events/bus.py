"""Event bus for decoupled change notifications.

Usage:
    bus = EventBus()

    def on_status(event):
        print(f"Status: {event.data['current']}")

    bus.subscribe(STATUS_CHANGED, on_status)
    bus.publish(STATUS_CHANGED, {"current": "thinking"})
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import logging
from typing import Any

LOGGER = logging.getLogger(__name__)

STATUS_CHANGED = "status.changed"
TRANSCRIPT_APPENDED = "transcript.appended"
COMPOSITION_CHANGED = "composition.changed"


@dataclass
class Event:
    """Event data container."""

    name: str
    data: dict[str, Any]
    source: str | None = None


Handler = Callable[[Event], None]


class EventBus:
    """Synchronous publish/subscribe hub.

    Handlers run inline in publish order, so observers see every
    intermediate state (including transient ones) exactly when it happens.
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Handler]] = {}

    def subscribe(self, event_name: str, handler: Handler) -> Callable[[], None]:
        """Subscribe to an event and return a callable that unsubscribes.

        Args:
            event_name: Event to listen for (e.g., "status.changed")
            handler: Function called with the published Event
        """
        self._subscribers.setdefault(event_name, []).append(handler)
        LOGGER.debug("Subscribed to event: %s", event_name)

        def _unsubscribe() -> None:
            self.unsubscribe(event_name, handler)

        return _unsubscribe

    def unsubscribe(self, event_name: str, handler: Handler) -> None:
        """Remove a handler; unknown handlers are ignored."""
        handlers = self._subscribers.get(event_name)
        if not handlers:
            return
        try:
            handlers.remove(handler)
            LOGGER.debug("Unsubscribed from event: %s", event_name)
        except ValueError:
            pass

    def publish(
        self, event_name: str, data: dict[str, Any], source: str | None = None
    ) -> None:
        """Publish an event to all subscribers.

        A failing handler is logged and does not stop the others.
        """
        handlers = list(self._subscribers.get(event_name, ()))
        if not handlers:
            return

        event = Event(name=event_name, data=data, source=source)
        for handler in handlers:
            try:
                handler(event)
            except Exception as exc:
                LOGGER.error(
                    "events.handler.failed",
                    extra={
                        "event": "events.handler.failed",
                        "event_name": event_name,
                        "error_type": type(exc).__name__,
                        "error": str(exc),
                    },
                )
