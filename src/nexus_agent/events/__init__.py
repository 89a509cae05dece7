"""Change notifications published by the session state containers."""

from .bus import (
    COMPOSITION_CHANGED,
    STATUS_CHANGED,
    TRANSCRIPT_APPENDED,
    Event,
    EventBus,
)

__all__ = [
    "COMPOSITION_CHANGED",
    "STATUS_CHANGED",
    "TRANSCRIPT_APPENDED",
    "Event",
    "EventBus",
]
