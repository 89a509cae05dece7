"""Append-only conversation transcript."""

from __future__ import annotations

from collections.abc import Iterator

from .events import TRANSCRIPT_APPENDED, EventBus
from .models import Message


class TranscriptStore:
    """Ordered log of messages; the single source of truth for rendering.

    Messages are frozen dataclasses, so once appended their fields cannot
    change. Insertion order is the only ordering and nothing is ever removed.
    """

    def __init__(self, bus: EventBus | None = None) -> None:
        self._bus = bus or EventBus()
        self._messages: list[Message] = []

    @property
    def messages(self) -> tuple[Message, ...]:
        """Return a read-only snapshot of all messages."""
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(tuple(self._messages))

    def __getitem__(self, index: int) -> Message:
        return self._messages[index]

    def append(self, message: Message) -> Message:
        """Append a message and notify observers."""
        self._messages.append(message)
        self._bus.publish(
            TRANSCRIPT_APPENDED,
            {"message": message, "index": len(self._messages) - 1},
            source="transcript",
        )
        return message
