"""Composition buffer and the session context that bundles shared state."""

from __future__ import annotations

from dataclasses import dataclass, field

from .events import COMPOSITION_CHANGED, EventBus
from .models import Attachment
from .previews import PreviewRegistry
from .state import StatusRegister
from .transcript import TranscriptStore


class CompositionBuffer:
    """Pending text and attachments awaiting the next submission."""

    def __init__(self, bus: EventBus | None = None) -> None:
        self._bus = bus or EventBus()
        self._text = ""
        self._attachments: list[Attachment] = []

    @property
    def text(self) -> str:
        return self._text

    @property
    def attachments(self) -> tuple[Attachment, ...]:
        return tuple(self._attachments)

    def set_text(self, text: str) -> None:
        """Replace the pending text."""
        self._text = text
        self._notify()

    def add_attachment(self, attachment: Attachment) -> None:
        """Queue an attachment for the next submission."""
        self._attachments.append(attachment)
        self._notify()

    def remove_attachment(self, index: int) -> Attachment | None:
        """Remove one pending attachment; out-of-range indices are ignored."""
        if not 0 <= index < len(self._attachments):
            return None
        removed = self._attachments.pop(index)
        self._notify()
        return removed

    def has_any(self) -> bool:
        """Return True when there is something worth submitting."""
        return bool(self._text.strip() or self._attachments)

    def snapshot_and_clear(self) -> tuple[str, tuple[Attachment, ...]]:
        """Return the pending text and attachments and empty the buffer."""
        snapshot = (self._text, tuple(self._attachments))
        self._text = ""
        self._attachments = []
        self._notify()
        return snapshot

    def _notify(self) -> None:
        self._bus.publish(
            COMPOSITION_CHANGED,
            {"text": self._text, "attachments": tuple(self._attachments)},
            source="composition",
        )


@dataclass
class SessionContext:
    """Explicit handle on every piece of shared, memory-resident session state.

    All containers publish on the same bus so a UI can subscribe once.
    """

    bus: EventBus = field(default_factory=EventBus)
    transcript: TranscriptStore = field(init=False)
    status: StatusRegister = field(init=False)
    composition: CompositionBuffer = field(init=False)
    previews: PreviewRegistry = field(default_factory=PreviewRegistry)

    def __post_init__(self) -> None:
        self.transcript = TranscriptStore(self.bus)
        self.status = StatusRegister(self.bus)
        self.composition = CompositionBuffer(self.bus)
