"""Data contracts shared by the controller, ingestor, transcript and gateway."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import mimetypes
from pathlib import Path
import time
import uuid


class AgentStatus(str, Enum):
    """What the agent is currently doing, process-wide."""

    IDLE = "idle"
    THINKING = "thinking"
    GENERATING = "generating"
    RECORDING = "recording"
    LIVE = "live"
    ERROR = "error"


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class AttachmentType(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    TEXT = "text"
    PDF = "pdf"
    DOCUMENT = "document"
    SPREADSHEET = "spreadsheet"
    PRESENTATION = "presentation"
    CODE = "code"
    NOTE = "note"


class ActiveMode(str, Enum):
    """Mode selected in the UI; ``live`` dispatches like ``chat``."""

    CHAT = "chat"
    IMAGE = "image"
    VIDEO = "video"
    LIVE = "live"


class GenerationMode(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    SEARCH = "search"
    MAPS = "maps"
    PDF = "pdf"
    DOCUMENT = "document"
    SPREADSHEET = "spreadsheet"
    PRESENTATION = "presentation"
    CODE = "code"
    NOTE = "note"


@dataclass(frozen=True)
class Attachment:
    """A file attached to a message.

    ``data`` holds the base64 payload and is only set when the bytes are
    available locally. Generated media is referenced by ``url`` alone.
    """

    type: AttachmentType
    url: str
    mime_type: str
    data: str | None = None
    name: str = ""


@dataclass(frozen=True)
class GroundingSource:
    """A citation returned alongside a chat response."""

    title: str | None = None
    uri: str | None = None


def _now_ms() -> int:
    return int(time.time() * 1000)


def _new_message_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Message:
    """A single transcript entry. Immutable once created."""

    role: MessageRole
    content: str
    attachments: tuple[Attachment, ...] = ()
    grounding_sources: tuple[GroundingSource, ...] = ()
    is_thinking: bool = False
    id: str = field(default_factory=_new_message_id)
    timestamp: int = field(default_factory=_now_ms)

    @classmethod
    def create(
        cls,
        role: MessageRole,
        content: str,
        *,
        attachments: tuple[Attachment, ...] | list[Attachment] = (),
        grounding_sources: tuple[GroundingSource, ...] | list[GroundingSource] = (),
        is_thinking: bool = False,
    ) -> Message:
        """Build a message, freezing any list arguments into tuples."""
        return cls(
            role=role,
            content=content,
            attachments=tuple(attachments),
            grounding_sources=tuple(grounding_sources),
            is_thinking=is_thinking,
        )


@dataclass(frozen=True)
class GenerationParams:
    """Description of a single dispatch to the generation gateway."""

    prompt: str
    mode: GenerationMode
    attachment: Attachment | None = None


@dataclass(frozen=True)
class ChatOptions:
    """Per-request options passed to the gateway's chat operation."""

    use_search: bool = False
    use_maps: bool = False
    thinking_budget: int = 0


@dataclass(frozen=True)
class ChatResult:
    text: str
    sources: tuple[GroundingSource, ...] = ()


@dataclass(frozen=True)
class MediaResult:
    url: str


@dataclass(frozen=True)
class SelectedFile:
    """Raw file picked by the user, before ingestion.

    Either ``data`` (bytes already in memory) or ``path`` (bytes read lazily
    during ingestion) must be present.
    """

    name: str
    mime_type: str = ""
    data: bytes | None = None
    path: Path | None = None

    @classmethod
    def from_path(cls, path: str | Path) -> SelectedFile:
        resolved = Path(path).expanduser()
        guessed, _ = mimetypes.guess_type(resolved.name)
        return cls(name=resolved.name, mime_type=guessed or "", path=resolved)
