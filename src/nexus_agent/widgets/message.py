"""Message bubble widget for transcript rendering."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from rich.markdown import Markdown
from textual.widgets import Static

from ..models import Message, MessageRole

_ROLE_LABELS = {
    MessageRole.USER: "You",
    MessageRole.ASSISTANT: "Nexus",
    MessageRole.SYSTEM: "System",
}


def render_message_markdown(message: Message, show_timestamp: bool = True) -> str:
    """Build the markdown shown for one transcript message."""
    header = f"**{_ROLE_LABELS[message.role]}**"
    if show_timestamp:
        stamp = datetime.fromtimestamp(message.timestamp / 1000).strftime("%H:%M:%S")
        header = f"{header}  _{stamp}_"

    lines = [header, "", message.content or "_(no text)_"]
    if message.attachments:
        lines.append("")
        for attachment in message.attachments:
            label = attachment.name or attachment.url
            lines.append(f"- 📎 {attachment.type.value}: `{label}` ({attachment.mime_type})")
    if message.grounding_sources:
        lines.extend(["", "Sources:"])
        for source in message.grounding_sources:
            title = source.title or source.uri or "untitled"
            lines.append(f"- [{title}]({source.uri})" if source.uri else f"- {title}")
    return "\n".join(lines)


class MessageBubble(Static):
    """Render a single immutable transcript message."""

    DEFAULT_CSS = """
    MessageBubble {
        height: auto;
        padding: 0 1;
        margin-bottom: 1;
    }
    MessageBubble.role-user {
        border-left: solid $accent;
    }
    MessageBubble.role-assistant {
        border-left: solid $success;
    }
    """

    def __init__(self, message: Message, show_timestamp: bool = True, **kwargs: Any) -> None:
        super().__init__(
            Markdown(render_message_markdown(message, show_timestamp)), **kwargs
        )
        self.message = message
        self.add_class(f"role-{message.role.value}")
