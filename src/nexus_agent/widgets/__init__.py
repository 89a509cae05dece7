"""Textual widgets for the terminal front-end."""

from .activity_bar import ActivityBar
from .message import MessageBubble, render_message_markdown

__all__ = ["ActivityBar", "MessageBubble", "render_message_markdown"]
