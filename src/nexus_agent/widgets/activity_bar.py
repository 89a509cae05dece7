"""Activity bar showing agent status, mode, pending attachments and reasoning."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.timer import Timer
from textual.widgets import Label, Static

from ..models import ActiveMode, AgentStatus

_SPINNER = ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏")
_SPINNER_INTERVAL = 0.1

_STATUS_TEXT: dict[AgentStatus, str] = {
    AgentStatus.IDLE: "Ready",
    AgentStatus.THINKING: "Analyzing multimodal inputs and computing response...",
    AgentStatus.GENERATING: "Generating media...",
    AgentStatus.RECORDING: "Recording...",
    AgentStatus.LIVE: "Live session active",
    AgentStatus.ERROR: "Error",
}

BUSY_STATUSES = frozenset({AgentStatus.THINKING, AgentStatus.GENERATING})


def describe_session(mode: ActiveMode, pending_attachments: int, thinking_budget: int) -> str:
    """Summarize the composer state shown on the right of the bar."""
    reasoning = f"{thinking_budget} tokens" if thinking_budget > 0 else "off"
    return f"{mode.value} | 📎 {pending_attachments} | reasoning: {reasoning}"


class ActivityBar(Static):
    """One-line status strip.

    The left segment shows the agent status and spins while a request is in
    flight; the right segment summarizes the composer.
    """

    DEFAULT_CSS = """
    ActivityBar {
        layout: horizontal;
        height: 1;
        padding: 0 1;
    }
    ActivityBar #activity_status {
        width: 1fr;
    }
    ActivityBar.busy #activity_status {
        color: $accent;
    }
    ActivityBar #activity_session {
        color: $text-muted;
    }
    """

    _status = AgentStatus.IDLE
    _session = ""
    _tick = 0
    _spinner_timer: Timer | None = None

    @property
    def status(self) -> AgentStatus:
        return self._status

    @property
    def session(self) -> str:
        return self._session

    def compose(self) -> ComposeResult:
        yield Label(id="activity_status")
        yield Label(self._session, id="activity_session")

    def on_mount(self) -> None:
        self._render_status()

    def show_status(self, status: AgentStatus) -> None:
        self._status = status
        busy = status in BUSY_STATUSES
        self.set_class(busy, "busy")
        if not self.is_mounted:
            return
        if busy and self._spinner_timer is None:
            self._tick = 0
            self._spinner_timer = self.set_interval(_SPINNER_INTERVAL, self._spin)
        elif not busy and self._spinner_timer is not None:
            self._spinner_timer.stop()
            self._spinner_timer = None
        self._render_status()

    def show_session(
        self, mode: ActiveMode, pending_attachments: int, thinking_budget: int
    ) -> None:
        self._session = describe_session(mode, pending_attachments, thinking_budget)
        if self.is_mounted:
            self.query_one("#activity_session", Label).update(self._session)

    def _spin(self) -> None:
        self._tick += 1
        self._render_status()

    def _render_status(self) -> None:
        text = _STATUS_TEXT[self._status]
        if self._status in BUSY_STATUSES:
            text = f"{_SPINNER[self._tick % len(_SPINNER)]} {text}"
        self.query_one("#activity_status", Label).update(text)
