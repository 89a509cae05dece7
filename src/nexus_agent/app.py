"""Textual front-end that renders the session and forwards input to the controller."""

from __future__ import annotations

import logging
from typing import Any

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import VerticalScroll
from textual.widgets import Footer, Header, Input

from .commands import COMMAND_HELP, CommandError, SlashCommand, parse_slash_command
from .composition import SessionContext
from .config import load_config
from .controller import ConversationController
from .events import COMPOSITION_CHANGED, STATUS_CHANGED, TRANSCRIPT_APPENDED, Event
from .exceptions import AttachmentDecodeError
from .gateway import GenerationGateway, OllamaGateway
from .ingest import AttachmentIngestor
from .logging_utils import configure_logging
from .models import ActiveMode, AgentStatus, SelectedFile
from .widgets import ActivityBar, MessageBubble

LOGGER = logging.getLogger(__name__)

_PLACEHOLDERS = {
    ActiveMode.IMAGE: "Describe the high-res visual concept...",
    ActiveMode.VIDEO: "Describe the motion sequence...",
}
_DEFAULT_PLACEHOLDER = "Inquire, design, or solve... (/help for commands)"


class NexusAgentApp(App[None]):
    """Terminal client for the multi-modal agent."""

    CSS = """
    #transcript {
        height: 1fr;
        padding: 0 1;
    }
    #message_input {
        dock: bottom;
    }
    """

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit"),
        Binding("ctrl+r", "toggle_reasoning", "Reasoning"),
    ]

    def __init__(
        self,
        config: dict[str, dict[str, Any]] | None = None,
        gateway: GenerationGateway | None = None,
        mode: ActiveMode | str | None = None,
    ) -> None:
        super().__init__()
        self.config = config or load_config()
        configure_logging(self.config["logging"])

        self.context = SessionContext()
        self.gateway = gateway or OllamaGateway.from_config(self.config)
        agent_cfg = self.config["agent"]
        self.controller = ConversationController(
            self.context,
            self.gateway,
            AttachmentIngestor(
                self.context.previews,
                max_file_bytes=self.config["attachments"]["max_file_bytes"],
            ),
            mode=mode or agent_cfg["default_mode"],
            thinking_budget=agent_cfg["thinking_budget"],
            default_thinking_budget=agent_cfg["thinking_budget"] or 500,
        )
        self.title = self.config["app"]["title"]
        self._unsubscribers: list[Any] = []

    def compose(self) -> ComposeResult:
        yield Header()
        yield VerticalScroll(id="transcript")
        yield ActivityBar(id="activity_bar")
        yield Input(placeholder=_DEFAULT_PLACEHOLDER, id="message_input")
        yield Footer()

    def on_mount(self) -> None:
        bus = self.context.bus
        self._unsubscribers = [
            bus.subscribe(TRANSCRIPT_APPENDED, self._on_message_appended),
            bus.subscribe(STATUS_CHANGED, self._on_status_changed),
            bus.subscribe(COMPOSITION_CHANGED, self._on_composition_changed),
        ]
        for message in self.controller.messages:
            self._mount_message(message)
        self._refresh_details()
        self.query_one("#message_input", Input).focus()

    async def on_unmount(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self.controller.close()
        aclose = getattr(self.gateway, "aclose", None)
        if aclose is not None:
            await aclose()

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.value != self.context.composition.text:
            self.controller.set_input(event.value)

    async def on_input_submitted(self, event: Input.Submitted) -> None:
        parsed = parse_slash_command(event.value)
        if parsed is None:
            self._submit()
            return

        event.input.value = ""
        if isinstance(parsed, CommandError):
            self.notify(parsed.message, severity="warning")
            return
        await self._run_command(parsed)

    def action_toggle_reasoning(self) -> None:
        self.controller.toggle_reasoning()
        self._refresh_details()

    def _submit(self) -> None:
        if not self.context.composition.has_any():
            return
        if self.controller.status is not AgentStatus.IDLE:
            self.notify("The agent is still working on the previous request.")
            return
        self.run_worker(self.controller.submit(), group="submit")

    async def _run_command(self, command: SlashCommand) -> None:
        if command.name == "quit":
            self.exit()
        elif command.name == "help":
            self.notify(COMMAND_HELP)
        elif command.name == "mode":
            mode = self.controller.set_mode(command.argument)
            self.query_one("#message_input", Input).placeholder = _PLACEHOLDERS.get(
                mode, _DEFAULT_PLACEHOLDER
            )
        elif command.name == "budget":
            self.controller.set_thinking_budget(int(command.argument))
        elif command.name == "reasoning":
            self.controller.toggle_reasoning()
        elif command.name == "detach":
            if self.controller.remove_composed_attachment(int(command.argument)) is None:
                self.notify("No such attachment.", severity="warning")
        elif command.name == "attach":
            try:
                attachment = await self.controller.on_file_selected(
                    SelectedFile.from_path(command.argument)
                )
            except AttachmentDecodeError as exc:
                self.notify(str(exc), severity="error")
                return
            if attachment is not None:
                self.notify(f"Attached {attachment.name} as {attachment.type.value}")
        self._refresh_details()

    def _mount_message(self, message: Any) -> None:
        transcript = self.query_one("#transcript", VerticalScroll)
        transcript.mount(MessageBubble(message))
        transcript.scroll_end(animate=False)

    def _on_message_appended(self, event: Event) -> None:
        self._mount_message(event.data["message"])

    def _on_status_changed(self, event: Event) -> None:
        self.query_one(ActivityBar).show_status(event.data["current"])

    def _on_composition_changed(self, event: Event) -> None:
        field = self.query_one("#message_input", Input)
        if field.value != event.data["text"]:
            field.value = event.data["text"]
        self._refresh_details()

    def _refresh_details(self) -> None:
        self.sub_title = f"mode: {self.controller.mode.value}"
        self.query_one(ActivityBar).show_session(
            self.controller.mode,
            len(self.context.composition.attachments),
            self.controller.thinking_budget,
        )
