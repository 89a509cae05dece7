"""Conversation orchestration: gate, snapshot, dispatch and fold results back."""

from __future__ import annotations

from collections.abc import Sequence
import logging

from .composition import SessionContext
from .gateway import GenerationGateway
from .ingest import AttachmentIngestor
from .models import (
    ActiveMode,
    AgentStatus,
    Attachment,
    AttachmentType,
    ChatOptions,
    GenerationMode,
    GenerationParams,
    Message,
    MessageRole,
    SelectedFile,
)
from .policy import infer_grounding_flags

LOGGER = logging.getLogger(__name__)

DEFAULT_THINKING_BUDGET = 500

IMAGE_CAPTION = "Here's the image you requested based on: {prompt}"
VIDEO_CAPTION = "I've generated this video for you based on: {prompt}"
ERROR_TEMPLATE = "Encountered an error: {error}"

GENERATED_IMAGE_MIME = "image/png"
GENERATED_VIDEO_MIME = "video/mp4"


class ConversationController:
    """Single writer of the transcript and status register.

    Responsibilities:
    - Reject empty or overlapping submissions
    - Snapshot and clear the composition buffer before any await
    - Route the request to chat, image or video generation
    - Convert generation failures into assistant messages
    - Always leave the status register at ``idle``
    """

    def __init__(
        self,
        context: SessionContext,
        gateway: GenerationGateway,
        ingestor: AttachmentIngestor | None = None,
        *,
        mode: ActiveMode | str = ActiveMode.CHAT,
        thinking_budget: int = DEFAULT_THINKING_BUDGET,
        default_thinking_budget: int = DEFAULT_THINKING_BUDGET,
    ) -> None:
        self.context = context
        self.gateway = gateway
        self.ingestor = ingestor or AttachmentIngestor(context.previews)
        self._mode = ActiveMode(mode)
        self._thinking_budget = self._validate_budget(thinking_budget)
        self._default_thinking_budget = (
            self._validate_budget(default_thinking_budget) or DEFAULT_THINKING_BUDGET
        )

    @property
    def status(self) -> AgentStatus:
        return self.context.status.get()

    @property
    def messages(self) -> tuple[Message, ...]:
        return self.context.transcript.messages

    @property
    def mode(self) -> ActiveMode:
        return self._mode

    @property
    def thinking_budget(self) -> int:
        return self._thinking_budget

    @property
    def reasoning_enabled(self) -> bool:
        return self._thinking_budget > 0

    def set_mode(self, mode: ActiveMode | str) -> ActiveMode:
        self._mode = ActiveMode(mode)
        LOGGER.info(
            "controller.mode.changed",
            extra={"event": "controller.mode.changed", "mode": self._mode.value},
        )
        return self._mode

    def set_thinking_budget(self, value: int) -> int:
        """Set the reasoning token budget; ``0`` disables reasoning."""
        self._thinking_budget = self._validate_budget(value)
        return self._thinking_budget

    def toggle_reasoning(self) -> int:
        """Flip between reasoning disabled and the default budget."""
        if self._thinking_budget == 0:
            return self.set_thinking_budget(self._default_thinking_budget)
        return self.set_thinking_budget(0)

    def set_input(self, text: str) -> None:
        """Mirror the UI's input field into the composition buffer."""
        self.context.composition.set_text(text)

    async def on_file_selected(self, file: SelectedFile | None) -> Attachment | None:
        """Ingest a selected file and queue it; no file means nothing to do.

        Raises:
            AttachmentDecodeError: when the file cannot be read.
        """
        if file is None:
            return None
        attachment = await self.ingestor.ingest(file)
        self.context.composition.add_attachment(attachment)
        return attachment

    def remove_composed_attachment(self, index: int) -> Attachment | None:
        """Drop a pending attachment and release its preview handle."""
        removed = self.context.composition.remove_attachment(index)
        if removed is not None:
            self.ingestor.release(removed)
        return removed

    async def submit(
        self,
        text: str | None = None,
        attachments: Sequence[Attachment] | None = None,
    ) -> Message | None:
        """Send the composed input and append the assistant reply.

        ``None`` arguments fall back to the composition buffer. Returns the
        appended assistant message, or ``None`` when the submission was
        rejected (nothing to send, or the agent is busy).
        """
        status = self.context.status
        composition = self.context.composition

        prompt = composition.text if text is None else text
        pending = composition.attachments if attachments is None else tuple(attachments)
        if not prompt.strip() and not pending:
            return None
        if not status.is_idle:
            LOGGER.debug(
                "controller.submit.rejected",
                extra={"event": "controller.submit.rejected", "status": status.get().value},
            )
            return None

        # Nothing below may await until the user message is in the transcript.
        _, buffered = composition.snapshot_and_clear()
        for attachment in buffered:
            if attachment not in pending:
                self.ingestor.release(attachment)
        self.context.transcript.append(
            Message.create(MessageRole.USER, prompt, attachments=pending)
        )
        status.set(AgentStatus.THINKING)

        mode = self._mode
        try:
            reply = await self._dispatch(mode, prompt, pending)
        except Exception as exc:  # noqa: BLE001 - every gateway failure becomes a message.
            LOGGER.error(
                "controller.generation.failed",
                extra={
                    "event": "controller.generation.failed",
                    "mode": mode.value,
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )
            reply = self.context.transcript.append(
                Message.create(MessageRole.ASSISTANT, ERROR_TEMPLATE.format(error=exc))
            )
            status.set(AgentStatus.ERROR)
        finally:
            status.set(AgentStatus.IDLE)
        return reply

    async def _dispatch(
        self, mode: ActiveMode, prompt: str, attachments: tuple[Attachment, ...]
    ) -> Message:
        status = self.context.status
        transcript = self.context.transcript

        if mode is ActiveMode.IMAGE:
            self._log_dispatch(GenerationParams(prompt, GenerationMode.IMAGE), attachments)
            status.set(AgentStatus.GENERATING)
            result = await self.gateway.generate_image(prompt)
            generated = Attachment(
                type=AttachmentType.IMAGE, url=result.url, mime_type=GENERATED_IMAGE_MIME
            )
            return transcript.append(
                Message.create(
                    MessageRole.ASSISTANT,
                    IMAGE_CAPTION.format(prompt=prompt),
                    attachments=(generated,),
                )
            )

        if mode is ActiveMode.VIDEO:
            self._log_dispatch(GenerationParams(prompt, GenerationMode.VIDEO), attachments)
            status.set(AgentStatus.GENERATING)
            result = await self.gateway.generate_video(prompt)
            generated = Attachment(
                type=AttachmentType.VIDEO, url=result.url, mime_type=GENERATED_VIDEO_MIME
            )
            return transcript.append(
                Message.create(
                    MessageRole.ASSISTANT,
                    VIDEO_CAPTION.format(prompt=prompt),
                    attachments=(generated,),
                )
            )

        flags = infer_grounding_flags(prompt)
        options = ChatOptions(
            use_search=flags.use_search,
            use_maps=flags.use_maps,
            thinking_budget=self._thinking_budget,
        )
        self._log_dispatch(
            GenerationParams(
                prompt,
                self._chat_generation_mode(options),
                attachments[0] if attachments else None,
            ),
            attachments,
        )
        result = await self.gateway.chat(prompt, attachments, options)
        return transcript.append(
            Message.create(
                MessageRole.ASSISTANT,
                result.text,
                grounding_sources=result.sources,
            )
        )

    def close(self) -> int:
        """Release every preview handle still held by this session."""
        released = self.context.previews.revoke_all()
        LOGGER.info(
            "controller.closed",
            extra={"event": "controller.closed", "released_previews": released},
        )
        return released

    @staticmethod
    def _chat_generation_mode(options: ChatOptions) -> GenerationMode:
        if options.use_search:
            return GenerationMode.SEARCH
        if options.use_maps:
            return GenerationMode.MAPS
        return GenerationMode.TEXT

    @staticmethod
    def _log_dispatch(
        params: GenerationParams, attachments: tuple[Attachment, ...]
    ) -> None:
        LOGGER.info(
            "controller.dispatch",
            extra={
                "event": "controller.dispatch",
                "mode": params.mode.value,
                "prompt_chars": len(params.prompt),
                "attachment_count": len(attachments),
            },
        )

    @staticmethod
    def _validate_budget(value: int) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError("Thinking budget must be an integer.")
        if value < 0:
            raise ValueError("Thinking budget must not be negative.")
        return value
