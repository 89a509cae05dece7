"""Generation gateway contract and its Ollama/HTTP-backed implementation."""

from __future__ import annotations

import asyncio
import base64
import logging
from collections.abc import Sequence
from typing import Any, Protocol

import httpx
from ollama import AsyncClient

from .exceptions import (
    GatewayConnectionError,
    GenerationError,
    MediaEndpointNotConfiguredError,
    ModelNotFoundError,
)
from .models import (
    Attachment,
    AttachmentType,
    ChatOptions,
    ChatResult,
    GroundingSource,
    MediaResult,
)

LOGGER = logging.getLogger(__name__)

MAPS_INSTRUCTION = (
    "The user is asking about places or their surroundings. Prefer concrete "
    "place names and addresses, and say so when you cannot know their location."
)
SEARCH_CONTEXT_HEADER = "Web search results relevant to the request:"

_INLINE_TYPES = frozenset({AttachmentType.CODE, AttachmentType.TEXT, AttachmentType.NOTE})


class GenerationGateway(Protocol):
    """Remote service providing chat, image and video generation."""

    async def chat(
        self,
        prompt: str,
        attachments: Sequence[Attachment],
        options: ChatOptions,
    ) -> ChatResult: ...

    async def generate_image(self, prompt: str) -> MediaResult: ...

    async def generate_video(self, prompt: str) -> MediaResult: ...


class OllamaGateway:
    """Chat through an Ollama host; images and video through HTTP endpoints."""

    def __init__(
        self,
        host: str,
        model: str,
        system_prompt: str = "",
        *,
        timeout: int = 120,
        retries: int = 2,
        retry_backoff_seconds: float = 0.5,
        web_search_max_results: int = 5,
        max_inline_chars: int = 20_000,
        image_endpoint: str = "",
        video_endpoint: str = "",
        media_api_key: str = "",
        media_timeout: int = 300,
        client: Any | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.host = host
        self.model = model
        self.system_prompt = system_prompt
        self.retries = retries
        self.retry_backoff_seconds = retry_backoff_seconds
        self.web_search_max_results = web_search_max_results
        self.max_inline_chars = max_inline_chars
        self.image_endpoint = image_endpoint.strip()
        self.video_endpoint = video_endpoint.strip()
        self._client = client if client is not None else AsyncClient(host=host, timeout=timeout)

        headers = {"accept": "application/json"}
        if media_api_key:
            headers["authorization"] = f"Bearer {media_api_key}"
        self._http = http_client or httpx.AsyncClient(
            timeout=media_timeout, headers=headers
        )

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> OllamaGateway:
        """Build a gateway from a validated config dict."""
        gateway_cfg = config["gateway"]
        media_cfg = config["media"]
        return cls(
            host=gateway_cfg["host"],
            model=gateway_cfg["model"],
            system_prompt=gateway_cfg["system_prompt"],
            timeout=gateway_cfg["timeout"],
            retries=gateway_cfg["retries"],
            retry_backoff_seconds=gateway_cfg["retry_backoff_seconds"],
            web_search_max_results=gateway_cfg["web_search_max_results"],
            image_endpoint=media_cfg["image_endpoint"],
            video_endpoint=media_cfg["video_endpoint"],
            media_api_key=media_cfg["api_key"],
            media_timeout=media_cfg["timeout"],
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def chat(
        self,
        prompt: str,
        attachments: Sequence[Attachment],
        options: ChatOptions,
    ) -> ChatResult:
        """Send one non-streaming chat request and return its text and sources."""
        sources: tuple[GroundingSource, ...] = ()
        search_context = ""
        if options.use_search and prompt.strip():
            sources, search_context = await self._web_search(prompt)

        messages = self._build_messages(prompt, attachments, options, search_context)
        think = options.thinking_budget > 0

        for attempt in range(self.retries + 1):
            try:
                response = await self._client.chat(
                    model=self.model, messages=messages, stream=False, think=think
                )
                break
            except Exception as exc:  # noqa: BLE001 - external API can fail in many ways.
                mapped_exc = self._map_exception(exc)
                if isinstance(mapped_exc, ModelNotFoundError) or attempt >= self.retries:
                    raise mapped_exc from exc
                LOGGER.warning(
                    "gateway.chat.retry",
                    extra={
                        "event": "gateway.chat.retry",
                        "attempt": attempt + 1,
                        "error_type": mapped_exc.__class__.__name__,
                    },
                )
                await asyncio.sleep(self.retry_backoff_seconds * (attempt + 1))

        text = self._extract_content(response)
        LOGGER.info(
            "gateway.chat.complete",
            extra={
                "event": "gateway.chat.complete",
                "model": self.model,
                "think": think,
                "source_count": len(sources),
            },
        )
        return ChatResult(text=text, sources=sources)

    async def generate_image(self, prompt: str) -> MediaResult:
        return await self._generate_media("image", self.image_endpoint, prompt)

    async def generate_video(self, prompt: str) -> MediaResult:
        return await self._generate_media("video", self.video_endpoint, prompt)

    def _build_messages(
        self,
        prompt: str,
        attachments: Sequence[Attachment],
        options: ChatOptions,
        search_context: str,
    ) -> list[dict[str, Any]]:
        system_parts = [self.system_prompt] if self.system_prompt else []
        if options.use_maps:
            system_parts.append(MAPS_INSTRUCTION)
        if search_context:
            system_parts.append(f"{SEARCH_CONTEXT_HEADER}\n{search_context}")

        messages: list[dict[str, Any]] = []
        if system_parts:
            messages.append({"role": "system", "content": "\n\n".join(system_parts)})

        content_parts = [prompt] if prompt else []
        images: list[str] = []
        for attachment in attachments:
            if attachment.data is None:
                continue
            if attachment.type is AttachmentType.IMAGE:
                images.append(attachment.data)
            elif attachment.type in _INLINE_TYPES:
                content_parts.append(self._inline_text(attachment))
            else:
                label = attachment.name or attachment.type.value
                content_parts.append(
                    f"[Attached {attachment.type.value}: {label} ({attachment.mime_type})]"
                )

        user_message: dict[str, Any] = {
            "role": "user",
            "content": "\n\n".join(content_parts),
        }
        if images:
            user_message["images"] = images
        messages.append(user_message)
        return messages

    def _inline_text(self, attachment: Attachment) -> str:
        try:
            decoded = base64.b64decode(attachment.data or "").decode(
                "utf-8", errors="replace"
            )
        except ValueError:
            decoded = ""
        if len(decoded) > self.max_inline_chars:
            decoded = decoded[: self.max_inline_chars] + "\n[truncated]"
        label = attachment.name or attachment.mime_type
        return f"File {label}:\n```\n{decoded}\n```"

    async def _web_search(
        self, query: str
    ) -> tuple[tuple[GroundingSource, ...], str]:
        """Return grounding sources and a context block; failures yield nothing."""
        try:
            response = await self._client.web_search(
                query=query, max_results=self.web_search_max_results
            )
        except Exception as exc:  # noqa: BLE001 - search is best-effort grounding.
            LOGGER.warning(
                "gateway.search.failed",
                extra={
                    "event": "gateway.search.failed",
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )
            return (), ""

        results = getattr(response, "results", None)
        if results is None and isinstance(response, dict):
            results = response.get("results")

        sources: list[GroundingSource] = []
        context_lines: list[str] = []
        for item in results or []:
            title = self._field(item, "title")
            uri = self._field(item, "url")
            if not title and not uri:
                continue
            sources.append(GroundingSource(title=title, uri=uri))
            snippet = (self._field(item, "content") or "").strip()
            context_lines.append(f"- {title or uri} ({uri or 'no url'}): {snippet[:500]}")
        return tuple(sources), "\n".join(context_lines)

    async def _generate_media(self, kind: str, endpoint: str, prompt: str) -> MediaResult:
        if not endpoint:
            raise MediaEndpointNotConfiguredError(
                f"{kind.capitalize()} generation endpoint is not configured."
            )
        try:
            response = await self._http.post(endpoint, json={"prompt": prompt})
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise GenerationError(
                f"{kind.capitalize()} generation failed with HTTP "
                f"{exc.response.status_code}."
            ) from exc
        except httpx.TransportError as exc:
            raise GatewayConnectionError(
                f"Unable to reach {kind} generation endpoint {endpoint}."
            ) from exc
        except ValueError as exc:
            raise GenerationError(
                f"{kind.capitalize()} generation returned invalid JSON."
            ) from exc

        url = payload.get("url") if isinstance(payload, dict) else None
        if not isinstance(url, str) or not url.strip():
            raise GenerationError(f"{kind.capitalize()} generation returned no url.")
        LOGGER.info(
            "gateway.media.complete",
            extra={"event": "gateway.media.complete", "kind": kind},
        )
        return MediaResult(url=url.strip())

    @staticmethod
    def _field(item: Any, name: str) -> str | None:
        value = item.get(name) if isinstance(item, dict) else getattr(item, name, None)
        return value if isinstance(value, str) and value else None

    @staticmethod
    def _extract_content(response: Any) -> str:
        """Pull ``message.content`` from an SDK object or a plain dict."""
        message = getattr(response, "message", None)
        if message is not None:
            content = getattr(message, "content", None)
            if isinstance(content, str):
                return content
        if isinstance(response, dict):
            message_dict = response.get("message") or {}
            content = message_dict.get("content") if isinstance(message_dict, dict) else None
            if isinstance(content, str):
                return content
        return ""

    def _map_exception(self, exc: Exception) -> GenerationError:
        if isinstance(exc, GenerationError):
            return exc

        lower_message = str(exc).lower()

        if isinstance(
            exc,
            (
                httpx.ConnectError,
                httpx.ConnectTimeout,
                httpx.ReadTimeout,
                httpx.NetworkError,
                ConnectionError,
            ),
        ):
            return GatewayConnectionError(
                f"Unable to connect to Ollama host {self.host}."
            )

        if "model" in lower_message and "not found" in lower_message:
            return ModelNotFoundError(
                f"Model {self.model!r} was not found on {self.host}."
            )

        return GenerationError(f"Chat request to {self.host} failed: {exc}")
