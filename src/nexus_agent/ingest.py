"""Attachment ingestion: decode a selected file into a normalized Attachment."""

from __future__ import annotations

import asyncio
import base64
import logging
import re

from .exceptions import AttachmentDecodeError
from .models import Attachment, AttachmentType, SelectedFile
from .previews import PreviewRegistry

LOGGER = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "image/png"
DEFAULT_MAX_FILE_BYTES = 20 * 1024 * 1024  # 20 MB

_HEADER_MIME_RE = re.compile(r":(.*?);")

_CSV_MIME_TYPES = frozenset(
    {"text/csv", "application/csv", "text/comma-separated-values"}
)
_CODE_MARKERS = ("text", "json", "javascript", "typescript")
_SPREADSHEET_MARKERS = ("spreadsheet", "excel", "csv")
_PRESENTATION_MARKERS = ("presentation", "powerpoint")


def classify_mime_type(mime_type: str) -> AttachmentType:
    """Map a MIME type to an attachment type; the first matching rule wins.

    CSV types are checked ahead of the generic ``text`` rule so ``text/csv``
    lands on spreadsheet rather than code.
    """
    if mime_type.startswith("video"):
        return AttachmentType.VIDEO
    if mime_type.startswith("audio"):
        return AttachmentType.AUDIO
    if mime_type == "application/pdf":
        return AttachmentType.PDF
    if mime_type in _CSV_MIME_TYPES:
        return AttachmentType.SPREADSHEET
    if any(marker in mime_type for marker in _CODE_MARKERS):
        return AttachmentType.CODE
    if any(marker in mime_type for marker in _SPREADSHEET_MARKERS):
        return AttachmentType.SPREADSHEET
    if any(marker in mime_type for marker in _PRESENTATION_MARKERS):
        return AttachmentType.PRESENTATION
    if not mime_type.startswith("image"):
        return AttachmentType.DOCUMENT
    return AttachmentType.IMAGE


def encode_data_url(data: bytes, mime_type: str) -> str:
    """Encode bytes as a self-describing ``data:`` URL."""
    payload = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{payload}"


def split_data_url(data_url: str) -> tuple[str, str]:
    """Split a ``data:`` URL into (mime type, base64 payload).

    A missing or unparseable header yields ``image/png``.
    """
    header, _, payload = data_url.partition(",")
    match = _HEADER_MIME_RE.search(header)
    mime_type = (match.group(1).strip() if match else "") or DEFAULT_MIME_TYPE
    return mime_type, payload


class AttachmentIngestor:
    """Turns user-selected files into attachments with local preview handles.

    Ingestion is an explicit two-phase operation: awaiting :meth:`ingest`
    suspends while the bytes are read, then either resolves with an
    Attachment or raises :class:`AttachmentDecodeError`.
    """

    def __init__(
        self,
        previews: PreviewRegistry,
        *,
        max_file_bytes: int = DEFAULT_MAX_FILE_BYTES,
    ) -> None:
        self.previews = previews
        self.max_file_bytes = max_file_bytes

    async def ingest(self, file: SelectedFile) -> Attachment:
        """Read, classify and register a selected file."""
        raw = await self._read_bytes(file)
        if len(raw) > self.max_file_bytes:
            max_mb = self.max_file_bytes / (1024 * 1024)
            raise AttachmentDecodeError(
                f"File too large: {file.name} (max {max_mb:.1f}MB)"
            )

        mime_type, payload = split_data_url(encode_data_url(raw, file.mime_type))
        attachment_type = classify_mime_type(mime_type)
        url = self.previews.create(raw)
        LOGGER.info(
            "attachment.ingested",
            extra={
                "event": "attachment.ingested",
                "file_name": file.name,
                "mime_type": mime_type,
                "attachment_type": attachment_type.value,
                "size_bytes": len(raw),
            },
        )
        return Attachment(
            type=attachment_type,
            url=url,
            mime_type=mime_type,
            data=payload,
            name=file.name,
        )

    def release(self, attachment: Attachment) -> bool:
        """Revoke the preview handle of a discarded attachment."""
        return self.previews.revoke(attachment.url)

    @staticmethod
    async def _read_bytes(file: SelectedFile) -> bytes:
        if file.data is not None:
            return file.data
        if file.path is None:
            raise AttachmentDecodeError(f"Nothing to read for {file.name!r}")
        try:
            return await asyncio.to_thread(file.path.read_bytes)
        except OSError as exc:
            raise AttachmentDecodeError(
                f"Unable to read {file.path}: {exc}"
            ) from exc
