"""Tests for MIME classification and attachment ingestion."""

from __future__ import annotations

import base64
from pathlib import Path
import tempfile
import unittest

from nexus_agent.exceptions import AttachmentDecodeError
from nexus_agent.ingest import (
    AttachmentIngestor,
    classify_mime_type,
    encode_data_url,
    split_data_url,
)
from nexus_agent.models import AttachmentType, SelectedFile
from nexus_agent.previews import PREVIEW_SCHEME, PreviewRegistry


class ClassificationTests(unittest.TestCase):
    """First-match-wins MIME classification."""

    def test_known_mime_types(self) -> None:
        cases = {
            "video/mp4": AttachmentType.VIDEO,
            "audio/mpeg": AttachmentType.AUDIO,
            "application/pdf": AttachmentType.PDF,
            "text/csv": AttachmentType.SPREADSHEET,
            "application/vnd.ms-excel": AttachmentType.SPREADSHEET,
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": (
                AttachmentType.SPREADSHEET
            ),
            "application/vnd.ms-powerpoint": AttachmentType.PRESENTATION,
            "application/vnd.openxmlformats-officedocument.presentationml.presentation": (
                AttachmentType.PRESENTATION
            ),
            "text/plain": AttachmentType.CODE,
            "application/json": AttachmentType.CODE,
            "text/javascript": AttachmentType.CODE,
            "application/typescript": AttachmentType.CODE,
            "application/octet-stream": AttachmentType.DOCUMENT,
            "application/zip": AttachmentType.DOCUMENT,
            "image/jpeg": AttachmentType.IMAGE,
            "image/png": AttachmentType.IMAGE,
        }
        for mime_type, expected in cases.items():
            with self.subTest(mime_type=mime_type):
                self.assertEqual(classify_mime_type(mime_type), expected)

    def test_video_prefix_wins_over_later_rules(self) -> None:
        # Contains "text" but the video rule is checked first.
        self.assertEqual(classify_mime_type("video/text-overlay"), AttachmentType.VIDEO)

    def test_classification_is_deterministic(self) -> None:
        self.assertEqual(
            classify_mime_type("application/vnd.ms-powerpoint"),
            classify_mime_type("application/vnd.ms-powerpoint"),
        )


class DataUrlTests(unittest.TestCase):
    """Header parsing of the self-describing encoded form."""

    def test_split_extracts_mime_and_payload(self) -> None:
        mime_type, payload = split_data_url(encode_data_url(b"hello", "text/plain"))
        self.assertEqual(mime_type, "text/plain")
        self.assertEqual(base64.b64decode(payload), b"hello")

    def test_empty_mime_defaults_to_png(self) -> None:
        mime_type, _ = split_data_url(encode_data_url(b"x", ""))
        self.assertEqual(mime_type, "image/png")

    def test_malformed_header_defaults_to_png(self) -> None:
        self.assertEqual(split_data_url("garbage")[0], "image/png")
        self.assertEqual(split_data_url("data:text/plain,abc")[0], "image/png")


class IngestorTests(unittest.IsolatedAsyncioTestCase):
    """Two-phase ingest: await the read, then classify and register a preview."""

    def setUp(self) -> None:
        self.previews = PreviewRegistry()
        self.ingestor = AttachmentIngestor(self.previews, max_file_bytes=1024)

    async def test_in_memory_file_becomes_attachment(self) -> None:
        attachment = await self.ingestor.ingest(
            SelectedFile(name="clip.mp4", mime_type="video/mp4", data=b"\x00\x01")
        )
        self.assertEqual(attachment.type, AttachmentType.VIDEO)
        self.assertEqual(attachment.mime_type, "video/mp4")
        self.assertEqual(attachment.name, "clip.mp4")
        self.assertEqual(base64.b64decode(attachment.data or ""), b"\x00\x01")
        self.assertTrue(attachment.url.startswith(PREVIEW_SCHEME))
        self.assertEqual(self.previews.resolve(attachment.url), b"\x00\x01")

    async def test_missing_mime_is_treated_as_png_image(self) -> None:
        attachment = await self.ingestor.ingest(
            SelectedFile(name="mystery", mime_type="", data=b"abc")
        )
        self.assertEqual(attachment.type, AttachmentType.IMAGE)
        self.assertEqual(attachment.mime_type, "image/png")

    async def test_file_path_is_read_and_mime_guessed(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "report.pdf"
            path.write_bytes(b"%PDF-1.7")
            attachment = await self.ingestor.ingest(SelectedFile.from_path(path))
        self.assertEqual(attachment.type, AttachmentType.PDF)
        self.assertEqual(attachment.name, "report.pdf")
        self.assertEqual(base64.b64decode(attachment.data or ""), b"%PDF-1.7")

    async def test_missing_path_raises_decode_error(self) -> None:
        with self.assertRaises(AttachmentDecodeError):
            await self.ingestor.ingest(SelectedFile.from_path("/nonexistent/file.txt"))
        self.assertEqual(len(self.previews), 0)

    async def test_oversized_file_raises_decode_error(self) -> None:
        with self.assertRaises(AttachmentDecodeError):
            await self.ingestor.ingest(
                SelectedFile(name="big.bin", mime_type="application/octet-stream", data=b"x" * 2048)
            )
        self.assertEqual(len(self.previews), 0)

    async def test_release_revokes_preview(self) -> None:
        attachment = await self.ingestor.ingest(
            SelectedFile(name="a.txt", mime_type="text/plain", data=b"hi")
        )
        self.assertTrue(self.ingestor.release(attachment))
        self.assertIsNone(self.previews.resolve(attachment.url))
        self.assertFalse(self.ingestor.release(attachment))


if __name__ == "__main__":
    unittest.main()
