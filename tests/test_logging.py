"""Tests for structured logging behavior."""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path
import unittest

import structlog

from nexus_agent.logging_utils import build_formatter, configure_logging


def _record(name: str, msg: str, **extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name=name,
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class FormatterTests(unittest.TestCase):
    """Validate the rendered shape of log lines."""

    def test_structured_formatter_renders_extras_as_json(self) -> None:
        formatter = build_formatter(structured=True)
        record = _record(
            "nexus_agent.gateway",
            "gateway.chat.retry",
            event="gateway.chat.retry",
            attempt=1,
        )

        data = json.loads(formatter.format(record))

        self.assertEqual(data["event"], "gateway.chat.retry")
        self.assertEqual(data["attempt"], 1)
        self.assertEqual(data["logger"], "nexus_agent.gateway")
        self.assertEqual(data["level"], "info")
        self.assertIn("timestamp", data)

    def test_plain_formatter_is_not_structlog(self) -> None:
        formatter = build_formatter(structured=False)
        self.assertNotIsInstance(formatter, structlog.stdlib.ProcessorFormatter)
        line = formatter.format(_record("nexus_agent.app", "hello"))
        self.assertIn("INFO nexus_agent.app hello", line)


class ConfigureLoggingTests(unittest.TestCase):
    """Validate configure_logging() handler setup behavior."""

    def setUp(self) -> None:
        root = logging.getLogger()
        self._original_level = root.level
        self._original_handlers = list(root.handlers)

    def tearDown(self) -> None:
        root = logging.getLogger()
        for handler in root.handlers:
            if handler not in self._original_handlers:
                handler.close()
        root.setLevel(self._original_level)
        root.handlers.clear()
        root.handlers.extend(self._original_handlers)

    def _stream_handlers(self) -> list[logging.Handler]:
        return [
            h
            for h in logging.getLogger().handlers
            if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        ]

    def test_configure_logging_sets_root_level(self) -> None:
        configure_logging({"level": "DEBUG", "structured": False, "log_to_file": False})
        self.assertEqual(logging.getLogger().level, logging.DEBUG)
        self.assertEqual(len(self._stream_handlers()), 1)

    def test_stderr_handler_only_shows_app_warnings(self) -> None:
        configure_logging({"level": "DEBUG", "structured": True, "log_to_file": False})
        handler = self._stream_handlers()[0]
        self.assertEqual(handler.level, logging.WARNING)
        self.assertIsInstance(handler.formatter, structlog.stdlib.ProcessorFormatter)
        self.assertTrue(handler.filter(_record("nexus_agent.controller", "ok")))
        self.assertFalse(handler.filter(_record("httpx", "noise")))

    def test_noisy_loggers_set_to_warning(self) -> None:
        configure_logging({"level": "DEBUG", "structured": False, "log_to_file": False})
        for name in ("httpx", "httpcore", "ollama"):
            self.assertEqual(logging.getLogger(name).level, logging.WARNING)

    def test_reconfiguring_closes_previous_file_handler(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            configure_logging(
                {
                    "level": "INFO",
                    "structured": False,
                    "log_to_file": True,
                    "log_file_path": str(Path(tmp) / "first.log"),
                }
            )
            first = next(
                h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)
            )
            self.assertIsNotNone(first.stream)

            configure_logging({"level": "INFO", "structured": False, "log_to_file": False})

            self.assertNotIn(first, logging.getLogger().handlers)
            self.assertIsNone(first.stream)

    def test_file_handler_receives_records(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            log_path = Path(tmp) / "logs" / "app.log"
            configure_logging(
                {
                    "level": "DEBUG",
                    "structured": True,
                    "log_to_file": True,
                    "log_file_path": str(log_path),
                }
            )
            logging.getLogger("nexus_agent.test").info(
                "controller.dispatch", extra={"event": "controller.dispatch", "mode": "chat"}
            )
            file_handlers = [
                h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)
            ]
            self.assertEqual(len(file_handlers), 1)
            file_handlers[0].flush()
            lines = log_path.read_text(encoding="utf-8").strip().splitlines()
            self.assertEqual(json.loads(lines[-1])["mode"], "chat")


if __name__ == "__main__":
    unittest.main()
