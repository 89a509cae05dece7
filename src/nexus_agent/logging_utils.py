"""Logging bootstrap with structlog-rendered JSON or plain-text output."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import structlog

APP_LOGGER_PREFIX = "nexus_agent"
NOISY_LIBRARIES = ("httpx", "httpcore", "ollama", "asyncio")
PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# Applied to records coming from plain ``logging`` calls before rendering.
_STDLIB_CHAIN: tuple[Any, ...] = (
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.ExtraAdder(),
    structlog.processors.TimeStamper(fmt="iso", utc=True),
)


def _configure_structlog() -> None:
    """Route ``structlog.get_logger()`` output through stdlib handlers."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.format_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def build_formatter(structured: bool) -> logging.Formatter:
    """Return the formatter shared by every handler we install.

    Structured mode renders each record, ``extra`` fields included, as one
    compact JSON object per line.
    """
    if not structured:
        return logging.Formatter(PLAIN_FORMAT)

    _configure_structlog()
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=list(_STDLIB_CHAIN),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.JSONRenderer(ensure_ascii=False, separators=(",", ":")),
        ],
    )


def _is_app_record(record: logging.LogRecord) -> bool:
    return record.name.startswith(APP_LOGGER_PREFIX)


def _stderr_handler(level: int, formatter: logging.Formatter) -> logging.Handler:
    # The TUI owns the terminal; only app warnings may reach stderr.
    handler = logging.StreamHandler()
    handler.setLevel(max(level, logging.WARNING))
    handler.setFormatter(formatter)
    handler.addFilter(_is_app_record)
    return handler


def _file_handler(path: str, level: int, formatter: logging.Formatter) -> logging.Handler:
    target = Path(path).expanduser()
    target.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(target, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(formatter)
    if os.name == "posix":
        try:
            target.chmod(0o600)
        except OSError as exc:
            logging.getLogger(__name__).warning(
                "logging.permissions.failed",
                extra={"event": "logging.permissions.failed", "path": str(target), "error": str(exc)},
            )
    return handler


def configure_logging(logging_config: dict[str, Any]) -> None:
    """Install root handlers from the ``[logging]`` config section.

    Replaces any existing root handlers. The optional log file receives every
    record at ``level``.
    """
    level = logging.getLevelName(str(logging_config.get("level", "INFO")).upper())
    if not isinstance(level, int):
        level = logging.INFO
    formatter = build_formatter(bool(logging_config.get("structured", True)))

    handlers = [_stderr_handler(level, formatter)]
    if logging_config.get("log_to_file", False):
        handlers.append(
            _file_handler(str(logging_config["log_file_path"]), level, formatter)
        )

    root = logging.getLogger()
    for previous in list(root.handlers):
        root.removeHandler(previous)
        previous.close()
    root.setLevel(level)
    for handler in handlers:
        root.addHandler(handler)

    for name in NOISY_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)
