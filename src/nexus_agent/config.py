"""Configuration loading and validation for the Nexus agent client.

The config file is TOML with one table per section. Each section is validated
on its own: a broken ``[media]`` table falls back to media defaults without
discarding a valid ``[gateway]`` table.
"""

from __future__ import annotations

from copy import deepcopy
import logging
import os
from pathlib import Path
import tomllib
from typing import Annotated, Any
from urllib.parse import urlparse

from platformdirs import user_config_path, user_state_path
from pydantic import BaseModel, BeforeValidator, Field, ValidationError

from .exceptions import ConfigValidationError
from .models import ActiveMode

LOGGER = logging.getLogger(__name__)

APP_NAME = "nexus-agent"
CONFIG_DIR = user_config_path(APP_NAME)
CONFIG_PATH = CONFIG_DIR / "config.toml"
DEFAULT_LOG_FILE = str(user_state_path(APP_NAME) / "app.log")

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def _stripped(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError("expected a string")
    return value.strip()


def _non_empty(value: Any) -> str:
    text = _stripped(value)
    if not text:
        raise ValueError("must not be empty")
    return text


def _http_url_or_empty(value: Any) -> str:
    text = "" if value is None else _stripped(value)
    if text and urlparse(text).scheme.lower() not in ("http", "https"):
        raise ValueError("must be an http(s) URL")
    return text


def _mode_name(value: Any) -> str:
    return ActiveMode(_stripped(value).lower()).value


def _log_level(value: Any) -> str:
    level = _stripped(value).upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"must be one of {', '.join(LOG_LEVELS)}")
    return level


def _host_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        raise ValueError("expected a list of host names")
    hosts = [item.strip().lower() for item in value if isinstance(item, str) and item.strip()]
    if not hosts:
        raise ValueError("at least one host is required")
    return hosts


Text = Annotated[str, BeforeValidator(_stripped)]
RequiredText = Annotated[str, BeforeValidator(_non_empty)]
EndpointUrl = Annotated[str, BeforeValidator(_http_url_or_empty)]


class AppConfig(BaseModel):
    title: RequiredText = "Nexus Agent"


class GatewayConfig(BaseModel):
    """Chat back-end endpoint, model and retry settings."""

    host: RequiredText = "http://localhost:11434"
    model: RequiredText = "llama3.2"
    system_prompt: Text = "You are Nexus, a multi-modal assistant."
    timeout: int = Field(default=120, ge=1, le=3600)
    retries: int = Field(default=2, ge=0, le=10)
    retry_backoff_seconds: float = Field(default=0.5, ge=0, le=60)
    web_search_max_results: int = Field(default=5, ge=1, le=20)


class MediaConfig(BaseModel):
    """HTTP endpoints for image and video synthesis. Empty means disabled."""

    image_endpoint: EndpointUrl = ""
    video_endpoint: EndpointUrl = ""
    api_key: Text = ""
    timeout: int = Field(default=300, ge=1, le=3600)


class AgentConfig(BaseModel):
    """Initial mode and reasoning budget for the controller."""

    default_mode: Annotated[str, BeforeValidator(_mode_name)] = ActiveMode.CHAT.value
    thinking_budget: int = Field(default=500, ge=0, le=1_000_000)


class AttachmentsConfig(BaseModel):
    max_file_bytes: int = Field(default=20 * 1024 * 1024, ge=1024, le=512 * 1024 * 1024)


class SecurityConfig(BaseModel):
    """Which gateway hosts the client may talk to."""

    allow_remote_hosts: bool = False
    allowed_hosts: Annotated[list[str], BeforeValidator(_host_list)] = [
        "localhost",
        "127.0.0.1",
        "::1",
    ]


class LoggingConfig(BaseModel):
    level: Annotated[str, BeforeValidator(_log_level)] = "INFO"
    structured: bool = True
    log_to_file: bool = False
    log_file_path: RequiredText = DEFAULT_LOG_FILE


SECTION_MODELS: dict[str, type[BaseModel]] = {
    "app": AppConfig,
    "gateway": GatewayConfig,
    "media": MediaConfig,
    "agent": AgentConfig,
    "attachments": AttachmentsConfig,
    "security": SecurityConfig,
    "logging": LoggingConfig,
}

DEFAULT_CONFIG: dict[str, dict[str, Any]] = {
    name: model().model_dump() for name, model in SECTION_MODELS.items()
}


def host_policy_violation(host: str, security: dict[str, Any]) -> str | None:
    """Describe why ``host`` is not an acceptable gateway, or return None."""
    parsed = urlparse(host)
    if parsed.scheme.lower() not in ("http", "https"):
        return "gateway.host must use http or https"
    hostname = (parsed.hostname or "").lower()
    if not hostname:
        return "gateway.host has no hostname"
    if not security["allow_remote_hosts"] and hostname not in security["allowed_hosts"]:
        return f"gateway.host {hostname!r} is not in security.allowed_hosts"
    return None


def ensure_config_dir(config_dir: Path | None = None) -> Path:
    """Create the config directory if needed and return it."""
    directory = config_dir or CONFIG_DIR
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        LOGGER.warning(
            "config.dir.unavailable",
            extra={"event": "config.dir.unavailable", "path": str(directory), "error": str(exc)},
        )
    return directory


def _restrict_permissions(path: Path) -> None:
    if os.name != "posix":
        return
    try:
        path.chmod(0o600)
    except OSError as exc:
        LOGGER.warning(
            "config.permissions.failed",
            extra={"event": "config.permissions.failed", "path": str(path), "error": str(exc)},
        )


def _read_toml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    _restrict_permissions(path)
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as exc:
        LOGGER.warning(
            "config.parse.failed",
            extra={"event": "config.parse.failed", "path": str(path), "error": str(exc)},
        )
        return {}


def _validate_section(name: str, raw: Any) -> dict[str, Any]:
    model = SECTION_MODELS[name]
    if not isinstance(raw, dict):
        raw = {}
    try:
        return model.model_validate({**DEFAULT_CONFIG[name], **raw}).model_dump()
    except ValidationError as exc:
        LOGGER.warning(
            "config.section.invalid",
            extra={
                "event": "config.section.invalid",
                "section": name,
                "error_count": exc.error_count(),
                "error": str(exc),
            },
        )
        return deepcopy(DEFAULT_CONFIG[name])


def validate_config(raw: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Validate every known section, replacing broken ones with defaults.

    Unknown sections are ignored. A gateway host rejected by the security
    policy is reset to the default host; if the configured allowlist rejects
    that too, the security section is reset as well.

    Raises:
        ConfigValidationError: when ``raw`` is not a table of sections.
    """
    if not isinstance(raw, dict):
        raise ConfigValidationError(f"Expected a table of sections, got {type(raw).__name__}.")
    config = {name: _validate_section(name, raw.get(name)) for name in SECTION_MODELS}

    violation = host_policy_violation(config["gateway"]["host"], config["security"])
    if violation is not None:
        LOGGER.warning(
            "config.host.rejected",
            extra={"event": "config.host.rejected", "reason": violation},
        )
        config["gateway"]["host"] = DEFAULT_CONFIG["gateway"]["host"]
        if host_policy_violation(config["gateway"]["host"], config["security"]) is not None:
            config["security"] = deepcopy(DEFAULT_CONFIG["security"])
    return config


def load_config(config_path: Path | None = None) -> dict[str, dict[str, Any]]:
    """Load ``config.toml`` (or ``config_path``), falling back to defaults."""
    target_path = config_path or CONFIG_PATH
    ensure_config_dir(target_path.parent)
    return validate_config(_read_toml(target_path))
