"""Top-level package for nexus-agent."""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .app import NexusAgentApp
    from .composition import CompositionBuffer, SessionContext
    from .config import ensure_config_dir, load_config
    from .controller import ConversationController
    from .exceptions import (
        AttachmentDecodeError,
        ConfigValidationError,
        GatewayConnectionError,
        GenerationError,
        NexusAgentError,
    )
    from .gateway import GenerationGateway, OllamaGateway
    from .ingest import AttachmentIngestor, classify_mime_type
    from .models import (
        ActiveMode,
        AgentStatus,
        Attachment,
        AttachmentType,
        Message,
        MessageRole,
    )
    from .state import StatusRegister
    from .transcript import TranscriptStore

_EXPORTS: dict[str, str] = {
    "ActiveMode": ".models",
    "AgentStatus": ".models",
    "Attachment": ".models",
    "AttachmentType": ".models",
    "Message": ".models",
    "MessageRole": ".models",
    "AttachmentDecodeError": ".exceptions",
    "ConfigValidationError": ".exceptions",
    "GatewayConnectionError": ".exceptions",
    "GenerationError": ".exceptions",
    "NexusAgentError": ".exceptions",
    "AttachmentIngestor": ".ingest",
    "classify_mime_type": ".ingest",
    "CompositionBuffer": ".composition",
    "SessionContext": ".composition",
    "ConversationController": ".controller",
    "GenerationGateway": ".gateway",
    "OllamaGateway": ".gateway",
    "StatusRegister": ".state",
    "TranscriptStore": ".transcript",
    "ensure_config_dir": ".config",
    "load_config": ".config",
    "NexusAgentApp": ".app",
}

__all__ = sorted(_EXPORTS)


def __getattr__(name: str) -> Any:
    """Lazily import symbols to keep the UI dependency out of core imports."""
    module_name = _EXPORTS.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    return getattr(import_module(module_name, __name__), name)
