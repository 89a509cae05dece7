"""Domain exception hierarchy for the Nexus agent client."""

from __future__ import annotations


class NexusAgentError(RuntimeError):
    """Base class for all domain-level agent errors."""


class GenerationError(NexusAgentError):
    """Raised when a generation gateway operation fails."""


class GatewayConnectionError(GenerationError):
    """Raised when the generation host cannot be reached."""


class ModelNotFoundError(GenerationError):
    """Raised when the configured chat model is unavailable."""


class MediaEndpointNotConfiguredError(GenerationError):
    """Raised when image or video synthesis has no configured endpoint."""


class AttachmentDecodeError(NexusAgentError):
    """Raised when a selected file cannot be read into an attachment."""


class ConfigValidationError(NexusAgentError):
    """Raised when configuration cannot be validated safely."""
