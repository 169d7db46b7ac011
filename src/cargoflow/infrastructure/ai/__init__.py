"""AI infrastructure: provider adapters and the tiered extraction client."""

from .anthropic_provider import AnthropicProvider
from .extraction_client import (
    AIClientConfig,
    AIExtractionClient,
    AIExtractionOutcome,
    AIExtractionRequest,
)
from .openai_provider import OpenAIProvider

__all__ = [
    "AIClientConfig",
    "AIExtractionClient",
    "AIExtractionOutcome",
    "AIExtractionRequest",
    "AnthropicProvider",
    "OpenAIProvider",
]
