"""
LLM Provider Port - Abstract interface for language-model providers.

Hexagonal Architecture: business logic (the AI extraction client) depends on
this port; OpenAI and Anthropic adapters implement it.

Provider adapters raise the LLMError hierarchy. The AI extraction client turns
those exceptions into typed failure values (ProviderError, AITimeout,
SchemaViolation) so nothing above it has to catch provider exceptions.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class ModelTier(str, Enum):
    """Abstract model selection; mapped to provider models in configuration."""
    CHEAP = "cheap"
    STANDARD = "standard"
    VISION = "vision"


# Escalation order on repeated failure
TIER_ESCALATION: Dict[ModelTier, Optional[ModelTier]] = {
    ModelTier.CHEAP: ModelTier.STANDARD,
    ModelTier.STANDARD: None,
    ModelTier.VISION: None,
}


@dataclass(frozen=True)
class TierModel:
    """Concrete provider/model a tier resolves to."""
    provider: str
    model: str

    @classmethod
    def parse(cls, value: str) -> "TierModel":
        """Parse 'provider:model' (e.g. 'openai:gpt-4o-mini')."""
        provider, sep, model = value.partition(":")
        if not sep or not provider.strip() or not model.strip():
            raise ValueError(f"Tier model must look like 'provider:model', got {value!r}")
        return cls(provider=provider.strip().lower(), model=model.strip())


@dataclass
class LLMRequest:
    """
    Provider-agnostic completion request.

    Attributes:
        model: Provider model identifier (resolved from a tier by the client)
        system_prompt: Instructions for the model
        user_prompt: Document text or instruction accompanying images
        json_schema: JSON schema the response must conform to
        images: Raw image bytes for vision models
        image_mime_type: MIME type of the images
        timeout_s: Provider-side request timeout
    """
    model: str
    system_prompt: str
    user_prompt: str
    json_schema: Dict[str, Any]
    images: List[bytes] = field(default_factory=list)
    image_mime_type: str = "image/jpeg"
    timeout_s: float = 30.0


@dataclass
class LLMExtractionResult:
    """
    Result from one provider call.

    Attributes:
        raw_output: Raw string response from the model
        parsed_json: Parsed JSON dict if parsing succeeded, None otherwise
        provider: Provider name (e.g. 'openai', 'anthropic')
        model: Model name
        tokens_in: Input tokens used (None if provider doesn't report)
        tokens_out: Output tokens used (None if provider doesn't report)
        latency_ms: Latency in milliseconds
        cost_micros: Cost in micro-USD
        warnings: Non-critical warnings
    """
    raw_output: str
    parsed_json: Optional[dict]
    provider: str
    model: str
    tokens_in: Optional[int]
    tokens_out: Optional[int]
    latency_ms: int
    cost_micros: int
    warnings: list[str] = field(default_factory=list)


class LLMProviderPort(ABC):
    """
    Abstract interface for LLM providers.

    Implementations must handle:
    - API authentication
    - Request formatting for the provider (text and vision)
    - JSON response parsing
    - Mapping SDK errors onto the LLMError hierarchy
    - Token/cost tracking
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        pass

    @abstractmethod
    async def complete_json(self, request: LLMRequest) -> LLMExtractionResult:
        """
        Run one JSON-constrained completion.

        Args:
            request: Provider-agnostic request

        Returns:
            LLMExtractionResult (parsed_json None when the output was not JSON)

        Raises:
            LLMTimeoutError: Request timed out
            LLMRateLimitError: Rate limit exceeded
            LLMAuthError: Authentication failed
            LLMServiceError: Provider service unavailable
        """
        pass


# Custom exceptions for LLM operations
class LLMError(Exception):
    """Base exception for LLM operations"""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class LLMTimeoutError(LLMError):
    """LLM request timed out"""
    pass


class LLMRateLimitError(LLMError):
    """Rate limit exceeded"""
    pass


class LLMAuthError(LLMError):
    """Authentication failed"""
    pass


class LLMServiceError(LLMError):
    """Provider service unavailable or returned error"""
    pass


class LLMInvalidResponseError(LLMError):
    """Provider returned invalid/unexpected response"""
    pass


# Typed failure values returned by the AI extraction client
@dataclass(frozen=True)
class ProviderError:
    status: Optional[int]
    message: str
    provider: str = ""


@dataclass(frozen=True)
class AITimeout:
    message: str
    timeout_s: float


@dataclass(frozen=True)
class SchemaViolation:
    message: str
    details: List[str] = field(default_factory=list)


AIFailure = Union[ProviderError, AITimeout, SchemaViolation]
