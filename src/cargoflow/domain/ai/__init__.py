from .ports import (
    AIFailure,
    AITimeout,
    LLMAuthError,
    LLMError,
    LLMExtractionResult,
    LLMInvalidResponseError,
    LLMProviderPort,
    LLMRateLimitError,
    LLMRequest,
    LLMServiceError,
    LLMTimeoutError,
    ModelTier,
    ProviderError,
    SchemaViolation,
    TierModel,
)

__all__ = [
    "AIFailure",
    "AITimeout",
    "LLMAuthError",
    "LLMError",
    "LLMExtractionResult",
    "LLMInvalidResponseError",
    "LLMProviderPort",
    "LLMRateLimitError",
    "LLMRequest",
    "LLMServiceError",
    "LLMTimeoutError",
    "ModelTier",
    "ProviderError",
    "SchemaViolation",
    "TierModel",
]
