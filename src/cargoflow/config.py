"""Application configuration via environment variables.

Provides type-safe settings loading using pydantic-settings.
Environment variables can be loaded from a .env file.

Components never read settings directly: `Settings.pipeline_config()` and
`Settings.ai_client_config()` build the immutable config structs that are
injected through constructors.
"""

import logging
from functools import lru_cache
from typing import Dict, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .domain.ai.ports import LLMProviderPort, ModelTier, TierModel
from .domain.extraction.context import ExtractionContext
from .infrastructure.ai import AIClientConfig, AnthropicProvider, OpenAIProvider
from .observability import configure_logging
from .pipeline import PipelineConfig

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Environment Variables:
        OPENAI_API_KEY: OpenAI API key
        ANTHROPIC_API_KEY: Anthropic API key
        AI_ENABLED: Register the AI strategies (default True)
        AI_TIER_CHEAP / AI_TIER_STANDARD / AI_TIER_VISION: 'provider:model'
        AI_TIER_FALLBACK: Optional last-resort 'provider:model'
        AI_ATTEMPT_TIMEOUT_SECONDS: Upper bound for one provider call
        AI_CHEAP_TOKEN_THRESHOLD: Estimated tokens above which text skips the cheap tier
        CONFIDENCE_SUCCESS_THRESHOLD: Minimum confidence per required field for 'success'
        DEFAULT_COUNTRY: Country used when a document carries no country signal
        PREFERRED_COMPANY: Company that overrides any extracted one
        EMAIL_DOMAIN_OVERRIDES_COMPANY: Email-domain company beats the explicit field
        REFERENCE_DATA_PATH: Reference JSON file (bundled seed when unset)
        DROPZONE_PATH: Directory for the JSON dropzone connector (disabled when unset)
        DISPATCH_MAX_ATTEMPTS: Attempts per connector
        DISPATCH_BASE_DELAY_SECONDS: Base delay for exponential backoff
        LOG_LEVEL: Logging level (default INFO)
        LOG_JSON: Emit JSON log lines (default True)
    """

    # AI Providers
    OPENAI_API_KEY: Optional[str] = None
    ANTHROPIC_API_KEY: Optional[str] = None

    # AI tiers
    AI_ENABLED: bool = True
    AI_TIER_CHEAP: str = "openai:gpt-4o-mini"
    AI_TIER_STANDARD: str = "openai:gpt-4o"
    AI_TIER_VISION: str = "openai:gpt-4o"
    AI_TIER_FALLBACK: Optional[str] = None
    AI_ATTEMPT_TIMEOUT_SECONDS: float = 30.0
    AI_CHEAP_TOKEN_THRESHOLD: int = 4000

    # Extraction
    CONFIDENCE_SUCCESS_THRESHOLD: float = 0.6
    DEFAULT_COUNTRY: Optional[str] = None
    PREFERRED_COMPANY: Optional[str] = None
    EMAIL_DOMAIN_OVERRIDES_COMPANY: bool = False
    REFERENCE_DATA_PATH: Optional[str] = None

    # Dispatch
    DROPZONE_PATH: Optional[str] = None
    DISPATCH_MAX_ATTEMPTS: int = 3
    DISPATCH_BASE_DELAY_SECONDS: float = 1.0

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("AI_TIER_CHEAP", "AI_TIER_STANDARD", "AI_TIER_VISION", "AI_TIER_FALLBACK")
    @classmethod
    def validate_tier_model(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            TierModel.parse(value)
        return value

    @field_validator("CONFIDENCE_SUCCESS_THRESHOLD")
    @classmethod
    def validate_threshold(cls, value: float) -> float:
        if not 0.0 <= value <= 1.0:
            raise ValueError("CONFIDENCE_SUCCESS_THRESHOLD must be within [0, 1]")
        return value

    @field_validator("DISPATCH_MAX_ATTEMPTS")
    @classmethod
    def validate_max_attempts(cls, value: int) -> int:
        if value < 1:
            raise ValueError("DISPATCH_MAX_ATTEMPTS must be at least 1")
        return value

    def pipeline_config(self) -> PipelineConfig:
        return PipelineConfig(success_threshold=self.CONFIDENCE_SUCCESS_THRESHOLD)

    def ai_client_config(self) -> AIClientConfig:
        return AIClientConfig(
            tier_models={
                ModelTier.CHEAP: TierModel.parse(self.AI_TIER_CHEAP),
                ModelTier.STANDARD: TierModel.parse(self.AI_TIER_STANDARD),
                ModelTier.VISION: TierModel.parse(self.AI_TIER_VISION),
            },
            fallback_model=TierModel.parse(self.AI_TIER_FALLBACK) if self.AI_TIER_FALLBACK else None,
            attempt_timeout_s=self.AI_ATTEMPT_TIMEOUT_SECONDS,
            cheap_token_threshold=self.AI_CHEAP_TOKEN_THRESHOLD,
        )

    def extraction_context(self) -> ExtractionContext:
        """Default run context; callers may pass their own per document."""
        return ExtractionContext(
            preferred_company=self.PREFERRED_COMPANY,
            default_country=self.DEFAULT_COUNTRY,
            email_domain_overrides_company=self.EMAIL_DOMAIN_OVERRIDES_COMPANY,
        )

    def apply_logging(self) -> None:
        """Configure root logging from LOG_LEVEL / LOG_JSON; call once at startup."""
        configure_logging(level=self.LOG_LEVEL, json_format=self.LOG_JSON)

    def build_providers(self) -> Dict[str, LLMProviderPort]:
        """Instantiate providers that have an API key.

        A tier pointing at a provider without a key is not an error here:
        the client reports a ProviderError for it and escalates.
        """
        providers: Dict[str, LLMProviderPort] = {}
        if self.OPENAI_API_KEY:
            providers["openai"] = OpenAIProvider(api_key=self.OPENAI_API_KEY)
        if self.ANTHROPIC_API_KEY:
            providers["anthropic"] = AnthropicProvider(api_key=self.ANTHROPIC_API_KEY)

        referenced = {model.provider for model in self.ai_client_config().tier_models.values()}
        missing = sorted(referenced - set(providers))
        if missing:
            logger.warning(f"AI tiers reference providers without API keys: {missing}")
        return providers


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache for singleton behavior.
    Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
