"""Unit tests for environment-driven settings."""

import logging

import pytest
from pydantic import ValidationError

from cargoflow.config import Settings, get_settings
from cargoflow.domain.ai.ports import ModelTier, TierModel
from cargoflow.infrastructure.ai import AnthropicProvider, OpenAIProvider
from cargoflow.observability.logging_config import JSONFormatter

ENV_KEYS = (
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
    "AI_TIER_CHEAP",
    "AI_TIER_FALLBACK",
    "CONFIDENCE_SUCCESS_THRESHOLD",
    "DEFAULT_COUNTRY",
    "DISPATCH_MAX_ATTEMPTS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def load() -> Settings:
    return Settings(_env_file=None)


class TestSettings:
    """Test defaults, overrides and validation"""

    def test_defaults(self):
        settings = load()

        assert settings.AI_ENABLED is True
        assert settings.CONFIDENCE_SUCCESS_THRESHOLD == 0.6
        assert settings.DISPATCH_MAX_ATTEMPTS == 3
        assert settings.DROPZONE_PATH is None

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("AI_TIER_CHEAP", "anthropic:claude-3-5-haiku-latest")
        monkeypatch.setenv("CONFIDENCE_SUCCESS_THRESHOLD", "0.7")
        monkeypatch.setenv("DEFAULT_COUNTRY", "Belgium")

        settings = load()

        assert settings.ai_client_config().tier_models[ModelTier.CHEAP] == TierModel(
            "anthropic", "claude-3-5-haiku-latest"
        )
        assert settings.pipeline_config().success_threshold == 0.7
        assert settings.extraction_context().default_country == "Belgium"

    def test_invalid_tier_rejected(self, monkeypatch):
        monkeypatch.setenv("AI_TIER_CHEAP", "gpt-4o-mini")

        with pytest.raises(ValidationError):
            load()

    def test_invalid_threshold_rejected(self, monkeypatch):
        monkeypatch.setenv("CONFIDENCE_SUCCESS_THRESHOLD", "1.5")

        with pytest.raises(ValidationError):
            load()

    def test_invalid_max_attempts_rejected(self, monkeypatch):
        monkeypatch.setenv("DISPATCH_MAX_ATTEMPTS", "0")

        with pytest.raises(ValidationError):
            load()

    def test_fallback_model(self, monkeypatch):
        monkeypatch.setenv("AI_TIER_FALLBACK", "anthropic:claude-sonnet-4-5")

        config = load().ai_client_config()

        assert config.fallback_model == TierModel("anthropic", "claude-sonnet-4-5")

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestBuildProviders:
    """Test provider instantiation from API keys"""

    def test_no_keys_no_providers(self):
        assert load().build_providers() == {}

    def test_only_configured_providers(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

        providers = load().build_providers()

        assert set(providers) == {"openai"}
        assert isinstance(providers["openai"], OpenAIProvider)

    def test_both_providers(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")

        providers = load().build_providers()

        assert isinstance(providers["anthropic"], AnthropicProvider)


class TestApplyLogging:
    """Test logging setup from settings"""

    def test_level_and_format(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("LOG_JSON", "false")
        root = logging.getLogger()
        saved_handlers, saved_level = list(root.handlers), root.level
        try:
            load().apply_logging()

            assert root.level == logging.DEBUG
            assert not isinstance(root.handlers[0].formatter, JSONFormatter)
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
