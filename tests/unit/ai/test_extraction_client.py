"""Unit tests for the AI extraction client.

Tests cover:
- Tier selection (explicit, vision, cheap vs standard by token estimate)
- Retry on the same tier, escalation, fallback model
- Typed failures: ProviderError, AITimeout, SchemaViolation
- Default confidences and hallucination guards on accepted output
- Token and cost accounting across attempts
"""

import asyncio

import pytest

from cargoflow.domain.ai.ports import (
    AITimeout,
    LLMServiceError,
    LLMTimeoutError,
    ModelTier,
    ProviderError,
    SchemaViolation,
    TierModel,
)
from cargoflow.infrastructure.ai import AIClientConfig, AIExtractionClient, AIExtractionRequest
from cargoflow.infrastructure.ai.extraction_client import (
    FALLBACK_LABEL,
    OPTIONAL_FIELD_DEFAULT_CONFIDENCE,
    REQUIRED_FIELD_DEFAULT_CONFIDENCE,
)

SOURCE_TEXT = "Please quote from Antwerp to Lagos for a Toyota Hilux, 5.33 x 1.86 x 1.82 m"

GOOD_OUTPUT = {
    "route": {"origin": "Antwerp", "destination": "Lagos"},
    "vehicle": {"brand": "Toyota", "model": "Hilux"},
    "confidence": {"route.origin": 0.9},
}


class TestAIClientConfig:
    """Test tier chains and budgets"""

    def test_cheap_escalates_to_standard(self, ai_config):
        chain = ai_config.tier_chain(ModelTier.CHEAP)

        assert [label for label, _ in chain] == ["cheap", "standard"]

    def test_vision_does_not_escalate(self, ai_config):
        assert [label for label, _ in ai_config.tier_chain(ModelTier.VISION)] == ["vision"]

    def test_total_budget_is_sum_of_attempt_timeouts(self, ai_config):
        # 2 tiers x 2 attempts x 5s
        assert ai_config.total_budget_s(ModelTier.CHEAP) == 20.0

    def test_fallback_adds_one_attempt(self, ai_config):
        config = AIClientConfig(
            tier_models=ai_config.tier_models,
            fallback_model=TierModel("anthropic", "claude-3-5-haiku-latest"),
            attempt_timeout_s=5.0,
        )

        assert config.max_attempts(ModelTier.STANDARD) == 3


class TestChooseTier:
    """Test tier selection"""

    def test_explicit_tier_wins(self, ai_config):
        client = AIExtractionClient({}, ai_config)

        assert client.choose_tier(AIExtractionRequest(text="x", tier=ModelTier.STANDARD)) == ModelTier.STANDARD

    def test_images_use_vision(self, ai_config):
        client = AIExtractionClient({}, ai_config)

        assert client.choose_tier(AIExtractionRequest(images=[b"\x89PNG"])) == ModelTier.VISION

    def test_short_text_uses_cheap(self, ai_config):
        client = AIExtractionClient({}, ai_config)

        assert client.choose_tier(AIExtractionRequest(text=SOURCE_TEXT)) == ModelTier.CHEAP

    def test_long_text_uses_standard(self, ai_config):
        client = AIExtractionClient({}, ai_config)

        assert client.choose_tier(AIExtractionRequest(text="word " * 20_000)) == ModelTier.STANDARD


class TestExtract:
    """Test the attempt loop"""

    @pytest.mark.asyncio
    async def test_first_attempt_success(self, ai_config, mock_provider_factory, llm_result_factory):
        provider = mock_provider_factory([llm_result_factory(GOOD_OUTPUT)])
        client = AIExtractionClient({"openai": provider}, ai_config)

        outcome = await client.extract(
            AIExtractionRequest(text=SOURCE_TEXT, required_fields=("route.origin", "vehicle.model"))
        )

        assert outcome.success
        assert outcome.attempts == 1
        assert outcome.tier_used == "cheap"
        assert outcome.model == "gpt-4o-mini"
        assert outcome.values["vehicle.model"] == "Hilux"
        assert outcome.tokens_in == 100
        assert outcome.cost_micros == 45

        request = provider.complete_json.call_args[0][0]
        assert request.model == "gpt-4o-mini"
        assert request.json_schema["additionalProperties"] is False

    @pytest.mark.asyncio
    async def test_default_confidences(self, ai_config, mock_provider_factory, llm_result_factory):
        provider = mock_provider_factory([llm_result_factory(GOOD_OUTPUT)])
        client = AIExtractionClient({"openai": provider}, ai_config)

        outcome = await client.extract(
            AIExtractionRequest(text=SOURCE_TEXT, required_fields=("route.origin", "vehicle.model"))
        )

        assert outcome.confidences["route.origin"] == 0.9
        assert outcome.confidences["vehicle.model"] == REQUIRED_FIELD_DEFAULT_CONFIDENCE
        assert outcome.confidences["vehicle.brand"] == OPTIONAL_FIELD_DEFAULT_CONFIDENCE

    @pytest.mark.asyncio
    async def test_retry_then_escalate(self, ai_config, mock_provider_factory, llm_result_factory):
        """Two failures on cheap, success on the first standard attempt"""
        provider = mock_provider_factory([
            LLMServiceError("overloaded", status=503),
            LLMServiceError("overloaded", status=503),
            llm_result_factory(GOOD_OUTPUT, model="gpt-4o"),
        ])
        client = AIExtractionClient({"openai": provider}, ai_config)

        outcome = await client.extract(AIExtractionRequest(text=SOURCE_TEXT))

        assert outcome.success
        assert outcome.attempts == 3
        assert outcome.tier_used == "standard"
        models = [call[0][0].model for call in provider.complete_json.call_args_list]
        assert models == ["gpt-4o-mini", "gpt-4o-mini", "gpt-4o"]

    @pytest.mark.asyncio
    async def test_fallback_model_after_exhaustion(self, ai_config, mock_provider_factory, llm_result_factory):
        openai = mock_provider_factory([LLMServiceError("down", status=500)] * 4)
        anthropic = mock_provider_factory(
            [llm_result_factory(GOOD_OUTPUT, provider="anthropic", model="claude-3-5-haiku-latest")],
            name="anthropic",
        )
        config = AIClientConfig(
            tier_models=ai_config.tier_models,
            fallback_model=TierModel("anthropic", "claude-3-5-haiku-latest"),
            attempt_timeout_s=5.0,
        )
        client = AIExtractionClient({"openai": openai, "anthropic": anthropic}, config)

        outcome = await client.extract(AIExtractionRequest(text=SOURCE_TEXT))

        assert outcome.success
        assert outcome.attempts == 5
        assert outcome.tier_used == FALLBACK_LABEL
        assert outcome.provider == "anthropic"

    @pytest.mark.asyncio
    async def test_exhaustion_returns_provider_error(self, ai_config, mock_provider_factory):
        provider = mock_provider_factory([LLMServiceError("down", status=502)] * 4)
        client = AIExtractionClient({"openai": provider}, ai_config)

        outcome = await client.extract(AIExtractionRequest(text=SOURCE_TEXT))

        assert not outcome.success
        assert outcome.attempts == 4
        assert outcome.values == {}
        assert isinstance(outcome.error, ProviderError)
        assert outcome.error.status == 502

    @pytest.mark.asyncio
    async def test_schema_violation_is_retried(self, ai_config, mock_provider_factory, llm_result_factory):
        provider = mock_provider_factory([
            llm_result_factory({"vehicle": {"year": "last year"}}),
            llm_result_factory(GOOD_OUTPUT),
        ])
        client = AIExtractionClient({"openai": provider}, ai_config)

        outcome = await client.extract(AIExtractionRequest(text=SOURCE_TEXT))

        assert outcome.success
        assert outcome.attempts == 2
        # Both attempts are billed
        assert outcome.tokens_in == 200

    @pytest.mark.asyncio
    async def test_schema_violation_never_returned_as_data(self, ai_config, mock_provider_factory, llm_result_factory):
        provider = mock_provider_factory([llm_result_factory(["not", "an", "object"])] * 4)
        client = AIExtractionClient({"openai": provider}, ai_config)

        outcome = await client.extract(AIExtractionRequest(text=SOURCE_TEXT))

        assert not outcome.success
        assert isinstance(outcome.error, SchemaViolation)
        assert outcome.values == {}

    @pytest.mark.asyncio
    async def test_unparseable_output_is_salvaged(self, ai_config, mock_provider_factory, llm_result_factory):
        result = llm_result_factory(None)
        result.raw_output = 'Sure! ```json\n{"route": {"origin": "Antwerp"}}\n```'
        provider = mock_provider_factory([result])
        client = AIExtractionClient({"openai": provider}, ai_config)

        outcome = await client.extract(AIExtractionRequest(text=SOURCE_TEXT))

        assert outcome.success
        assert outcome.values == {"route.origin": "Antwerp"}

    @pytest.mark.asyncio
    async def test_attempt_timeout(self, ai_config, mock_provider_factory):
        async def hang(request):
            await asyncio.sleep(1)

        provider = mock_provider_factory([])
        provider.complete_json.side_effect = hang
        config = AIClientConfig(tier_models=ai_config.tier_models, attempt_timeout_s=0.01, attempts_per_tier=1)
        client = AIExtractionClient({"openai": provider}, config)

        outcome = await client.extract(AIExtractionRequest(text=SOURCE_TEXT, tier=ModelTier.STANDARD))

        assert not outcome.success
        assert isinstance(outcome.error, AITimeout)
        assert outcome.error.timeout_s == 0.01

    @pytest.mark.asyncio
    async def test_provider_timeout_error_is_timeout(self, ai_config, mock_provider_factory):
        provider = mock_provider_factory([LLMTimeoutError("slow")] * 4)
        client = AIExtractionClient({"openai": provider}, ai_config)

        outcome = await client.extract(AIExtractionRequest(text=SOURCE_TEXT))

        assert isinstance(outcome.error, AITimeout)

    @pytest.mark.asyncio
    async def test_unconfigured_provider(self, ai_config):
        client = AIExtractionClient({}, ai_config)

        outcome = await client.extract(AIExtractionRequest(text=SOURCE_TEXT))

        assert not outcome.success
        assert isinstance(outcome.error, ProviderError)
        assert outcome.error.provider == "openai"

    @pytest.mark.asyncio
    async def test_extra_fields_dropped(self, ai_config, mock_provider_factory, llm_result_factory):
        output = {**GOOD_OUTPUT, "vehicle": {"brand": "Toyota", "model": "Hilux", "colour": "red"}}
        provider = mock_provider_factory([llm_result_factory(output)])
        client = AIExtractionClient({"openai": provider}, ai_config)

        outcome = await client.extract(AIExtractionRequest(text=SOURCE_TEXT))

        assert outcome.success
        assert outcome.dropped_fields == ["vehicle.colour"]
        assert "vehicle.colour" not in outcome.values

    @pytest.mark.asyncio
    async def test_unanchored_value_confidence_capped(self, ai_config, mock_provider_factory, llm_result_factory):
        output = {"vehicle": {"model": "Land Cruiser"}, "confidence": {"vehicle.model": 0.95}}
        provider = mock_provider_factory([llm_result_factory(output)])
        client = AIExtractionClient({"openai": provider}, ai_config)

        outcome = await client.extract(AIExtractionRequest(text=SOURCE_TEXT))

        assert outcome.confidences["vehicle.model"] == 0.4

    @pytest.mark.asyncio
    async def test_vision_skips_anchor_check(self, ai_config, mock_provider_factory, llm_result_factory):
        output = {"vehicle": {"model": "Land Cruiser"}, "confidence": {"vehicle.model": 0.95}}
        provider = mock_provider_factory([llm_result_factory(output, model="gpt-4o")])
        client = AIExtractionClient({"openai": provider}, ai_config)

        outcome = await client.extract(AIExtractionRequest(images=[b"\xff\xd8jpeg"], text="see photo"))

        assert outcome.tier_used == "vision"
        assert outcome.confidences["vehicle.model"] == 0.95
        request = provider.complete_json.call_args[0][0]
        assert request.images == [b"\xff\xd8jpeg"]
