"""Shared pytest fixtures.

Provides:
- The bundled reference lookup
- Sample freight documents
- Mock LLM providers returning canned responses

Usage:
    @pytest.mark.asyncio
    async def test_ai(mock_provider_factory, llm_result_factory):
        provider = mock_provider_factory([llm_result_factory({"vehicle": {"model": "Hilux"}})])
"""

import json
from typing import Any, List
from unittest.mock import AsyncMock, Mock

import pytest

from cargoflow.domain.ai.ports import LLMExtractionResult, ModelTier, TierModel
from cargoflow.domain.documents import RawDocument
from cargoflow.infrastructure.ai import AIClientConfig
from cargoflow.infrastructure.reference import ReferenceLookup

HILUX_EMAIL = (
    "Hello,\n"
    "Please quote from Antwerp to Lagos for a Toyota Hilux.\n"
    "Dimensions: 5,33 x 1,86 x 1,82 m\n"
    "Weight: 2100 kg\n"
    "Regards,\n"
    "Jan Peeters\n"
    "jan@acme-logistics.be\n"
)

FORKLIFT_TEXT = "Jungheftruck TFG435s\nL390 cm\nB230 cm\nH310cm\n3500KG"


@pytest.fixture(scope="session")
def lookup() -> ReferenceLookup:
    """Reference lookup loaded from the bundled seed file."""
    return ReferenceLookup.from_seed()


@pytest.fixture
def hilux_document() -> RawDocument:
    return RawDocument.from_text("doc-hilux", HILUX_EMAIL)


@pytest.fixture
def forklift_document() -> RawDocument:
    return RawDocument.from_text("doc-forklift", FORKLIFT_TEXT)


@pytest.fixture
def llm_result_factory():
    """Build LLMExtractionResult objects from a parsed JSON payload."""

    def build(parsed: Any, provider: str = "openai", model: str = "gpt-4o-mini") -> LLMExtractionResult:
        return LLMExtractionResult(
            raw_output=json.dumps(parsed),
            parsed_json=parsed,
            provider=provider,
            model=model,
            tokens_in=100,
            tokens_out=50,
            latency_ms=120,
            cost_micros=45,
        )

    return build


@pytest.fixture
def mock_provider_factory():
    """Mock LLMProviderPort whose complete_json yields the given side effects in order."""

    def build(side_effect: List[Any], name: str = "openai") -> Mock:
        provider = Mock()
        provider.provider_name = name
        provider.complete_json = AsyncMock(side_effect=side_effect)
        return provider

    return build


@pytest.fixture
def ai_config() -> AIClientConfig:
    return AIClientConfig(
        tier_models={
            ModelTier.CHEAP: TierModel("openai", "gpt-4o-mini"),
            ModelTier.STANDARD: TierModel("openai", "gpt-4o"),
            ModelTier.VISION: TierModel("openai", "gpt-4o"),
        },
        attempt_timeout_s=5.0,
        attempts_per_tier=2,
    )
