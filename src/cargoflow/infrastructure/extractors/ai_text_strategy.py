"""AI text strategy - language-model extraction from decoded text."""

from typing import Optional, Sequence

from ...domain.ai.ports import ModelTier
from ...domain.documents import RawDocument
from ...domain.extraction.context import ExtractionContext
from ...domain.extraction.fields import DEFAULT_REQUIRED_FIELDS
from ...domain.extraction.ports import StrategyOutcome
from ...extraction.pattern_extractor import PatternExtractor
from ..ai.extraction_client import AIExtractionClient, AIExtractionRequest
from .ai_strategy_base import AIStrategyBase

STRATEGY_NAME = "ai_text_v1"


class AITextExtractionStrategy(AIStrategyBase):
    """Extract fields from emails, PDF text layers and OCR text with an LLM.

    When a hint extractor is given, its findings are passed to the model as
    context ("already found by rules"); they are hints, not candidates.
    """

    def __init__(
        self,
        client: AIExtractionClient,
        required_fields: Sequence[str] = tuple(DEFAULT_REQUIRED_FIELDS),
        hint_extractor: Optional[PatternExtractor] = None,
        tier: Optional[ModelTier] = None,
    ):
        super().__init__(client, required_fields)
        self.hint_extractor = hint_extractor
        self.tier = tier

    @property
    def name(self) -> str:
        return STRATEGY_NAME

    def supports(self, document: RawDocument) -> bool:
        return document.has_text() and not document.is_image()

    def build_request(self, document: RawDocument) -> AIExtractionRequest:
        text = document.as_text()
        known_values = None
        if self.hint_extractor is not None:
            known_values = {f.key: f.value for f in self.hint_extractor.extract(text)}
        return AIExtractionRequest(
            text=text,
            tier=self.tier,
            required_fields=self.required_fields,
            known_values=known_values,
        )

    async def extract(self, document: RawDocument, context: ExtractionContext) -> StrategyOutcome:
        return await self._run(self.build_request(document))

    def timeout_budget_s(self, document: RawDocument) -> Optional[float]:
        return self.client.total_budget_s(
            AIExtractionRequest(text=document.as_text(), tier=self.tier)
        )
