"""AI vision strategy - extraction from photos, screenshots and scanned PDFs."""

from typing import Optional

from ...domain.ai.ports import ModelTier
from ...domain.documents import RawDocument
from ...domain.extraction.context import ExtractionContext
from ...domain.extraction.errors import ErrorKind, ExtractionError
from ...domain.extraction.ports import StrategyOutcome
from ..ai.extraction_client import AIExtractionRequest
from .ai_strategy_base import AIStrategyBase

STRATEGY_NAME = "ai_vision_v1"


class AIVisionExtractionStrategy(AIStrategyBase):
    """Send images (or rendered scan pages) to the vision tier."""

    @property
    def name(self) -> str:
        return STRATEGY_NAME

    @property
    def priority(self) -> int:
        return 80

    def supports(self, document: RawDocument) -> bool:
        return document.is_image() or document.is_scanned()

    def build_request(self, document: RawDocument) -> AIExtractionRequest:
        return AIExtractionRequest(
            text=document.text or "",
            images=document.vision_images(),
            image_mime_type=document.vision_mime_type(),
            tier=ModelTier.VISION,
            required_fields=self.required_fields,
        )

    async def extract(self, document: RawDocument, context: ExtractionContext) -> StrategyOutcome:
        request = self.build_request(document)
        if not request.images:
            return StrategyOutcome(
                strategy=self.name,
                error=ExtractionError(
                    kind=ErrorKind.STRATEGY_FAILURE,
                    message="Scanned PDF has no rendered page images",
                    strategy=self.name,
                ),
            )
        return await self._run(request)

    def timeout_budget_s(self, document: RawDocument) -> Optional[float]:
        return self.client.config.total_budget_s(ModelTier.VISION)
