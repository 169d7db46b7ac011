"""Strategy selector initialization - register the standard strategies."""

import logging
from typing import Optional, Sequence

from ...domain.extraction.fields import DEFAULT_REQUIRED_FIELDS
from ...extraction.pattern_extractor import PatternExtractor
from ..ai.extraction_client import AIExtractionClient
from ..reference import ReferenceLookup
from .ai_text_strategy import AITextExtractionStrategy
from .ai_vision_strategy import AIVisionExtractionStrategy
from .pattern_strategy import PatternExtractionStrategy
from .strategy_selector import StrategySelector

logger = logging.getLogger(__name__)


def build_strategy_selector(
    lookup: Optional[ReferenceLookup] = None,
    ai_client: Optional[AIExtractionClient] = None,
    required_fields: Sequence[str] = tuple(DEFAULT_REQUIRED_FIELDS),
) -> StrategySelector:
    """Build a selector with the pattern strategy and, if a client is given,
    the AI text and vision strategies.

    Args:
        lookup: Reference lookup shared by pattern extraction
        ai_client: AI client; None disables the AI strategies
        required_fields: Canonical keys the AI prompts should prioritize

    Returns:
        Populated StrategySelector
    """
    selector = StrategySelector()
    selector.register(PatternExtractionStrategy(lookup))

    if ai_client is not None:
        selector.register(
            AITextExtractionStrategy(
                ai_client,
                required_fields=required_fields,
                hint_extractor=PatternExtractor(lookup),
            )
        )
        selector.register(AIVisionExtractionStrategy(ai_client, required_fields=required_fields))
    else:
        logger.info("AI client not configured; running pattern extraction only")

    logger.info(f"Strategy selector initialized with {len(selector)} strategies")
    return selector
