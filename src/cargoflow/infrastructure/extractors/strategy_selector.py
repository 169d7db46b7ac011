"""Strategy Selector - Manages available strategies and selects the applicable ones.

Registry pattern for managing multiple extraction strategies. Selection is
capability-based: every strategy answers `supports(document)` from document
metadata and content signals, and the selector returns all supporting
strategies in priority order so they can be combined.
"""

import logging
from typing import List

from ...domain.documents import RawDocument
from ...domain.extraction.ports import ExtractionStrategy

logger = logging.getLogger(__name__)


class StrategySelector:
    """Registry for extraction strategies.

    Example:
        selector = StrategySelector()
        selector.register(PatternExtractionStrategy(lookup))
        selector.register(AIVisionExtractionStrategy(client))

        strategies = selector.select(document)
        # e.g. [pattern_v1, ai_text_v1] for an email
    """

    def __init__(self):
        """Initialize empty registry."""
        self._strategies: List[ExtractionStrategy] = []

    def register(self, strategy: ExtractionStrategy) -> None:
        """Register a strategy.

        Raises:
            ValueError: If strategy is None or its name is already registered
        """
        if strategy is None:
            raise ValueError("Cannot register None as strategy")
        if any(s.name == strategy.name for s in self._strategies):
            raise ValueError(f"Strategy already registered: {strategy.name}")

        self._strategies.append(strategy)
        logger.info(f"Registered strategy: {strategy.name} (priority={strategy.priority})")

    def select(self, document: RawDocument) -> List[ExtractionStrategy]:
        """Get every strategy that supports the document.

        Strategies are queried in priority order (lower number first,
        registration order on ties).

        Returns:
            Supporting strategies, possibly empty
        """
        ordered = sorted(self._strategies, key=lambda s: s.priority)
        selected = [strategy for strategy in ordered if strategy.supports(document)]

        if not selected:
            logger.warning(
                f"No strategy supports document (mime_type={document.mime_type}, "
                f"channel={document.source_channel.value})"
            )
        else:
            logger.debug(
                f"Selected strategies {[s.name for s in selected]} for "
                f"mime_type={document.mime_type}"
            )
        return selected

    def list_strategies(self) -> List[ExtractionStrategy]:
        return list(self._strategies)

    def clear(self) -> None:
        """Clear all registered strategies.

        Useful for testing or re-initialization.
        """
        count = len(self._strategies)
        self._strategies.clear()
        logger.info(f"Cleared {count} strategies from selector")

    def __len__(self) -> int:
        return len(self._strategies)
