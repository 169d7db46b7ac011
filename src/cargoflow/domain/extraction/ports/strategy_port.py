"""ExtractionStrategy port.

Defines the capability contract every extraction strategy (pattern, AI text,
AI vision) implements. The strategy selector and the hybrid pipeline only
depend on this interface.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from ...documents import RawDocument
from ..context import ExtractionContext
from ..errors import ExtractionError
from ..fields import ExtractionField


@dataclass
class StrategyOutcome:
    """Result of running one strategy against one document.

    Attributes:
        strategy: Name of the strategy
        candidates: Candidate fields (empty on failure)
        error: Recorded error when the strategy failed, None on success
        metrics: Runtime metrics (runtime_ms, tier, tokens, cost_micros, ...)
    """
    strategy: str
    candidates: List[ExtractionField] = field(default_factory=list)
    error: Optional[ExtractionError] = None
    metrics: dict = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.error is None


class ExtractionStrategy(ABC):
    """Port interface for extraction strategies.

    Implementations:
    - PatternExtractionStrategy: deterministic regex extraction, always available
    - AITextExtractionStrategy: language-model extraction from text
    - AIVisionExtractionStrategy: vision-model extraction from images/scans
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Stable strategy identifier (e.g. 'pattern_v1', 'ai_text_v1')."""

    @abstractmethod
    def supports(self, document: RawDocument) -> bool:
        """Check if this strategy can handle the document.

        Decided from document metadata and content signals (MIME type,
        presence of a text layer), never from the document's Python type.
        """

    @abstractmethod
    async def extract(
        self,
        document: RawDocument,
        context: ExtractionContext,
    ) -> StrategyOutcome:
        """Produce candidate fields for the document.

        Raises:
            Should not raise - failures are returned in StrategyOutcome.error
            so the pipeline can record them and continue with other strategies.
            Cancellation is the only exception that propagates.
        """

    @property
    def priority(self) -> int:
        """Selection order (lower = checked first). Default is 100.

        Examples:
            - Domain-specific format detectors: 10
            - Generic text extractors: 50
            - AI extractors: 90
        """
        return 100

    def timeout_budget_s(self, document: RawDocument) -> Optional[float]:
        """Upper bound on the wall time of `extract` for this document.

        None means unbounded (pure, local strategies). Strategies that block
        on external I/O return the sum of their attempt timeouts.
        """
        return None
