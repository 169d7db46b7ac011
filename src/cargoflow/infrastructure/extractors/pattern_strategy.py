"""Pattern strategy - deterministic regex extraction as an ExtractionStrategy.

Always available for text-bearing documents; needs no network and no
configuration beyond the optional reference lookup.
"""

import logging
import time
from typing import Optional

from ...domain.documents import RawDocument
from ...domain.extraction.context import ExtractionContext
from ...domain.extraction.errors import ErrorKind, ExtractionError
from ...domain.extraction.ports import ExtractionStrategy, StrategyOutcome
from ...extraction.pattern_extractor import STRATEGY_NAME, PatternExtractor
from ..reference import ReferenceLookup

logger = logging.getLogger(__name__)


class PatternExtractionStrategy(ExtractionStrategy):
    """Rule-based extraction of dimensions, weight, route, contact and vehicle.

    Features:
    - Decimal comma and point, cm/m/mm, labeled and unlabeled triples
    - Preposition-anchored routes in several languages
    - Vehicle recognition through the reference lookup
    """

    def __init__(self, lookup: Optional[ReferenceLookup] = None):
        self.extractor = PatternExtractor(lookup)

    @property
    def name(self) -> str:
        return STRATEGY_NAME

    @property
    def priority(self) -> int:
        return 50

    def supports(self, document: RawDocument) -> bool:
        return document.has_text()

    async def extract(self, document: RawDocument, context: ExtractionContext) -> StrategyOutcome:
        start_time = time.perf_counter()

        try:
            candidates = self.extractor.extract(document.as_text())
        except Exception as e:
            runtime_ms = int((time.perf_counter() - start_time) * 1000)
            logger.error(f"Pattern extraction failed: {e}", exc_info=True)
            return StrategyOutcome(
                strategy=self.name,
                error=ExtractionError(
                    kind=ErrorKind.STRATEGY_FAILURE,
                    message=str(e),
                    strategy=self.name,
                    details={"error_type": type(e).__name__},
                ),
                metrics={"runtime_ms": runtime_ms},
            )

        runtime_ms = int((time.perf_counter() - start_time) * 1000)
        logger.info(
            f"Pattern extraction found {len(candidates)} candidates, runtime={runtime_ms}ms",
            extra={"strategy": self.name},
        )
        return StrategyOutcome(
            strategy=self.name,
            candidates=candidates,
            metrics={"runtime_ms": runtime_ms, "fields_found": len(candidates)},
        )
