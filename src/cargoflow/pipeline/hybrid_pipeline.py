"""Hybrid Extraction Pipeline - run strategies, merge per field, score.

Flow for one document:
1. Select every supporting strategy (capability-based).
2. Run them concurrently; each is bounded by its timeout budget.
3. Add lookup-sourced candidates from the reference tables.
4. Merge per canonical key (confidence, then source precedence).
5. Compute the weighted pipeline confidence and the status.
6. Publish one immutable ExtractionResult.

Strategy failures are recorded in the result, never raised. Nothing is
published before the merge completes, so a cancelled run leaves no partial
state behind.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from ..domain.documents import RawDocument
from ..domain.extraction.confidence import calculate_pipeline_confidence, determine_status
from ..domain.extraction.context import ExtractionContext
from ..domain.extraction.errors import ErrorKind, ExtractionError
from ..domain.extraction.fields import DEFAULT_REQUIRED_FIELDS, ExtractionField
from ..domain.extraction.merge import merge_candidates
from ..domain.extraction.ports import ExtractionStrategy, StrategyOutcome
from ..domain.extraction.result import ExtractionResult, ExtractionStatus
from ..infrastructure.extractors.strategy_selector import StrategySelector
from ..infrastructure.reference import ReferenceLookup
from ..observability import metrics
from ..observability.correlation import extraction_scope
from .document_locks import DocumentLockRegistry
from .reference_enrichment import DEFAULT_REFERENCE_DIMENSION_CONFIDENCE, enrich_from_reference

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineConfig:
    """
    Immutable pipeline configuration, built from settings.

    Attributes:
        required_fields: Required canonical key -> weight in the pipeline confidence
        success_threshold: Minimum confidence every required field needs for 'success'
        strategy_timeout_s: Overrides the per-strategy budget when set
        reference_dimension_confidence: Confidence of lookup-derived dimensions/weight
    """
    required_fields: Mapping[str, float] = field(
        default_factory=lambda: dict(DEFAULT_REQUIRED_FIELDS)
    )
    success_threshold: float = 0.6
    strategy_timeout_s: Optional[float] = None
    reference_dimension_confidence: float = DEFAULT_REFERENCE_DIMENSION_CONFIDENCE

    def __post_init__(self):
        if not 0.0 <= self.success_threshold <= 1.0:
            raise ValueError(f"success_threshold must be within [0, 1], got {self.success_threshold}")
        if not any(weight > 0 for weight in self.required_fields.values()):
            raise ValueError("At least one required field must carry a positive weight")


class HybridExtractionPipeline:
    """
    Orchestrates pattern and AI strategies for one document at a time.

    Example:
        pipeline = HybridExtractionPipeline(selector, PipelineConfig(), lookup=lookup)
        result = await pipeline.extract(RawDocument.from_text("doc-1", email_body))
        print(result.status, result.confidence)
    """

    def __init__(
        self,
        selector: StrategySelector,
        config: Optional[PipelineConfig] = None,
        lookup: Optional[ReferenceLookup] = None,
        locks: Optional[DocumentLockRegistry] = None,
    ):
        self.selector = selector
        self.config = config or PipelineConfig()
        self.lookup = lookup
        self.locks = locks or DocumentLockRegistry()

    async def extract(
        self,
        document: RawDocument,
        context: Optional[ExtractionContext] = None,
    ) -> ExtractionResult:
        """
        Extract one document.

        Concurrent calls for the same document id are serialized.

        Returns:
            ExtractionResult (status may be 'failed'; errors are inside)

        Raises:
            asyncio.CancelledError: The caller cancelled; nothing is published
        """
        context = context or ExtractionContext()
        async with self.locks.hold(document.document_id):
            with extraction_scope(document.document_id):
                start_time = time.perf_counter()
                try:
                    result = await self._extract(document, context)
                except asyncio.CancelledError:
                    metrics.documents_extracted_total.labels("cancelled").inc()
                    logger.warning("Extraction cancelled; in-flight results discarded")
                    raise

                metrics.extraction_duration_seconds.observe(time.perf_counter() - start_time)
                return result

    async def _extract(self, document: RawDocument, context: ExtractionContext) -> ExtractionResult:
        strategies = self.selector.select(document)
        outcomes: List[StrategyOutcome] = list(
            await asyncio.gather(
                *(self._run_strategy(strategy, document, context) for strategy in strategies)
            )
        )

        candidates: List[ExtractionField] = [c for o in outcomes for c in o.candidates]
        if self.lookup is not None and candidates:
            candidates.extend(
                enrich_from_reference(
                    candidates,
                    self.lookup,
                    dimension_confidence=self.config.reference_dimension_confidence,
                )
            )

        fields = merge_candidates(candidates)
        all_failed = all(not o.success for o in outcomes)

        confidence, breakdown = calculate_pipeline_confidence(fields, self.config.required_fields)
        status = determine_status(
            fields,
            self.config.required_fields,
            self.config.success_threshold,
            all_strategies_failed=all_failed,
        )

        errors = [o.error for o in outcomes if o.error is not None]
        if status == ExtractionStatus.FAILED:
            errors.append(self._total_failure(strategies, outcomes, all_failed))

        breakdown["strategy_metrics"] = {o.strategy: o.metrics for o in outcomes}

        result = ExtractionResult(
            document_id=document.document_id,
            fields=fields,
            confidence=confidence,
            status=status,
            errors=tuple(errors),
            strategies=tuple(s.name for s in strategies),
            confidence_breakdown=breakdown,
        )

        metrics.documents_extracted_total.labels(status.value).inc()
        metrics.extraction_confidence_histogram.observe(confidence)
        for error in errors:
            if error.strategy:
                metrics.strategy_failures_total.labels(error.strategy, error.kind.value).inc()

        logger.info(
            f"Extraction finished: status={status.value}, confidence={confidence:.3f}, "
            f"fields={len(result.populated_keys())}, errors={len(errors)}",
            extra={"status": status.value, "confidence": confidence},
        )
        return result

    @staticmethod
    def _total_failure(
        strategies: List[ExtractionStrategy],
        outcomes: List[StrategyOutcome],
        all_failed: bool,
    ) -> ExtractionError:
        if not strategies:
            reason = "no strategy supports the document"
        elif all_failed:
            reason = "every strategy failed"
        else:
            reason = "no required field was extracted"
        return ExtractionError(
            kind=ErrorKind.TOTAL_EXTRACTION_FAILURE,
            message=f"Extraction failed: {reason}",
            details={
                "strategies": [s.name for s in strategies],
                "failed_strategies": [o.strategy for o in outcomes if not o.success],
            },
        )

    def _budget_for(self, strategy: ExtractionStrategy, document: RawDocument) -> Optional[float]:
        if self.config.strategy_timeout_s is not None:
            return self.config.strategy_timeout_s
        return strategy.timeout_budget_s(document)

    async def _run_strategy(
        self,
        strategy: ExtractionStrategy,
        document: RawDocument,
        context: ExtractionContext,
    ) -> StrategyOutcome:
        """Run one strategy; every failure becomes a StrategyOutcome error."""
        budget = self._budget_for(strategy, document)

        try:
            if budget is None:
                return await strategy.extract(document, context)
            return await asyncio.wait_for(strategy.extract(document, context), timeout=budget)
        except asyncio.TimeoutError:
            logger.warning(
                f"Strategy {strategy.name} exceeded its budget of {budget:.1f}s",
                extra={"strategy": strategy.name},
            )
            return StrategyOutcome(
                strategy=strategy.name,
                error=ExtractionError(
                    kind=ErrorKind.TIMEOUT,
                    message=f"Strategy exceeded total budget of {budget:.1f}s",
                    strategy=strategy.name,
                    details={"budget_s": budget},
                ),
            )
        except Exception as e:
            logger.error(
                f"Strategy {strategy.name} raised: {e}",
                exc_info=True,
                extra={"strategy": strategy.name},
            )
            return StrategyOutcome(
                strategy=strategy.name,
                error=ExtractionError(
                    kind=ErrorKind.STRATEGY_FAILURE,
                    message=str(e),
                    strategy=strategy.name,
                    details={"error_type": type(e).__name__},
                ),
            )
