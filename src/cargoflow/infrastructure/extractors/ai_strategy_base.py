"""Shared plumbing for the AI-backed strategies.

Turns an AIExtractionOutcome into a StrategyOutcome: values become
`ai`-sourced candidates, typed failures become recorded ExtractionErrors.
"""

import logging
import time
from typing import List, Sequence

from ...domain.ai.ports import AIFailure, AITimeout, ProviderError, SchemaViolation
from ...domain.extraction.errors import ErrorKind, ExtractionError
from ...domain.extraction.fields import DEFAULT_REQUIRED_FIELDS, ExtractionField, FieldSource
from ...domain.extraction.ports import ExtractionStrategy, StrategyOutcome
from ..ai.extraction_client import AIExtractionClient, AIExtractionOutcome, AIExtractionRequest

logger = logging.getLogger(__name__)


def failure_to_error(failure: AIFailure, strategy: str, attempts: int) -> ExtractionError:
    """Map a typed AI failure onto the extraction error taxonomy."""
    details = {"attempts": attempts}
    if isinstance(failure, AITimeout):
        kind = ErrorKind.TIMEOUT
        details["timeout_s"] = failure.timeout_s
    elif isinstance(failure, SchemaViolation):
        kind = ErrorKind.SCHEMA_VIOLATION
        details["violations"] = list(failure.details)
    elif isinstance(failure, ProviderError):
        kind = ErrorKind.PROVIDER_ERROR
        details["status"] = failure.status
        details["provider"] = failure.provider
    else:
        kind = ErrorKind.STRATEGY_FAILURE
    return ExtractionError(kind=kind, message=failure.message, strategy=strategy, details=details)


def outcome_to_candidates(outcome: AIExtractionOutcome, strategy: str) -> List[ExtractionField]:
    return [
        ExtractionField(
            key=key,
            value=value,
            confidence=min(max(outcome.confidences.get(key, 0.0), 0.0), 1.0),
            source=FieldSource.AI,
            strategy=strategy,
        )
        for key, value in outcome.values.items()
    ]


class AIStrategyBase(ExtractionStrategy):
    """Common constructor and request execution for AI strategies."""

    def __init__(
        self,
        client: AIExtractionClient,
        required_fields: Sequence[str] = tuple(DEFAULT_REQUIRED_FIELDS),
    ):
        self.client = client
        self.required_fields = tuple(required_fields)

    @property
    def priority(self) -> int:
        return 90

    async def _run(self, request: AIExtractionRequest) -> StrategyOutcome:
        start_time = time.perf_counter()
        outcome = await self.client.extract(request)
        runtime_ms = int((time.perf_counter() - start_time) * 1000)

        metrics = {
            "runtime_ms": runtime_ms,
            "tier": outcome.tier_used,
            "provider": outcome.provider,
            "model": outcome.model,
            "attempts": outcome.attempts,
            "tokens_in": outcome.tokens_in,
            "tokens_out": outcome.tokens_out,
            "cost_micros": outcome.cost_micros,
            "dropped_fields": list(outcome.dropped_fields),
            "warnings": list(outcome.warnings),
        }

        if not outcome.success:
            return StrategyOutcome(
                strategy=self.name,
                error=failure_to_error(outcome.error, self.name, outcome.attempts),
                metrics=metrics,
            )

        candidates = outcome_to_candidates(outcome, self.name)
        metrics["fields_found"] = len(candidates)
        return StrategyOutcome(strategy=self.name, candidates=candidates, metrics=metrics)
