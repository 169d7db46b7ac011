"""
AI Extraction Client - tier-based, schema-constrained extraction with fallback.

Callers ask for a tier (cheap, standard, vision), never a model. Each tier
is tried `attempts_per_tier` times, then the client escalates along
TIER_ESCALATION and finally tries the optional fallback model. Every attempt
is bounded by asyncio.wait_for. Provider exceptions, timeouts and schema
violations come back as typed failure values; malformed output is never
returned as success.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ...domain.ai.ports import (
    TIER_ESCALATION,
    AIFailure,
    AITimeout,
    LLMError,
    LLMExtractionResult,
    LLMProviderPort,
    LLMRequest,
    LLMTimeoutError,
    ModelTier,
    ProviderError,
    SchemaViolation,
    TierModel,
)
from ...extraction.hallucination_guards import apply_hallucination_guards
from ...extraction.prompts import build_text_extraction_prompt, build_vision_extraction_prompt
from ...extraction.schemas.ai_output import (
    AIOutputSchemaError,
    ParsedAIOutput,
    ai_output_json_schema,
    parse_ai_output,
)
from ...observability import metrics
from .json_salvage import salvage_json
from .token_estimator import TokenEstimator

logger = logging.getLogger(__name__)

REQUIRED_FIELD_DEFAULT_CONFIDENCE = 0.6
OPTIONAL_FIELD_DEFAULT_CONFIDENCE = 0.55
FALLBACK_LABEL = "fallback"


@dataclass(frozen=True)
class AIClientConfig:
    """
    Immutable client configuration, built from settings.

    Attributes:
        tier_models: Tier -> provider/model it resolves to
        fallback_model: Optional last-resort model after escalation is exhausted
        attempt_timeout_s: Upper bound for one provider call
        attempts_per_tier: Attempts on a tier before escalating (1 + one retry)
        cheap_token_threshold: Text inputs estimated above this go to standard
    """
    tier_models: Mapping[ModelTier, TierModel]
    fallback_model: Optional[TierModel] = None
    attempt_timeout_s: float = 30.0
    attempts_per_tier: int = 2
    cheap_token_threshold: int = 4000

    def tier_chain(self, start: ModelTier) -> List[Tuple[str, TierModel]]:
        """Ordered (label, model) pairs tried for a request starting at `start`."""
        chain: List[Tuple[str, TierModel]] = []
        tier: Optional[ModelTier] = start
        while tier is not None:
            if tier in self.tier_models:
                chain.append((tier.value, self.tier_models[tier]))
            tier = TIER_ESCALATION.get(tier)
        return chain

    def max_attempts(self, start: ModelTier) -> int:
        attempts = len(self.tier_chain(start)) * self.attempts_per_tier
        if self.fallback_model is not None:
            attempts += 1
        return attempts

    def total_budget_s(self, start: ModelTier) -> float:
        """Sum of attempt timeouts; the longest a request may take."""
        return self.max_attempts(start) * self.attempt_timeout_s


@dataclass
class AIExtractionRequest:
    """
    Provider-agnostic extraction request.

    Attributes:
        text: Document text (or text accompanying images)
        images: Image bytes for the vision tier
        image_mime_type: MIME type of the images
        tier: Requested tier; chosen automatically when None
        required_fields: Canonical keys the caller needs most
        known_values: Values already found by deterministic extraction
    """
    text: str = ""
    images: List[bytes] = field(default_factory=list)
    image_mime_type: str = "image/jpeg"
    tier: Optional[ModelTier] = None
    required_fields: Sequence[str] = ()
    known_values: Optional[Dict[str, Any]] = None


@dataclass
class AIExtractionOutcome:
    """
    Result of an extraction request (success or typed failure).

    Attributes:
        success: True if a schema-conformant answer was obtained
        values: Canonical key -> value (empty on failure)
        confidences: Canonical key -> confidence after guards
        tier_used: Tier label of the last attempt ('fallback' for the fallback model)
        provider: Provider of the last attempt
        model: Model of the last attempt
        attempts: Number of provider calls made
        error: Last typed failure, None on success
        dropped_fields: Response keys discarded because they were outside the schema
        tokens_in: Input tokens summed over all attempts
        tokens_out: Output tokens summed over all attempts
        cost_micros: Cost summed over all attempts
        warnings: Guard and parsing warnings of the successful attempt
    """
    success: bool
    values: Dict[str, Any] = field(default_factory=dict)
    confidences: Dict[str, float] = field(default_factory=dict)
    tier_used: Optional[str] = None
    provider: Optional[str] = None
    model: Optional[str] = None
    attempts: int = 0
    error: Optional[AIFailure] = None
    dropped_fields: List[str] = field(default_factory=list)
    tokens_in: int = 0
    tokens_out: int = 0
    cost_micros: int = 0
    warnings: List[str] = field(default_factory=list)


def _failure_status(failure: AIFailure) -> str:
    if isinstance(failure, AITimeout):
        return "timeout"
    if isinstance(failure, SchemaViolation):
        return "schema_violation"
    return "provider_error"


class AIExtractionClient:
    """
    Orchestrates prompt building, provider calls, retry/escalation and
    response validation.

    Example:
        client = AIExtractionClient(providers={"openai": OpenAIProvider()}, config=config)
        outcome = await client.extract(AIExtractionRequest(text=email_body))
        if outcome.success:
            print(outcome.values)
    """

    def __init__(self, providers: Mapping[str, LLMProviderPort], config: AIClientConfig):
        """
        Args:
            providers: Provider name -> provider adapter
            config: Tier map, timeouts and retry policy
        """
        self.providers = dict(providers)
        self.config = config
        self._schema = ai_output_json_schema()

    def choose_tier(self, request: AIExtractionRequest) -> ModelTier:
        """Explicit tier wins; images go to vision; short text to cheap."""
        if request.tier is not None:
            return request.tier
        if request.images:
            return ModelTier.VISION

        estimated = TokenEstimator.estimate_text_tokens(request.text)
        if estimated <= self.config.cheap_token_threshold:
            return ModelTier.CHEAP
        return ModelTier.STANDARD

    def total_budget_s(self, request: AIExtractionRequest) -> float:
        return self.config.total_budget_s(self.choose_tier(request))

    def _build_prompts(self, request: AIExtractionRequest) -> Tuple[str, str]:
        if request.images:
            return build_vision_extraction_prompt(
                schema=self._schema,
                required_fields=request.required_fields,
                document_text=request.text,
            )
        return build_text_extraction_prompt(
            document_text=request.text,
            schema=self._schema,
            required_fields=request.required_fields,
            known_values=request.known_values,
        )

    def _plan(self, tier: ModelTier) -> List[Tuple[str, TierModel]]:
        plan: List[Tuple[str, TierModel]] = []
        for label, tier_model in self.config.tier_chain(tier):
            plan.extend([(label, tier_model)] * self.config.attempts_per_tier)
        if self.config.fallback_model is not None:
            plan.append((FALLBACK_LABEL, self.config.fallback_model))
        return plan

    async def extract(self, request: AIExtractionRequest) -> AIExtractionOutcome:
        """
        Run the request through the tier plan until one attempt succeeds.

        Returns:
            AIExtractionOutcome; on exhaustion `error` holds the last failure

        Raises:
            Should not raise - all provider and schema errors are returned.
            asyncio.CancelledError propagates so callers can abandon requests.
        """
        tier = self.choose_tier(request)
        plan = self._plan(tier)
        outcome = AIExtractionOutcome(success=False)

        if not plan:
            outcome.error = ProviderError(
                status=None, message=f"No model configured for tier '{tier.value}'"
            )
            return outcome

        system_prompt, user_prompt = self._build_prompts(request)

        for attempt_number, (label, tier_model) in enumerate(plan, start=1):
            outcome.attempts = attempt_number
            outcome.tier_used = label
            outcome.provider = tier_model.provider
            outcome.model = tier_model.model

            llm_result, parsed, failure = await self._attempt(
                label, tier_model, system_prompt, user_prompt, request
            )

            if llm_result is not None:
                outcome.tokens_in += llm_result.tokens_in or 0
                outcome.tokens_out += llm_result.tokens_out or 0
                outcome.cost_micros += llm_result.cost_micros

            if failure is not None:
                outcome.error = failure
                logger.warning(
                    f"AI attempt {attempt_number}/{len(plan)} failed: {failure.message}",
                    extra={
                        "tier": label,
                        "provider": tier_model.provider,
                        "model": tier_model.model,
                        "attempt": attempt_number,
                        "status": _failure_status(failure),
                    },
                )
                continue

            self._accept(outcome, parsed, request, llm_result)
            return outcome

        logger.error(
            f"AI extraction failed after {outcome.attempts} attempt(s)",
            extra={"tier": outcome.tier_used, "status": _failure_status(outcome.error)},
        )
        return outcome

    def _accept(
        self,
        outcome: AIExtractionOutcome,
        parsed: ParsedAIOutput,
        request: AIExtractionRequest,
        llm_result: LLMExtractionResult,
    ) -> None:
        required = set(request.required_fields)
        confidences: Dict[str, float] = {}
        for key in parsed.values:
            reported = parsed.reported_confidence.get(key)
            if reported is not None:
                confidences[key] = float(reported)
            elif key in required:
                confidences[key] = REQUIRED_FIELD_DEFAULT_CONFIDENCE
            else:
                confidences[key] = OPTIONAL_FIELD_DEFAULT_CONFIDENCE

        # Text accompanying images is not where image-read values come from
        source_text = "" if request.images else request.text
        report = apply_hallucination_guards(parsed.values, confidences, source_text)

        outcome.success = True
        outcome.error = None
        outcome.values = report.values
        outcome.confidences = report.confidences
        outcome.dropped_fields = list(parsed.dropped_fields)
        outcome.warnings = list(llm_result.warnings) + report.warnings

        if parsed.dropped_fields:
            metrics.ai_fields_dropped_total.inc(len(parsed.dropped_fields))

        logger.info(
            f"AI extraction succeeded with {len(report.values)} field(s)",
            extra={
                "tier": outcome.tier_used,
                "provider": outcome.provider,
                "model": outcome.model,
                "attempt": outcome.attempts,
                "dropped_fields": outcome.dropped_fields,
            },
        )

    async def _attempt(
        self,
        label: str,
        tier_model: TierModel,
        system_prompt: str,
        user_prompt: str,
        request: AIExtractionRequest,
    ) -> Tuple[Optional[LLMExtractionResult], Optional[ParsedAIOutput], Optional[AIFailure]]:
        """One provider call plus response validation."""
        provider = self.providers.get(tier_model.provider)
        if provider is None:
            failure = ProviderError(
                status=None,
                message=f"Provider '{tier_model.provider}' is not configured",
                provider=tier_model.provider,
            )
            metrics.ai_calls_total.labels(tier_model.provider, label, "provider_error").inc()
            return None, None, failure

        llm_request = LLMRequest(
            model=tier_model.model,
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            json_schema=self._schema,
            images=list(request.images),
            image_mime_type=request.image_mime_type,
            timeout_s=self.config.attempt_timeout_s,
        )

        try:
            llm_result = await asyncio.wait_for(
                provider.complete_json(llm_request),
                timeout=self.config.attempt_timeout_s,
            )
        except (asyncio.TimeoutError, LLMTimeoutError) as e:
            metrics.ai_calls_total.labels(tier_model.provider, label, "timeout").inc()
            return None, None, AITimeout(
                message=str(e) or f"No response within {self.config.attempt_timeout_s}s",
                timeout_s=self.config.attempt_timeout_s,
            )
        except LLMError as e:
            metrics.ai_calls_total.labels(tier_model.provider, label, "provider_error").inc()
            return None, None, ProviderError(
                status=e.status, message=str(e), provider=tier_model.provider
            )

        metrics.ai_latency_ms.labels(tier_model.provider, label).observe(llm_result.latency_ms)
        metrics.ai_tokens_total.labels(tier_model.provider, "input").inc(llm_result.tokens_in or 0)
        metrics.ai_tokens_total.labels(tier_model.provider, "output").inc(llm_result.tokens_out or 0)
        metrics.ai_cost_micros_total.labels(tier_model.provider).inc(llm_result.cost_micros)

        data = llm_result.parsed_json
        if data is None:
            data = salvage_json(llm_result.raw_output)
        if data is None:
            metrics.ai_calls_total.labels(tier_model.provider, label, "schema_violation").inc()
            return llm_result, None, SchemaViolation(
                message="Response is not valid JSON",
                details=[llm_result.raw_output[:200]],
            )

        try:
            parsed = parse_ai_output(data)
        except AIOutputSchemaError as e:
            metrics.ai_calls_total.labels(tier_model.provider, label, "schema_violation").inc()
            return llm_result, None, SchemaViolation(message=str(e), details=e.details)

        metrics.ai_calls_total.labels(tier_model.provider, label, "success").inc()
        return llm_result, parsed, None
