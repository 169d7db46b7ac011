"""
Anthropic Provider - Concrete implementation of LLMProviderPort for Claude models.

The Messages API has no JSON mode, so the schema travels in the prompt and
the response text is parsed with JSON salvage (code fences, surrounding prose).
"""

import base64
import logging
import os
import time
from typing import Optional

import anthropic

from ...domain.ai.ports import (
    LLMAuthError,
    LLMExtractionResult,
    LLMProviderPort,
    LLMRateLimitError,
    LLMRequest,
    LLMServiceError,
    LLMTimeoutError,
)
from .cost_calculator import CostCalculator
from .json_salvage import salvage_json

logger = logging.getLogger(__name__)

MAX_OUTPUT_TOKENS = 2048
MAX_IMAGES_PER_REQUEST = 5


class AnthropicProvider(LLMProviderPort):
    """
    Anthropic implementation of LLMProviderPort.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Optional[anthropic.AsyncAnthropic] = None,
    ):
        """
        Args:
            api_key: Anthropic API key (defaults to ANTHROPIC_API_KEY env var)
            client: Pre-built client (tests)

        Raises:
            ValueError: If neither a client nor an API key is available
        """
        if client is not None:
            self.client = client
            return

        api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not api_key:
            raise ValueError("Anthropic API key not provided. Set ANTHROPIC_API_KEY environment variable.")
        self.client = anthropic.AsyncAnthropic(api_key=api_key)

    @property
    def provider_name(self) -> str:
        return "anthropic"

    def _build_content(self, request: LLMRequest) -> list:
        content = []
        for img_bytes in request.images[:MAX_IMAGES_PER_REQUEST]:
            content.append({
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": request.image_mime_type,
                    "data": base64.b64encode(img_bytes).decode("utf-8"),
                },
            })
        content.append({"type": "text", "text": request.user_prompt})
        return content

    async def complete_json(self, request: LLMRequest) -> LLMExtractionResult:
        """
        Run one Messages API call and decode the JSON answer.

        Raises:
            LLMTimeoutError, LLMRateLimitError, LLMAuthError, LLMServiceError
        """
        start_time = time.perf_counter()
        warnings = []

        try:
            response = await self.client.messages.create(
                model=request.model,
                max_tokens=MAX_OUTPUT_TOKENS,
                system=request.system_prompt,
                messages=[{"role": "user", "content": self._build_content(request)}],
                temperature=0.0,
                timeout=request.timeout_s,
            )
        except anthropic.APITimeoutError as e:
            raise LLMTimeoutError(f"Anthropic API timeout: {e}") from e
        except anthropic.RateLimitError as e:
            raise LLMRateLimitError(f"Anthropic rate limit exceeded: {e}", status=e.status_code) from e
        except anthropic.AuthenticationError as e:
            raise LLMAuthError(f"Anthropic authentication failed: {e}", status=e.status_code) from e
        except anthropic.APIStatusError as e:
            raise LLMServiceError(f"Anthropic service error: {e}", status=e.status_code) from e
        except (anthropic.APIConnectionError, anthropic.APIError) as e:
            raise LLMServiceError(f"Anthropic service error: {e}") from e

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        raw_output = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )

        parsed = salvage_json(raw_output)
        if parsed is None:
            warnings.append("Failed to parse LLM JSON output")

        usage = response.usage
        tokens_in = usage.input_tokens if usage else None
        tokens_out = usage.output_tokens if usage else None

        cost_micros = 0
        if tokens_in and tokens_out:
            try:
                cost_micros = CostCalculator.calculate_cost_micros(
                    provider="anthropic",
                    model=request.model,
                    prompt_tokens=tokens_in,
                    completion_tokens=tokens_out,
                )
            except ValueError as e:
                warnings.append(f"Failed to calculate cost: {e}")

        return LLMExtractionResult(
            raw_output=raw_output,
            parsed_json=parsed if isinstance(parsed, dict) else None,
            provider="anthropic",
            model=request.model,
            tokens_in=tokens_in,
            tokens_out=tokens_out,
            latency_ms=latency_ms,
            cost_micros=cost_micros,
            warnings=warnings,
        )
