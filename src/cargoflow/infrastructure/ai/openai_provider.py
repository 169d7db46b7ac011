"""
OpenAI Provider - Concrete implementation of LLMProviderPort for OpenAI.

Uses the async OpenAI SDK with JSON mode for text and vision requests.
"""

import base64
import json
import logging
import os
import time
from typing import Optional

from openai import (
    APIConnectionError,
    APIError,
    APIStatusError,
    APITimeoutError,
    AsyncOpenAI,
    AuthenticationError,
    RateLimitError,
)

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

logger = logging.getLogger(__name__)

MAX_IMAGES_PER_REQUEST = 5


class OpenAIProvider(LLMProviderPort):
    """
    OpenAI implementation of LLMProviderPort.

    Handles authentication, request formatting (text and image_url content
    parts), JSON parsing, cost tracking and SDK error mapping.
    """

    def __init__(self, api_key: Optional[str] = None, client: Optional[AsyncOpenAI] = None):
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key (defaults to OPENAI_API_KEY env var)
            client: Pre-built client (tests, custom base URLs)

        Raises:
            ValueError: If neither a client nor an API key is available
        """
        if client is not None:
            self.client = client
            return

        api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ValueError("OpenAI API key not provided. Set OPENAI_API_KEY environment variable.")
        self.client = AsyncOpenAI(api_key=api_key)

    @property
    def provider_name(self) -> str:
        return "openai"

    def _build_messages(self, request: LLMRequest) -> list:
        if not request.images:
            user_content = request.user_prompt
        else:
            user_content = [{"type": "text", "text": request.user_prompt}]
            for img_bytes in request.images[:MAX_IMAGES_PER_REQUEST]:
                b64_image = base64.b64encode(img_bytes).decode("utf-8")
                user_content.append({
                    "type": "image_url",
                    "image_url": {"url": f"data:{request.image_mime_type};base64,{b64_image}"},
                })

        return [
            {"role": "system", "content": request.system_prompt},
            {"role": "user", "content": user_content},
        ]

    async def complete_json(self, request: LLMRequest) -> LLMExtractionResult:
        """
        Run one JSON-mode chat completion.

        Raises:
            LLMTimeoutError, LLMRateLimitError, LLMAuthError, LLMServiceError
        """
        start_time = time.perf_counter()
        warnings = []

        try:
            response = await self.client.chat.completions.create(
                model=request.model,
                messages=self._build_messages(request),
                response_format={"type": "json_object"},
                temperature=0.0,  # Deterministic for extraction
                timeout=request.timeout_s,
            )
        except APITimeoutError as e:
            raise LLMTimeoutError(f"OpenAI API timeout: {e}") from e
        except RateLimitError as e:
            raise LLMRateLimitError(f"OpenAI rate limit exceeded: {e}", status=e.status_code) from e
        except AuthenticationError as e:
            raise LLMAuthError(f"OpenAI authentication failed: {e}", status=e.status_code) from e
        except APIStatusError as e:
            raise LLMServiceError(f"OpenAI service error: {e}", status=e.status_code) from e
        except (APIConnectionError, APIError) as e:
            raise LLMServiceError(f"OpenAI service error: {e}") from e

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        raw_output = response.choices[0].message.content or ""

        parsed_json = None
        try:
            parsed_json = json.loads(raw_output)
        except json.JSONDecodeError as e:
            warnings.append(f"Failed to parse LLM JSON output: {e}")

        usage = response.usage
        prompt_tokens = usage.prompt_tokens if usage else None
        completion_tokens = usage.completion_tokens if usage else None

        cost_micros = 0
        if prompt_tokens and completion_tokens:
            try:
                cost_micros = CostCalculator.calculate_cost_micros(
                    provider="openai",
                    model=request.model,
                    prompt_tokens=prompt_tokens,
                    completion_tokens=completion_tokens,
                )
            except ValueError as e:
                warnings.append(f"Failed to calculate cost: {e}")

        return LLMExtractionResult(
            raw_output=raw_output,
            parsed_json=parsed_json if isinstance(parsed_json, dict) else None,
            provider="openai",
            model=request.model,
            tokens_in=prompt_tokens,
            tokens_out=completion_tokens,
            latency_ms=latency_ms,
            cost_micros=cost_micros,
            warnings=warnings,
        )
