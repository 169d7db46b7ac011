"""Per-call cost of AI extraction attempts, in integer micro-USD."""

from typing import Dict, Tuple

MICROS_PER_USD = 1_000_000

# USD per 1M tokens as (input, output), keyed by provider then model
PRICING: Dict[str, Dict[str, Tuple[float, float]]] = {
    "openai": {
        "gpt-4o-mini": (0.150, 0.600),
        "gpt-4o": (2.50, 10.00),
        "gpt-4.1-mini": (0.40, 1.60),
        "gpt-4.1": (2.00, 8.00),
    },
    "anthropic": {
        "claude-3-5-haiku-latest": (0.80, 4.00),
        "claude-3-5-sonnet-latest": (3.00, 15.00),
        "claude-3-haiku-20240307": (0.25, 1.25),
        "claude-sonnet-4-20250514": (3.00, 15.00),
    },
}


class CostCalculator:
    """Prices extraction attempts so usage lines and metrics carry a cost."""

    PRICING = PRICING

    @staticmethod
    def get_model_pricing(provider: str, model: str) -> Tuple[float, float]:
        """(input_rate, output_rate) in USD per 1M tokens.

        Raises:
            ValueError: Provider or model is not priced
        """
        models = CostCalculator.PRICING.get(provider.lower())
        if models is None:
            raise ValueError(f"Unknown provider: {provider}")
        rates = models.get(model.lower())
        if rates is None:
            raise ValueError(f"Unknown model for {provider}: {model}")
        return rates

    @staticmethod
    def calculate_cost_micros(
        provider: str,
        model: str,
        prompt_tokens: int,
        completion_tokens: int,
    ) -> int:
        """
        Cost of one attempt in micro-USD.

        Rates are per million tokens, so tokens * rate is already in micros.

        Example:
            >>> CostCalculator.calculate_cost_micros("openai", "gpt-4o-mini", 1000, 500)
            450
        """
        input_rate, output_rate = CostCalculator.get_model_pricing(provider, model)
        return int(round(prompt_tokens * input_rate + completion_tokens * output_rate))

    @staticmethod
    def format_cost_usd(cost_micros: int) -> str:
        """450 -> '$0.000450'"""
        return f"${cost_micros / MICROS_PER_USD:.6f}"
