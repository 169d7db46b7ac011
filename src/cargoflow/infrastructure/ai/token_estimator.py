"""Rough token counts for routing freight documents between AI tiers.

Quote emails and short booking notes stay on the cheap tier; long
forwarded threads and pasted price lists go straight to the standard tier.
"""

import math

CHARS_PER_TOKEN = 4
PROMPT_OVERHEAD = 1.2


class TokenEstimator:
    """Character-based estimate, deliberately on the high side.

    The extraction prompt wraps the document in instructions and the output
    schema, so the raw character estimate is padded by PROMPT_OVERHEAD.
    """

    @staticmethod
    def estimate_text_tokens(text: str, add_buffer: bool = True) -> int:
        """
        Estimated prompt tokens for a document body.

        Example:
            >>> TokenEstimator.estimate_text_tokens("a" * 400)
            120
        """
        tokens = math.ceil(len(text) / CHARS_PER_TOKEN)
        return math.ceil(tokens * PROMPT_OVERHEAD) if add_buffer else tokens
