"""Recover a JSON object from a model response.

Models occasionally wrap JSON in markdown code fences or a sentence of
prose even in JSON mode. Salvage strips those wrappers; anything still not
parseable is reported as a schema violation by the caller.
"""

import json
import re
from typing import Any, Optional

_CODE_FENCE = re.compile(r"```(?:json)?\s*(?P<body>.*?)\s*```", re.DOTALL | re.IGNORECASE)


def _first_object(text: str) -> Optional[str]:
    """Return the first balanced {...} block, respecting string literals."""
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
            elif char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start:index + 1]
        start = text.find("{", start + 1)
    return None


def salvage_json(raw_output: str) -> Optional[Any]:
    """Parse raw model output, tolerating code fences and surrounding prose.

    Returns:
        Decoded JSON value, or None if no JSON could be recovered
    """
    if not raw_output or not raw_output.strip():
        return None

    candidates = [raw_output.strip()]
    fence = _CODE_FENCE.search(raw_output)
    if fence:
        candidates.append(fence.group("body"))
    block = _first_object(raw_output)
    if block:
        candidates.append(block)

    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    return None
