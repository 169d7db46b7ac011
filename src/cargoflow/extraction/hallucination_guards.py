"""Hallucination guards for AI extraction.

AI values are checked against the source text and against plausibility
ranges. Failing values are not silently trusted: anchor failures cap the
field confidence, range and format violations drop the value.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from .uom_normalization import PLAUSIBLE_RANGES

ANCHOR_FAILURE_CONFIDENCE_CAP = 0.4

# Free-text fields whose value should appear in the source text
ANCHORED_FIELDS = {
    "contact.name",
    "contact.company",
    "contact.email",
    "route.origin",
    "route.destination",
    "route.port_of_loading",
    "route.port_of_discharge",
    "vehicle.brand",
    "vehicle.model",
    "vehicle.vin",
}

RANGES: Dict[str, Tuple[float, float]] = {
    **PLAUSIBLE_RANGES,
    "vehicle.year": (1900, 2035),
    "cargo.quantity": (1, 10_000),
}

VIN_PATTERN = re.compile(r"^[A-HJ-NPR-Z0-9]{17}$")


def normalize_text(text: str) -> str:
    """Normalize text for anchor checking.

    Converts to uppercase and collapses whitespace.
    """
    return re.sub(r'\s+', ' ', text.upper()).strip()


def anchor_check(value: Any, source_text: str) -> bool:
    """Check if a string value appears in the source text.

    A value passes when the full value, its compact form (no spaces or
    hyphens) or any 4+ character token of it occurs in the source.
    """
    if not isinstance(value, str) or not value.strip():
        return True

    source_norm = normalize_text(source_text)
    value_norm = normalize_text(value)
    if value_norm in source_norm:
        return True

    value_compact = re.sub(r"[\s-]", "", value_norm)
    source_compact = re.sub(r"[\s-]", "", source_norm)
    if value_compact and value_compact in source_compact:
        return True

    return any(len(token) >= 4 and token in source_norm for token in value_norm.split())


def range_check(key: str, value: Any) -> Tuple[Any, str | None]:
    """Validate a numeric value is within its plausible range.

    Returns:
        Tuple of (validated_value, warning_message); value is None if invalid
    """
    bounds = RANGES.get(key)
    if bounds is None or value is None:
        return value, None

    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return None, f"{key}={value!r} is not numeric"

    low, high = bounds
    if not low <= value <= high:
        return None, f"{key}={value} outside plausible range [{low}, {high}]"

    return value, None


@dataclass
class GuardReport:
    values: Dict[str, Any]
    confidences: Dict[str, float]
    warnings: List[str] = field(default_factory=list)


def apply_hallucination_guards(
    values: Dict[str, Any],
    confidences: Dict[str, float],
    source_text: str,
) -> GuardReport:
    """Apply all hallucination guards to flattened AI output.

    Args:
        values: Canonical key -> AI value
        confidences: Canonical key -> confidence before guards
        source_text: Document text (empty for pure image input)

    Returns:
        GuardReport with surviving values, adjusted confidences and warnings
    """
    kept: Dict[str, Any] = {}
    adjusted: Dict[str, float] = {}
    warnings: List[str] = []

    for key, value in values.items():
        confidence = confidences.get(key, 0.0)

        value, warning = range_check(key, value)
        if warning:
            warnings.append(warning)
            continue

        if key == "vehicle.vin" and not VIN_PATTERN.match(str(value)):
            warnings.append(f"vehicle.vin={value!r} is not a valid 17-character VIN")
            continue

        # Images carry no text to anchor against
        if source_text.strip() and key in ANCHORED_FIELDS and not anchor_check(value, source_text):
            warnings.append(f"{key}={value!r} not found in source text")
            confidence = min(confidence, ANCHOR_FAILURE_CONFIDENCE_CAP)

        kept[key] = value
        adjusted[key] = confidence

    return GuardReport(values=kept, confidences=adjusted, warnings=warnings)
