"""Pipeline confidence and status calculation.

Confidence is a weighted mean of the winning field confidences over the
required fields only; optional fields never lower it. A missing required
field contributes 0.

Status:
- success: every required field reaches the success threshold
- partial: at least one required field is populated
- failed:  every strategy errored, or no required field is populated
"""

from typing import Dict, Mapping, Tuple

from .fields import ExtractionField
from .result import ExtractionStatus


def calculate_pipeline_confidence(
    fields: Mapping[str, ExtractionField],
    required_weights: Mapping[str, float],
) -> Tuple[float, dict]:
    """Calculate weighted pipeline confidence over required fields.

    Args:
        fields: Merged fields (one per canonical key)
        required_weights: Required canonical key -> weight

    Returns:
        Tuple of (overall_score, breakdown_dict)

    Raises:
        ValueError: If no positive weight is configured
    """
    total_weight = sum(w for w in required_weights.values() if w > 0)
    if total_weight <= 0:
        raise ValueError("At least one required field must carry a positive weight")

    weighted_sum = 0.0
    field_scores: Dict[str, float] = {}
    for key, weight in required_weights.items():
        if weight <= 0:
            continue
        extraction_field = fields.get(key)
        score = extraction_field.confidence if extraction_field and extraction_field.is_populated else 0.0
        field_scores[key] = round(score, 3)
        weighted_sum += weight * score

    overall_score = round(weighted_sum / total_weight, 3)

    breakdown = {
        "field_scores": field_scores,
        "total_weight": total_weight,
        "required_populated": sum(
            1 for key in field_scores if fields.get(key) is not None and fields[key].is_populated
        ),
        "required_count": len(field_scores),
    }
    return overall_score, breakdown


def determine_status(
    fields: Mapping[str, ExtractionField],
    required_weights: Mapping[str, float],
    success_threshold: float,
    all_strategies_failed: bool,
) -> ExtractionStatus:
    if all_strategies_failed:
        return ExtractionStatus.FAILED

    required = [fields.get(key) for key in required_weights]
    populated = [f for f in required if f is not None and f.is_populated]

    if not populated:
        return ExtractionStatus.FAILED

    if len(populated) == len(required) and all(
        f.confidence >= success_threshold for f in populated
    ):
        return ExtractionStatus.SUCCESS

    return ExtractionStatus.PARTIAL
