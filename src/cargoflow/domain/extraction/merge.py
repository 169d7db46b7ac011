"""Field-level merge of strategy candidates.

Merge rule per canonical key:
1. Highest confidence wins.
2. On equal confidence: ai > lookup > pattern > default.
3. Still tied: lowest strategy name, then lowest value repr (keeps the
   result independent of the order strategies finished in).
4. No candidate: a default-sourced null with confidence 0.

The merge is total over the requested keys and idempotent: merging the same
candidate set again (in any order) yields the same mapping.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from .fields import CANONICAL_FIELDS, SOURCE_PRECEDENCE, ExtractionField

logger = logging.getLogger(__name__)


def _rank(candidate: ExtractionField) -> tuple:
    return (
        -candidate.confidence,
        -SOURCE_PRECEDENCE[candidate.source],
        candidate.strategy,
        repr(candidate.value),
    )


def select_winner(candidates: Sequence[ExtractionField]) -> Optional[ExtractionField]:
    """Pick the winning candidate for a single key, or None if there are none."""
    populated = [c for c in candidates if c.is_populated]
    if not populated:
        return None
    return min(populated, key=_rank)


def group_candidates(candidates: Iterable[ExtractionField]) -> Dict[str, List[ExtractionField]]:
    grouped: Dict[str, List[ExtractionField]] = {}
    for candidate in candidates:
        if candidate.key not in CANONICAL_FIELDS:
            logger.warning(
                "Dropping candidate for unknown canonical key",
                extra={"key": candidate.key, "strategy": candidate.strategy},
            )
            continue
        grouped.setdefault(candidate.key, []).append(candidate)
    return grouped


def merge_candidates(
    candidates: Iterable[ExtractionField],
    keys: Optional[Iterable[str]] = None,
) -> Dict[str, ExtractionField]:
    """Merge candidates into exactly one ExtractionField per canonical key.

    Args:
        candidates: All candidates produced by all strategies
        keys: Canonical keys to make total (defaults to every canonical key)

    Returns:
        Dict canonical key -> winning field, in canonical-key order
    """
    grouped = group_candidates(candidates)
    merged: Dict[str, ExtractionField] = {}

    for key in (keys if keys is not None else CANONICAL_FIELDS.keys()):
        winner = select_winner(grouped.get(key, []))
        merged[key] = winner if winner is not None else ExtractionField.default(key)

        if winner is not None and len(grouped.get(key, [])) > 1:
            logger.debug(
                f"Merged {len(grouped[key])} candidates for {key}: "
                f"{winner.source.value} wins at {winner.confidence:.2f}"
            )

    return merged
