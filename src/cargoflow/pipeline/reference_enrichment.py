"""Lookup-sourced candidates derived from what the strategies found.

After all strategies settled, the provisional winners for vehicle and
place fields are resolved against the reference tables. A hit contributes
`lookup`-sourced candidates: the canonical brand for vehicles, the
canonical name for ports. Reference dimensions and weight are added only
when no strategy read any from the document. All of them enter the same
merge as every other candidate.
"""

import logging
from typing import Dict, List

from ..domain.extraction.fields import DIMENSION_KEYS, ExtractionField, FieldSource
from ..domain.extraction.merge import merge_candidates
from ..domain.reference.models import ReferenceDomain, ReferenceMatch
from ..infrastructure.reference import ReferenceLookup

logger = logging.getLogger(__name__)

LOOKUP_STRATEGY_NAME = "reference_lookup"
# Reference dimensions describe the standard model, not the unit at hand
DEFAULT_REFERENCE_DIMENSION_CONFIDENCE = 0.75

PLACE_KEYS = (
    "route.origin",
    "route.destination",
    "route.port_of_loading",
    "route.port_of_discharge",
)


def _lookup_field(key: str, value, confidence: float, match: ReferenceMatch) -> ExtractionField:
    return ExtractionField(
        key=key,
        value=value,
        confidence=round(min(max(confidence, 0.0), 1.0), 3),
        source=FieldSource.LOOKUP,
        strategy=LOOKUP_STRATEGY_NAME,
        evidence=f"reference:{match.canonical_id}",
    )


def _has_any(candidates: List[ExtractionField], keys) -> bool:
    return any(c.key in keys and c.is_populated for c in candidates)


def enrich_from_reference(
    candidates: List[ExtractionField],
    lookup: ReferenceLookup,
    dimension_confidence: float = DEFAULT_REFERENCE_DIMENSION_CONFIDENCE,
) -> List[ExtractionField]:
    """Build lookup candidates for the given strategy candidates.

    Returns:
        New candidates only (the input list is not modified)
    """
    keys = ("vehicle.brand", "vehicle.model", *PLACE_KEYS)
    provisional: Dict[str, ExtractionField] = merge_candidates(candidates, keys=keys)
    enriched: List[ExtractionField] = []

    model_field = provisional["vehicle.model"]
    brand_field = provisional["vehicle.brand"]
    vehicle = lookup.resolve_vehicle(brand_field.value, model_field.value)
    if vehicle is not None:
        entry = vehicle.entry
        enriched.append(
            _lookup_field(
                "vehicle.brand",
                entry.brand,
                min(model_field.confidence, vehicle.confidence),
                vehicle,
            )
        )
        reference_dims = (entry.length_m, entry.width_m, entry.height_m)
        # Reference figures only fill gaps; the triple is taken whole or not at all
        if entry.has_dimensions and not _has_any(candidates, DIMENSION_KEYS):
            for key, value in zip(DIMENSION_KEYS, reference_dims):
                enriched.append(_lookup_field(key, value, dimension_confidence, vehicle))
        if entry.weight_kg is not None and not _has_any(candidates, ("vehicle.weight_kg",)):
            enriched.append(
                _lookup_field("vehicle.weight_kg", entry.weight_kg, dimension_confidence, vehicle)
            )
        logger.debug(f"Vehicle resolved to reference {vehicle.canonical_id}")

    for key in PLACE_KEYS:
        place_field = provisional[key]
        if not place_field.is_populated:
            continue
        port = lookup.resolve(str(place_field.value), ReferenceDomain.PORT)
        if port is None or port.entry.name == place_field.value:
            continue
        enriched.append(
            _lookup_field(key, port.entry.name, min(place_field.confidence, port.confidence), port)
        )

    return enriched
