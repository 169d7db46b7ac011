"""Pydantic schemas for AI extraction output.

The same models produce the JSON schema sent to the provider
(additionalProperties: false at every level) and validate what comes back.
Keys outside the schema are pruned before validation and reported, so an
over-eager model can never smuggle extra fields into the merge.
"""

import logging
import re
import typing
from dataclasses import dataclass, field
from typing import Annotated, Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ...domain.extraction.fields import CANONICAL_FIELDS
from ..uom_normalization import parse_decimal, parse_weight_number, to_kilograms, to_meters

logger = logging.getLogger(__name__)

PLACEHOLDER_VALUES = {
    "", "-", "--", "?", "n/a", "na", "none", "null", "nil", "unknown", "not specified",
    "not provided", "tbd", "tba", "onbekend", "unbekannt", "inconnu",
}

_NUMBER_WITH_UNIT = re.compile(r"^\s*(?P<value>\d[\d.,]*)\s*(?P<unit>[a-zA-Z]+)?\s*$")


class _Strict(BaseModel):
    model_config = ConfigDict(extra="forbid")


def _coerce_length(v: Any) -> Any:
    """Accept '3,9', '390 cm', '390' or 3.9 for a meter value.

    Unitless strings follow the unlabeled rule of to_meters.
    """
    if v is None or isinstance(v, (int, float)):
        return v
    if isinstance(v, str):
        match = _NUMBER_WITH_UNIT.match(v)
        if match:
            number = parse_decimal(match.group("value"))
            if number is not None:
                return round(to_meters(number, match.group("unit")), 3)
    return v


def _coerce_weight(v: Any) -> Any:
    if v is None or isinstance(v, (int, float)):
        return v
    if isinstance(v, str):
        match = _NUMBER_WITH_UNIT.match(v)
        if match:
            number = parse_weight_number(match.group("value"))
            if number is not None:
                return round(to_kilograms(number, match.group("unit")), 3)
    return v


class AIContact(_Strict):
    name: str | None = None
    company: str | None = None
    email: str | None = None
    phone: str | None = None
    country: str | None = None
    address: str | None = None
    vat_number: str | None = None


class AIRoute(_Strict):
    origin: str | None = None
    destination: str | None = None
    port_of_loading: str | None = None
    port_of_discharge: str | None = None


class AIDimensions(_Strict):
    length_m: float | None = None
    width_m: float | None = None
    height_m: float | None = None

    @field_validator("length_m", "width_m", "height_m", mode="before")
    @classmethod
    def coerce_meters(cls, v: Any) -> Any:
        return _coerce_length(v)


class AIVehicle(_Strict):
    brand: str | None = None
    model: str | None = None
    year: int | None = None
    vin: str | None = None
    condition: str | None = None
    fuel_type: str | None = None
    dimensions: AIDimensions | None = None
    weight_kg: float | None = None

    @field_validator("weight_kg", mode="before")
    @classmethod
    def coerce_kilograms(cls, v: Any) -> Any:
        return _coerce_weight(v)

    @field_validator("year", mode="before")
    @classmethod
    def coerce_year(cls, v: Any) -> Any:
        if isinstance(v, str) and v.strip().isdigit():
            return int(v.strip())
        return v

    @field_validator("vin")
    @classmethod
    def normalize_vin(cls, v: str | None) -> str | None:
        return v.replace(" ", "").upper() if v else v


class AICargo(_Strict):
    description: str | None = None
    quantity: float | None = None


class AIShipment(_Strict):
    type: str | None = None
    container_size: str | None = None


class AICommercial(_Strict):
    incoterm: str | None = None
    currency: str | None = None

    @field_validator("incoterm", "currency")
    @classmethod
    def validate_code(cls, v: str | None) -> str | None:
        """Incoterms and ISO 4217 codes are three uppercase letters."""
        if v is None:
            return v
        code = v.strip().upper()
        if len(code) != 3 or not code.isalpha():
            return None
        return code


class AIDates(_Strict):
    pickup: str | None = None
    delivery: str | None = None


class AIExtractionOutput(_Strict):
    """Top-level AI response contract.

    Groups mirror the canonical field keys: 'vehicle.dimensions.length_m'
    is output['vehicle']['dimensions']['length_m'].
    """
    contact: AIContact | None = None
    route: AIRoute | None = None
    vehicle: AIVehicle | None = None
    cargo: AICargo | None = None
    shipment: AIShipment | None = None
    commercial: AICommercial | None = None
    dates: AIDates | None = None
    confidence: Dict[str, Annotated[float, Field(ge=0, le=1)]] = Field(
        default_factory=dict,
        description="Per-field confidence 0..1 keyed by dotted field path",
    )


@dataclass
class ParsedAIOutput:
    """Validated AI output flattened to canonical keys.

    Attributes:
        values: Canonical key -> value (None values removed)
        reported_confidence: Canonical key -> model-reported confidence
        dropped_fields: Dotted paths that were outside the schema
    """
    values: Dict[str, Any]
    reported_confidence: Dict[str, float]
    dropped_fields: List[str] = field(default_factory=list)


class AIOutputSchemaError(ValueError):
    """AI output does not satisfy the schema contract."""

    def __init__(self, message: str, details: List[str]):
        super().__init__(message)
        self.details = details


def ai_output_json_schema() -> Dict[str, Any]:
    return AIExtractionOutput.model_json_schema()


def _nested_model(annotation: Any) -> Optional[type]:
    candidates = typing.get_args(annotation) or (annotation,)
    for candidate in candidates:
        if isinstance(candidate, type) and issubclass(candidate, BaseModel):
            return candidate
    return None


def prune_unknown_fields(
    data: Dict[str, Any],
    model: type = AIExtractionOutput,
    prefix: str = "",
) -> Tuple[Dict[str, Any], List[str]]:
    """Remove keys the schema does not declare.

    Returns:
        Tuple of (pruned copy, list of dropped dotted paths)
    """
    pruned: Dict[str, Any] = {}
    dropped: List[str] = []

    for key, value in data.items():
        path = f"{prefix}{key}"
        model_field = model.model_fields.get(key)
        if model_field is None:
            dropped.append(path)
            continue

        nested = _nested_model(model_field.annotation)
        if nested is not None and isinstance(value, dict):
            value, nested_dropped = prune_unknown_fields(value, nested, f"{path}.")
            dropped.extend(nested_dropped)
        elif model is AIExtractionOutput and key == "confidence" and isinstance(value, dict):
            unknown = [k for k in value if k not in CANONICAL_FIELDS]
            dropped.extend(f"confidence.{k}" for k in unknown)
            value = {k: v for k, v in value.items() if k in CANONICAL_FIELDS}

        pruned[key] = value

    return pruned, dropped


def clear_placeholders(value: Any) -> Any:
    """Turn placeholder strings ('unknown', 'n/a', ...) into None, recursively."""
    if isinstance(value, dict):
        return {k: clear_placeholders(v) for k, v in value.items()}
    if isinstance(value, list):
        return [clear_placeholders(v) for v in value]
    if isinstance(value, str):
        stripped = value.strip()
        return None if stripped.casefold() in PLACEHOLDER_VALUES else stripped
    return value


def normalize_legacy_shape(data: Dict[str, Any]) -> Dict[str, Any]:
    """Map older response shapes onto the current contract.

    Handles 'make' instead of 'brand', flat length/width/height on the
    vehicle, 'weight' instead of 'weight_kg' and route data under 'shipment'.
    """
    result = {k: (dict(v) if isinstance(v, dict) else v) for k, v in data.items()}

    vehicle = result.get("vehicle")
    if isinstance(vehicle, dict):
        if "make" in vehicle and "brand" not in vehicle:
            vehicle["brand"] = vehicle.pop("make")
        if "weight" in vehicle and "weight_kg" not in vehicle:
            vehicle["weight_kg"] = vehicle.pop("weight")
        flat = {k: vehicle.pop(k) for k in ("length", "width", "height") if k in vehicle}
        if flat and not isinstance(vehicle.get("dimensions"), dict):
            vehicle["dimensions"] = {f"{k}_m": v for k, v in flat.items()}

    shipment = result.get("shipment")
    if isinstance(shipment, dict):
        moved = {k: shipment.pop(k) for k in ("origin", "destination") if k in shipment}
        if moved:
            route = result.get("route") if isinstance(result.get("route"), dict) else {}
            result["route"] = {**moved, **route}

    return result


def _flatten(data: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        path = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, f"{path}."))
        elif value is not None and path in CANONICAL_FIELDS:
            flat[path] = value
    return flat


def parse_ai_output(data: Any) -> ParsedAIOutput:
    """Validate a decoded AI response and flatten it to canonical keys.

    Raises:
        AIOutputSchemaError: Response is not an object or fails validation
    """
    if not isinstance(data, dict):
        raise AIOutputSchemaError(
            "AI response must be a JSON object",
            [f"got {type(data).__name__}"],
        )

    shaped = clear_placeholders(normalize_legacy_shape(data))
    pruned, dropped = prune_unknown_fields(shaped)
    if dropped:
        logger.warning(
            f"Discarded {len(dropped)} AI field(s) outside the schema",
            extra={"dropped_fields": dropped},
        )

    try:
        output = AIExtractionOutput.model_validate(pruned)
    except ValidationError as e:
        details = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        ]
        raise AIOutputSchemaError("AI response failed schema validation", details) from e

    values = _flatten(output.model_dump(exclude={"confidence"}))
    return ParsedAIOutput(
        values=values,
        reported_confidence=dict(output.confidence),
        dropped_fields=dropped,
    )
