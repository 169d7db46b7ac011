"""Extraction field model and canonical field registry.

Every strategy emits candidates keyed by a canonical field name from
CANONICAL_FIELDS. The registry is the single list of keys the merge step
makes total, the AI schema is generated from, and the field mapper reads.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class FieldSource(str, Enum):
    """Where a candidate value came from."""
    PATTERN = "pattern"
    AI = "ai"
    LOOKUP = "lookup"
    DEFAULT = "default"


# Tie-break order on equal confidence (higher wins).
SOURCE_PRECEDENCE: Dict[FieldSource, int] = {
    FieldSource.AI: 3,
    FieldSource.LOOKUP: 2,
    FieldSource.PATTERN: 1,
    FieldSource.DEFAULT: 0,
}


class ValueType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"


@dataclass(frozen=True)
class FieldSpec:
    """Declaration of one canonical field."""
    key: str
    value_type: ValueType
    description: str


@dataclass(frozen=True)
class ExtractionField:
    """A candidate (or winning) value for one canonical key.

    Attributes:
        key: Canonical field key (e.g. 'vehicle.dimensions.length_m')
        value: Extracted value, None for a default-sourced placeholder
        confidence: Reliability score 0.0-1.0
        source: Origin tag used for tie-breaking
        strategy: Name of the strategy that produced the candidate
        evidence: Matched text span, for auditing
    """
    key: str
    value: Any
    confidence: float
    source: FieldSource
    strategy: str = ""
    evidence: Optional[str] = None

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(
                f"Confidence for {self.key} must be within [0, 1], got {self.confidence}"
            )

    @property
    def is_populated(self) -> bool:
        return self.value is not None and self.value != ""

    @classmethod
    def default(cls, key: str) -> "ExtractionField":
        """Placeholder emitted when no strategy produced a candidate."""
        return cls(key=key, value=None, confidence=0.0, source=FieldSource.DEFAULT)

    def to_dict(self) -> dict:
        return {
            "value": self.value,
            "confidence": self.confidence,
            "source": self.source.value,
            "strategy": self.strategy,
            "evidence": self.evidence,
        }


def _spec(key: str, value_type: ValueType, description: str) -> FieldSpec:
    return FieldSpec(key=key, value_type=value_type, description=description)


_S, _N = ValueType.STRING, ValueType.NUMBER

CANONICAL_FIELDS: Dict[str, FieldSpec] = {
    spec.key: spec
    for spec in [
        _spec("contact.name", _S, "Name of the person requesting the quote"),
        _spec("contact.company", _S, "Company the contact works for"),
        _spec("contact.email", _S, "Contact email address"),
        _spec("contact.phone", _S, "Contact phone number"),
        _spec("contact.country", _S, "Country of the customer"),
        _spec("contact.address", _S, "Postal address of the customer"),
        _spec("contact.vat_number", _S, "VAT registration number"),
        _spec("route.origin", _S, "Place of receipt / origin city"),
        _spec("route.destination", _S, "Final destination city"),
        _spec("route.port_of_loading", _S, "Port of loading (POL)"),
        _spec("route.port_of_discharge", _S, "Port of discharge (POD)"),
        _spec("vehicle.brand", _S, "Vehicle or machine manufacturer"),
        _spec("vehicle.model", _S, "Vehicle or machine model"),
        _spec("vehicle.year", _N, "Year of manufacture"),
        _spec("vehicle.vin", _S, "17-character vehicle identification number"),
        _spec("vehicle.condition", _S, "new, used or non-runner"),
        _spec("vehicle.fuel_type", _S, "petrol, diesel, electric, hybrid, lpg"),
        _spec("vehicle.dimensions.length_m", _N, "Length in meters"),
        _spec("vehicle.dimensions.width_m", _N, "Width in meters"),
        _spec("vehicle.dimensions.height_m", _N, "Height in meters"),
        _spec("vehicle.weight_kg", _N, "Weight in kilograms"),
        _spec("cargo.description", _S, "Free-text cargo description"),
        _spec("cargo.quantity", _N, "Number of units"),
        _spec("shipment.type", _S, "roro, container, breakbulk, air, lcl"),
        _spec("shipment.container_size", _S, "20ft, 40ft or 40hc"),
        _spec("commercial.incoterm", _S, "Incoterm code (FOB, CIF, ...)"),
        _spec("commercial.currency", _S, "ISO currency code"),
        _spec("dates.pickup", _S, "Requested pickup date"),
        _spec("dates.delivery", _S, "Requested delivery date"),
    ]
}

DIMENSION_KEYS = (
    "vehicle.dimensions.length_m",
    "vehicle.dimensions.width_m",
    "vehicle.dimensions.height_m",
)

# Required fields and their weight in the pipeline confidence.
DEFAULT_REQUIRED_FIELDS: Dict[str, float] = {
    "route.origin": 1.0,
    "route.destination": 1.0,
    "vehicle.model": 1.0,
    "vehicle.dimensions.length_m": 0.5,
    "vehicle.dimensions.width_m": 0.5,
    "vehicle.dimensions.height_m": 0.5,
}


def is_canonical_key(key: str) -> bool:
    return key in CANONICAL_FIELDS
