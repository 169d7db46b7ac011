"""Field Mapper - CanonicalRecord -> external typed payload.

The external contract is a flat object of
`{fieldName: {"stringValue" | "numberValue" | "booleanValue": value}}`.
Rows of MAPPING_TABLE are walked in order; for each row the primary source
and then its fallbacks are tried until one yields a value of the declared
type. Exhausted chains omit the field (never an empty string) and are
recorded as MappingFallbackExhausted.

Reads are alias-aware: 'PORT_OF_LOADING', 'PORT OF LOADING',
'port_of_loading' and 'POL' all address the same field. Writes always use
the canonical underscore name from the table.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..domain.canonical import CanonicalRecord
from ..domain.extraction.errors import ErrorKind, ExtractionError
from ..domain.extraction.fields import ValueType
from ..domain.reference.models import VehicleReferenceEntry
from ..infrastructure.reference import ReferenceLookup
from ..observability import metrics
from .mapping_table import FIELD_ALIASES, MAPPING_TABLE, SHIPPING_METHODS, FieldMapping

logger = logging.getLogger(__name__)

VALUE_KEYS = ("stringValue", "numberValue", "booleanValue")
_TRUE_STRINGS = {"true", "yes", "1", "on"}
_FALSE_STRINGS = {"false", "no", "0", "off"}
TITLE_ARROW = "→"

SourceResolver = Callable[[CanonicalRecord, Optional[ReferenceLookup]], Any]


@dataclass
class MappedPayload:
    """
    Typed external payload for one document.

    Attributes:
        document_id: Source document
        fields: Target name -> {typeKey: value}, in table order
        omitted: MappingFallbackExhausted records for targets left out
        sources: Target name -> source (chain link) that produced the value
        skipped: True when the record was not mapped at all (failed extraction)
    """
    document_id: str
    fields: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    omitted: List[ExtractionError] = field(default_factory=list)
    sources: Dict[str, str] = field(default_factory=dict)
    skipped: bool = False

    def value(self, target: str) -> Any:
        return read_field(self.fields, target)

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return {name: dict(typed) for name, typed in self.fields.items()}

    def __len__(self) -> int:
        return len(self.fields)


def build_title(record: CanonicalRecord) -> Optional[str]:
    """Quotation title: '<POL> → <POD> | <brand> <model>'.

    Uses origin/destination when ports are unknown; drops whichever half
    is empty.
    """
    route = record.route
    start = route.port_of_loading or route.origin
    end = route.port_of_discharge or route.destination
    route_part = f"{start} {TITLE_ARROW} {end}" if start and end else (start or end)
    vehicle_part = record.vehicle.description

    if route_part and vehicle_part:
        return f"{route_part} | {vehicle_part}"
    return route_part or vehicle_part


def _reference_entry(
    record: CanonicalRecord,
    lookup: Optional[ReferenceLookup],
) -> Optional[VehicleReferenceEntry]:
    if lookup is None:
        return None
    match = lookup.resolve_vehicle(record.vehicle.brand, record.vehicle.model)
    return match.entry if match is not None else None


def _reference_dimensions(record: CanonicalRecord, lookup: Optional[ReferenceLookup]) -> Optional[str]:
    entry = _reference_entry(record, lookup)
    if entry is None or not entry.has_dimensions:
        return None
    return f"{entry.length_m:.3f} x {entry.width_m:.3f} x {entry.height_m:.3f} m"


def _reference_weight(record: CanonicalRecord, lookup: Optional[ReferenceLookup]) -> Optional[float]:
    entry = _reference_entry(record, lookup)
    return entry.weight_kg if entry is not None else None


def _dimension(axis: str) -> SourceResolver:
    def resolve(record: CanonicalRecord, _lookup: Optional[ReferenceLookup]) -> Optional[float]:
        dimensions = record.vehicle.dimensions
        return getattr(dimensions, axis) if dimensions is not None else None
    return resolve


def _non_runner(record: CanonicalRecord, _lookup: Optional[ReferenceLookup]) -> Optional[bool]:
    condition = record.vehicle.condition
    if not condition:
        return None
    return condition.lower() == "non-runner"


def _shipping_method(record: CanonicalRecord, _lookup: Optional[ReferenceLookup]) -> Optional[str]:
    shipment_type = record.cargo.shipment_type
    if not shipment_type:
        return None
    return SHIPPING_METHODS.get(shipment_type.lower(), shipment_type.upper())


SOURCE_RESOLVERS: Dict[str, SourceResolver] = {
    "contact.name": lambda r, _: r.contact.name,
    "contact.company": lambda r, _: r.contact.company,
    "contact.email": lambda r, _: r.contact.email,
    "contact.phone": lambda r, _: r.contact.phone,
    "contact.country": lambda r, _: r.contact.country,
    "contact.address": lambda r, _: r.contact.address,
    "contact.vat_number": lambda r, _: r.contact.vat_number,
    "route.origin": lambda r, _: r.route.origin,
    "route.destination": lambda r, _: r.route.destination,
    "route.port_of_loading": lambda r, _: r.route.port_of_loading,
    "route.port_of_discharge": lambda r, _: r.route.port_of_discharge,
    "vehicle.brand": lambda r, _: r.vehicle.brand,
    "vehicle.model": lambda r, _: r.vehicle.model,
    "vehicle.year": lambda r, _: r.vehicle.year,
    "vehicle.vin": lambda r, _: r.vehicle.vin,
    "vehicle.condition": lambda r, _: r.vehicle.condition,
    "vehicle.fuel_type": lambda r, _: r.vehicle.fuel_type,
    "vehicle.dimensions.length_m": _dimension("length_m"),
    "vehicle.dimensions.width_m": _dimension("width_m"),
    "vehicle.dimensions.height_m": _dimension("height_m"),
    "vehicle.weight_kg": lambda r, _: r.vehicle.weight_kg,
    "cargo.description": lambda r, _: r.cargo.description,
    "cargo.quantity": lambda r, _: r.cargo.quantity,
    "shipment.type": lambda r, _: r.cargo.shipment_type,
    "shipment.container_size": lambda r, _: r.cargo.container_size,
    "commercial.incoterm": lambda r, _: r.cargo.incoterm,
    "commercial.currency": lambda r, _: r.cargo.currency,
    "dates.pickup": lambda r, _: r.cargo.pickup_date,
    "dates.delivery": lambda r, _: r.cargo.delivery_date,
    # Derived sources
    "vehicle.dimensions": lambda r, _: r.vehicle.dimensions.format() if r.vehicle.dimensions else None,
    "vehicle.description": lambda r, _: r.vehicle.description,
    "vehicle.non_runner": _non_runner,
    "reference.dimensions": _reference_dimensions,
    "reference.weight_kg": _reference_weight,
    "quotation.title": lambda r, _: build_title(r),
    "shipment.method": _shipping_method,
}


def typed_value(value: Any, value_type: ValueType) -> Optional[Dict[str, Any]]:
    """Wrap a value in the external type contract, or None if it does not fit.

    Examples:
        >>> typed_value(3.9, ValueType.NUMBER)
        {'numberValue': 3.9}
        >>> typed_value("  ", ValueType.STRING) is None
        True
    """
    if value is None:
        return None

    if value_type == ValueType.NUMBER:
        if isinstance(value, bool):
            return None
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
        if math.isnan(number) or math.isinf(number):
            return None
        return {"numberValue": int(number) if number.is_integer() else number}

    if value_type == ValueType.BOOLEAN:
        if isinstance(value, bool):
            return {"booleanValue": value}
        text = str(value).strip().lower()
        if text in _TRUE_STRINGS:
            return {"booleanValue": True}
        if text in _FALSE_STRINGS:
            return {"booleanValue": False}
        return None

    text = str(value).strip()
    return {"stringValue": text} if text else None


def normalize_field_name(name: str) -> str:
    """'port of loading' / 'PORT-OF-LOADING' -> 'PORT_OF_LOADING'."""
    return re.sub(r"[\s\-]+", "_", name.strip()).upper()


def _alias_group(target: str) -> List[str]:
    canonical = normalize_field_name(target)
    for name, aliases in FIELD_ALIASES.items():
        if canonical == name or canonical in aliases:
            return [name, *aliases]
    return [canonical]


def canonical_field_name(name: str) -> str:
    """Canonical underscore name for any historical variant."""
    return _alias_group(name)[0]


def _unwrap(entry: Any) -> Any:
    if not isinstance(entry, Mapping):
        return entry
    for key in (*VALUE_KEYS, "value"):
        if key in entry and entry[key] is not None:
            return entry[key]
    return None


def read_field(payload: Mapping[str, Any], target: str) -> Any:
    """Read a field regardless of underscore/space/case variant or historical alias.

    Returns:
        The unwrapped value, or None when no variant is present
    """
    wanted = set(_alias_group(target))
    for name, entry in payload.items():
        if normalize_field_name(name) in wanted:
            value = _unwrap(entry)
            if value is not None:
                return value
    return None


def merge_into(existing: Mapping[str, Any], update: Mapping[str, Any]) -> Dict[str, Any]:
    """Write `update` over an existing payload without duplicating keys.

    Every variant of an updated field in `existing` is removed and the value
    is stored under the canonical underscore name. Untouched fields keep
    their original names.

    Returns:
        New payload dict (inputs are not modified)
    """
    updated_groups = {canonical_field_name(name) for name in update}
    merged: Dict[str, Any] = {}
    for name, entry in existing.items():
        if canonical_field_name(name) in updated_groups:
            continue
        merged[name] = entry
    for name, entry in update.items():
        merged[canonical_field_name(name)] = entry
    return merged


class FieldMapper:
    """
    Walk the mapping table for a CanonicalRecord.

    Example:
        mapper = FieldMapper(lookup=lookup)
        payload = mapper.map_record(record)
        payload.to_dict()["POL"]
        {'stringValue': 'Antwerp'}
    """

    def __init__(
        self,
        lookup: Optional[ReferenceLookup] = None,
        table: Optional[Mapping[str, FieldMapping]] = None,
    ):
        self.lookup = lookup
        self.table = dict(table) if table is not None else dict(MAPPING_TABLE)

        unknown = [
            source
            for primary, mapping in self.table.items()
            for source in (primary, *mapping.fallbacks)
            if source not in SOURCE_RESOLVERS
        ]
        if unknown:
            raise ValueError(f"Mapping table references unknown sources: {sorted(set(unknown))}")

    def map_record(self, record: CanonicalRecord) -> MappedPayload:
        """
        Map one record.

        Failed extractions are not mapped: the payload comes back empty with
        `skipped=True`.
        """
        payload = MappedPayload(document_id=record.document_id)

        if record.status == "failed":
            payload.skipped = True
            logger.info("Extraction failed; nothing mapped")
            return payload

        for primary, mapping in self.table.items():
            chain = (primary, *mapping.fallbacks)
            for source in chain:
                raw = SOURCE_RESOLVERS[source](record, self.lookup)
                typed = typed_value(raw, mapping.value_type)
                if typed is None:
                    continue
                payload.fields[mapping.target] = typed
                payload.sources[mapping.target] = source
                if source != primary:
                    logger.debug(f"{mapping.target} filled from fallback '{source}'")
                break
            else:
                payload.omitted.append(
                    ExtractionError(
                        kind=ErrorKind.MAPPING_FALLBACK_EXHAUSTED,
                        message=f"No value for {mapping.target}",
                        strategy=primary,
                        details={"target": mapping.target, "chain": list(chain)},
                    )
                )
                metrics.mapping_fallback_exhausted_total.labels(mapping.target).inc()

        logger.info(f"Mapped {len(payload.fields)} field(s), omitted {len(payload.omitted)}")
        return payload


def map_record(record: CanonicalRecord, lookup: Optional[ReferenceLookup] = None) -> MappedPayload:
    """Map a record with the default table."""
    return FieldMapper(lookup=lookup).map_record(record)
