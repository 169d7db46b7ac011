"""Build a CanonicalRecord from a merged ExtractionResult.

Values are already in canonical units; the builder only groups them,
normalizes the customer block and canonicalizes vehicle and port names
through the reference lookup when one is available.
"""

import logging
from typing import Any, Optional

from ..domain.canonical import (
    CanonicalRecord,
    CargoInfo,
    Dimensions,
    RouteInfo,
    VehicleInfo,
)
from ..domain.extraction.context import ExtractionContext
from ..domain.extraction.fields import DIMENSION_KEYS
from ..domain.extraction.result import ExtractionResult
from ..domain.reference import ReferenceDomain
from ..infrastructure.reference import ReferenceLookup
from .customer_normalizer import CustomerNormalizer

logger = logging.getLogger(__name__)

CONTACT_KEYS = ("name", "company", "email", "phone", "country", "address", "vat_number")


def _as_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _as_int(value: Any) -> Optional[int]:
    number = _as_float(value)
    return int(number) if number is not None else None


def _as_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _canonical_place(value: Optional[str], lookup: Optional[ReferenceLookup]) -> Optional[str]:
    if not value or lookup is None:
        return value
    match = lookup.resolve(value, ReferenceDomain.PORT)
    return match.entry.name if match is not None else value


def build_canonical_record(
    result: ExtractionResult,
    context: Optional[ExtractionContext] = None,
    lookup: Optional[ReferenceLookup] = None,
    normalizer: Optional[CustomerNormalizer] = None,
) -> CanonicalRecord:
    """Group merged fields into the canonical business entity.

    Args:
        result: Merged extraction result
        context: Run context used by the customer normalizer
        lookup: Reference lookup for vehicle/port canonicalization
        normalizer: Customer normalizer (a default instance when None)

    Returns:
        CanonicalRecord (dimensions in meters, weight in kilograms)
    """
    context = context or ExtractionContext()
    normalizer = normalizer or CustomerNormalizer()

    customer = normalizer.normalize(
        {key: result.value(f"contact.{key}") for key in CONTACT_KEYS},
        context,
    )

    route = RouteInfo(
        origin=_as_str(result.value("route.origin")),
        destination=_as_str(result.value("route.destination")),
        port_of_loading=_canonical_place(_as_str(result.value("route.port_of_loading")), lookup),
        port_of_discharge=_canonical_place(_as_str(result.value("route.port_of_discharge")), lookup),
    )

    brand = _as_str(result.value("vehicle.brand"))
    model = _as_str(result.value("vehicle.model"))
    reference_id = None
    if lookup is not None:
        match = lookup.resolve_vehicle(brand, model)
        if match is not None:
            brand, model = match.entry.brand, match.entry.model
            reference_id = match.canonical_id

    dims = [_as_float(result.value(key)) for key in DIMENSION_KEYS]
    dimensions = Dimensions(*dims) if None not in dims else None
    if dimensions is None and any(d is not None for d in dims):
        logger.debug("Incomplete dimension triple; dimensions left empty")

    vehicle = VehicleInfo(
        brand=brand,
        model=model,
        year=_as_int(result.value("vehicle.year")),
        vin=_as_str(result.value("vehicle.vin")),
        condition=_as_str(result.value("vehicle.condition")),
        fuel_type=_as_str(result.value("vehicle.fuel_type")),
        dimensions=dimensions,
        weight_kg=_as_float(result.value("vehicle.weight_kg")),
        reference_id=reference_id,
    )

    cargo = CargoInfo(
        description=_as_str(result.value("cargo.description")),
        quantity=_as_float(result.value("cargo.quantity")),
        shipment_type=_as_str(result.value("shipment.type")),
        container_size=_as_str(result.value("shipment.container_size")),
        incoterm=_as_str(result.value("commercial.incoterm")),
        currency=_as_str(result.value("commercial.currency")),
        pickup_date=_as_str(result.value("dates.pickup")),
        delivery_date=_as_str(result.value("dates.delivery")),
    )

    return CanonicalRecord(
        document_id=result.document_id,
        contact=customer.to_contact_info(),
        route=route,
        vehicle=vehicle,
        cargo=cargo,
        confidence=result.confidence,
        status=result.status.value,
    )
