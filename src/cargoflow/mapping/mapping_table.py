"""Mapping table: canonical data -> external (CRM) field names.

Each row names the primary source, the external target, the value type and
an ordered fallback chain of alternative sources. Adding or re-routing a
field is a data change here; the mapper only walks the table.

Source names are canonical field keys or derived sources resolved by the
field mapper ('vehicle.dimensions', 'reference.dimensions',
'vehicle.description', 'quotation.title', 'shipment.method',
'vehicle.non_runner').
"""

from dataclasses import dataclass
from typing import Dict, Tuple

from ..domain.extraction.fields import ValueType


@dataclass(frozen=True)
class FieldMapping:
    target: str
    value_type: ValueType
    fallbacks: Tuple[str, ...] = ()


_S, _N, _B = ValueType.STRING, ValueType.NUMBER, ValueType.BOOLEAN

# Primary source -> mapping, in payload order
MAPPING_TABLE: Dict[str, FieldMapping] = {
    "quotation.title": FieldMapping("CONCERNING", _S),
    "contact.company": FieldMapping("CUSTOMER", _S, ("contact.name",)),
    "contact.name": FieldMapping("CONTACT_NAME", _S),
    "contact.email": FieldMapping("CONTACT_EMAIL", _S),
    "contact.phone": FieldMapping("CONTACT_PHONE", _S),
    "contact.country": FieldMapping("CUSTOMER_COUNTRY", _S),
    "contact.vat_number": FieldMapping("VAT_NUMBER", _S),
    "route.origin": FieldMapping("POR", _S, ("route.port_of_loading",)),
    "route.port_of_loading": FieldMapping("POL", _S, ("route.origin",)),
    "route.port_of_discharge": FieldMapping("POD", _S, ("route.destination",)),
    "route.destination": FieldMapping("FDEST", _S, ("route.port_of_discharge",)),
    "vehicle.description": FieldMapping("CARGO", _S, ("cargo.description",)),
    "vehicle.brand": FieldMapping("VEHICLE_BRAND", _S),
    "vehicle.model": FieldMapping("VEHICLE_MODEL", _S),
    "vehicle.year": FieldMapping("VEHICLE_YEAR", _N),
    "vehicle.vin": FieldMapping("VIN", _S),
    "vehicle.non_runner": FieldMapping("NON_RUNNER", _B),
    "vehicle.dimensions": FieldMapping("DIM_BEF_DELIVERY", _S, ("reference.dimensions",)),
    "vehicle.weight_kg": FieldMapping("WEIGHT_KG", _N, ("reference.weight_kg",)),
    "cargo.quantity": FieldMapping("QUANTITY", _N),
    "shipment.method": FieldMapping("SHIPPING_METHOD", _S),
    "shipment.container_size": FieldMapping("CONTAINER_SIZE", _S),
    "commercial.incoterm": FieldMapping("INCOTERM", _S),
    "commercial.currency": FieldMapping("CURRENCY", _S),
    "dates.pickup": FieldMapping("PICKUP_DATE", _S),
    "dates.delivery": FieldMapping("DELIVERY_DATE", _S),
}

# Historical names the target system still carries for some fields
FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "POR": ("POINT_OF_RECEIPT", "PLACE_OF_RECEIPT"),
    "POL": ("PORT_OF_LOADING",),
    "POD": ("PORT_OF_DISCHARGE",),
    "FDEST": ("FINAL_DESTINATION",),
    "DIM_BEF_DELIVERY": ("DIMENSIONS", "DIM_BEFORE_DELIVERY"),
    "SHIPPING_METHOD": ("TRANSPORT_MODE", "SERVICE_TYPE"),
}

SHIPPING_METHODS = {
    "roro": "RORO",
    "container": "CONTAINER",
    "lcl": "LCL",
    "breakbulk": "BREAKBULK",
    "air": "AIRFREIGHT",
}
