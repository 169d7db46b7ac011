"""CanonicalRecord - normalized business entity consumed by the field mapper.

All dimensions are meters and all weights kilograms; unit conversion happened
when the fields were extracted and is never repeated here.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class ContactInfo:
    name: Optional[str] = None
    company: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    country: Optional[str] = None
    address: Optional[str] = None
    vat_number: Optional[str] = None
    client_type: Optional[str] = None
    company_source: Optional[str] = None


@dataclass(frozen=True)
class RouteInfo:
    origin: Optional[str] = None
    destination: Optional[str] = None
    port_of_loading: Optional[str] = None
    port_of_discharge: Optional[str] = None


@dataclass(frozen=True)
class Dimensions:
    """Cargo dimensions in meters."""
    length_m: float
    width_m: float
    height_m: float

    def format(self) -> str:
        """Display string, e.g. '3.900 x 2.300 x 3.100 m'."""
        return f"{self.length_m:.3f} x {self.width_m:.3f} x {self.height_m:.3f} m"

    @property
    def volume_m3(self) -> float:
        return round(self.length_m * self.width_m * self.height_m, 3)


@dataclass(frozen=True)
class VehicleInfo:
    brand: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    vin: Optional[str] = None
    condition: Optional[str] = None
    fuel_type: Optional[str] = None
    dimensions: Optional[Dimensions] = None
    weight_kg: Optional[float] = None
    reference_id: Optional[str] = None

    @property
    def description(self) -> Optional[str]:
        parts = [p for p in (self.brand, self.model) if p]
        return " ".join(parts) if parts else None


@dataclass(frozen=True)
class CargoInfo:
    description: Optional[str] = None
    quantity: Optional[float] = None
    shipment_type: Optional[str] = None
    container_size: Optional[str] = None
    incoterm: Optional[str] = None
    currency: Optional[str] = None
    pickup_date: Optional[str] = None
    delivery_date: Optional[str] = None


@dataclass(frozen=True)
class CanonicalRecord:
    document_id: str
    contact: ContactInfo = field(default_factory=ContactInfo)
    route: RouteInfo = field(default_factory=RouteInfo)
    vehicle: VehicleInfo = field(default_factory=VehicleInfo)
    cargo: CargoInfo = field(default_factory=CargoInfo)
    confidence: float = 0.0
    status: str = "partial"
