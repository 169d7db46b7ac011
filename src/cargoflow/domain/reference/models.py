"""Reference data rows and lookup results.

Reference rows are static: they are loaded at startup and replaced wholesale
by an out-of-band refresh job.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union


class ReferenceDomain(str, Enum):
    VEHICLE = "vehicle"
    PORT = "port"


@dataclass(frozen=True)
class VehicleReferenceEntry:
    """Known vehicle or machine model.

    Dimensions are in meters, weight in kilograms.
    """
    canonical_id: str
    brand: str
    model: str
    aliases: Tuple[str, ...] = ()
    length_m: Optional[float] = None
    width_m: Optional[float] = None
    height_m: Optional[float] = None
    weight_kg: Optional[float] = None

    @property
    def display_name(self) -> str:
        return f"{self.brand} {self.model}"

    @property
    def has_dimensions(self) -> bool:
        return None not in (self.length_m, self.width_m, self.height_m)


@dataclass(frozen=True)
class PortReferenceEntry:
    """Known port or place, keyed by UN/LOCODE."""
    canonical_id: str
    name: str
    country: str
    aliases: Tuple[str, ...] = ()
    port_type: str = "seaport"

    @property
    def display_name(self) -> str:
        return f"{self.name} ({self.country})"


ReferenceEntry = Union[VehicleReferenceEntry, PortReferenceEntry]


@dataclass(frozen=True)
class ReferenceMatch:
    """Successful lookup.

    Attributes:
        domain: Table the match came from
        canonical_id: Canonical identifier of the entry
        entry: The matched reference row
        matched_alias: Normalized alias that matched
        confidence: 0.0-1.0
    """
    domain: ReferenceDomain
    canonical_id: str
    entry: ReferenceEntry
    matched_alias: str
    confidence: float


class ReferenceDataUnavailable(Exception):
    """Reference tables could not be loaded.

    The only condition that aborts pipeline construction.
    """
    pass
