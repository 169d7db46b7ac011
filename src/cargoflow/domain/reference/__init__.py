from .models import (
    PortReferenceEntry,
    ReferenceDataUnavailable,
    ReferenceDomain,
    ReferenceMatch,
    VehicleReferenceEntry,
)

__all__ = [
    "PortReferenceEntry",
    "ReferenceDataUnavailable",
    "ReferenceDomain",
    "ReferenceMatch",
    "VehicleReferenceEntry",
]
