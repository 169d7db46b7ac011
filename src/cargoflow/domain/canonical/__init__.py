from .record import CanonicalRecord, CargoInfo, ContactInfo, Dimensions, RouteInfo, VehicleInfo

__all__ = ["CanonicalRecord", "CargoInfo", "ContactInfo", "Dimensions", "RouteInfo", "VehicleInfo"]
