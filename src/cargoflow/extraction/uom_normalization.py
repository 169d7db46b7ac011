"""Unit and number normalization for dimensions and weights.

Canonical units are meters (length) and kilograms (mass). Every conversion
into those units goes through this module, once, when a value is extracted.
"""

import re
from typing import Dict, Optional, Tuple

# Multipliers to meters
LENGTH_UNITS: Dict[str, float] = {
    "MM": 0.001,
    "MILLIMETER": 0.001,
    "CM": 0.01,
    "CENTIMETER": 0.01,
    "ZENTIMETER": 0.01,
    "M": 1.0,
    "MTR": 1.0,
    "MTRS": 1.0,
    "METER": 1.0,
    "METERS": 1.0,
    "METRE": 1.0,
    "METRES": 1.0,
    "FT": 0.3048,
    "FEET": 0.3048,
    "IN": 0.0254,
    "INCH": 0.0254,
}

# Multipliers to kilograms
WEIGHT_UNITS: Dict[str, float] = {
    "KG": 1.0,
    "KGS": 1.0,
    "KILO": 1.0,
    "KILOS": 1.0,
    "KILOGRAM": 1.0,
    "KILOGRAMS": 1.0,
    "KILOGRAMM": 1.0,
    "T": 1000.0,
    "TON": 1000.0,
    "TONS": 1000.0,
    "TONNE": 1000.0,
    "TONNES": 1000.0,
    "LB": 0.45359237,
    "LBS": 0.45359237,
}

# Unlabeled lengths below this are meters, otherwise centimeters
UNLABELED_METER_CEILING = 20.0

# Plausible vehicle measurements in canonical units; anything outside is a mis-parse
PLAUSIBLE_RANGES: Dict[str, Tuple[float, float]] = {
    "vehicle.dimensions.length_m": (0.5, 20.0),
    "vehicle.dimensions.width_m": (0.3, 4.0),
    "vehicle.dimensions.height_m": (0.3, 5.0),
    "vehicle.weight_kg": (1.0, 100_000.0),
}


def is_plausible(key: str, value: float) -> bool:
    """True when `value` lies within the plausible range for `key` (inclusive)."""
    low, high = PLAUSIBLE_RANGES[key]
    return low <= value <= high


_THOUSANDS_ONLY = re.compile(r"^\d{1,3}(?:[.,]\d{3})+$")


def parse_decimal(raw: str) -> Optional[float]:
    """Parse a number written with a decimal comma or a decimal point.

    Examples:
        >>> parse_decimal("10,06")
        10.06
        >>> parse_decimal("1.234,5")
        1234.5
        >>> parse_decimal("1,234.5")
        1234.5
    """
    if raw is None:
        return None
    value = raw.strip().replace(" ", "")
    if not value:
        return None

    if "," in value and "." in value:
        # The right-most separator is the decimal one
        if value.rfind(",") > value.rfind("."):
            value = value.replace(".", "").replace(",", ".")
        else:
            value = value.replace(",", "")
    elif "," in value:
        value = value.replace(",", ".") if value.count(",") == 1 else value.replace(",", "")
    elif value.count(".") > 1:
        value = value.replace(".", "")

    try:
        return float(value)
    except ValueError:
        return None


def parse_weight_number(raw: str) -> Optional[float]:
    """Parse a weight figure, treating '18.750' style groups as thousands.

    Examples:
        >>> parse_weight_number("18.750")
        18750.0
        >>> parse_weight_number("18,75")
        18.75
    """
    if raw is None:
        return None
    value = raw.strip().replace(" ", "")
    if _THOUSANDS_ONLY.match(value):
        return float(re.sub(r"[.,]", "", value))
    return parse_decimal(value)


def normalize_length_unit(unit: Optional[str]) -> Optional[str]:
    if not unit:
        return None
    key = unit.strip().upper().rstrip(".")
    return key if key in LENGTH_UNITS else None


def to_meters(value: float, unit: Optional[str]) -> float:
    """Convert a length to meters.

    Without a unit: values below UNLABELED_METER_CEILING are meters,
    anything else is centimeters.
    """
    key = normalize_length_unit(unit)
    if key is None:
        return value if value < UNLABELED_METER_CEILING else value * LENGTH_UNITS["CM"]
    return value * LENGTH_UNITS[key]


def to_kilograms(value: float, unit: Optional[str]) -> float:
    """Convert a weight to kilograms (no unit means kilograms)."""
    if not unit:
        return value
    key = unit.strip().upper().rstrip(".")
    return value * WEIGHT_UNITS.get(key, 1.0)


def round_meters(value: float) -> float:
    return round(value, 3)
