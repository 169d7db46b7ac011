"""Validate a mapped payload before it is handed to connectors."""

from dataclasses import dataclass, field
from typing import Any, List, Mapping

from .field_mapper import VALUE_KEYS, read_field

REQUIRED_TARGETS = ("POL", "POD", "CARGO")
RECOMMENDED_TARGETS = ("CUSTOMER", "CONTACT_EMAIL", "DIM_BEF_DELIVERY", "CONCERNING")

_VALUE_TYPES = {
    "stringValue": (str,),
    "numberValue": (int, float),
    "booleanValue": (bool,),
}


@dataclass
class PayloadValidation:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _contract_error(name: str, entry: Any) -> str | None:
    if not isinstance(entry, Mapping):
        return f"{name}: value must be an object with one of {', '.join(VALUE_KEYS)}"

    keys = [k for k in entry if k in VALUE_KEYS]
    if len(keys) != 1 or len(entry) != 1:
        return f"{name}: expected exactly one of {', '.join(VALUE_KEYS)}, got {sorted(entry)}"

    key = keys[0]
    value = entry[key]
    if key != "booleanValue" and isinstance(value, bool):
        return f"{name}: {key} must not be a boolean"
    if not isinstance(value, _VALUE_TYPES[key]):
        return f"{name}: {key} has type {type(value).__name__}"
    if key == "stringValue" and not value.strip():
        return f"{name}: empty stringValue"
    return None


def validate_payload(payload: Mapping[str, Any]) -> PayloadValidation:
    """Check the type contract plus required and recommended targets.

    Args:
        payload: External field name -> typed value object

    Returns:
        PayloadValidation with blocking errors and non-blocking warnings
    """
    result = PayloadValidation()

    for name, entry in payload.items():
        error = _contract_error(name, entry)
        if error:
            result.errors.append(error)

    for target in REQUIRED_TARGETS:
        if read_field(payload, target) is None:
            result.errors.append(f"Missing required field {target}")

    for target in RECOMMENDED_TARGETS:
        if read_field(payload, target) is None:
            result.warnings.append(f"Missing recommended field {target}")

    return result
