from .field_mapper import (
    FieldMapper,
    MappedPayload,
    build_title,
    map_record,
    merge_into,
    read_field,
    typed_value,
)
from .mapping_table import MAPPING_TABLE, FieldMapping
from .payload_validation import PayloadValidation, validate_payload

__all__ = [
    "FieldMapper",
    "FieldMapping",
    "MAPPING_TABLE",
    "MappedPayload",
    "PayloadValidation",
    "build_title",
    "map_record",
    "merge_into",
    "read_field",
    "typed_value",
    "validate_payload",
]
