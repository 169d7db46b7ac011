"""Extraction domain: fields, merge, confidence and the strategy port."""

from .context import ExtractionContext
from .errors import ErrorKind, ExtractionError
from .fields import (
    CANONICAL_FIELDS,
    DEFAULT_REQUIRED_FIELDS,
    ExtractionField,
    FieldSource,
    ValueType,
)
from .result import ExtractionResult, ExtractionStatus

__all__ = [
    "CANONICAL_FIELDS",
    "DEFAULT_REQUIRED_FIELDS",
    "ErrorKind",
    "ExtractionContext",
    "ExtractionError",
    "ExtractionField",
    "ExtractionResult",
    "ExtractionStatus",
    "FieldSource",
    "ValueType",
]
