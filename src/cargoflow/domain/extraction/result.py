"""ExtractionResult - the published outcome of one extraction attempt."""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Tuple

from .errors import ExtractionError
from .fields import ExtractionField


class ExtractionStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass(frozen=True)
class ExtractionResult:
    """Merged, immutable extraction outcome for one document.

    Built once after the merge step; a re-extraction produces a new instance.

    Attributes:
        document_id: Identifier of the source document
        fields: Canonical key -> winning ExtractionField (one per key)
        confidence: Weighted mean over required fields, 0.0-1.0
        status: success / partial / failed
        errors: Recorded strategy and total failures
        strategies: Names of strategies that were attempted
        confidence_breakdown: Per-required-field scores for debugging
    """
    document_id: str
    fields: Mapping[str, ExtractionField]
    confidence: float
    status: ExtractionStatus
    errors: Tuple[ExtractionError, ...] = ()
    strategies: Tuple[str, ...] = ()
    confidence_breakdown: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        # Freeze the mappings so the published result cannot be edited in place
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))
        object.__setattr__(
            self, "confidence_breakdown", MappingProxyType(dict(self.confidence_breakdown))
        )

    def value(self, key: str, default: Any = None) -> Any:
        extraction_field = self.fields.get(key)
        if extraction_field is None or extraction_field.value is None:
            return default
        return extraction_field.value

    def populated_keys(self) -> Tuple[str, ...]:
        return tuple(key for key, f in self.fields.items() if f.is_populated)

    @property
    def is_failed(self) -> bool:
        return self.status == ExtractionStatus.FAILED

    def to_dict(self) -> Dict[str, Any]:
        """Audit-friendly serialization with per-field attribution."""
        return {
            "document_id": self.document_id,
            "status": self.status.value,
            "confidence": self.confidence,
            "confidence_breakdown": dict(self.confidence_breakdown),
            "strategies": list(self.strategies),
            "errors": [error.to_dict() for error in self.errors],
            "fields": {key: f.to_dict() for key, f in self.fields.items()},
        }
