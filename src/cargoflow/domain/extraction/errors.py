"""Error taxonomy for the extraction pipeline.

Errors at strategy, AI-client and mapper boundaries are values, not raised
exceptions: they are collected into ExtractionResult.errors or the mapping
report so partial results are never lost by a later-stage failure.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    STRATEGY_FAILURE = "StrategyFailure"
    SCHEMA_VIOLATION = "SchemaViolation"
    TIMEOUT = "Timeout"
    PROVIDER_ERROR = "ProviderError"
    TOTAL_EXTRACTION_FAILURE = "TotalExtractionFailure"
    MAPPING_FALLBACK_EXHAUSTED = "MappingFallbackExhausted"
    DISPATCH_FAILURE = "DispatchFailure"


@dataclass(frozen=True)
class ExtractionError:
    """One recorded failure.

    Attributes:
        kind: Taxonomy entry
        message: Human-readable description
        strategy: Strategy (or connector / canonical key) the error belongs to
        details: Structured context (provider status, validation errors, ...)
    """
    kind: ErrorKind
    message: str
    strategy: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "strategy": self.strategy,
            "details": dict(self.details),
        }
