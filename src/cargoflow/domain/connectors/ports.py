"""
ExportConnectorPort - Port interface for downstream export collaborators

Every export target (CRM, dropzone, test double) implements this interface.
The integration dispatcher depends only on this port.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional


@dataclass
class ExportResult:
    """
    Return structure of ExportConnectorPort.export().

    Attributes:
        success: Whether the export succeeded
        external_id: Identifier assigned by the target, if any
        error_message: Human-readable error when success=False
        connector_metadata: Connector-specific metadata (e.g. dropzone_path)
    """
    success: bool
    external_id: Optional[str] = None
    error_message: Optional[str] = None
    connector_metadata: dict[str, Any] = None

    def __post_init__(self):
        if self.connector_metadata is None:
            self.connector_metadata = {}


@dataclass
class DispatchResult:
    """
    Per-connector outcome collected by the dispatcher.

    Attributes:
        connector: Connector name
        success: Whether the payload was accepted
        attempts: Number of export attempts made
        idempotency_key: Key sent with every attempt
        external_id: Identifier returned by the target
        error_message: Last error when success=False
        dispatched_at: Completion timestamp (UTC)
    """
    connector: str
    success: bool
    attempts: int
    idempotency_key: str
    external_id: Optional[str] = None
    error_message: Optional[str] = None
    dispatched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "connector": self.connector,
            "success": self.success,
            "attempts": self.attempts,
            "idempotency_key": self.idempotency_key,
            "external_id": self.external_id,
            "error": self.error_message,
            "timestamp": self.dispatched_at.isoformat(),
        }


class DispatchFailure(Exception):
    """
    A downstream collaborator rejected the payload.

    Raised by connector implementations. The dispatcher catches it per
    connector; it never rolls back the extraction.

    Attributes:
        retryable: True for transient failures (timeouts, 5xx)
    """

    def __init__(self, message: str, retryable: bool = False):
        super().__init__(message)
        self.retryable = retryable


class ExportConnectorPort(ABC):
    """
    Abstract interface for export connectors.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Connector identifier (e.g. 'dropzone_json', 'memory')."""
        pass

    @abstractmethod
    async def export(
        self,
        payload: Mapping[str, Dict[str, Any]],
        document_id: str,
        idempotency_key: str,
    ) -> ExportResult:
        """
        Send a mapped payload downstream.

        Args:
            payload: Flat {fieldName: {stringValue|numberValue|booleanValue: v}}
            document_id: Source document identity
            idempotency_key: Stable key; repeated calls must not duplicate

        Returns:
            ExportResult

        Raises:
            DispatchFailure: Target rejected the payload or was unreachable
        """
        pass
