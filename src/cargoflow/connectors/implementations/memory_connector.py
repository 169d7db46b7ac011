"""
In-memory export connector.

Keeps exported payloads keyed by idempotency key so repeated deliveries of
the same payload are stored once. Supports failure injection for testing
the dispatcher's retry and isolation behavior.
"""

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional

from ...domain.connectors.ports import DispatchFailure, ExportConnectorPort, ExportResult

logger = logging.getLogger(__name__)


class InMemoryConnector(ExportConnectorPort):
    """
    Connector that stores payloads in a dict.

    Modes:
    - success: Always succeeds
    - failure: Always raises a non-retryable DispatchFailure
    - transient: Raises a retryable DispatchFailure for the first
      `transient_failures` calls, then succeeds
    - timeout: Sleeps `delay_s` before succeeding
    """

    def __init__(
        self,
        name: str = "memory",
        mode: str = "success",
        transient_failures: int = 1,
        delay_s: float = 0.0,
    ):
        if mode not in ("success", "failure", "transient", "timeout"):
            raise ValueError(f"Unknown connector mode: {mode}")
        self._name = name
        self.mode = mode
        self.transient_failures = transient_failures
        self.delay_s = delay_s
        self.exports: Dict[str, Dict[str, Any]] = {}
        self.calls: List[str] = []

    @property
    def name(self) -> str:
        return self._name

    async def export(
        self,
        payload: Mapping[str, Dict[str, Any]],
        document_id: str,
        idempotency_key: str,
    ) -> ExportResult:
        self.calls.append(idempotency_key)

        if self.mode == "failure":
            raise DispatchFailure(f"{self._name} rejected payload", retryable=False)

        if self.mode == "transient" and len(self.calls) <= self.transient_failures:
            raise DispatchFailure(f"{self._name} temporarily unavailable", retryable=True)

        if self.mode == "timeout" and self.delay_s:
            await asyncio.sleep(self.delay_s)

        duplicate = idempotency_key in self.exports
        if not duplicate:
            self.exports[idempotency_key] = {
                "document_id": document_id,
                "payload": {k: dict(v) for k, v in payload.items()},
            }
        else:
            logger.info(f"Duplicate delivery ignored for key {idempotency_key[:12]}")

        return ExportResult(
            success=True,
            external_id=f"{self._name}-{idempotency_key[:12]}",
            connector_metadata={"duplicate": duplicate},
        )

    def payload_for(self, document_id: str) -> Optional[Dict[str, Dict[str, Any]]]:
        """Latest stored payload for a document, if any."""
        for stored in reversed(list(self.exports.values())):
            if stored["document_id"] == document_id:
                return stored["payload"]
        return None
