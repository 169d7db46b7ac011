"""
Integration Dispatcher - Sends mapped payloads to every export connector.

Handles the dispatch workflow:
- Idempotency key generation
- Concurrent fan-out to all registered connectors
- Retry logic with exponential backoff for retryable failures
- Per-connector result collection and statistics

A failure at one connector never aborts the others and never touches the
extraction result.
"""

import asyncio
import hashlib
import json
import logging
from typing import Any, Dict, List, Mapping, Optional

from ..domain.connectors.ports import DispatchFailure, DispatchResult, ExportConnectorPort
from ..domain.extraction.result import ExtractionResult
from ..mapping.field_mapper import MappedPayload
from ..observability import metrics

logger = logging.getLogger(__name__)


class IntegrationDispatcher:
    """
    Dispatches payloads to registered connectors.

    Usage:
        dispatcher = IntegrationDispatcher(max_attempts=3, base_delay_s=1.0)
        dispatcher.register(DropzoneJsonConnector("/var/dropzone"))
        results = await dispatcher.dispatch(payload.to_dict(), document_id="doc-1")
    """

    def __init__(self, max_attempts: int = 3, base_delay_s: float = 1.0):
        """
        Args:
            max_attempts: Attempts per connector (first try included)
            base_delay_s: Base delay in seconds for exponential backoff
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay_s = base_delay_s
        self._connectors: Dict[str, ExportConnectorPort] = {}
        self._stats: Dict[str, Dict[str, int]] = {}

    def register(self, connector: ExportConnectorPort) -> None:
        """
        Raises:
            ValueError: If a connector with the same name is already registered
        """
        if connector.name in self._connectors:
            raise ValueError(f"Connector already registered: {connector.name}")
        self._connectors[connector.name] = connector
        self._stats[connector.name] = {"success": 0, "failure": 0, "attempts": 0}
        logger.info(f"Registered connector: {connector.name}")

    @property
    def connectors(self) -> List[str]:
        return list(self._connectors)

    @staticmethod
    def generate_idempotency_key(
        document_id: str,
        connector_name: str,
        payload: Mapping[str, Any],
    ) -> str:
        """
        Deterministic key: the same payload for the same document and
        connector always yields the same key, so retries and re-dispatches
        can be deduplicated by the target.

        Example:
            key = IntegrationDispatcher.generate_idempotency_key("doc-1", "memory", payload)
            # "a7b3c4d5e6f7..."
        """
        canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
        data = f"{document_id}:{connector_name}:{canonical}".encode("utf-8")
        return hashlib.sha256(data).hexdigest()

    async def dispatch(
        self,
        payload: Mapping[str, Dict[str, Any]],
        document_id: str,
    ) -> List[DispatchResult]:
        """
        Send the payload to every connector concurrently.

        Returns:
            One DispatchResult per connector, in registration order
        """
        if not self._connectors:
            logger.warning("No connectors registered; nothing dispatched")
            return []

        results = await asyncio.gather(
            *(
                self._dispatch_with_retry(connector, payload, document_id)
                for connector in self._connectors.values()
            )
        )
        return list(results)

    async def dispatch_result(
        self,
        result: ExtractionResult,
        payload: MappedPayload,
    ) -> List[DispatchResult]:
        """
        Dispatch a mapped extraction; failed extractions are never sent.

        Returns:
            Per-connector results, empty when the extraction failed
        """
        if result.is_failed or payload.skipped:
            logger.info(
                f"Not dispatching document {result.document_id}: extraction status "
                f"{result.status.value}"
            )
            return []
        return await self.dispatch(payload.to_dict(), result.document_id)

    async def _dispatch_with_retry(
        self,
        connector: ExportConnectorPort,
        payload: Mapping[str, Dict[str, Any]],
        document_id: str,
    ) -> DispatchResult:
        """
        Execute export with exponential backoff retry logic.

        Non-retryable failures stop immediately; retryable ones are retried
        until max_attempts is reached.
        """
        idempotency_key = self.generate_idempotency_key(document_id, connector.name, payload)
        last_error: Optional[str] = None

        for attempt in range(1, self.max_attempts + 1):
            self._stats[connector.name]["attempts"] += 1
            retryable = False

            try:
                export = await connector.export(payload, document_id, idempotency_key)
            except DispatchFailure as e:
                last_error = str(e)
                retryable = e.retryable
            except Exception as e:
                last_error = f"{type(e).__name__}: {e}"
                logger.error(
                    f"Connector {connector.name} raised unexpectedly: {e}",
                    exc_info=True,
                    extra={"connector": connector.name},
                )
            else:
                if export.success:
                    logger.info(
                        f"Dispatch succeeded on attempt {attempt}",
                        extra={"connector": connector.name, "attempt": attempt},
                    )
                    return self._record(
                        DispatchResult(
                            connector=connector.name,
                            success=True,
                            attempts=attempt,
                            idempotency_key=idempotency_key,
                            external_id=export.external_id,
                        )
                    )
                last_error = export.error_message or "Connector reported failure"

            logger.warning(
                f"Dispatch failed on attempt {attempt}: {last_error}",
                extra={"connector": connector.name, "attempt": attempt, "errors": [last_error]},
            )

            if not retryable or attempt == self.max_attempts:
                return self._record(
                    DispatchResult(
                        connector=connector.name,
                        success=False,
                        attempts=attempt,
                        idempotency_key=idempotency_key,
                        error_message=last_error,
                    )
                )

            delay = self.base_delay_s * (2 ** (attempt - 1))
            logger.info(f"Retrying {connector.name} in {delay}s...")
            await asyncio.sleep(delay)

        raise AssertionError("unreachable")

    def _record(self, result: DispatchResult) -> DispatchResult:
        outcome = "success" if result.success else "failure"
        self._stats[result.connector][outcome] += 1
        metrics.dispatch_results_total.labels(result.connector, outcome).inc()
        return result

    def get_statistics(self) -> Dict[str, Dict[str, int]]:
        """Per-connector counters: success, failure, attempts."""
        return {name: dict(counts) for name, counts in self._stats.items()}
