"""Unit tests for the integration dispatcher.

Tests cover:
- Deterministic idempotency keys
- Isolation between connectors
- Retry on retryable failures only
- Statistics
- Failed extractions are never dispatched
"""

from unittest.mock import AsyncMock, Mock

import pytest

from cargoflow.connectors import InMemoryConnector, IntegrationDispatcher
from cargoflow.domain.connectors.ports import DispatchFailure, ExportResult
from cargoflow.domain.extraction.result import ExtractionResult, ExtractionStatus
from cargoflow.mapping import MappedPayload

PAYLOAD = {
    "POL": {"stringValue": "Antwerp"},
    "POD": {"stringValue": "Lagos"},
    "WEIGHT_KG": {"numberValue": 2100},
}


def connector_mock(name, side_effect):
    connector = Mock()
    connector.name = name
    connector.export = AsyncMock(side_effect=side_effect)
    return connector


class TestIdempotencyKey:
    """Test key generation"""

    def test_stable_for_same_input(self):
        key1 = IntegrationDispatcher.generate_idempotency_key("doc-1", "memory", PAYLOAD)
        key2 = IntegrationDispatcher.generate_idempotency_key("doc-1", "memory", dict(reversed(PAYLOAD.items())))

        assert key1 == key2
        assert len(key1) == 64

    def test_differs_per_connector_document_and_payload(self):
        base = IntegrationDispatcher.generate_idempotency_key("doc-1", "memory", PAYLOAD)

        assert base != IntegrationDispatcher.generate_idempotency_key("doc-1", "dropzone_json", PAYLOAD)
        assert base != IntegrationDispatcher.generate_idempotency_key("doc-2", "memory", PAYLOAD)
        assert base != IntegrationDispatcher.generate_idempotency_key(
            "doc-1", "memory", {**PAYLOAD, "POD": {"stringValue": "Lomé"}}
        )


class TestRegistration:
    """Test connector registration"""

    def test_duplicate_name_rejected(self):
        dispatcher = IntegrationDispatcher()
        dispatcher.register(InMemoryConnector("memory"))

        with pytest.raises(ValueError, match="already registered"):
            dispatcher.register(InMemoryConnector("memory"))

    def test_invalid_max_attempts(self):
        with pytest.raises(ValueError):
            IntegrationDispatcher(max_attempts=0)

    @pytest.mark.asyncio
    async def test_no_connectors(self):
        assert await IntegrationDispatcher().dispatch(PAYLOAD, "doc-1") == []


class TestDispatch:
    """Test fan-out, isolation and retry"""

    @pytest.mark.asyncio
    async def test_success(self):
        dispatcher = IntegrationDispatcher(base_delay_s=0)
        memory = InMemoryConnector("memory")
        dispatcher.register(memory)

        results = await dispatcher.dispatch(PAYLOAD, "doc-1")

        assert len(results) == 1
        assert results[0].success
        assert results[0].attempts == 1
        assert memory.payload_for("doc-1") == PAYLOAD
        assert results[0].external_id == f"memory-{results[0].idempotency_key[:12]}"

    @pytest.mark.asyncio
    async def test_one_failure_does_not_affect_others(self):
        dispatcher = IntegrationDispatcher(base_delay_s=0)
        good = InMemoryConnector("good")
        bad = InMemoryConnector("bad", mode="failure")
        dispatcher.register(bad)
        dispatcher.register(good)

        results = await dispatcher.dispatch(PAYLOAD, "doc-1")

        assert [r.connector for r in results] == ["bad", "good"]
        assert not results[0].success
        assert results[0].attempts == 1
        assert "rejected" in results[0].error_message
        assert results[1].success
        assert good.payload_for("doc-1") == PAYLOAD

    @pytest.mark.asyncio
    async def test_transient_failure_retried(self):
        dispatcher = IntegrationDispatcher(max_attempts=3, base_delay_s=0)
        flaky = InMemoryConnector("flaky", mode="transient", transient_failures=2)
        dispatcher.register(flaky)

        results = await dispatcher.dispatch(PAYLOAD, "doc-1")

        assert results[0].success
        assert results[0].attempts == 3
        # Every attempt carries the same key
        assert len(set(flaky.calls)) == 1

    @pytest.mark.asyncio
    async def test_retries_exhausted(self):
        dispatcher = IntegrationDispatcher(max_attempts=2, base_delay_s=0)
        dispatcher.register(InMemoryConnector("flaky", mode="transient", transient_failures=5))

        results = await dispatcher.dispatch(PAYLOAD, "doc-1")

        assert not results[0].success
        assert results[0].attempts == 2

    @pytest.mark.asyncio
    async def test_unexpected_exception_not_retried(self):
        dispatcher = IntegrationDispatcher(max_attempts=3, base_delay_s=0)
        connector = connector_mock("broken", RuntimeError("boom"))
        dispatcher.register(connector)

        results = await dispatcher.dispatch(PAYLOAD, "doc-1")

        assert not results[0].success
        assert results[0].error_message == "RuntimeError: boom"
        assert connector.export.await_count == 1

    @pytest.mark.asyncio
    async def test_reported_failure_not_retried(self):
        dispatcher = IntegrationDispatcher(max_attempts=3, base_delay_s=0)
        connector = connector_mock("crm", [ExportResult(success=False, error_message="invalid payload")])
        dispatcher.register(connector)

        results = await dispatcher.dispatch(PAYLOAD, "doc-1")

        assert results[0].error_message == "invalid payload"
        assert results[0].attempts == 1

    @pytest.mark.asyncio
    async def test_retryable_dispatch_failure_from_mock(self):
        dispatcher = IntegrationDispatcher(max_attempts=3, base_delay_s=0)
        connector = connector_mock(
            "crm",
            [DispatchFailure("503", retryable=True), ExportResult(success=True, external_id="crm-1")],
        )
        dispatcher.register(connector)

        results = await dispatcher.dispatch(PAYLOAD, "doc-1")

        assert results[0].success
        assert results[0].external_id == "crm-1"
        assert results[0].attempts == 2

    @pytest.mark.asyncio
    async def test_redispatch_is_deduplicated(self):
        dispatcher = IntegrationDispatcher(base_delay_s=0)
        memory = InMemoryConnector("memory")
        dispatcher.register(memory)

        first = await dispatcher.dispatch(PAYLOAD, "doc-1")
        second = await dispatcher.dispatch(PAYLOAD, "doc-1")

        assert first[0].idempotency_key == second[0].idempotency_key
        assert len(memory.exports) == 1
        assert len(memory.calls) == 2

    @pytest.mark.asyncio
    async def test_statistics(self):
        dispatcher = IntegrationDispatcher(max_attempts=2, base_delay_s=0)
        dispatcher.register(InMemoryConnector("good"))
        dispatcher.register(InMemoryConnector("bad", mode="failure"))
        dispatcher.register(InMemoryConnector("flaky", mode="transient", transient_failures=1))

        await dispatcher.dispatch(PAYLOAD, "doc-1")
        stats = dispatcher.get_statistics()

        assert stats["good"] == {"success": 1, "failure": 0, "attempts": 1}
        assert stats["bad"] == {"success": 0, "failure": 1, "attempts": 1}
        assert stats["flaky"] == {"success": 1, "failure": 0, "attempts": 2}


class TestDispatchResult:
    """Test gating on the extraction status"""

    @staticmethod
    def result(status):
        return ExtractionResult(document_id="doc-1", fields={}, confidence=0.0, status=status)

    @pytest.mark.asyncio
    async def test_failed_extraction_not_dispatched(self):
        dispatcher = IntegrationDispatcher()
        memory = InMemoryConnector()
        dispatcher.register(memory)

        results = await dispatcher.dispatch_result(
            self.result(ExtractionStatus.FAILED), MappedPayload(document_id="doc-1", fields=dict(PAYLOAD))
        )

        assert results == []
        assert memory.calls == []

    @pytest.mark.asyncio
    async def test_skipped_payload_not_dispatched(self):
        dispatcher = IntegrationDispatcher()
        dispatcher.register(InMemoryConnector())

        results = await dispatcher.dispatch_result(
            self.result(ExtractionStatus.PARTIAL), MappedPayload(document_id="doc-1", skipped=True)
        )

        assert results == []

    @pytest.mark.asyncio
    async def test_partial_extraction_dispatched(self):
        dispatcher = IntegrationDispatcher()
        memory = InMemoryConnector()
        dispatcher.register(memory)

        results = await dispatcher.dispatch_result(
            self.result(ExtractionStatus.PARTIAL), MappedPayload(document_id="doc-1", fields=dict(PAYLOAD))
        )

        assert results[0].success
        assert memory.payload_for("doc-1") == PAYLOAD
