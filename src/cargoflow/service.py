"""Document processing service - wires extraction, mapping and dispatch.

One call per inbound document:
1. Hybrid extraction (pattern + AI strategies, merged per field)
2. CanonicalRecord (customer normalization, reference canonicalization)
3. Typed external payload (mapping table with fallback chains)
4. Dispatch to every registered connector

Failed extractions stop after step 1: nothing is mapped or dispatched.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .config import Settings, get_settings
from .connectors import DropzoneJsonConnector, IntegrationDispatcher
from .domain.canonical import CanonicalRecord
from .domain.connectors.ports import DispatchResult
from .domain.documents import RawDocument
from .domain.extraction.context import ExtractionContext
from .domain.extraction.result import ExtractionResult
from .infrastructure.ai import AIExtractionClient
from .infrastructure.extractors import build_strategy_selector
from .infrastructure.reference import ReferenceLookup
from .mapping import FieldMapper, MappedPayload, validate_payload
from .normalization import CustomerNormalizer, build_canonical_record
from .pipeline import HybridExtractionPipeline

logger = logging.getLogger(__name__)


@dataclass
class ProcessingReport:
    """
    Everything produced for one document.

    Attributes:
        result: Merged extraction result (always present)
        record: Canonical record, None when extraction failed
        payload: Mapped payload, None when extraction failed
        dispatches: Per-connector dispatch results
        warnings: Payload validation findings
    """
    result: ExtractionResult
    record: Optional[CanonicalRecord] = None
    payload: Optional[MappedPayload] = None
    dispatches: List[DispatchResult] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "extraction": self.result.to_dict(),
            "payload": self.payload.to_dict() if self.payload is not None else None,
            "omitted": [e.to_dict() for e in self.payload.omitted] if self.payload is not None else [],
            "dispatches": [d.to_dict() for d in self.dispatches],
            "warnings": list(self.warnings),
        }


class DocumentProcessor:
    """
    End-to-end processing of inbound freight documents.

    Example:
        settings = get_settings()
        settings.apply_logging()
        processor = DocumentProcessor.from_settings(settings)
        report = await processor.process(RawDocument.from_text("doc-1", body))
        report.payload.to_dict()
    """

    def __init__(
        self,
        pipeline: HybridExtractionPipeline,
        mapper: FieldMapper,
        dispatcher: Optional[IntegrationDispatcher] = None,
        lookup: Optional[ReferenceLookup] = None,
        normalizer: Optional[CustomerNormalizer] = None,
        default_context: Optional[ExtractionContext] = None,
    ):
        self.pipeline = pipeline
        self.mapper = mapper
        self.dispatcher = dispatcher
        self.lookup = lookup
        self.normalizer = normalizer or CustomerNormalizer()
        self.default_context = default_context or ExtractionContext()

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "DocumentProcessor":
        """Build the full component graph from settings.

        Raises:
            ReferenceDataUnavailable: If the reference tables cannot be loaded
        """
        settings = settings or get_settings()
        lookup = ReferenceLookup.from_file(settings.REFERENCE_DATA_PATH)

        ai_client = None
        if settings.AI_ENABLED:
            providers = settings.build_providers()
            if providers:
                ai_client = AIExtractionClient(providers, settings.ai_client_config())
            else:
                logger.warning("AI enabled but no provider API key configured; pattern extraction only")

        selector = build_strategy_selector(lookup=lookup, ai_client=ai_client)
        pipeline = HybridExtractionPipeline(selector, settings.pipeline_config(), lookup=lookup)

        dispatcher = IntegrationDispatcher(
            max_attempts=settings.DISPATCH_MAX_ATTEMPTS,
            base_delay_s=settings.DISPATCH_BASE_DELAY_SECONDS,
        )
        if settings.DROPZONE_PATH:
            dispatcher.register(DropzoneJsonConnector(settings.DROPZONE_PATH))

        logger.info(
            "Document processor ready",
            extra={
                "strategies": [s.name for s in selector.list_strategies()],
                "connectors": dispatcher.connectors,
            },
        )
        return cls(
            pipeline=pipeline,
            mapper=FieldMapper(lookup=lookup),
            dispatcher=dispatcher,
            lookup=lookup,
            default_context=settings.extraction_context(),
        )

    async def process(
        self,
        document: RawDocument,
        context: Optional[ExtractionContext] = None,
    ) -> ProcessingReport:
        context = context or self.default_context
        result = await self.pipeline.extract(document, context)
        report = ProcessingReport(result=result)

        if result.is_failed:
            logger.warning(
                f"Extraction failed for {document.document_id}; skipping mapping and dispatch",
                extra={"errors": [e.message for e in result.errors]},
            )
            return report

        report.record = build_canonical_record(result, context, self.lookup, self.normalizer)
        report.payload = self.mapper.map_record(report.record)

        validation = validate_payload(report.payload.fields)
        report.warnings = [*validation.errors, *validation.warnings]

        if self.dispatcher is not None:
            report.dispatches = await self.dispatcher.dispatch_result(result, report.payload)
        return report
