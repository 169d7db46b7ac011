from .document_locks import DocumentLockRegistry
from .hybrid_pipeline import HybridExtractionPipeline, PipelineConfig

__all__ = ["DocumentLockRegistry", "HybridExtractionPipeline", "PipelineConfig"]
