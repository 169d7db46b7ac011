from .correlation import extraction_scope, get_document_id, get_run_id
from .logging_config import configure_logging

__all__ = ["configure_logging", "extraction_scope", "get_document_id", "get_run_id"]
