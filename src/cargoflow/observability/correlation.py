"""Correlation ID management.

Every pipeline run binds the document id (plus a per-attempt run id) to a
context variable so log lines emitted from concurrent strategies can be
traced back to one extraction attempt.
"""

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

# Context variables (async-safe: each asyncio task sees its own copy)
document_id_var: ContextVar[Optional[str]] = ContextVar("document_id", default=None)
run_id_var: ContextVar[Optional[str]] = ContextVar("run_id", default=None)


def generate_run_id() -> str:
    """Generate a new unique extraction run ID.

    Returns:
        str: UUID v4
    """
    return str(uuid.uuid4())


def get_document_id() -> str:
    """Get current document ID from context.

    Returns:
        str: Current document ID or "no-document" if not set
    """
    return document_id_var.get() or "no-document"


def get_run_id() -> str:
    return run_id_var.get() or "no-run"


@contextmanager
def extraction_scope(document_id: str, run_id: Optional[str] = None) -> Iterator[str]:
    """Bind document and run IDs for the duration of a block.

    Yields:
        str: The run ID in effect
    """
    run_id = run_id or generate_run_id()
    document_token = document_id_var.set(document_id)
    run_token = run_id_var.set(run_id)
    try:
        yield run_id
    finally:
        run_id_var.reset(run_token)
        document_id_var.reset(document_token)
