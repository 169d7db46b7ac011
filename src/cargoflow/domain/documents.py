"""Raw inbound document model.

A RawDocument is handed to the pipeline by the document source collaborator.
Text content has already been decoded (email body, PDF text layer, OCR) when
available; images travel as bytes for the vision tier.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple


class SourceChannel(str, Enum):
    """Channel a document arrived through."""
    EMAIL = "email"
    IMAGE = "image"
    PDF = "pdf"
    TEXT = "text"


IMAGE_MIME_PREFIX = "image/"
TEXT_MIME_TYPES = {
    "text/plain",
    "text/html",
    "message/rfc822",
    "application/vnd.ms-outlook",
}


@dataclass(frozen=True)
class RawDocument:
    """Immutable inbound document.

    Attributes:
        document_id: Originating identifier (stable across re-extractions)
        content: Raw bytes as received
        mime_type: MIME type reported by the source
        source_channel: Channel the document came from
        text: Pre-decoded text (email body, PDF text layer, OCR output)
        filename: Original filename, if any
        page_images: Rasterized pages of a scanned PDF (PNG), for the vision tier
    """
    document_id: str
    content: bytes
    mime_type: str
    source_channel: SourceChannel = SourceChannel.TEXT
    text: Optional[str] = None
    filename: Optional[str] = None
    page_images: Tuple[bytes, ...] = ()

    @classmethod
    def from_text(
        cls,
        document_id: str,
        text: str,
        mime_type: str = "text/plain",
        source_channel: SourceChannel = SourceChannel.TEXT,
    ) -> "RawDocument":
        return cls(
            document_id=document_id,
            content=text.encode("utf-8"),
            mime_type=mime_type,
            source_channel=source_channel,
            text=text,
        )

    def is_image(self) -> bool:
        return (
            self.mime_type.lower().startswith(IMAGE_MIME_PREFIX)
            or self.source_channel == SourceChannel.IMAGE
        )

    def is_scanned(self) -> bool:
        """PDF without an extractable text layer."""
        return self.mime_type.lower() == "application/pdf" and not (self.text or "").strip()

    def as_text(self) -> str:
        """Return decoded text, or an empty string for binary-only documents."""
        if self.text is not None:
            return self.text
        if self.is_image() or self.mime_type.lower() == "application/pdf":
            return ""
        return self.content.decode("utf-8", errors="replace")

    def has_text(self) -> bool:
        return bool(self.as_text().strip())

    def vision_images(self) -> List[bytes]:
        """Image payloads for the vision tier (the image itself or rendered pages)."""
        if self.page_images:
            return list(self.page_images)
        if self.is_image():
            return [self.content]
        return []

    def vision_mime_type(self) -> str:
        if self.page_images:
            return "image/png"
        return self.mime_type
