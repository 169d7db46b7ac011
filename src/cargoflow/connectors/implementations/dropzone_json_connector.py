"""
Dropzone JSON connector - writes mapped payloads as JSON files.

Files are written atomically (temp file + rename) so consumers polling the
directory never see a half-written export. The filename is derived from
the document id and the idempotency key, so re-dispatching the same
payload overwrites the same file instead of creating a duplicate.
"""

import asyncio
import json
import logging
import os
import re
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Mapping

from ...domain.connectors.ports import DispatchFailure, ExportConnectorPort, ExportResult

logger = logging.getLogger(__name__)

EXPORT_FORMAT_VERSION = "cargoflow_payload_v1"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_.-]+")


class DecimalJSONEncoder(json.JSONEncoder):
    """JSON encoder that serializes Decimal as string to preserve precision."""

    def default(self, obj):
        if isinstance(obj, Decimal):
            return str(obj)
        return super().default(obj)


class DropzoneJsonConnector(ExportConnectorPort):
    """
    Export connector for a filesystem dropzone.

    Configuration:
        path: Target directory (created on first export)

    Example:
        connector = DropzoneJsonConnector("/var/dropzone/quotes")
        result = await connector.export(payload, "doc-1", key)
        result.connector_metadata["dropzone_path"]
    """

    def __init__(self, path: str, name: str = "dropzone_json"):
        if not path:
            raise ValueError("Dropzone path is required")
        self.path = path
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    @staticmethod
    def build_filename(document_id: str, idempotency_key: str) -> str:
        safe_id = _UNSAFE_FILENAME_CHARS.sub("_", document_id).strip("_") or "document"
        return f"quote_{safe_id}_{idempotency_key[:16]}.json"

    async def export(
        self,
        payload: Mapping[str, Dict[str, Any]],
        document_id: str,
        idempotency_key: str,
    ) -> ExportResult:
        document = {
            "export_version": EXPORT_FORMAT_VERSION,
            "document_id": document_id,
            "idempotency_key": idempotency_key,
            "exported_at": datetime.now(timezone.utc).isoformat(),
            "fields": {k: dict(v) for k, v in payload.items()},
        }
        content = json.dumps(document, cls=DecimalJSONEncoder, indent=2, ensure_ascii=False)
        filename = self.build_filename(document_id, idempotency_key)

        try:
            file_path = await self._write_filesystem(filename, content)
        except OSError as e:
            logger.error(
                f"Dropzone write failed: {e}",
                exc_info=True,
                extra={"connector": self._name},
            )
            # Full disks and unmounted shares usually recover
            raise DispatchFailure(f"Dropzone write failed: {e}", retryable=True) from e

        size_bytes = len(content.encode("utf-8"))
        logger.info(
            f"Exported payload to {file_path} ({size_bytes} bytes)",
            extra={"connector": self._name},
        )
        return ExportResult(
            success=True,
            external_id=filename,
            connector_metadata={
                "dropzone_path": file_path,
                "filename": filename,
                "file_size_bytes": size_bytes,
            },
        )

    async def _write_filesystem(self, filename: str, content: str) -> str:
        """Write content atomically: temp file first, then rename into place."""
        target = os.path.join(self.path, filename)
        temp = f"{target}.tmp"

        def write():
            os.makedirs(self.path, exist_ok=True)
            with open(temp, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(temp, target)

        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, write)
        return target
