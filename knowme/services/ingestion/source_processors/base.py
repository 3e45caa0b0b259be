"""Helpers shared by the per-kind source processors."""

from __future__ import annotations

from pathlib import PurePosixPath

import structlog

from knowme.interfaces.storage_provider import IStorageProvider
from knowme.models.document import Document
from knowme.utils.errors import StorageError

logger = structlog.get_logger(logger_name=__name__)


async def load_document_bytes(storage: IStorageProvider, document: Document) -> bytes:
    """Read the stored upload for *document*.

    Raises:
        StorageError: ``"Failed to download file"`` when the document has no
            stored path or the read fails.
    """
    if not document.file_path:
        raise StorageError()
    try:
        return await storage.load(document.file_path)
    except StorageError:
        logger.warning(
            "document_bytes_unavailable",
            document_id=document.id,
            file_path=document.file_path,
        )
        raise StorageError() from None


def text_artifact_name(name: str) -> str:
    """Return *name* with a ``.txt`` suffix, replacing any existing extension."""
    stem = PurePosixPath(name).stem or "document"
    return f"{stem}.txt"
