"""Source processor for uploaded plain-text files."""

from __future__ import annotations

from knowme.interfaces.storage_provider import IStorageProvider
from knowme.models.document import Document, ExtractedContent, IndexArtifact
from knowme.services.ingestion.source_processors.base import (
    load_document_bytes,
    text_artifact_name,
)
from knowme.utils.errors import EmptyContentError


class TextProcessor:
    """Decodes stored bytes as UTF-8, replacing invalid sequences."""

    def __init__(self, storage: IStorageProvider) -> None:
        self._storage = storage

    async def process(self, document: Document) -> ExtractedContent:
        data = await load_document_bytes(self._storage, document)
        text = data.decode("utf-8", errors="replace")
        if not text.strip():
            raise EmptyContentError(message="The text file is empty")
        return ExtractedContent(
            text=text,
            artifact=IndexArtifact(
                filename=text_artifact_name(document.filename),
                data=text.encode("utf-8"),
            ),
        )
