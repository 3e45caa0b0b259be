"""Content extractor: dispatches a document to the processor for its kind.

Every processor either returns an :class:`ExtractedContent` or raises an
:class:`~knowme.utils.errors.ExtractionError` subclass (or another
classified :class:`~knowme.utils.errors.KnowMeError` from an upstream
model call).  Nothing is retried here.
"""

from __future__ import annotations

from typing import Protocol

import structlog

from knowme.interfaces.llm_provider import ILLMProvider
from knowme.interfaces.page_provider import IPageProvider
from knowme.interfaces.storage_provider import IStorageProvider
from knowme.models.document import Document, DocumentKind, ExtractedContent
from knowme.services.ingestion.source_processors import (
    ImageProcessor,
    NoteProcessor,
    PDFProcessor,
    TextProcessor,
    UrlProcessor,
)
from knowme.utils.errors import EmptyContentError, UnsupportedDocumentError

logger = structlog.get_logger(logger_name=__name__)


class SourceProcessor(Protocol):
    async def process(self, document: Document) -> ExtractedContent: ...


class ContentExtractor:
    """Routes documents to the per-kind source processors."""

    def __init__(
        self,
        storage: IStorageProvider,
        llm: ILLMProvider,
        page_provider: IPageProvider,
        min_scraped_chars: int = 50,
    ) -> None:
        self._processors: dict[DocumentKind, SourceProcessor] = {
            DocumentKind.NOTE: NoteProcessor(),
            DocumentKind.TXT: TextProcessor(storage),
            DocumentKind.IMAGE: ImageProcessor(storage, llm),
            DocumentKind.PDF: PDFProcessor(storage, llm),
            DocumentKind.URL: UrlProcessor(page_provider, min_chars=min_scraped_chars),
        }

    async def extract(self, document: Document) -> ExtractedContent:
        """Extract text and the index artifact for *document*.

        Raises:
            UnsupportedDocumentError: No processor is registered for the kind.
            ExtractionError: The processor failed; ``message`` is user-facing.
        """
        processor = self._processors.get(document.kind)
        if processor is None:
            raise UnsupportedDocumentError(
                message=f"Unsupported document type: {document.kind.value}"
            )

        content = await processor.process(document)
        if document.kind is not DocumentKind.PDF and not content.text.strip():
            raise EmptyContentError()

        logger.info(
            "content_extracted",
            document_id=document.id,
            kind=document.kind.value,
            chars=len(content.text),
            warnings=len(content.warnings),
        )
        return content
