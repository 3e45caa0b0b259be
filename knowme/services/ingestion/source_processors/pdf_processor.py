"""Source processor for PDF documents.

The original PDF bytes are always the artifact uploaded to the knowledge
index; the index does its own parsing.  The text kept on the document
(preview and fallback chunks) comes from a multimodal model reading the
PDF natively.  When that call fails the text is read locally with
PyMuPDF (fitz) instead, page by page.  Neither failure is fatal here:
a PDF can end up with empty text and still be indexed.
"""

from __future__ import annotations

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog

from knowme.interfaces.llm_provider import ILLMProvider
from knowme.interfaces.storage_provider import IStorageProvider
from knowme.models.document import Document, ExtractedContent, IndexArtifact
from knowme.services.ingestion.source_processors.base import load_document_bytes
from knowme.utils.errors import KnowMeError

logger = structlog.get_logger(logger_name=__name__)

PDF_PROMPT = (
    "Extract the key text content from this PDF. Preserve headings, names, "
    "dates, roles, figures and lists. Organise the result with short section "
    "headings and keep wording close to the original. Return plain text only."
)


class PDFProcessor:
    """Produces preview text for a PDF and passes the file through unchanged."""

    def __init__(self, storage: IStorageProvider, llm: ILLMProvider | None) -> None:
        self._storage = storage
        self._llm = llm

    async def process(self, document: Document) -> ExtractedContent:
        data = await load_document_bytes(self._storage, document)
        warnings: list[str] = []

        text = await self._model_text(document, data)
        if not text:
            text = self.extract_local_text(data)
            if text:
                warnings.append("Preview text was read directly from the PDF")
            else:
                warnings.append("No text could be read from this PDF")

        return ExtractedContent(
            text=text,
            artifact=IndexArtifact(filename=document.filename, data=data),
            warnings=warnings,
        )

    async def _model_text(self, document: Document, data: bytes) -> str:
        if self._llm is None or not self._llm.is_available():
            return ""
        try:
            return (await self._llm.document_extract(data, document.filename, PDF_PROMPT)).strip()
        except KnowMeError as exc:
            logger.warning(
                "pdf_preview_failed",
                document_id=document.id,
                error=str(exc),
            )
            return ""

    @staticmethod
    def extract_local_text(data: bytes) -> str:
        """Return the text layer of every page, joined by blank lines."""
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except (fitz.FileDataError, RuntimeError, ValueError):
            logger.error("pdf_open_failed", size=len(data))
            return ""

        pages: list[str] = []
        try:
            for page in doc:
                page_text = page.get_text("text").strip()
                if page_text:
                    pages.append(page_text)
        finally:
            doc.close()

        if not pages:
            logger.warning("pdf_no_text_extracted", size=len(data))
        return "\n\n".join(pages)
