"""Source processors for the knowme ingestion pipeline.

Each processor turns one document kind into an
:class:`~knowme.models.document.ExtractedContent`: the text kept for the
preview and fallback chunks, plus the artifact uploaded to the index.

- **NoteProcessor**  -- owner-typed notes, used verbatim
- **TextProcessor**  -- uploaded .txt files decoded as UTF-8
- **ImageProcessor** -- images transcribed/described by a vision model
- **PDFProcessor**   -- PDFs read by a multimodal model, PyMuPDF fallback
- **UrlProcessor**   -- web pages fetched with httpx and cleaned with BeautifulSoup
"""

from knowme.services.ingestion.source_processors.image_processor import ImageProcessor
from knowme.services.ingestion.source_processors.note_processor import NoteProcessor
from knowme.services.ingestion.source_processors.pdf_processor import PDFProcessor
from knowme.services.ingestion.source_processors.text_processor import TextProcessor
from knowme.services.ingestion.source_processors.url_processor import UrlProcessor

__all__ = [
    "ImageProcessor",
    "NoteProcessor",
    "PDFProcessor",
    "TextProcessor",
    "UrlProcessor",
]
