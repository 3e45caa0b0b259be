"""Document ingestion pipeline for knowme spaces.

Pipeline stages overview:

1. **Extract** (content_extractor.py + source_processors/) -- per-kind
   readers turn a note, text file, image, PDF or web page into text plus
   the artifact uploaded to the knowledge index.

2. **Chunk** (chunker.py / TextChunker) -- splits the text into fixed
   1000-character windows stored as ordered rows for the fallback path.

3. **Index** (index_manager.py / IndexManager) -- creates the space's
   remote index once and attaches the artifact to it.

The IngestionService class runs the stages and owns the document status
lifecycle.
"""

from knowme.services.ingestion.chunker import TextChunker, chunk
from knowme.services.ingestion.content_extractor import ContentExtractor
from knowme.services.ingestion.index_manager import IndexManager
from knowme.services.ingestion.ingestion_service import IngestionService

__all__ = [
    "ContentExtractor",
    "IndexManager",
    "IngestionService",
    "TextChunker",
    "chunk",
]
