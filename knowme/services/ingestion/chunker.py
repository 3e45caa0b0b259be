"""Fixed-window text chunking for the fallback search path.

Splits extracted document text into consecutive windows of at most
``max_chunk_size`` code points.  Windows never overlap and never skip
anything, so joining the chunks in order reproduces the input exactly.
The knowledge index does its own chunking; these windows exist so that a
space without an index can still answer from plain text, and so that the
text is persisted in bounded rows.
"""

from __future__ import annotations

import structlog

from knowme.models.document import DocumentChunk

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_CHUNK_SIZE = 1000


def chunk(text: str, max_chunk_size: int = DEFAULT_CHUNK_SIZE) -> list[str]:
    """Split *text* into windows of at most *max_chunk_size* characters.

    Returns ``ceil(len(text) / max_chunk_size)`` non-empty segments for
    non-empty text and an empty list for empty text.

    Raises:
        ValueError: If *max_chunk_size* is not positive.
    """
    if max_chunk_size <= 0:
        raise ValueError(f"max_chunk_size must be positive, got {max_chunk_size}")
    return [text[start : start + max_chunk_size] for start in range(0, len(text), max_chunk_size)]


class TextChunker:
    """Produces ordered :class:`DocumentChunk` rows for one document.

    Parameters
    ----------
    chunk_size:
        Maximum characters per chunk (default 1000).
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self._chunk_size = chunk_size

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    def chunk(self, text: str) -> list[str]:
        return chunk(text, self._chunk_size)

    def document_chunks(self, document_id: str, text: str) -> list[DocumentChunk]:
        """Return *text* as 0-based, ordered chunk rows for *document_id*."""
        segments = self.chunk(text)
        chunks = [
            DocumentChunk(document_id=document_id, chunk_index=i, content=segment)
            for i, segment in enumerate(segments)
        ]
        logger.debug(
            "chunking_complete",
            document_id=document_id,
            num_chunks=len(chunks),
            chunk_size=self._chunk_size,
        )
        return chunks
