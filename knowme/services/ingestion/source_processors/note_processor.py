"""Source processor for owner-typed notes; no external calls."""

from __future__ import annotations

from knowme.models.document import Document, ExtractedContent, IndexArtifact
from knowme.services.ingestion.source_processors.base import text_artifact_name
from knowme.utils.errors import EmptyContentError


class NoteProcessor:
    """Uses the note body stored on the document verbatim."""

    async def process(self, document: Document) -> ExtractedContent:
        text = document.content_text or ""
        if not text.strip():
            raise EmptyContentError(message="Note is empty")
        return ExtractedContent(
            text=text,
            artifact=IndexArtifact(
                filename=text_artifact_name(document.filename),
                data=text.encode("utf-8"),
            ),
        )
