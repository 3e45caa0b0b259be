"""Source processor for images: vision-model transcription or description."""

from __future__ import annotations

import structlog

from knowme.interfaces.llm_provider import ILLMProvider
from knowme.interfaces.storage_provider import IStorageProvider
from knowme.models.document import Document, ExtractedContent, IndexArtifact
from knowme.services.ingestion.source_processors.base import (
    load_document_bytes,
    text_artifact_name,
)

logger = structlog.get_logger(logger_name=__name__)

IMAGE_PROMPT = (
    "Extract all text visible in this image, transcribed verbatim and in reading "
    "order. If the image contains no text, describe the image in detail instead: "
    "the people, objects, setting, and anything else a reader would need to "
    "answer questions about it. Return only the transcription or description."
)


class ImageProcessor:
    """Turns an uploaded image into searchable text.

    The knowledge index cannot search pixels, so the indexed artifact is
    the model's transcription saved as a ``.txt`` file.
    """

    def __init__(self, storage: IStorageProvider, llm: ILLMProvider) -> None:
        self._storage = storage
        self._llm = llm

    async def process(self, document: Document) -> ExtractedContent:
        data = await load_document_bytes(self._storage, document)
        text = await self._llm.vision_extract(data, IMAGE_PROMPT)
        logger.info("image_transcribed", document_id=document.id, chars=len(text))
        return ExtractedContent(
            text=text,
            artifact=IndexArtifact(
                filename=text_artifact_name(document.filename),
                data=text.encode("utf-8"),
            ),
        )
