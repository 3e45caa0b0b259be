"""OpenAI vector store adapter for the knowledge index.

Implements :class:`IKnowledgeIndexProvider` on top of three OpenAI
resources:

- **vector_stores** -- one store per space holds the searchable files.
- **files** -- raw uploads (``purpose="assistants"``) that get attached.
- **responses** -- answers are generated with the ``file_search`` tool
  bound to the space's store, streamed back as raw SSE.

Each method makes its SDK call(s) and converts failures with the shared
classifier; nothing here retries.
"""

from __future__ import annotations

from typing import Any

import openai
import structlog

from knowme.config.settings import Settings
from knowme.interfaces.knowledge_index_provider import IKnowledgeIndexProvider
from knowme.interfaces.stream import IByteStream
from knowme.providers.llm.openai_provider import build_openai_client
from knowme.providers.openai_errors import classify_openai_error
from knowme.providers.openai_stream import open_byte_stream
from knowme.utils.errors import IndexingError

logger = structlog.get_logger(logger_name=__name__)


class OpenAIVectorStoreProvider(IKnowledgeIndexProvider):
    """Knowledge index backed by OpenAI vector stores and the Responses API."""

    def __init__(self, settings: Settings, client: openai.AsyncOpenAI | None = None) -> None:
        self._client = client or build_openai_client(settings)
        self._chat_model = settings.openai_chat_model
        self._provider_label = "openai-vector-store"

    # ------------------------------------------------------------------
    # Index lifecycle
    # ------------------------------------------------------------------

    async def create_index(self, name: str) -> str:
        try:
            store = await self._client.vector_stores.create(name=name)
        except openai.APIError as exc:
            raise self._indexing_error(exc, "Failed to create knowledge index") from exc
        logger.info("vector_store_created", index_id=store.id, name=name)
        return store.id

    async def delete_index(self, index_id: str) -> None:
        try:
            await self._client.vector_stores.delete(index_id)
        except openai.APIError as exc:
            raise self._indexing_error(exc, "Failed to delete knowledge index") from exc
        logger.info("vector_store_deleted", index_id=index_id)

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    async def upload_file(self, filename: str, data: bytes) -> str:
        try:
            uploaded = await self._client.files.create(
                file=(filename, data),
                purpose="assistants",
            )
        except openai.APIError as exc:
            raise self._indexing_error(exc, "Failed to upload file") from exc
        logger.info("file_uploaded", file_id=uploaded.id, filename=filename, size=len(data))
        return uploaded.id

    async def attach_file(self, index_id: str, file_id: str) -> None:
        """Attach and poll until the store has finished processing the file."""
        try:
            attached = await self._client.vector_stores.files.create_and_poll(
                vector_store_id=index_id,
                file_id=file_id,
            )
        except openai.APIError as exc:
            raise self._indexing_error(exc, "Failed to attach file") from exc

        if attached.status != "completed":
            last_error = getattr(attached, "last_error", None)
            logger.warning(
                "vector_store_file_not_completed",
                index_id=index_id,
                file_id=file_id,
                status=attached.status,
                error=getattr(last_error, "message", None),
            )
            raise IndexingError(provider_name=self._provider_label)
        logger.info("file_attached", index_id=index_id, file_id=file_id)

    async def detach_file(self, index_id: str, file_id: str) -> None:
        """Detach from the store, then delete the uploaded file itself."""
        try:
            try:
                await self._client.vector_stores.files.delete(
                    file_id=file_id,
                    vector_store_id=index_id,
                )
            except openai.NotFoundError:
                # Never attached (or already detached); the upload may still exist.
                logger.debug("vector_store_file_missing", index_id=index_id, file_id=file_id)
            await self._client.files.delete(file_id)
        except openai.APIError as exc:
            raise self._indexing_error(exc, "Failed to remove file") from exc
        logger.info("file_detached", index_id=index_id, file_id=file_id)

    # ------------------------------------------------------------------
    # Answers
    # ------------------------------------------------------------------

    async def open_response_stream(
        self,
        index_id: str,
        instructions: str,
        messages: list[dict[str, Any]],
        model: str | None = None,
        max_output_tokens: int = 1000,
    ) -> IByteStream:
        chosen = model or self._chat_model
        try:
            stream = await open_byte_stream(
                lambda: self._client.responses.with_streaming_response.create(
                    model=chosen,
                    instructions=instructions,
                    input=messages,
                    tools=[{"type": "file_search", "vector_store_ids": [index_id]}],
                    max_output_tokens=max_output_tokens,
                    stream=True,
                ),
                provider_name=self._provider_label,
            )
        except openai.APIError as exc:
            raise classify_openai_error(exc, provider_name=self._provider_label) from exc
        logger.info("response_stream_opened", index_id=index_id, model=chosen, turns=len(messages))
        return stream

    def get_provider_name(self) -> str:
        return self._provider_label

    def _indexing_error(self, exc: openai.APIError, message: str) -> Exception:
        return classify_openai_error(
            exc,
            provider_name=self._provider_label,
            default=IndexingError,
            default_message=message,
        )
