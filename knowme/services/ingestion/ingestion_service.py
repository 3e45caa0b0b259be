"""Orchestrator for the per-document ingestion pipeline.

Pipeline stages: **extract -> chunk -> index -> ready**.

The :class:`IngestionService` implements the **Orchestrator pattern**: it
coordinates the content extractor, chunker, index manager and record
store without any of them knowing about each other.  Every status change
goes through :func:`knowme.models.document.transition`, so the document
can only move along the declared lifecycle::

    uploading -> indexing -> ready | failed      (ready/failed -> indexing on re-run)

Failures never escape :meth:`IngestionService.process`: they are logged
and persisted on the document as ``status=failed`` plus a readable
``error_message``.  Background runs are spawned through the injected
:class:`~knowme.utils.concurrency.TaskSupervisor`.
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog

from knowme.interfaces.record_store import IRecordStore
from knowme.interfaces.storage_provider import IStorageProvider
from knowme.models.document import (
    Document,
    DocumentEvent,
    DocumentKind,
    DocumentStatus,
    DocumentVisibility,
    ExtractedContent,
    transition,
)
from knowme.services.ingestion.chunker import TextChunker
from knowme.services.ingestion.content_extractor import ContentExtractor
from knowme.services.ingestion.index_manager import IndexManager
from knowme.utils.concurrency import TaskSupervisor
from knowme.utils.errors import DocumentNotFoundError, KnowMeError

logger = structlog.get_logger(logger_name=__name__)

_UNEXPECTED_FAILURE = "Failed to process document"
_CHUNK_WRITE_FAILURE = "Failed to save document content"
_EMPTY_CONTENT = "No content could be extracted from the document"


class IngestionService:
    """Drives documents from ``uploading`` to ``ready`` or ``failed``.

    Parameters
    ----------
    store:
        Record store for documents, chunks and spaces.
    extractor:
        Turns a document into text plus the artifact to index.
    index_manager:
        Owns the space's knowledge index.  When it is disabled the service
        runs in fallback mode and a document is ready once its chunks are
        written.
    chunker:
        Splits extracted text into ordered chunk rows.
    storage:
        Raw upload storage, cleaned up on delete.
    supervisor:
        Spawns fire-and-forget processing runs.
    """

    def __init__(
        self,
        store: IRecordStore,
        extractor: ContentExtractor,
        index_manager: IndexManager,
        chunker: TextChunker,
        storage: IStorageProvider,
        supervisor: TaskSupervisor,
    ) -> None:
        self._store = store
        self._extractor = extractor
        self._index_manager = index_manager
        self._chunker = chunker
        self._storage = storage
        self._supervisor = supervisor

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    async def mark_uploaded(self, document_id: str) -> Document:
        """Apply ``uploading -> indexing`` once the raw bytes are stored."""
        document = await self._store.get_document(document_id)
        if document is None:
            raise DocumentNotFoundError()
        document = await self._save(transition(document, DocumentEvent.STORED))
        logger.info("document_uploaded", document_id=document_id, status=document.status.value)
        return document

    def trigger(self, document_id: str, force: bool = False) -> asyncio.Task[Document | None]:
        """Spawn :meth:`process` in the background and return immediately."""
        return self._supervisor.spawn(
            self.process(document_id, force=force),
            name=f"process-document:{document_id}",
        )

    async def retry(self, document_id: str) -> Document | None:
        """Re-run a ``ready`` or ``failed`` document from the start."""
        return await self.process(document_id, force=True)

    async def reprocess_failed(self, space_id: str | None = None) -> list[Document | None]:
        """Retry every failed document, one after another."""
        failed = await self._store.list_documents(space_id=space_id, status=DocumentStatus.FAILED)
        logger.info("reprocess_failed_started", space_id=space_id, count=len(failed))
        return [await self.retry(doc.id) for doc in failed]

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def process(self, document_id: str, force: bool = False) -> Document | None:
        """Run extraction and indexing for one document.

        Idempotent: a ``ready`` or ``failed`` document is returned unchanged
        unless *force* is set.  Returns ``None`` if the document is missing.
        """
        with structlog.contextvars.bound_contextvars(document_id=document_id):
            document = await self._store.get_document(document_id)
            if document is None:
                logger.warning("document_missing")
                return None

            if document.status in (DocumentStatus.READY, DocumentStatus.FAILED):
                if not force:
                    logger.info("document_already_processed", status=document.status.value)
                    return document
                document = await self._save(transition(document, DocumentEvent.RERUN))
            elif document.status is DocumentStatus.UPLOADING:
                document = await self._save(transition(document, DocumentEvent.STORED))

            logger.info("document_processing_started", kind=document.kind.value, force=force)
            try:
                return await self._run(document)
            except Exception as exc:  # noqa: BLE001 -- background job boundary
                logger.exception("document_processing_crashed", error=str(exc))
                return await self._fail(document, DocumentEvent.INDEXING_FAILED, _UNEXPECTED_FAILURE)

    async def _run(self, document: Document) -> Document:
        previous_file_id = document.index_file_id

        try:
            content = await self._extractor.extract(document)
        except KnowMeError as exc:
            return await self._fail(document, DocumentEvent.EXTRACTION_FAILED, exc.message)

        # Without an index, or for content visitors must not see, the stored
        # chunks are the whole result.
        chunks_only = (
            not self._index_manager.enabled
            or document.visibility is not DocumentVisibility.PUBLIC
        )
        if not await self._write_chunks(document, content, required=chunks_only):
            return await self._fail(document, DocumentEvent.INDEXING_FAILED, _CHUNK_WRITE_FAILURE)

        if chunks_only:
            if not content.text.strip():
                return await self._fail(document, DocumentEvent.EXTRACTION_FAILED, _EMPTY_CONTENT)
            ready = await self._succeed(document, content, file_id=None)
            await self._detach_index_file(document)
            return ready

        space = await self._store.get_space(document.space_id)
        if space is None:
            return await self._fail(document, DocumentEvent.INDEXING_FAILED, "Space not found")
        try:
            index_id = await self._index_manager.ensure_index(space)
            file_id = await self._index_manager.index_file(
                index_id,
                content.artifact.filename,
                content.artifact.data,
            )
        except KnowMeError as exc:
            return await self._fail(document, DocumentEvent.INDEXING_FAILED, exc.message)

        ready = await self._succeed(document, content, file_id=file_id)
        if previous_file_id and previous_file_id != file_id:
            await self._index_manager.remove_file(index_id, previous_file_id)
        return ready

    async def _write_chunks(self, document: Document, content: ExtractedContent, required: bool) -> bool:
        """Replace the document's chunks; a failure only matters when *required*."""
        chunks = self._chunker.document_chunks(document.id, content.text)
        try:
            await self._store.replace_chunks(document.id, chunks)
        except Exception as exc:  # noqa: BLE001 -- store backends raise their own types
            logger.warning("chunk_write_failed", required=required, error=str(exc))
            return not required
        return True

    async def _succeed(
        self,
        document: Document,
        content: ExtractedContent,
        file_id: str | None,
    ) -> Document:
        changes: dict[str, Any] = {
            "index_file_id": file_id,
            "extraction_warnings": content.warnings,
        }
        # A note's body is its own source; only derived text is a preview.
        if document.kind is not DocumentKind.NOTE:
            changes["content_text"] = content.text
        ready = await self._save(transition(document, DocumentEvent.SUCCEEDED, **changes))
        logger.info(
            "document_ready",
            status=ready.status.value,
            index_file_id=file_id,
            warnings=len(content.warnings),
        )
        return ready

    async def _fail(self, document: Document, event: DocumentEvent, message: str) -> Document:
        failed = await self._save(transition(document, event, error_message=message))
        logger.warning("document_failed", status=failed.status.value, error=message)
        # A failed document owns no index file, so drop the one from its last run.
        await self._detach_index_file(document)
        return failed

    async def _detach_index_file(self, document: Document) -> None:
        """Remove *document*'s index file from its space index, if it has one."""
        if not document.index_file_id:
            return
        space = await self._store.get_space(document.space_id)
        if space is not None and space.index_id:
            await self._index_manager.remove_file(space.index_id, document.index_file_id)

    async def _save(self, document: Document) -> Document:
        return await self._store.update_document(document)

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    async def delete_document(self, document_id: str) -> None:
        """Delete chunks, the index file and stored bytes, then the record.

        Cleanup steps are best-effort; only the record delete must succeed.

        Raises:
            DocumentNotFoundError: If the document does not exist.
        """
        document = await self._store.get_document(document_id)
        if document is None:
            raise DocumentNotFoundError()

        with structlog.contextvars.bound_contextvars(document_id=document_id):
            try:
                await self._store.delete_chunks(document_id)
            except Exception as exc:  # noqa: BLE001
                logger.warning("chunk_delete_failed", error=str(exc))

            await self._detach_index_file(document)

            if document.file_path:
                try:
                    await self._storage.delete(document.file_path)
                except KnowMeError as exc:
                    logger.warning("stored_file_delete_failed", error=str(exc))

            await self._store.delete_document(document_id)
            logger.info("document_removed", space_id=document.space_id)
