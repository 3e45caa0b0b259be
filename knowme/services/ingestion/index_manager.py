"""Knowledge index manager: one remote index per space, files in and out.

This is the only component that writes ``Space.index_id``.  Creation is
race-safe without locks: the handle is stored with a conditional update
that only succeeds while the column is still NULL, and a writer that
loses the race adopts the stored handle and deletes the index it made.
"""

from __future__ import annotations

import structlog

from knowme.interfaces.knowledge_index_provider import IKnowledgeIndexProvider
from knowme.interfaces.record_store import IRecordStore
from knowme.models.space import Space
from knowme.utils.errors import IndexingError, KnowMeError

logger = structlog.get_logger(logger_name=__name__)


class IndexManager:
    """Creates, fills and prunes the knowledge index of each space.

    Parameters
    ----------
    store:
        Record store holding the space rows.
    provider:
        Remote index backend, or ``None`` when indexing is disabled.  In
        that mode documents are searchable only through their chunks.
    """

    def __init__(self, store: IRecordStore, provider: IKnowledgeIndexProvider | None) -> None:
        self._store = store
        self._provider = provider

    @property
    def enabled(self) -> bool:
        return self._provider is not None

    def _require_provider(self) -> IKnowledgeIndexProvider:
        if self._provider is None:
            raise IndexingError(message="Knowledge index is not configured")
        return self._provider

    async def ensure_index(self, space: Space) -> str:
        """Return the space's index handle, creating it on first use."""
        if space.index_id:
            return space.index_id

        provider = self._require_provider()
        created = await provider.create_index(name=f"space-{space.id}")
        if await self._store.set_space_index_if_absent(space.id, created):
            logger.info("space_index_created", space_id=space.id, index_id=created)
            return created

        # Another writer stored a handle first (or the space is gone).
        current = await self._store.get_space(space.id)
        await self._discard_index(created)
        if current is None or not current.index_id:
            raise IndexingError(message="Space not found")
        logger.info(
            "space_index_race_lost",
            space_id=space.id,
            index_id=current.index_id,
            discarded=created,
        )
        return current.index_id

    async def index_file(self, index_id: str, filename: str, content: bytes) -> str:
        """Upload *content* and attach it to *index_id*; returns the file id.

        Raises:
            IndexingError: ``"Failed to index file"`` on any upload or attach
                failure.  A file that uploaded but failed to attach is removed.
        """
        provider = self._require_provider()
        try:
            file_id = await provider.upload_file(filename, content)
        except KnowMeError as exc:
            logger.warning("index_upload_failed", index_id=index_id, filename=filename, error=str(exc))
            raise IndexingError(provider_name=provider.get_provider_name()) from exc

        try:
            await provider.attach_file(index_id, file_id)
        except KnowMeError as exc:
            logger.warning(
                "index_attach_failed",
                index_id=index_id,
                file_id=file_id,
                error=str(exc),
            )
            await self.remove_file(index_id, file_id)
            raise IndexingError(provider_name=provider.get_provider_name()) from exc

        logger.info("file_indexed", index_id=index_id, file_id=file_id, filename=filename)
        return file_id

    async def remove_file(self, index_id: str, file_id: str) -> None:
        """Detach and delete *file_id*; failures are logged, never raised."""
        if self._provider is None:
            return
        try:
            await self._provider.detach_file(index_id, file_id)
        except KnowMeError as exc:
            logger.warning("index_remove_failed", index_id=index_id, file_id=file_id, error=str(exc))

    async def _discard_index(self, index_id: str) -> None:
        try:
            await self._require_provider().delete_index(index_id)
        except KnowMeError as exc:
            logger.warning("orphan_index_delete_failed", index_id=index_id, error=str(exc))
