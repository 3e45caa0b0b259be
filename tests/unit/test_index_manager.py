"""Unit tests for IndexManager: single creation per space, race handling, file indexing."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from knowme.models.space import Space
from knowme.providers.store.sqlite_record_store import SQLiteRecordStore
from knowme.services.ingestion.index_manager import IndexManager
from knowme.utils.errors import IndexingError
from tests.conftest import FakeIndexProvider


class TestEnsureIndex:
    @pytest.mark.asyncio
    async def test_two_calls_create_one_index(
        self, record_store: SQLiteRecordStore, space: Space, index_provider: FakeIndexProvider
    ) -> None:
        manager = IndexManager(record_store, index_provider)

        first = await manager.ensure_index(space)
        refreshed = await record_store.get_space(space.id)
        second = await manager.ensure_index(refreshed)

        assert first == second == "vs_1"
        assert index_provider.created == ["vs_1"]
        assert refreshed.index_id == "vs_1"

    @pytest.mark.asyncio
    async def test_lost_race_adopts_stored_handle_and_discards_orphan(
        self, record_store: SQLiteRecordStore, space: Space, index_provider: FakeIndexProvider
    ) -> None:
        manager = IndexManager(record_store, index_provider)
        # Another writer stores its handle after this caller read the space.
        await record_store.set_space_index_if_absent(space.id, "vs_other")

        index_id = await manager.ensure_index(space)

        assert index_id == "vs_other"
        assert index_provider.deleted_indexes == ["vs_1"]
        assert (await record_store.get_space(space.id)).index_id == "vs_other"

    @pytest.mark.asyncio
    async def test_missing_space_raises_after_discarding(
        self, record_store: SQLiteRecordStore, index_provider: FakeIndexProvider
    ) -> None:
        manager = IndexManager(record_store, index_provider)
        with pytest.raises(IndexingError, match="Space not found"):
            await manager.ensure_index(Space(name="ghost"))
        assert index_provider.deleted_indexes == ["vs_1"]

    @pytest.mark.asyncio
    async def test_disabled_manager_refuses(self, record_store: SQLiteRecordStore, space: Space) -> None:
        manager = IndexManager(record_store, None)
        assert manager.enabled is False
        with pytest.raises(IndexingError):
            await manager.ensure_index(space)


class TestIndexFile:
    @pytest.mark.asyncio
    async def test_upload_then_attach(self, index_provider: FakeIndexProvider) -> None:
        manager = IndexManager(AsyncMock(), index_provider)
        file_id = await manager.index_file("vs_1", "cv.pdf", b"%PDF")
        assert file_id == "file_1"
        assert index_provider.attached == [("vs_1", "file_1")]

    @pytest.mark.asyncio
    async def test_upload_failure_is_failed_to_index(self, index_provider: FakeIndexProvider) -> None:
        index_provider.fail_upload = True
        manager = IndexManager(AsyncMock(), index_provider)
        with pytest.raises(IndexingError) as exc_info:
            await manager.index_file("vs_1", "cv.pdf", b"%PDF")
        assert exc_info.value.message == "Failed to index file"

    @pytest.mark.asyncio
    async def test_attach_failure_removes_uploaded_file(self, index_provider: FakeIndexProvider) -> None:
        index_provider.fail_attach = True
        manager = IndexManager(AsyncMock(), index_provider)
        with pytest.raises(IndexingError, match="Failed to index file"):
            await manager.index_file("vs_1", "cv.pdf", b"%PDF")
        assert index_provider.detached == [("vs_1", "file_1")]

    @pytest.mark.asyncio
    async def test_remove_file_swallows_provider_errors(self) -> None:
        provider = FakeIndexProvider()
        provider.detach_file = AsyncMock(side_effect=IndexingError(message="boom"))
        manager = IndexManager(AsyncMock(), provider)
        await manager.remove_file("vs_1", "file_9")
        provider.detach_file.assert_awaited_once_with("vs_1", "file_9")
