"""Unit tests for SQLiteRecordStore against a temporary database file."""

from __future__ import annotations

import asyncio
from pathlib import Path

import aiosqlite
import pytest

from knowme.models.document import (
    Document,
    DocumentChunk,
    DocumentKind,
    DocumentStatus,
    DocumentVisibility,
)
from knowme.models.share_link import ShareLink
from knowme.models.space import Space
from knowme.providers.store.sqlite_record_store import SQLiteRecordStore, generate_token


class TestSpaces:
    @pytest.mark.asyncio
    async def test_round_trip(self, record_store: SQLiteRecordStore) -> None:
        space = await record_store.create_space(Space(name="Sam", tone="friendly", owner_name="Sam"))
        loaded = await record_store.get_space(space.id)
        assert loaded.name == "Sam"
        assert loaded.tone == "friendly"
        assert loaded.index_id is None

    @pytest.mark.asyncio
    async def test_index_handle_written_only_once(self, record_store: SQLiteRecordStore, space: Space) -> None:
        assert await record_store.set_space_index_if_absent(space.id, "vs_a") is True
        assert await record_store.set_space_index_if_absent(space.id, "vs_b") is False
        assert (await record_store.get_space(space.id)).index_id == "vs_a"


class TestDocuments:
    @pytest.mark.asyncio
    async def test_update_and_list_by_status(self, record_store: SQLiteRecordStore, space: Space) -> None:
        doc = await record_store.create_document(
            Document(space_id=space.id, filename="a.txt", kind=DocumentKind.TXT)
        )
        failed = doc.model_copy(
            update={
                "status": DocumentStatus.FAILED,
                "error_message": "Failed to download file",
                "extraction_warnings": ["Limited content was extracted"],
            }
        )
        await record_store.update_document(failed)

        loaded = await record_store.get_document(doc.id)
        assert loaded.status is DocumentStatus.FAILED
        assert loaded.extraction_warnings == ["Limited content was extracted"]
        assert [d.id for d in await record_store.list_documents(space.id, DocumentStatus.FAILED)] == [doc.id]
        assert await record_store.list_documents(space.id, DocumentStatus.READY) == []

    @pytest.mark.asyncio
    async def test_delete(self, record_store: SQLiteRecordStore, space: Space) -> None:
        doc = await record_store.create_document(
            Document(space_id=space.id, filename="n", kind=DocumentKind.NOTE, content_text="x")
        )
        assert await record_store.delete_document(doc.id) is True
        assert await record_store.delete_document(doc.id) is False

    @pytest.mark.asyncio
    async def test_visibility_round_trip(self, record_store: SQLiteRecordStore, space: Space) -> None:
        doc = await record_store.create_document(
            Document(
                space_id=space.id,
                filename="n",
                kind=DocumentKind.NOTE,
                visibility=DocumentVisibility.OWNER_ONLY,
            )
        )
        assert (await record_store.get_document(doc.id)).visibility is DocumentVisibility.OWNER_ONLY

        await record_store.update_document(doc.model_copy(update={"visibility": DocumentVisibility.PUBLIC}))
        assert (await record_store.get_document(doc.id)).visibility is DocumentVisibility.PUBLIC

    @pytest.mark.asyncio
    async def test_initialize_adds_visibility_to_older_database(self, tmp_path: Path) -> None:
        db_path = tmp_path / "old.db"
        async with aiosqlite.connect(str(db_path)) as db:
            await db.execute(
                "CREATE TABLE documents ("
                "id TEXT PRIMARY KEY, space_id TEXT NOT NULL, filename TEXT NOT NULL, "
                "kind TEXT NOT NULL, file_path TEXT, source_url TEXT, content_text TEXT, "
                "status TEXT NOT NULL, error_message TEXT, index_file_id TEXT, "
                "extraction_warnings TEXT NOT NULL DEFAULT '[]', "
                "created_at TEXT NOT NULL, updated_at TEXT NOT NULL)"
            )
            await db.execute(
                "INSERT INTO documents (id, space_id, filename, kind, status, created_at, updated_at) "
                "VALUES ('old-doc', 'space-1', 'n', 'note', 'ready', "
                "'2026-01-01T00:00:00+00:00', '2026-01-01T00:00:00+00:00')"
            )
            await db.commit()

        store = SQLiteRecordStore(db_path=db_path)
        await store.initialize()
        await store.initialize()

        assert (await store.get_document("old-doc")).visibility is DocumentVisibility.PUBLIC


class TestChunks:
    @pytest.mark.asyncio
    async def test_replace_and_read_ready_chunks_in_order(
        self, record_store: SQLiteRecordStore, space: Space
    ) -> None:
        doc = await record_store.create_document(
            Document(space_id=space.id, filename="n", kind=DocumentKind.NOTE, status=DocumentStatus.READY)
        )
        await record_store.replace_chunks(
            doc.id,
            [DocumentChunk(document_id=doc.id, chunk_index=i, content=c) for i, c in [(1, "b"), (0, "a")]],
        )
        await record_store.replace_chunks(
            doc.id,
            [DocumentChunk(document_id=doc.id, chunk_index=i, content=c) for i, c in enumerate("xyz")],
        )

        chunks = await record_store.get_space_chunks(space.id)
        assert [c.content for c in chunks] == ["x", "y", "z"]
        assert len(await record_store.get_space_chunks(space.id, limit=2)) == 2

    @pytest.mark.asyncio
    async def test_chunks_of_unready_documents_are_hidden(
        self, record_store: SQLiteRecordStore, space: Space
    ) -> None:
        doc = await record_store.create_document(
            Document(space_id=space.id, filename="n", kind=DocumentKind.NOTE, status=DocumentStatus.INDEXING)
        )
        await record_store.replace_chunks(doc.id, [DocumentChunk(document_id=doc.id, chunk_index=0, content="a")])
        assert await record_store.get_space_chunks(space.id) == []
        assert await record_store.delete_chunks(doc.id) == 1

    @pytest.mark.asyncio
    async def test_chunks_of_non_public_documents_are_hidden(
        self, record_store: SQLiteRecordStore, space: Space
    ) -> None:
        for visibility, text in [
            (DocumentVisibility.PUBLIC, "public"),
            (DocumentVisibility.OWNER_ONLY, "owner"),
            (DocumentVisibility.INTERNAL, "internal"),
        ]:
            doc = await record_store.create_document(
                Document(
                    space_id=space.id,
                    filename=text,
                    kind=DocumentKind.NOTE,
                    status=DocumentStatus.READY,
                    visibility=visibility,
                )
            )
            await record_store.replace_chunks(doc.id, [DocumentChunk(document_id=doc.id, chunk_index=0, content=text)])

        assert [c.content for c in await record_store.get_space_chunks(space.id)] == ["public"]


class TestShareLinks:
    def test_tokens_are_unique_and_unguessable(self) -> None:
        tokens = {generate_token() for _ in range(50)}
        assert len(tokens) == 50
        assert all(len(t) >= 32 for t in tokens)

    @pytest.mark.asyncio
    async def test_concurrent_views_are_not_lost(
        self, record_store: SQLiteRecordStore, share_link: ShareLink
    ) -> None:
        await asyncio.gather(*(record_store.record_link_view(share_link.id) for _ in range(10)))
        assert (await record_store.get_share_link(share_link.id)).view_count == 10

    @pytest.mark.asyncio
    async def test_revoked_link_not_returned_as_active(
        self, record_store: SQLiteRecordStore, share_link: ShareLink
    ) -> None:
        await record_store.set_link_revoked(share_link.id, True)
        assert await record_store.get_active_link_by_token(share_link.token) is None
        assert (await record_store.get_share_link(share_link.id)).revoked is True
