"""Unit tests for the operator CLI (knowme.cli.process)."""

from __future__ import annotations

from argparse import Namespace
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest

from knowme.cli import process as cli
from knowme.models.document import Document, DocumentKind, DocumentStatus
from knowme.models.space import Space
from knowme.providers.storage.local_storage_provider import LocalStorageProvider
from knowme.providers.store.sqlite_record_store import SQLiteRecordStore
from knowme.services.ingestion import ContentExtractor, IndexManager, IngestionService, TextChunker
from knowme.utils.concurrency import TaskSupervisor
from tests.conftest import FakeIndexProvider, FakeLLMProvider, FakePageProvider


def _components(
    store: SQLiteRecordStore,
    storage: LocalStorageProvider,
    index: FakeIndexProvider,
) -> dict[str, Any]:
    llm = FakeLLMProvider()
    ingestion = IngestionService(
        store=store,
        extractor=ContentExtractor(storage=storage, llm=llm, page_provider=FakePageProvider()),
        index_manager=IndexManager(store=store, provider=index),
        chunker=TextChunker(),
        storage=storage,
        supervisor=TaskSupervisor(),
    )
    return {"record_store": store, "ingestion_service": ingestion}


async def _note(store: SQLiteRecordStore, space: Space, content: str = "I sail.") -> Document:
    return await store.create_document(
        Document(space_id=space.id, filename="Hobbies", kind=DocumentKind.NOTE, content_text=content)
    )


# ======================================================================
# Parser
# ======================================================================


class TestParser:
    def test_process_takes_document_id(self) -> None:
        args = cli._build_parser().parse_args(["process", "doc-1"])
        assert args.command == "process"
        assert args.document_id == "doc-1"

    def test_reprocess_failed_space_is_optional(self) -> None:
        assert cli._build_parser().parse_args(["reprocess-failed"]).space is None
        assert cli._build_parser().parse_args(["reprocess-failed", "--space", "s1"]).space == "s1"

    def test_create_space_requires_name(self) -> None:
        with pytest.raises(SystemExit):
            cli._build_parser().parse_args(["create-space"])

    def test_no_command_prints_help_and_exits(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as info:
            cli.main([])
        assert info.value.code == 1
        assert "usage" in capsys.readouterr().out.lower()

    def test_main_exits_with_handler_code(self) -> None:
        with (
            patch.object(cli, "_run", new=AsyncMock(return_value=2)) as run,
            patch.object(cli, "configure_logging"),
            pytest.raises(SystemExit) as info,
        ):
            cli.main(["retry", "doc-1"])
        assert run.await_args.args[0].document_id == "doc-1"
        assert info.value.code == 2


# ======================================================================
# Handlers
# ======================================================================


class TestHandlers:
    @pytest.mark.asyncio
    async def test_process_prints_ready_document(
        self, record_store, storage, space, index_provider, capsys
    ) -> None:
        document = await _note(record_store, space)
        components = _components(record_store, storage, index_provider)

        code = await cli._handle_process(Namespace(document_id=document.id), components)

        assert code == 0
        out = capsys.readouterr().out
        assert "Status:   ready" in out
        assert "File ID:  file_1" in out

    @pytest.mark.asyncio
    async def test_process_missing_document(self, record_store, storage, index_provider, capsys) -> None:
        components = _components(record_store, storage, index_provider)
        code = await cli._handle_process(Namespace(document_id="missing"), components)
        assert code == 1
        assert "Document not found." in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_retry_failed_document_reports_error(
        self, record_store, storage, space, index_provider, capsys
    ) -> None:
        document = await _note(record_store, space)
        index_provider.fail_upload = True
        components = _components(record_store, storage, index_provider)
        await components["ingestion_service"].process(document.id)

        code = await cli._handle_retry(Namespace(document_id=document.id), components)

        assert code == 2
        assert "Error:    Failed to index file" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_reprocess_failed_counts(self, record_store, storage, space, index_provider, capsys) -> None:
        components = _components(record_store, storage, index_provider)
        index_provider.fail_upload = True
        for content in ("one", "two"):
            document = await _note(record_store, space, content)
            await components["ingestion_service"].process(document.id)
        index_provider.fail_upload = False

        code = await cli._handle_reprocess_failed(Namespace(space=space.id), components)

        assert code == 0
        out = capsys.readouterr().out
        assert "Retried: 2" in out
        assert "Ready:   2" in out
        ready = await record_store.list_documents(space_id=space.id, status=DocumentStatus.READY)
        assert len(ready) == 2

    @pytest.mark.asyncio
    async def test_create_space_and_link(self, record_store, capsys) -> None:
        components: dict[str, Any] = {"record_store": record_store}
        args = Namespace(name="Bo", description="Be kind.", owner_name="Bo", model=None)
        assert await cli._handle_create_space(args, components) == 0
        space_id = capsys.readouterr().out.split("Created space: ")[1].split(" ")[0]

        assert await cli._handle_create_link(Namespace(space=space_id, name="Blog"), components) == 0
        out = capsys.readouterr().out
        token = out.split("Token: ")[1].strip()
        link = await record_store.get_active_link_by_token(token)
        assert link is not None
        assert link.space_id == space_id

    @pytest.mark.asyncio
    async def test_create_link_unknown_space(self, record_store, capsys) -> None:
        code = await cli._handle_create_link(Namespace(space="missing", name=None), {"record_store": record_store})
        assert code == 1
