"""Fixtures for API tests: a real app wired to fake upstream providers."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeVar

import pytest
from fastapi import FastAPI

from knowme.config.settings import Settings
from knowme.main import create_app
from knowme.models.share_link import ShareLink
from knowme.models.space import Space
from knowme.providers.storage.local_storage_provider import LocalStorageProvider
from knowme.providers.store.sqlite_record_store import SQLiteRecordStore, generate_token
from knowme.services.chat import ChatService
from knowme.services.ingestion import ContentExtractor, IndexManager, IngestionService, TextChunker
from knowme.services.link_validator import LinkValidator
from knowme.utils.concurrency import TaskSupervisor
from tests.conftest import FakeIndexProvider, FakeLLMProvider, FakePageProvider

T = TypeVar("T")


@dataclass
class ApiHarness:
    """The app under test plus handles on its collaborators."""

    app: FastAPI
    store: SQLiteRecordStore
    storage: LocalStorageProvider
    index: FakeIndexProvider
    llm: FakeLLMProvider
    pages: FakePageProvider
    space: Space
    link: ShareLink

    @staticmethod
    def run(coro: Coroutine[Any, Any, T]) -> T:
        """Run a store call outside the app's loop (connections are per call)."""
        return asyncio.run(coro)


@pytest.fixture
def api(tmp_path: Path) -> ApiHarness:
    store = SQLiteRecordStore(db_path=tmp_path / "api.db")
    storage = LocalStorageProvider(root=tmp_path / "storage")
    index = FakeIndexProvider()
    llm = FakeLLMProvider()
    pages = FakePageProvider()

    asyncio.run(store.initialize())
    space = asyncio.run(store.create_space(Space(name="Jane Doe", owner_name="Jane", description="Be brief.")))
    link = asyncio.run(store.create_share_link(ShareLink(space_id=space.id, token=generate_token())))

    supervisor = TaskSupervisor()
    ingestion = IngestionService(
        store=store,
        extractor=ContentExtractor(storage=storage, llm=llm, page_provider=pages),
        index_manager=IndexManager(store=store, provider=index),
        chunker=TextChunker(chunk_size=200),
        storage=storage,
        supervisor=supervisor,
    )
    components: dict[str, Any] = {
        "record_store": store,
        "storage": storage,
        "supervisor": supervisor,
        "ingestion_service": ingestion,
        "chat_service": ChatService(store=store, llm=llm, index_provider=index),
        "link_validator": LinkValidator(store=store),
        "provider_status": {"llm": {"name": "fake-llm", "available": True}},
    }
    app = create_app(Settings(_env_file=None, openai_api_key=""), components=components)
    return ApiHarness(
        app=app,
        store=store,
        storage=storage,
        index=index,
        llm=llm,
        pages=pages,
        space=space,
        link=link,
    )
