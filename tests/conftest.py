"""Shared pytest fixtures for the knowme test suite."""

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio
import structlog

from knowme.interfaces.knowledge_index_provider import IKnowledgeIndexProvider
from knowme.interfaces.llm_provider import ILLMProvider
from knowme.interfaces.page_provider import FetchedPage, IPageProvider
from knowme.interfaces.stream import IByteStream
from knowme.models.share_link import ShareLink
from knowme.models.space import Space
from knowme.providers.storage.local_storage_provider import LocalStorageProvider
from knowme.providers.store.sqlite_record_store import SQLiteRecordStore, generate_token
from knowme.utils.errors import IndexingError

# ---------------------------------------------------------------------------
# Fake providers
# ---------------------------------------------------------------------------


class FakeByteStream(IByteStream):
    """Replays fixed chunks; optionally raises *error* after the last one."""

    def __init__(self, chunks: list[bytes], error: Exception | None = None) -> None:
        self._chunks = chunks
        self._error = error
        self.closed = False

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        for chunk in self._chunks:
            yield chunk
        if self._error is not None:
            raise self._error

    async def aclose(self) -> None:
        self.closed = True


class FakeIndexProvider(IKnowledgeIndexProvider):
    """In-memory knowledge index that records every call."""

    def __init__(self) -> None:
        self.created: list[str] = []
        self.deleted_indexes: list[str] = []
        self.uploads: list[tuple[str, bytes]] = []
        self.attached: list[tuple[str, str]] = []
        self.detached: list[tuple[str, str]] = []
        self.response_calls: list[dict[str, Any]] = []
        self.fail_upload = False
        self.fail_attach = False
        self.open_error: Exception | None = None
        self.stream_chunks: list[bytes] = [b"data: {\"type\":\"response.completed\"}\n\n"]
        self.last_stream: FakeByteStream | None = None

    async def create_index(self, name: str) -> str:
        index_id = f"vs_{len(self.created) + 1}"
        self.created.append(index_id)
        return index_id

    async def delete_index(self, index_id: str) -> None:
        self.deleted_indexes.append(index_id)

    async def upload_file(self, filename: str, data: bytes) -> str:
        if self.fail_upload:
            raise IndexingError(message="upload rejected", provider_name="fake-index")
        self.uploads.append((filename, data))
        return f"file_{len(self.uploads)}"

    async def attach_file(self, index_id: str, file_id: str) -> None:
        if self.fail_attach:
            raise IndexingError(message="attach failed", provider_name="fake-index")
        self.attached.append((index_id, file_id))

    async def detach_file(self, index_id: str, file_id: str) -> None:
        self.detached.append((index_id, file_id))

    async def open_response_stream(
        self,
        index_id: str,
        instructions: str,
        messages: list[dict[str, Any]],
        model: str | None = None,
        max_output_tokens: int = 1000,
    ) -> IByteStream:
        self.response_calls.append(
            {
                "index_id": index_id,
                "instructions": instructions,
                "messages": messages,
                "model": model,
                "max_output_tokens": max_output_tokens,
            }
        )
        if self.open_error is not None:
            raise self.open_error
        self.last_stream = FakeByteStream(list(self.stream_chunks))
        return self.last_stream

    def get_provider_name(self) -> str:
        return "fake-index"


class FakeLLMProvider(ILLMProvider):
    """LLM double returning canned extraction text and chat streams."""

    def __init__(self) -> None:
        self.vision_text = "Transcribed text from the image"
        self.document_text = "Extracted PDF summary"
        self.document_error: Exception | None = None
        self.chat_calls: list[dict[str, Any]] = []
        self.chat_chunks: list[bytes] = [b"data: [DONE]\n\n"]

    async def vision_extract(self, image_bytes: bytes, prompt: str) -> str:
        return self.vision_text

    async def document_extract(self, pdf_bytes: bytes, filename: str, prompt: str) -> str:
        if self.document_error is not None:
            raise self.document_error
        return self.document_text

    async def open_chat_stream(
        self,
        messages: list[dict[str, Any]],
        model: str | None = None,
        max_tokens: int = 1000,
    ) -> IByteStream:
        self.chat_calls.append({"messages": messages, "model": model, "max_tokens": max_tokens})
        return FakeByteStream(list(self.chat_chunks))

    def get_provider_name(self) -> str:
        return "fake-llm"

    def is_available(self) -> bool:
        return True


class FakePageProvider(IPageProvider):
    """Returns one preset page for every URL."""

    def __init__(self, status_code: int = 200, html: str = "") -> None:
        self.status_code = status_code
        self.html = html
        self.fetched: list[str] = []

    async def fetch(self, url: str) -> FetchedPage:
        self.fetched.append(url)
        return FetchedPage(url=url, status_code=self.status_code, html=self.html)

    def get_provider_name(self) -> str:
        return "fake-web"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True, scope="session")
def _uncached_loggers() -> None:
    """Bind loggers to the current stdout on every call.

    Cached loggers keep the stream that was active on first use, which is
    closed once a capsys test ends.
    """
    structlog.configure(cache_logger_on_first_use=False)


@pytest_asyncio.fixture
async def record_store(tmp_path: Path) -> SQLiteRecordStore:
    """A fresh SQLite record store in a temporary directory."""
    store = SQLiteRecordStore(db_path=tmp_path / "knowme.db")
    await store.initialize()
    return store


@pytest.fixture
def storage(tmp_path: Path) -> LocalStorageProvider:
    return LocalStorageProvider(root=tmp_path / "storage")


@pytest_asyncio.fixture
async def space(record_store: SQLiteRecordStore) -> Space:
    return await record_store.create_space(
        Space(name="Jane Doe", owner_name="Jane", description="Keep answers short.")
    )


@pytest_asyncio.fixture
async def share_link(record_store: SQLiteRecordStore, space: Space) -> ShareLink:
    return await record_store.create_share_link(
        ShareLink(space_id=space.id, token=generate_token(), name="Portfolio")
    )


@pytest.fixture
def index_provider() -> FakeIndexProvider:
    return FakeIndexProvider()


@pytest.fixture
def llm() -> FakeLLMProvider:
    return FakeLLMProvider()


@pytest.fixture
def sample_article_html() -> str:
    """A realistic article page with navigation chrome around the content."""
    paragraph = (
        "Jane Doe has spent twelve years building data platforms for public "
        "health agencies, leading teams of engineers across three continents. "
    )
    return (
        "<html><head><title>About Jane Doe</title>"
        '<meta name="description" content="Profile of Jane Doe">'
        "<script>var tracking = 1;</script><style>body { color: red; }</style>"
        "</head><body>"
        "<nav>Home | Blog | Contact</nav>"
        "<header>Site header</header>"
        f"<main><h1>About</h1><p>{paragraph * 6}</p><p>Fish &amp; chips fan.</p></main>"
        "<aside>Related posts</aside>"
        "<footer>Copyright 2024</footer>"
        "</body></html>"
    )
