"""KnowMe FastAPI application entry point.

Wires together all providers, services, and routes via dependency injection.
Loads configuration from the environment and ``.env`` and configures
structured logging.  Every collaborator is built once in :func:`_build_all`
and stored on ``app.state``; routes read them back through ``Depends``.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx
import openai
import structlog
import uvicorn
from fastapi import FastAPI

from knowme import __version__
from knowme.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from knowme.api.public_chat import router as public_chat_router
from knowme.api.routes import router as api_router
from knowme.config.settings import Settings
from knowme.interfaces.knowledge_index_provider import IKnowledgeIndexProvider
from knowme.providers.article.web_page_provider import WebPageProvider
from knowme.providers.index.openai_vector_store_provider import OpenAIVectorStoreProvider
from knowme.providers.llm.openai_provider import OpenAILLMProvider, build_openai_client
from knowme.providers.storage.local_storage_provider import LocalStorageProvider
from knowme.providers.store.sqlite_record_store import SQLiteRecordStore
from knowme.services.chat import ChatService
from knowme.services.ingestion import (
    ContentExtractor,
    IndexManager,
    IngestionService,
    TextChunker,
)
from knowme.services.link_validator import LinkValidator
from knowme.utils.concurrency import TaskSupervisor
from knowme.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
    app_env=settings.app_env,
)
_logger: structlog.BoundLogger = get_logger(__name__)

_DRAIN_TIMEOUT_SECONDS = 30.0


def _build_all(app_settings: Settings) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    The knowledge index provider is only built when indexing is enabled and
    an OpenAI key is configured; otherwise ingestion and chat run in
    fallback mode on stored text chunks.
    """
    # -- Shared resources --
    http_client = httpx.AsyncClient(
        timeout=app_settings.scrape_timeout_seconds,
        follow_redirects=True,
    )
    openai_client = build_openai_client(app_settings)

    # -- Providers --
    record_store = SQLiteRecordStore(db_path=app_settings.database_path)
    storage = LocalStorageProvider(root=app_settings.storage_dir)
    page_provider = WebPageProvider(
        http_client=http_client,
        timeout=app_settings.scrape_timeout_seconds,
    )
    llm = OpenAILLMProvider(settings=app_settings, client=openai_client)

    index_provider: IKnowledgeIndexProvider | None = None
    if app_settings.index_available():
        index_provider = OpenAIVectorStoreProvider(settings=app_settings, client=openai_client)

    # -- Services --
    supervisor = TaskSupervisor()
    ingestion_service = IngestionService(
        store=record_store,
        extractor=ContentExtractor(
            storage=storage,
            llm=llm,
            page_provider=page_provider,
            min_scraped_chars=app_settings.min_scraped_chars,
        ),
        index_manager=IndexManager(store=record_store, provider=index_provider),
        chunker=TextChunker(chunk_size=app_settings.chunk_size),
        storage=storage,
        supervisor=supervisor,
    )
    chat_service = ChatService(
        store=record_store,
        llm=llm,
        index_provider=index_provider,
        history_turns=app_settings.chat_history_turns,
        max_output_tokens=app_settings.chat_max_output_tokens,
        context_chars=app_settings.fallback_context_chars,
    )

    provider_status: dict[str, Any] = {
        "llm": {"name": llm.get_provider_name(), "available": llm.is_available()},
        "knowledge_index": {
            "name": index_provider.get_provider_name() if index_provider else None,
            "available": index_provider is not None,
        },
        "record_store": {"name": record_store.get_provider_name(), "available": True},
        "storage": {"name": storage.get_provider_name(), "available": True},
        "page_fetch": {"name": page_provider.get_provider_name(), "available": True},
    }

    return {
        "http_client": http_client,
        "openai_client": openai_client,
        "record_store": record_store,
        "storage": storage,
        "supervisor": supervisor,
        "ingestion_service": ingestion_service,
        "chat_service": chat_service,
        "link_validator": LinkValidator(store=record_store),
        "provider_status": provider_status,
    }


def create_app(
    app_settings: Settings | None = None,
    components: dict[str, Any] | None = None,
) -> FastAPI:
    """Build and configure the FastAPI application.

    Parameters
    ----------
    app_settings:
        Settings to build components from.  Uses module-level ``settings``
        if not provided.
    components:
        Pre-built components to place on ``app.state`` instead of calling
        :func:`_build_all`.  Keys missing from the dict are simply absent.
    """
    s = app_settings or settings

    @asynccontextmanager
    async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
        """Initialise all providers and services on startup, clean up on shutdown."""
        built = components if components is not None else _build_all(s)
        for key, value in built.items():
            setattr(application.state, key, value)

        record_store = built.get("record_store")
        if record_store is not None:
            await record_store.initialize()

        _logger.info(
            "app_startup",
            version=__version__,
            environment=s.app_env,
            index_enabled=s.index_available(),
        )

        yield

        supervisor: TaskSupervisor | None = built.get("supervisor")
        if supervisor is not None:
            await supervisor.drain(timeout=_DRAIN_TIMEOUT_SECONDS)

        http_client: httpx.AsyncClient | None = built.get("http_client")
        if http_client is not None:
            await http_client.aclose()
        openai_client: openai.AsyncOpenAI | None = built.get("openai_client")
        if openai_client is not None:
            await openai_client.close()
        if record_store is not None:
            await record_store.close()
        _logger.info("app_shutdown", message="clients closed")

    application = FastAPI(
        title="KnowMe API",
        version=__version__,
        description=(
            "Upload documents, notes and web pages into a space, index them, "
            "and let visitors with a share link chat with the content."
        ),
        lifespan=_lifespan,
    )

    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=s.cors_origins)

    application.include_router(api_router)
    application.include_router(public_chat_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "knowme.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
