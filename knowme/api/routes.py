"""FastAPI route handlers for the owner-side KnowMe API.

Covers document ingestion triggers (upload, note, scrape, process, retry),
document lookup and deletion, share link revocation, and health.  The
public visitor endpoint lives in :mod:`knowme.api.public_chat`.  Service
dependencies are resolved from ``app.state`` via FastAPI's ``Depends``
using the ``Annotated`` pattern.

# Endpoint                                Method  Description
# ---------------------------------------------------------------------
# /api/v1/documents/upload                POST    Store a txt/image/pdf file -> process
# /api/v1/documents/note                  POST    Store pasted text -> process
# /api/v1/documents/scrape                POST    Register a URL -> process
# /api/v1/documents/process               POST    Trigger processing (202)
# /api/v1/documents/{id}/retry            POST    Re-run a ready/failed document (202)
# /api/v1/documents/{id}                  GET     Document status
# /api/v1/documents/{id}                  DELETE  Delete document + index file + bytes
# /api/v1/spaces/{id}/reprocess-failed    POST    Retry every failed document
# /api/v1/links/{id}/revoke               POST    Revoke a share link
# /api/v1/links/{id}/restore              POST    Restore a revoked share link
# /api/v1/health                          GET     Health check + provider status
"""

from __future__ import annotations

import re
from pathlib import PurePath
from typing import Annotated, Any
from urllib.parse import urlparse

import structlog
from fastapi import APIRouter, Depends, Form, HTTPException, Request, UploadFile

from knowme import __version__
from knowme.api.schemas import (
    DocumentResponse,
    HealthResponse,
    LinkResponse,
    NoteRequest,
    ProcessAcceptedResponse,
    ProcessDocumentRequest,
    ReprocessResponse,
    ScrapeRequest,
)
from knowme.interfaces.record_store import IRecordStore
from knowme.interfaces.storage_provider import IStorageProvider
from knowme.models.document import Document, DocumentKind, DocumentStatus, DocumentVisibility
from knowme.services.ingestion import IngestionService
from knowme.services.link_validator import LinkValidator
from knowme.utils.errors import DocumentNotFoundError, KnowMeError

logger: structlog.BoundLogger = structlog.get_logger(logger_name=__name__)

router = APIRouter(prefix="/api/v1")

_MAX_FILE_SIZE = 20 * 1024 * 1024  # 20 MB
_UPLOAD_CHUNK_SIZE = 64 * 1024

_KIND_BY_CONTENT_TYPE: dict[str, DocumentKind] = {
    "text/plain": DocumentKind.TXT,
    "text/markdown": DocumentKind.TXT,
    "application/pdf": DocumentKind.PDF,
    "image/png": DocumentKind.IMAGE,
    "image/jpeg": DocumentKind.IMAGE,
    "image/gif": DocumentKind.IMAGE,
    "image/webp": DocumentKind.IMAGE,
}

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def _get_ingestion(request: Request) -> IngestionService:
    """Return the ingestion orchestrator from application state."""
    return request.app.state.ingestion_service


def _get_record_store(request: Request) -> IRecordStore:
    return request.app.state.record_store


def _get_storage(request: Request) -> IStorageProvider:
    return request.app.state.storage


def _get_link_validator(request: Request) -> LinkValidator:
    return request.app.state.link_validator


IngestionDep = Annotated[IngestionService, Depends(_get_ingestion)]
StoreDep = Annotated[IRecordStore, Depends(_get_record_store)]
StorageDep = Annotated[IStorageProvider, Depends(_get_storage)]
LinkValidatorDep = Annotated[LinkValidator, Depends(_get_link_validator)]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def safe_filename(filename: str | None) -> str:
    """Reduce an uploaded filename to a single safe path component."""
    name = PurePath(filename or "").name
    name = _UNSAFE_FILENAME_CHARS.sub("_", name).strip("._")
    return name or "upload"


async def _read_upload(file: UploadFile) -> bytes:
    chunks: list[bytes] = []
    total_size = 0
    while True:
        chunk = await file.read(_UPLOAD_CHUNK_SIZE)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > _MAX_FILE_SIZE:
            raise HTTPException(
                status_code=413,
                detail=f"File too large. Maximum: {_MAX_FILE_SIZE // (1024 * 1024)} MB.",
            )
        chunks.append(chunk)
    return b"".join(chunks)


async def _require_space(store: IRecordStore, space_id: str) -> None:
    if await store.get_space(space_id) is None:
        raise HTTPException(status_code=404, detail="Space not found")


async def _start(ingestion: IngestionService, document: Document) -> DocumentResponse:
    document = await ingestion.mark_uploaded(document.id)
    ingestion.trigger(document.id)
    return DocumentResponse.from_document(document)


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------


@router.post("/documents/upload", response_model=DocumentResponse, status_code=201)
async def upload_document(
    file: UploadFile,
    ingestion: IngestionDep,
    store: StoreDep,
    storage: StorageDep,
    space_id: Annotated[str, Form(min_length=1)],
    visibility: Annotated[DocumentVisibility, Form()] = DocumentVisibility.PUBLIC,
) -> DocumentResponse:
    """Store a text, image or PDF upload and start processing it."""
    content_type = (file.content_type or "").split(";")[0].strip().lower()
    kind = _KIND_BY_CONTENT_TYPE.get(content_type)
    if kind is None:
        raise HTTPException(
            status_code=415,
            detail=(
                f"Unsupported file type: {content_type or 'unknown'}. "
                f"Allowed: {', '.join(sorted(_KIND_BY_CONTENT_TYPE))}"
            ),
        )
    await _require_space(store, space_id)

    data = await _read_upload(file)
    if not data:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    filename = safe_filename(file.filename)
    document = Document(space_id=space_id, filename=filename, kind=kind, visibility=visibility)
    document = document.model_copy(update={"file_path": f"{space_id}/{document.id}/{filename}"})
    await store.create_document(document)

    try:
        await storage.save(document.file_path, data)
    except KnowMeError:
        await store.delete_document(document.id)
        raise

    logger.info(
        "document_upload_stored",
        document_id=document.id,
        space_id=space_id,
        kind=kind.value,
        size=len(data),
    )
    return await _start(ingestion, document)


@router.post("/documents/note", response_model=DocumentResponse, status_code=201)
async def add_note(body: NoteRequest, ingestion: IngestionDep, store: StoreDep) -> DocumentResponse:
    """Store pasted text as a note and start processing it."""
    await _require_space(store, body.space_id)
    document = await store.create_document(
        Document(
            space_id=body.space_id,
            filename=body.title.strip(),
            kind=DocumentKind.NOTE,
            content_text=body.content,
            visibility=body.visibility,
        )
    )
    logger.info("document_note_created", document_id=document.id, space_id=body.space_id)
    return await _start(ingestion, document)


@router.post("/documents/scrape", response_model=DocumentResponse, status_code=201)
async def add_url(body: ScrapeRequest, ingestion: IngestionDep, store: StoreDep) -> DocumentResponse:
    """Register a web page and start scraping it."""
    url = body.url.strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise HTTPException(status_code=422, detail="URL must start with http:// or https://")
    await _require_space(store, body.space_id)

    document = await store.create_document(
        Document(
            space_id=body.space_id,
            filename=parsed.netloc + (parsed.path if parsed.path not in ("", "/") else ""),
            kind=DocumentKind.URL,
            source_url=url,
            visibility=body.visibility,
        )
    )
    logger.info("document_url_created", document_id=document.id, space_id=body.space_id)
    return await _start(ingestion, document)


@router.post("/documents/process", response_model=ProcessAcceptedResponse, status_code=202)
async def process_document(
    body: ProcessDocumentRequest,
    ingestion: IngestionDep,
    store: StoreDep,
) -> ProcessAcceptedResponse:
    """Trigger processing; returns before the job finishes."""
    if await store.get_document(body.document_id) is None:
        raise DocumentNotFoundError()
    ingestion.trigger(body.document_id)
    return ProcessAcceptedResponse(document_id=body.document_id)


@router.post("/documents/{document_id}/retry", response_model=ProcessAcceptedResponse, status_code=202)
async def retry_document(document_id: str, ingestion: IngestionDep, store: StoreDep) -> ProcessAcceptedResponse:
    document = await store.get_document(document_id)
    if document is None:
        raise DocumentNotFoundError()
    if document.status not in (DocumentStatus.READY, DocumentStatus.FAILED):
        raise HTTPException(status_code=409, detail="Document is still being processed")
    ingestion.trigger(document_id, force=True)
    return ProcessAcceptedResponse(document_id=document_id)


@router.post("/spaces/{space_id}/reprocess-failed", response_model=ReprocessResponse)
async def reprocess_failed(space_id: str, ingestion: IngestionDep, store: StoreDep) -> ReprocessResponse:
    """Retry every failed document of a space and wait for the results."""
    await _require_space(store, space_id)
    results = await ingestion.reprocess_failed(space_id)
    ready = sum(1 for doc in results if doc is not None and doc.status is DocumentStatus.READY)
    return ReprocessResponse(space_id=space_id, retried=len(results), ready=ready)


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


@router.get("/documents/{document_id}", response_model=DocumentResponse)
async def get_document(document_id: str, store: StoreDep) -> DocumentResponse:
    document = await store.get_document(document_id)
    if document is None:
        raise DocumentNotFoundError()
    return DocumentResponse.from_document(document)


@router.delete("/documents/{document_id}", status_code=204)
async def delete_document(document_id: str, ingestion: IngestionDep) -> None:
    await ingestion.delete_document(document_id)


# ---------------------------------------------------------------------------
# Links
# ---------------------------------------------------------------------------


@router.post("/links/{link_id}/revoke", response_model=LinkResponse)
async def revoke_link(link_id: str, validator: LinkValidatorDep) -> LinkResponse:
    link = await validator.revoke(link_id)
    if link is None:
        raise HTTPException(status_code=404, detail="Link not found")
    logger.info("link_revoked", link_id=link_id)
    return LinkResponse.from_link(link)


@router.post("/links/{link_id}/restore", response_model=LinkResponse)
async def restore_link(link_id: str, validator: LinkValidatorDep) -> LinkResponse:
    link = await validator.restore(link_id)
    if link is None:
        raise HTTPException(status_code=404, detail="Link not found")
    logger.info("link_restored", link_id=link_id)
    return LinkResponse.from_link(link)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    providers: dict[str, Any] = getattr(request.app.state, "provider_status", {})
    return HealthResponse(status="healthy", version=__version__, providers=providers)
