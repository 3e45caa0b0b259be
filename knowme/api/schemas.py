"""Pydantic request/response schemas for the KnowMe API.

Defines the public contract for the REST endpoints: the public chat
action body, owner-side ingestion triggers, document and link views,
and health.

Convention: request schemas end with "Request" (or "Action" for the
tagged public-chat body), response schemas end with "Response".
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field

from knowme.models.chat import ChatTurn
from knowme.models.document import Document, DocumentKind, DocumentStatus, DocumentVisibility
from knowme.models.share_link import ShareLink


# ---------------------------------------------------------------------------
# Public chat
# ---------------------------------------------------------------------------


class ValidateAction(BaseModel):
    """Check a share token and count one view."""

    action: Literal["validate"]
    token: str = ""


class ChatAction(BaseModel):
    """Ask a question through a share token."""

    action: Literal["chat"]
    token: str = ""
    message: str = Field(..., min_length=1, max_length=4000)
    history: list[ChatTurn] = Field(default_factory=list)


PublicChatRequest = Annotated[ValidateAction | ChatAction, Field(discriminator="action")]


class SpaceSummary(BaseModel):
    """The only space fields a visitor ever sees."""

    name: str
    description: str | None = None


class ValidateResponse(BaseModel):
    valid: bool
    space: SpaceSummary | None = None
    message: str | None = None


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------


class ProcessDocumentRequest(BaseModel):
    document_id: str = Field(..., min_length=1)


class NoteRequest(BaseModel):
    """Pasted text stored as a note document."""

    space_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    visibility: DocumentVisibility = DocumentVisibility.PUBLIC


class ScrapeRequest(BaseModel):
    space_id: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1, max_length=2048)
    visibility: DocumentVisibility = DocumentVisibility.PUBLIC


class DocumentResponse(BaseModel):
    """Owner-facing view of a document; raw bytes and full text are omitted."""

    id: str
    space_id: str
    filename: str
    kind: DocumentKind
    status: DocumentStatus
    source_url: str | None = None
    error_message: str | None = None
    index_file_id: str | None = None
    extraction_warnings: list[str] = Field(default_factory=list)
    visibility: DocumentVisibility = DocumentVisibility.PUBLIC
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_document(cls, document: Document) -> DocumentResponse:
        return cls.model_validate(document.model_dump(exclude={"file_path", "content_text"}))


class ProcessAcceptedResponse(BaseModel):
    document_id: str
    accepted: bool = True


class ReprocessResponse(BaseModel):
    space_id: str
    retried: int
    ready: int


# ---------------------------------------------------------------------------
# Links
# ---------------------------------------------------------------------------


class LinkResponse(BaseModel):
    id: str
    space_id: str
    name: str | None = None
    revoked: bool
    view_count: int
    last_used_at: datetime | None = None
    expires_at: datetime | None = None

    @classmethod
    def from_link(cls, link: ShareLink) -> LinkResponse:
        return cls.model_validate(link.model_dump(exclude={"token", "created_at"}))


# ---------------------------------------------------------------------------
# Misc
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]
