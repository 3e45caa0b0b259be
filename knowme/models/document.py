"""Document lifecycle models for the knowme ingestion pipeline.

Defines Pydantic v2 models for uploaded documents and their extracted
chunks.  All models use frozen config; status changes produce new
instances via :func:`transition`, which checks the move against
``DOCUMENT_TRANSITIONS`` before returning the copy.

Lifecycle::

    uploading --stored--> indexing --ok--> ready
                              |
                              +--extraction/index failure--> failed
    ready/failed --rerun--> indexing
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

# Preview text kept on the document row; full text lives in the index
# and in the chunk table.
CONTENT_PREVIEW_CHARS = 10_000


# ---------------------------------------------------------------------------
# DocumentKind / DocumentStatus
# ---------------------------------------------------------------------------
class DocumentKind(str, Enum):  # noqa: UP042
    """Where a document's content comes from."""

    TXT = "txt"
    IMAGE = "image"
    PDF = "pdf"
    NOTE = "note"      # owner-typed text, no stored file
    URL = "url"        # scraped web page


class DocumentStatus(str, Enum):  # noqa: UP042
    """Processing status of a document."""

    UPLOADING = "uploading"  # record exists, raw bytes not yet confirmed
    INDEXING = "indexing"    # extraction / index attach in progress
    READY = "ready"          # searchable
    FAILED = "failed"        # error_message explains why


class DocumentVisibility(str, Enum):  # noqa: UP042
    """Who may see a document's content through the assistant."""

    PUBLIC = "public"          # answers public visitors
    OWNER_ONLY = "owner_only"  # kept in the space, never shown to visitors
    INTERNAL = "internal"


class DocumentEvent(str, Enum):  # noqa: UP042
    """Events that move a document between statuses."""

    STORED = "stored"
    SUCCEEDED = "succeeded"
    EXTRACTION_FAILED = "extraction_failed"
    INDEXING_FAILED = "indexing_failed"
    RERUN = "rerun"


# Every allowed move, and nothing else.  The orchestrator never assigns
# ``status`` directly.
DOCUMENT_TRANSITIONS: dict[tuple[DocumentStatus, DocumentEvent], DocumentStatus] = {
    (DocumentStatus.UPLOADING, DocumentEvent.STORED): DocumentStatus.INDEXING,
    (DocumentStatus.INDEXING, DocumentEvent.SUCCEEDED): DocumentStatus.READY,
    (DocumentStatus.INDEXING, DocumentEvent.EXTRACTION_FAILED): DocumentStatus.FAILED,
    (DocumentStatus.INDEXING, DocumentEvent.INDEXING_FAILED): DocumentStatus.FAILED,
    (DocumentStatus.READY, DocumentEvent.RERUN): DocumentStatus.INDEXING,
    (DocumentStatus.FAILED, DocumentEvent.RERUN): DocumentStatus.INDEXING,
}


class InvalidTransitionError(ValueError):
    """Raised when an event is not allowed from the document's current status."""


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------
class Document(BaseModel):
    """One piece of owner content inside a space."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    space_id: str
    filename: str
    kind: DocumentKind
    # Storage path of the raw bytes (txt/image/pdf only).
    file_path: str | None = None
    source_url: str | None = None
    # Extracted text preview, truncated to CONTENT_PREVIEW_CHARS.  For notes
    # this is the note body itself and is the extraction input.
    content_text: str | None = None
    status: DocumentStatus = DocumentStatus.UPLOADING
    error_message: str | None = None
    index_file_id: str | None = None
    extraction_warnings: list[str] = Field(default_factory=list)
    # Only public documents are indexed or read into visitor answers.
    visibility: DocumentVisibility = DocumentVisibility.PUBLIC
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc)  # noqa: UP017
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc)  # noqa: UP017
    )


def transition(document: Document, event: DocumentEvent, **changes: Any) -> Document:
    """Return a copy of *document* moved by *event*, with *changes* applied.

    Also enforces the field rules attached to the target status: a
    ``ready`` document never carries an error message, a ``failed`` one
    never carries an index file id, and a re-run clears the old error.

    Raises:
        InvalidTransitionError: If *event* is not allowed from the current
            status.
    """
    target = DOCUMENT_TRANSITIONS.get((document.status, event))
    if target is None:
        raise InvalidTransitionError(
            f"Cannot apply {event.value} to a document that is {document.status.value}"
        )

    update: dict[str, Any] = dict(changes)
    if target is DocumentStatus.READY:
        update["error_message"] = None
    elif target is DocumentStatus.FAILED:
        update["index_file_id"] = None
        update.setdefault("error_message", "Processing failed")
    elif event is DocumentEvent.RERUN:
        update["error_message"] = None

    if "content_text" in update and update["content_text"] is not None:
        update["content_text"] = update["content_text"][:CONTENT_PREVIEW_CHARS]

    update["status"] = target
    update["updated_at"] = datetime.now(tz=timezone.utc)  # noqa: UP017
    return document.model_copy(update=update)


# ---------------------------------------------------------------------------
# DocumentChunk
# ---------------------------------------------------------------------------
class DocumentChunk(BaseModel):
    """A bounded slice of a document's text, used by the fallback chat path."""

    model_config = ConfigDict(frozen=True)

    document_id: str
    chunk_index: int = Field(ge=0)
    content: str


# ---------------------------------------------------------------------------
# Extraction output
# ---------------------------------------------------------------------------
class IndexArtifact(BaseModel):
    """The file that gets uploaded to the knowledge index."""

    model_config = ConfigDict(frozen=True)

    filename: str
    data: bytes


class ExtractedContent(BaseModel):
    """Result of extracting one document."""

    model_config = ConfigDict(frozen=True)

    text: str
    artifact: IndexArtifact
    warnings: list[str] = Field(default_factory=list)
    title: str | None = None
