"""Abstract base class for the relational record store.

Holds spaces, documents, document chunks and share links.  Every method
is a single-row (or single-batch) operation so callers never depend on
cross-call transactions, with two deliberate exceptions where the store
itself must be atomic: :meth:`set_space_index_if_absent` and
:meth:`record_link_view`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from knowme.models.document import Document, DocumentChunk, DocumentStatus
from knowme.models.share_link import ShareLink
from knowme.models.space import Space


class IRecordStore(ABC):
    """Contract for persisting knowme records."""

    # -- lifecycle ---------------------------------------------------------

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables if they do not exist."""

    @abstractmethod
    async def close(self) -> None:
        """Release any open connection."""

    # -- spaces ------------------------------------------------------------

    @abstractmethod
    async def create_space(self, space: Space) -> Space:
        """Insert *space* and return it."""

    @abstractmethod
    async def get_space(self, space_id: str) -> Space | None:
        """Return the space with *space_id*, or ``None``."""

    @abstractmethod
    async def set_space_index_if_absent(self, space_id: str, index_id: str) -> bool:
        """Store *index_id* on the space only if it has none yet.

        Returns ``True`` when this call wrote the value, ``False`` when
        another writer got there first (or the space does not exist).
        """

    # -- documents ---------------------------------------------------------

    @abstractmethod
    async def create_document(self, document: Document) -> Document:
        """Insert *document* and return it."""

    @abstractmethod
    async def get_document(self, document_id: str) -> Document | None:
        """Return the document with *document_id*, or ``None``."""

    @abstractmethod
    async def update_document(self, document: Document) -> Document:
        """Overwrite the stored row for ``document.id`` with *document*."""

    @abstractmethod
    async def list_documents(
        self,
        space_id: str | None = None,
        status: DocumentStatus | None = None,
    ) -> list[Document]:
        """List documents, optionally filtered by space and/or status."""

    @abstractmethod
    async def delete_document(self, document_id: str) -> bool:
        """Delete the document row. Returns ``False`` if it did not exist."""

    # -- chunks ------------------------------------------------------------

    @abstractmethod
    async def replace_chunks(self, document_id: str, chunks: list[DocumentChunk]) -> int:
        """Replace every chunk of *document_id* with *chunks* in one batch."""

    @abstractmethod
    async def delete_chunks(self, document_id: str) -> int:
        """Delete every chunk of *document_id*; returns the number removed."""

    @abstractmethod
    async def get_space_chunks(self, space_id: str, limit: int | None = None) -> list[DocumentChunk]:
        """Return chunks of the space's ``ready`` public documents in document/chunk order."""

    # -- share links -------------------------------------------------------

    @abstractmethod
    async def create_share_link(self, link: ShareLink) -> ShareLink:
        """Insert *link* and return it."""

    @abstractmethod
    async def get_share_link(self, link_id: str) -> ShareLink | None:
        """Return the link with *link_id*, or ``None``."""

    @abstractmethod
    async def get_active_link_by_token(self, token: str) -> ShareLink | None:
        """Return the non-revoked link whose token equals *token* exactly."""

    @abstractmethod
    async def record_link_view(self, link_id: str) -> None:
        """Atomically increment ``view_count`` and set ``last_used_at``."""

    @abstractmethod
    async def set_link_revoked(self, link_id: str, revoked: bool) -> ShareLink | None:
        """Set the revoked flag and return the updated link, or ``None``."""
