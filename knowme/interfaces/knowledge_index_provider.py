"""Abstract base class for hosted knowledge index (retrieval) providers.

A knowledge index is a remote collection of files that a model can search
while answering.  One index belongs to one space.  The index manager
(knowme/services/ingestion/index_manager.py) is the only caller of the
mutating methods; the chat responder only opens response streams.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from knowme.interfaces.stream import IByteStream


class IKnowledgeIndexProvider(ABC):
    """Contract for remote file-search indexes."""

    @abstractmethod
    async def create_index(self, name: str) -> str:
        """Create an empty index and return its handle."""

    @abstractmethod
    async def delete_index(self, index_id: str) -> None:
        """Delete an index and everything attached to it."""

    @abstractmethod
    async def upload_file(self, filename: str, data: bytes) -> str:
        """Upload a file for retrieval use and return its file id."""

    @abstractmethod
    async def attach_file(self, index_id: str, file_id: str) -> None:
        """Attach an uploaded file to *index_id* and wait until it is searchable.

        Raises
        ------
        knowme.utils.errors.IndexingError
            If the index reports the file as failed.
        """

    @abstractmethod
    async def detach_file(self, index_id: str, file_id: str) -> None:
        """Detach *file_id* from *index_id* and delete the uploaded file."""

    @abstractmethod
    async def open_response_stream(
        self,
        index_id: str,
        instructions: str,
        messages: list[dict[str, Any]],
        model: str | None = None,
        max_output_tokens: int = 1000,
    ) -> IByteStream:
        """Open a streaming answer that searches *index_id* before replying.

        Errors while opening are raised already classified into the
        knowme error hierarchy.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this index backend."""
