"""Abstract base class for raw document byte storage.

Uploaded files (txt, image, pdf) are written once by the upload route and
read back by the content extractor.  Implementations may use a local
directory or an object store; callers only ever see relative paths.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class IStorageProvider(ABC):
    """Contract for storing and retrieving document bytes by path."""

    @abstractmethod
    async def save(self, path: str, data: bytes) -> None:
        """Write *data* at *path*, replacing anything already there.

        Raises
        ------
        knowme.utils.errors.StorageError
            If the path is invalid or the write fails.
        """

    @abstractmethod
    async def load(self, path: str) -> bytes:
        """Return the bytes stored at *path*.

        Raises
        ------
        knowme.utils.errors.StorageError
            If nothing is stored at *path* or the read fails.
        """

    @abstractmethod
    async def delete(self, path: str) -> bool:
        """Remove *path*. Returns ``False`` when nothing was stored there."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this storage backend."""
