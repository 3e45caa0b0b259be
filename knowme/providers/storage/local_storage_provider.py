"""Local-directory implementation of :class:`IStorageProvider`.

Files live under ``settings.storage_dir`` at the relative path the upload
route chooses (``<space_id>/<document_id>/<filename>``).  Blocking disk
I/O runs in a worker thread via ``asyncio.to_thread`` so the event loop
is never stalled by large PDFs.
"""

from __future__ import annotations

import asyncio
from pathlib import Path, PurePosixPath

import structlog

from knowme.interfaces.storage_provider import IStorageProvider
from knowme.utils.errors import StorageError

logger = structlog.get_logger(logger_name=__name__)


class LocalStorageProvider(IStorageProvider):
    """Stores document bytes in a directory tree on local disk."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root).resolve()

    def _resolve(self, path: str) -> Path:
        relative = PurePosixPath(path)
        if not path or relative.is_absolute() or ".." in relative.parts:
            raise StorageError(message=f"Invalid storage path: {path!r}", provider_name="local")
        return self._root.joinpath(*relative.parts)

    async def save(self, path: str, data: bytes) -> None:
        target = self._resolve(path)

        def _write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)

        try:
            await asyncio.to_thread(_write)
        except OSError as exc:
            raise StorageError(message="Failed to store file", provider_name="local") from exc
        logger.debug("storage_saved", path=path, size=len(data))

    async def load(self, path: str) -> bytes:
        target = self._resolve(path)
        try:
            return await asyncio.to_thread(target.read_bytes)
        except OSError as exc:
            raise StorageError(provider_name="local") from exc

    async def delete(self, path: str) -> bool:
        target = self._resolve(path)

        def _remove() -> bool:
            try:
                target.unlink()
            except FileNotFoundError:
                return False
            return True

        removed = await asyncio.to_thread(_remove)
        logger.debug("storage_deleted", path=path, removed=removed)
        return removed

    def get_provider_name(self) -> str:
        return "local"
