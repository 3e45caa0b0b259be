"""Unit tests for LocalStorageProvider."""

from __future__ import annotations

import pytest

from knowme.providers.storage.local_storage_provider import LocalStorageProvider
from knowme.utils.errors import StorageError


@pytest.mark.asyncio
async def test_save_load_delete(storage: LocalStorageProvider) -> None:
    await storage.save("space-1/doc-1/cv.txt", b"hello")
    assert await storage.load("space-1/doc-1/cv.txt") == b"hello"
    assert await storage.delete("space-1/doc-1/cv.txt") is True
    assert await storage.delete("space-1/doc-1/cv.txt") is False


@pytest.mark.asyncio
async def test_load_missing_raises_storage_error(storage: LocalStorageProvider) -> None:
    with pytest.raises(StorageError) as info:
        await storage.load("space-1/doc-1/missing.txt")
    assert info.value.message == "Failed to download file"


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["../escape.txt", "/etc/passwd", "a/../../b.txt", ""])
async def test_rejects_paths_outside_root(storage: LocalStorageProvider, path: str) -> None:
    with pytest.raises(StorageError):
        await storage.save(path, b"x")


def test_provider_name(storage: LocalStorageProvider) -> None:
    assert storage.get_provider_name() == "local"
