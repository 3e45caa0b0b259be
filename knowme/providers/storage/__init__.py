"""Raw document storage adapters."""

from knowme.providers.storage.local_storage_provider import LocalStorageProvider

__all__ = ["LocalStorageProvider"]
