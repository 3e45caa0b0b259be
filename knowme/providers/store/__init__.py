"""Record store adapters."""

from knowme.providers.store.sqlite_record_store import SQLiteRecordStore, generate_token

__all__ = ["SQLiteRecordStore", "generate_token"]
