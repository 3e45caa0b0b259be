"""SQLite-backed record store.

Persists spaces, documents, document chunks and share links to a local
SQLite database at ``data/knowme.db``.  Uses ``aiosqlite`` for async I/O
and opens a short-lived connection per operation.

Two writes must be atomic on their own and are expressed as a single
``UPDATE`` statement rather than read-modify-write:

- ``set_space_index_if_absent`` -- ``... WHERE index_id IS NULL`` so that
  concurrent first uploads cannot both store an index handle.
- ``record_link_view`` -- ``view_count = view_count + 1`` so concurrent
  validations never lose an increment.
"""

from __future__ import annotations

import json
import secrets
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from knowme.interfaces.record_store import IRecordStore
from knowme.models.document import (
    Document,
    DocumentChunk,
    DocumentKind,
    DocumentStatus,
    DocumentVisibility,
)
from knowme.models.share_link import ShareLink
from knowme.models.space import Space

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/knowme.db")

_CREATE_TABLES_SQL = [
    """\
CREATE TABLE IF NOT EXISTS spaces (
    id               TEXT PRIMARY KEY,
    name             TEXT NOT NULL,
    description      TEXT,
    ai_model         TEXT,
    fallback_message TEXT,
    persona_style    TEXT,
    tone             TEXT,
    audience         TEXT,
    do_not_mention   TEXT,
    owner_name       TEXT,
    index_id         TEXT,
    created_at       TEXT NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS documents (
    id                  TEXT PRIMARY KEY,
    space_id            TEXT NOT NULL REFERENCES spaces(id),
    filename            TEXT NOT NULL,
    kind                TEXT NOT NULL,
    file_path           TEXT,
    source_url          TEXT,
    content_text        TEXT,
    status              TEXT NOT NULL,
    error_message       TEXT,
    index_file_id       TEXT,
    extraction_warnings TEXT NOT NULL DEFAULT '[]',
    visibility          TEXT NOT NULL DEFAULT 'public',
    created_at          TEXT NOT NULL,
    updated_at          TEXT NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS document_chunks (
    document_id TEXT    NOT NULL REFERENCES documents(id),
    chunk_index INTEGER NOT NULL,
    content     TEXT    NOT NULL,
    PRIMARY KEY (document_id, chunk_index)
);
""",
    """\
CREATE TABLE IF NOT EXISTS share_links (
    id           TEXT PRIMARY KEY,
    space_id     TEXT    NOT NULL REFERENCES spaces(id),
    token        TEXT    NOT NULL UNIQUE,
    name         TEXT,
    revoked      INTEGER NOT NULL DEFAULT 0,
    view_count   INTEGER NOT NULL DEFAULT 0,
    last_used_at TEXT,
    expires_at   TEXT,
    created_at   TEXT    NOT NULL
);
""",
]

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_documents_space ON documents(space_id);",
    "CREATE INDEX IF NOT EXISTS idx_documents_status ON documents(status);",
    "CREATE INDEX IF NOT EXISTS idx_share_links_space ON share_links(space_id);",
]

# Columns introduced after the first release: (table, column, type and default).
_ADDED_COLUMNS = [
    ("documents", "visibility", "TEXT NOT NULL DEFAULT 'public'"),
]

_DOCUMENT_COLUMNS = (
    "id, space_id, filename, kind, file_path, source_url, content_text, status, "
    "error_message, index_file_id, extraction_warnings, visibility, created_at, updated_at"
)

_SPACE_COLUMNS = (
    "id, name, description, ai_model, fallback_message, persona_style, tone, "
    "audience, do_not_mention, owner_name, index_id, created_at"
)

_LINK_COLUMNS = (
    "id, space_id, token, name, revoked, view_count, last_used_at, expires_at, created_at"
)


def generate_token() -> str:
    """Return a random, URL-safe, unguessable share token."""
    return secrets.token_urlsafe(24)


def _now() -> str:
    return datetime.now(tz=timezone.utc).isoformat()  # noqa: UP017


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _row_to_space(row: aiosqlite.Row) -> Space:
    return Space(**dict(row))


def _row_to_document(row: aiosqlite.Row) -> Document:
    data: dict[str, Any] = dict(row)
    data["kind"] = DocumentKind(data["kind"])
    data["status"] = DocumentStatus(data["status"])
    data["extraction_warnings"] = json.loads(data["extraction_warnings"] or "[]")
    data["visibility"] = DocumentVisibility(data["visibility"] or DocumentVisibility.PUBLIC.value)
    return Document(**data)


def _row_to_link(row: aiosqlite.Row) -> ShareLink:
    data: dict[str, Any] = dict(row)
    data["revoked"] = bool(data["revoked"])
    return ShareLink(**data)


class SQLiteRecordStore(IRecordStore):
    """SQLite-backed persistence for every knowme record type."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create tables and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute("PRAGMA journal_mode=WAL;")
            for table_sql in _CREATE_TABLES_SQL:
                await db.execute(table_sql)
            await self._add_missing_columns(db)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("record_store_initialized", path=str(self._db_path))

    @staticmethod
    async def _add_missing_columns(db: aiosqlite.Connection) -> None:
        """Bring databases created by older releases up to the current columns."""
        for table, column, ddl in _ADDED_COLUMNS:
            cursor = await db.execute(f"PRAGMA table_info({table})")
            existing = {row[1] for row in await cursor.fetchall()}
            if column not in existing:
                await db.execute(f"ALTER TABLE {table} ADD COLUMN {column} {ddl}")
                logger.info("record_store_column_added", table=table, column=column)

    async def close(self) -> None:
        """Connections are per-call, so there is nothing held open."""

    # ------------------------------------------------------------------
    # Spaces
    # ------------------------------------------------------------------

    async def create_space(self, space: Space) -> Space:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(
                f"INSERT INTO spaces ({_SPACE_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    space.id,
                    space.name,
                    space.description,
                    space.ai_model,
                    space.fallback_message,
                    space.persona_style,
                    space.tone,
                    space.audience,
                    space.do_not_mention,
                    space.owner_name,
                    space.index_id,
                    _iso(space.created_at),
                ),
            )
            await db.commit()
        logger.info("space_created", space_id=space.id)
        return space

    async def get_space(self, space_id: str) -> Space | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                f"SELECT {_SPACE_COLUMNS} FROM spaces WHERE id = ?",
                (space_id,),
            )
            row = await cursor.fetchone()
        return _row_to_space(row) if row else None

    async def set_space_index_if_absent(self, space_id: str, index_id: str) -> bool:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                "UPDATE spaces SET index_id = ? WHERE id = ? AND index_id IS NULL",
                (index_id, space_id),
            )
            await db.commit()
            written = cursor.rowcount == 1
        logger.debug("space_index_set", space_id=space_id, index_id=index_id, written=written)
        return written

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def create_document(self, document: Document) -> Document:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(
                f"INSERT INTO documents ({_DOCUMENT_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                self._document_params(document),
            )
            await db.commit()
        logger.info(
            "document_created",
            document_id=document.id,
            space_id=document.space_id,
            kind=document.kind.value,
        )
        return document

    async def get_document(self, document_id: str) -> Document | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                f"SELECT {_DOCUMENT_COLUMNS} FROM documents WHERE id = ?",
                (document_id,),
            )
            row = await cursor.fetchone()
        return _row_to_document(row) if row else None

    async def update_document(self, document: Document) -> Document:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(
                "UPDATE documents SET filename = ?, kind = ?, file_path = ?, source_url = ?, "
                "content_text = ?, status = ?, error_message = ?, index_file_id = ?, "
                "extraction_warnings = ?, visibility = ?, updated_at = ? WHERE id = ?",
                (
                    document.filename,
                    document.kind.value,
                    document.file_path,
                    document.source_url,
                    document.content_text,
                    document.status.value,
                    document.error_message,
                    document.index_file_id,
                    json.dumps(document.extraction_warnings),
                    document.visibility.value,
                    _iso(document.updated_at),
                    document.id,
                ),
            )
            await db.commit()
        return document

    async def list_documents(
        self,
        space_id: str | None = None,
        status: DocumentStatus | None = None,
    ) -> list[Document]:
        clauses: list[str] = []
        params: list[Any] = []
        if space_id is not None:
            clauses.append("space_id = ?")
            params.append(space_id)
        if status is not None:
            clauses.append("status = ?")
            params.append(status.value)
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""

        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                f"SELECT {_DOCUMENT_COLUMNS} FROM documents{where} ORDER BY created_at",
                params,
            )
            rows = await cursor.fetchall()
        return [_row_to_document(r) for r in rows]

    async def delete_document(self, document_id: str) -> bool:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute("DELETE FROM documents WHERE id = ?", (document_id,))
            await db.commit()
            deleted = cursor.rowcount == 1
        logger.info("document_deleted", document_id=document_id, deleted=deleted)
        return deleted

    # ------------------------------------------------------------------
    # Chunks
    # ------------------------------------------------------------------

    async def replace_chunks(self, document_id: str, chunks: list[DocumentChunk]) -> int:
        rows = [
            (document_id, c.chunk_index, c.content)
            for c in sorted(chunks, key=lambda c: c.chunk_index)
        ]
        async with aiosqlite.connect(str(self._db_path)) as db:
            # One transaction: readers see either the old batch or the new one.
            await db.execute("DELETE FROM document_chunks WHERE document_id = ?", (document_id,))
            await db.executemany(
                "INSERT INTO document_chunks (document_id, chunk_index, content) VALUES (?, ?, ?)",
                rows,
            )
            await db.commit()
        logger.debug("chunks_replaced", document_id=document_id, count=len(rows))
        return len(rows)

    async def delete_chunks(self, document_id: str) -> int:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                "DELETE FROM document_chunks WHERE document_id = ?", (document_id,)
            )
            await db.commit()
            return cursor.rowcount

    async def get_space_chunks(self, space_id: str, limit: int | None = None) -> list[DocumentChunk]:
        sql = (
            "SELECT c.document_id, c.chunk_index, c.content "
            "FROM document_chunks c JOIN documents d ON d.id = c.document_id "
            "WHERE d.space_id = ? AND d.status = ? AND d.visibility = ? "
            "ORDER BY d.created_at, c.document_id, c.chunk_index"
        )
        params: list[Any] = [space_id, DocumentStatus.READY.value, DocumentVisibility.PUBLIC.value]
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(sql, params)
            rows = await cursor.fetchall()
        return [DocumentChunk(**dict(r)) for r in rows]

    # ------------------------------------------------------------------
    # Share links
    # ------------------------------------------------------------------

    async def create_share_link(self, link: ShareLink) -> ShareLink:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(
                f"INSERT INTO share_links ({_LINK_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    link.id,
                    link.space_id,
                    link.token,
                    link.name,
                    int(link.revoked),
                    link.view_count,
                    _iso(link.last_used_at),
                    _iso(link.expires_at),
                    _iso(link.created_at),
                ),
            )
            await db.commit()
        logger.info("share_link_created", link_id=link.id, space_id=link.space_id)
        return link

    async def get_share_link(self, link_id: str) -> ShareLink | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                f"SELECT {_LINK_COLUMNS} FROM share_links WHERE id = ?",
                (link_id,),
            )
            row = await cursor.fetchone()
        return _row_to_link(row) if row else None

    async def get_active_link_by_token(self, token: str) -> ShareLink | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                f"SELECT {_LINK_COLUMNS} FROM share_links WHERE token = ? AND revoked = 0",
                (token,),
            )
            row = await cursor.fetchone()
        return _row_to_link(row) if row else None

    async def record_link_view(self, link_id: str) -> None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(
                "UPDATE share_links SET view_count = view_count + 1, last_used_at = ? "
                "WHERE id = ?",
                (_now(), link_id),
            )
            await db.commit()

    async def set_link_revoked(self, link_id: str, revoked: bool) -> ShareLink | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(
                "UPDATE share_links SET revoked = ? WHERE id = ?",
                (int(revoked), link_id),
            )
            await db.commit()
        logger.info("share_link_revoked" if revoked else "share_link_restored", link_id=link_id)
        return await self.get_share_link(link_id)

    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
        return "sqlite_record_store"

    @staticmethod
    def _document_params(document: Document) -> tuple[Any, ...]:
        return (
            document.id,
            document.space_id,
            document.filename,
            document.kind.value,
            document.file_path,
            document.source_url,
            document.content_text,
            document.status.value,
            document.error_message,
            document.index_file_id,
            json.dumps(document.extraction_warnings),
            document.visibility.value,
            _iso(document.created_at),
            _iso(document.updated_at),
        )
