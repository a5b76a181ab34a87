"""SQLite-backed content store.

Persists documents, insights, identity seeds and topics to a local SQLite
database using ``aiosqlite``.  Tables are created idempotently by
:meth:`initialize`; there are no versioned migrations.  Every query is
filtered by ``user_id``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from weave.interfaces.content_store import IContentStore
from weave.models.records import Document, IdentitySeed, Insight, Topic

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/weave.db")

_CREATE_TABLES_SQL = [
    """\
CREATE TABLE IF NOT EXISTS documents (
    id                      TEXT PRIMARY KEY,
    user_id                 TEXT NOT NULL,
    title                   TEXT NOT NULL,
    file_path               TEXT NOT NULL DEFAULT '',
    file_size               INTEGER,
    file_type               TEXT NOT NULL DEFAULT 'text',
    summary                 TEXT,
    extracted_content       TEXT,
    content_is_placeholder  INTEGER NOT NULL DEFAULT 0,
    topic_id                TEXT,
    created_at              TEXT NOT NULL,
    updated_at              TEXT NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS insights (
    id          TEXT PRIMARY KEY,
    user_id     TEXT NOT NULL,
    title       TEXT NOT NULL,
    content     TEXT NOT NULL,
    source      TEXT,
    topic_id    TEXT,
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS identity_seeds (
    id          TEXT PRIMARY KEY,
    user_id     TEXT NOT NULL UNIQUE,
    content     TEXT NOT NULL,
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS topics (
    id          TEXT PRIMARY KEY,
    user_id     TEXT NOT NULL,
    name        TEXT NOT NULL,
    description TEXT,
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL
);
""",
]

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_documents_user ON documents(user_id, created_at);",
    "CREATE INDEX IF NOT EXISTS idx_insights_user ON insights(user_id, created_at);",
    "CREATE INDEX IF NOT EXISTS idx_topics_user ON topics(user_id, created_at);",
]

_DOCUMENT_COLUMNS = (
    "id", "user_id", "title", "file_path", "file_size", "file_type", "summary",
    "extracted_content", "content_is_placeholder", "topic_id", "created_at", "updated_at",
)
_INSIGHT_COLUMNS = (
    "id", "user_id", "title", "content", "source", "topic_id", "created_at", "updated_at",
)
_TOPIC_COLUMNS = ("id", "user_id", "name", "description", "created_at", "updated_at")

# Columns a caller may change through update_document.
_UPDATABLE_DOCUMENT_FIELDS = frozenset(
    {
        "title",
        "file_path",
        "file_size",
        "file_type",
        "summary",
        "extracted_content",
        "content_is_placeholder",
        "topic_id",
    }
)

_UPSERT_SEED_SQL = """\
INSERT INTO identity_seeds (id, user_id, content, created_at, updated_at)
VALUES (?, ?, ?, ?, ?)
ON CONFLICT(user_id)
DO UPDATE SET content    = excluded.content,
              updated_at = excluded.updated_at;
"""


def _now_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat()  # noqa: UP017


def _row_values(model: Any, columns: tuple[str, ...]) -> tuple[Any, ...]:
    data = model.model_dump()
    return tuple(
        data[c].isoformat() if isinstance(data[c], datetime) else data[c] for c in columns
    )


def _insert_sql(table: str, columns: tuple[str, ...]) -> str:
    placeholders = ", ".join("?" for _ in columns)
    return f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"


class SQLiteContentStore(IContentStore):
    """SQLite persistence for a user's captured content."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the tables and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            for table_sql in _CREATE_TABLES_SQL:
                await db.execute(table_sql)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("content_store_initialized", path=str(self._db_path))

    # -- documents ---------------------------------------------------------

    async def create_document(self, document: Document) -> Document:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(
                _insert_sql("documents", _DOCUMENT_COLUMNS),
                _row_values(document, _DOCUMENT_COLUMNS),
            )
            await db.commit()
        logger.info("document_created", document_id=document.id, file_type=document.file_type)
        return document

    async def get_document(self, user_id: str, document_id: str) -> Document | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM documents WHERE id = ? AND user_id = ?",
                (document_id, user_id),
            )
            row = await cursor.fetchone()
        return Document(**dict(row)) if row else None

    async def list_documents(self, user_id: str, limit: int = 50) -> list[Document]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM documents WHERE user_id = ? ORDER BY created_at DESC LIMIT ?",
                (user_id, limit),
            )
            rows = await cursor.fetchall()
        return [Document(**dict(r)) for r in rows]

    async def update_document(
        self, user_id: str, document_id: str, **fields: Any
    ) -> Document | None:
        unknown = set(fields) - _UPDATABLE_DOCUMENT_FIELDS
        if unknown:
            msg = f"Cannot update document fields: {sorted(unknown)}"
            raise ValueError(msg)

        assignments = [f"{name} = ?" for name in fields] + ["updated_at = ?"]
        params = [*fields.values(), _now_iso(), document_id, user_id]
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                f"UPDATE documents SET {', '.join(assignments)} WHERE id = ? AND user_id = ?",
                params,
            )
            await db.commit()
            updated = cursor.rowcount
        if not updated:
            return None
        logger.info("document_updated", document_id=document_id, fields=sorted(fields))
        return await self.get_document(user_id, document_id)

    async def delete_document(self, user_id: str, document_id: str) -> bool:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                "DELETE FROM documents WHERE id = ? AND user_id = ?",
                (document_id, user_id),
            )
            await db.commit()
            deleted = cursor.rowcount > 0
        logger.info("document_deleted", document_id=document_id, deleted=deleted)
        return deleted

    # -- insights ----------------------------------------------------------

    async def create_insights(self, insights: list[Insight]) -> list[Insight]:
        if not insights:
            return []
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.executemany(
                _insert_sql("insights", _INSIGHT_COLUMNS),
                [_row_values(i, _INSIGHT_COLUMNS) for i in insights],
            )
            await db.commit()
        logger.info("insights_created", count=len(insights), source=insights[0].source)
        return insights

    async def list_insights(self, user_id: str, limit: int = 100) -> list[Insight]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM insights WHERE user_id = ? ORDER BY created_at DESC LIMIT ?",
                (user_id, limit),
            )
            rows = await cursor.fetchall()
        return [Insight(**dict(r)) for r in rows]

    async def delete_insight(self, user_id: str, insight_id: str) -> bool:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                "DELETE FROM insights WHERE id = ? AND user_id = ?",
                (insight_id, user_id),
            )
            await db.commit()
            return cursor.rowcount > 0

    # -- identity seed / topics ---------------------------------------------

    async def get_identity_seed(self, user_id: str) -> IdentitySeed | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM identity_seeds WHERE user_id = ?", (user_id,)
            )
            row = await cursor.fetchone()
        return IdentitySeed(**dict(row)) if row else None

    async def upsert_identity_seed(self, user_id: str, content: str) -> IdentitySeed:
        seed = IdentitySeed(user_id=user_id, content=content)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(
                _UPSERT_SEED_SQL,
                _row_values(seed, ("id", "user_id", "content", "created_at", "updated_at")),
            )
            await db.commit()
        logger.info("identity_seed_saved", chars=len(content))
        # Re-read: on conflict the original id and created_at are kept.
        stored = await self.get_identity_seed(user_id)
        return stored or seed

    async def create_topic(self, topic: Topic) -> Topic:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(
                _insert_sql("topics", _TOPIC_COLUMNS), _row_values(topic, _TOPIC_COLUMNS)
            )
            await db.commit()
        return topic

    async def list_topics(self, user_id: str, limit: int = 50) -> list[Topic]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM topics WHERE user_id = ? ORDER BY created_at DESC LIMIT ?",
                (user_id, limit),
            )
            rows = await cursor.fetchall()
        return [Topic(**dict(r)) for r in rows]

    def get_provider_name(self) -> str:
        return "sqlite"
