"""SQLite store for the working draft, session config and named documents."""

from __future__ import annotations

import logging
import sqlite3
import time
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from verse_coach.models.document import StoredDocument
from verse_coach.models.suggestion import SessionConfig

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path.home() / ".verse-coach" / "documents.db"

DRAFT_TEXT_KEY = "draft.text"
DRAFT_CONFIG_KEY = "draft.config"


class DocumentStore:
    """Opaque key-value settings plus a table of named documents."""

    def __init__(self, db_path: str | Path = DEFAULT_DB_PATH):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self.db_path))

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at REAL NOT NULL
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS documents (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    content TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

    # --- Key-value ---

    def save(self, key: str, value: str) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)",
                (key, value, time.time()),
            )

    def load(self, key: str) -> str | None:
        with self._connect() as conn:
            row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        return None if row is None else row[0]

    def save_draft(self, text: str, config: SessionConfig) -> None:
        """Remember the working text and its settings across sessions."""
        self.save(DRAFT_TEXT_KEY, text)
        self.save(DRAFT_CONFIG_KEY, config.model_dump_json())

    def load_draft(self) -> tuple[str, SessionConfig | None]:
        text = self.load(DRAFT_TEXT_KEY) or ""
        raw_config = self.load(DRAFT_CONFIG_KEY)
        config = None
        if raw_config is not None:
            try:
                config = SessionConfig.model_validate_json(raw_config)
            except ValidationError:
                logger.warning("Ignoring unreadable saved config", exc_info=True)
        return text, config

    # --- Named documents ---

    def save_document(self, title: str, content: str, doc_id: str | None = None) -> StoredDocument:
        """Create a document, or overwrite the one with ``doc_id``."""
        existing = self.get_document(doc_id) if doc_id else None
        now = datetime.now()
        if existing is not None:
            doc = existing.model_copy(update={"title": title, "content": content, "updated_at": now})
        elif doc_id:
            doc = StoredDocument(id=doc_id, title=title, content=content, created_at=now, updated_at=now)
        else:
            doc = StoredDocument(title=title, content=content, created_at=now, updated_at=now)

        with self._connect() as conn:
            conn.execute(
                """INSERT OR REPLACE INTO documents
                   (id, title, content, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?)""",
                (doc.id, doc.title, doc.content, doc.created_at.isoformat(), doc.updated_at.isoformat()),
            )
        return doc

    def get_document(self, doc_id: str) -> StoredDocument | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT id, title, content, created_at, updated_at FROM documents WHERE id = ?",
                (doc_id,),
            ).fetchone()
        return None if row is None else self._row_to_document(row)

    def list_documents(self) -> list[StoredDocument]:
        """All documents, most recently updated first."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT id, title, content, created_at, updated_at FROM documents ORDER BY updated_at DESC"
            ).fetchall()
        return [self._row_to_document(row) for row in rows]

    def delete_document(self, doc_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM documents WHERE id = ?", (doc_id,))
            return cursor.rowcount > 0

    @staticmethod
    def _row_to_document(row: tuple) -> StoredDocument:
        return StoredDocument(
            id=row[0],
            title=row[1],
            content=row[2],
            created_at=datetime.fromisoformat(row[3]),
            updated_at=datetime.fromisoformat(row[4]),
        )
