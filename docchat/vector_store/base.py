"""SQLite metadata store shared by vector index backends."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any

from docchat.config import config
from docchat.models import DocumentChunk

logger = config.get_logger(__name__)

_CHUNK_COLUMNS = """
    c.id,
    c.content,
    c.start_char,
    c.end_char,
    c.length,
    c.chunk_id,
    c.vector_id,
    d.source
"""


class BaseSQLiteStore:
    """Schema management and row helpers for chunk metadata kept in SQLite."""

    def __init__(self, db_path: Path) -> None:
        """Initialize metadata store and ensure schema exists."""
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(exist_ok=True, parents=True)
        self._create_tables()

    def _connect(self) -> sqlite3.Connection:
        # Connections are opened per call so they can be used from worker threads.
        return sqlite3.connect(str(self.db_path))

    def _create_tables(self) -> None:
        """Create document and chunk tables if they don't exist."""
        with self._connect() as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS documents (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    source TEXT NOT NULL UNIQUE,
                    processed_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS chunks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    document_id INTEGER NOT NULL,
                    chunk_id INTEGER NOT NULL,
                    content TEXT NOT NULL,
                    start_char INTEGER,
                    end_char INTEGER,
                    length INTEGER,
                    vector_id INTEGER UNIQUE,
                    FOREIGN KEY (document_id) REFERENCES documents (id)
                )
            """)

            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_chunks_document ON chunks(document_id)",
            )
            conn.commit()

    @staticmethod
    def _upsert_document(cursor: sqlite3.Cursor, source: str) -> int:
        """Insert document metadata if missing and return its id.

        Raises:
            RuntimeError: If the document id cannot be retrieved.

        Returns:
            Document id from the metadata store.
        """
        cursor.execute("INSERT OR IGNORE INTO documents (source) VALUES (?)", (source,))
        cursor.execute("SELECT id FROM documents WHERE source = ?", (source,))
        row = cursor.fetchone()
        if row is None:
            msg = f"Failed to upsert document for source '{source}'"
            raise RuntimeError(msg)
        return int(row[0])

    @staticmethod
    def _insert_chunk_row(
        cursor: sqlite3.Cursor,
        document_id: int,
        chunk: DocumentChunk,
    ) -> int:
        """Persist a chunk row and return the vector id assigned to it.

        Raises:
            RuntimeError: If the chunk row cannot be inserted.

        Returns:
            Vector id used to address the chunk's embedding in the index.
        """
        cursor.execute(
            """
            INSERT INTO chunks (
                document_id, chunk_id, content, start_char, end_char, length
            )
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                document_id,
                chunk.metadata.get("chunk_id", 0),
                chunk.content,
                chunk.metadata.get("start_char", 0),
                chunk.metadata.get("end_char", 0),
                chunk.metadata.get("length", len(chunk.content)),
            ),
        )

        chunk_row_id = cursor.lastrowid
        if chunk_row_id is None:
            msg = "Failed to insert chunk row"
            raise RuntimeError(msg)
        vector_id = int(chunk_row_id)
        cursor.execute(
            "UPDATE chunks SET vector_id = ? WHERE id = ?",
            (vector_id, vector_id),
        )
        return vector_id

    @staticmethod
    def _build_chunk_from_row(row: tuple) -> DocumentChunk:
        """Create a DocumentChunk from a metadata row.

        Returns:
            DocumentChunk whose metadata carries the chunk text under ``text``.
        """
        (
            chunk_db_id,
            content,
            start_char,
            end_char,
            length,
            chunk_id,
            vector_id,
            source,
        ) = row

        metadata: dict[str, Any] = {
            "text": content,
            "chunk_db_id": chunk_db_id,
            "source": source,
            "chunk_id": chunk_id,
            "start_char": start_char,
            "end_char": end_char,
            "length": length,
            "vector_id": vector_id,
        }
        return DocumentChunk(content=content, metadata=metadata)

    def _fetch_chunk_by_vector_id(
        self,
        cursor: sqlite3.Cursor,
        vector_id: int,
    ) -> DocumentChunk | None:
        """Fetch a chunk by its index vector id.

        Returns:
            DocumentChunk if found; otherwise None.
        """
        cursor.execute(
            f"""
            SELECT {_CHUNK_COLUMNS}
            FROM chunks c
            JOIN documents d ON c.document_id = d.id
            WHERE c.vector_id = ?
            """,  # noqa: S608
            (int(vector_id),),
        )
        row = cursor.fetchone()
        if row is None:
            return None
        return self._build_chunk_from_row(row)

