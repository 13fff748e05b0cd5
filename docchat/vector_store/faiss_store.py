"""FAISS-backed vector index with SQLite metadata."""

from __future__ import annotations

import asyncio
import sqlite3
from pathlib import Path
from typing import TYPE_CHECKING

import faiss
import numpy as np

from docchat.config import config
from docchat.exceptions import UpstreamError
from docchat.models import IndexMatch
from docchat.vector_store.base import BaseSQLiteStore

if TYPE_CHECKING:
    from docchat.models import DocumentChunk

logger = config.get_logger(__name__)


class FaissVectorStore(BaseSQLiteStore):
    """Vector index using FAISS for embeddings and SQLite for metadata."""

    backend = "faiss"
    provider = "vector index"

    def __init__(
        self,
        db_path: Path = Path("data/vector_store.db"),
        index_path: Path = Path("data/faiss/index.faiss"),
    ) -> None:
        """Configure FAISS-backed vector store."""
        self.index_path = Path(index_path)
        self.index_path.parent.mkdir(exist_ok=True, parents=True)

        self.index: faiss.IndexIDMap | None = None

        super().__init__(db_path)

    @property
    def ntotal(self) -> int:
        return 0 if self.index is None else int(self.index.ntotal)

    @staticmethod
    def _normalize_embedding(embedding: np.ndarray) -> np.ndarray:
        """Normalize embedding for cosine similarity using inner product search.

        Returns:
            Normalized embedding vector.
        """
        vector = np.array(embedding, dtype="float32")
        norm = np.linalg.norm(vector)
        if norm == 0:
            return vector
        faiss.normalize_L2(vector.reshape(1, -1))
        return vector

    def _init_index(self, dimension: int) -> None:
        """Initialize FAISS index if missing."""
        base_index = faiss.IndexFlatIP(dimension)
        self.index = faiss.IndexIDMap(base_index)
        logger.info("Initialized FAISS IndexIDMap with dimension %d", dimension)

    def add_chunks(self, chunks: list[DocumentChunk]) -> None:
        """Add chunks and embeddings to FAISS index and metadata store.

        Raises:
            ValueError: If embedding dimension mismatches the index.
        """
        if not chunks:
            return

        embeddings_batch: list[np.ndarray] = []
        vector_ids: list[int] = []

        with self._connect() as conn:
            cursor = conn.cursor()

            for chunk in chunks:
                if chunk.embedding is None:
                    logger.warning(
                        "Skipping chunk %s without embedding",
                        chunk.metadata.get("chunk_id"),
                    )
                    continue

                embedding = self._normalize_embedding(np.asarray(chunk.embedding))
                if self.index is None:
                    self._init_index(embedding.shape[0])
                elif embedding.shape[0] != self.index.d:
                    msg = (
                        f"Embedding dimension {embedding.shape[0]} does not match "
                        f"FAISS index dimension {self.index.d}"
                    )
                    raise ValueError(msg)

                source = chunk.metadata.get("source", "unknown")
                document_id = self._upsert_document(cursor, source)
                vector_id = self._insert_chunk_row(cursor, document_id, chunk)

                chunk.metadata["vector_id"] = vector_id
                chunk.metadata["text"] = chunk.content

                embeddings_batch.append(embedding)
                vector_ids.append(vector_id)

            conn.commit()

        if embeddings_batch and self.index is not None:
            vectors = np.vstack(embeddings_batch).astype("float32")
            ids_array = np.asarray(vector_ids, dtype="int64")
            self.index.add_with_ids(vectors, ids_array)  # pyright: ignore[reportCallIssue]
            logger.info("Added %d vectors to FAISS index", len(vector_ids))
        else:
            logger.warning("No embeddings added to FAISS index")

    def search(
        self,
        query_embedding: np.ndarray,
        top_k: int = 10,
    ) -> list[tuple[DocumentChunk, float]]:
        """Search similar chunks using FAISS index.

        Returns:
            Ranked list of (DocumentChunk, score) tuples.
        """
        index = self.index
        if index is None or index.ntotal == 0 or top_k <= 0:
            return []

        normalized_query = self._normalize_embedding(np.asarray(query_embedding))
        scores, vector_ids = index.search(
            normalized_query.reshape(1, -1),
            min(top_k, index.ntotal),
        )  # pyright: ignore[reportCallIssue]

        results: list[tuple[DocumentChunk, float]] = []
        with self._connect() as conn:
            cursor = conn.cursor()
            for score, vector_id in zip(scores[0], vector_ids[0], strict=True):
                if int(vector_id) == -1:  # faiss returns -1 for empty results
                    continue
                chunk = self._fetch_chunk_by_vector_id(cursor, int(vector_id))
                if chunk:
                    results.append((chunk, float(score)))

        return results

    async def query(
        self,
        vector: np.ndarray,
        top_k: int,
        *,
        include_metadata: bool = True,
    ) -> list[IndexMatch]:
        """Return the ``top_k`` nearest chunks, most similar first.

        Raises:
            UpstreamError: If FAISS or the metadata store fails.
        """
        try:
            hits = await asyncio.to_thread(self.search, vector, top_k)
        except (RuntimeError, ValueError, sqlite3.Error) as exc:
            logger.exception("Vector index query failed")
            raise UpstreamError(self.provider, str(exc)) from exc

        return [
            IndexMatch(
                score=score,
                metadata=dict(chunk.metadata) if include_metadata else {},
            )
            for chunk, score in hits
        ]

    def save(self) -> None:
        """Persist FAISS index to disk."""
        index = self.index
        if index is None:
            logger.warning("No FAISS index to save")
            return

        self.index_path.parent.mkdir(exist_ok=True, parents=True)
        faiss.write_index(index, str(self.index_path))
        logger.info("Saved FAISS index to %s", self.index_path)

    def load(self) -> None:
        """Load the FAISS index from disk; metadata is read per query."""
        if self.index_path.exists():
            loaded_index = faiss.read_index(str(self.index_path))
            if not isinstance(loaded_index, (faiss.IndexIDMap, faiss.IndexIDMap2)):
                logger.warning(
                    "Loaded FAISS index is %s; wrapping with IndexIDMap to enable IDs",
                    type(loaded_index).__name__,
                )
                loaded_index = faiss.IndexIDMap(loaded_index)
            self.index = loaded_index
            logger.info(
                "Loaded FAISS index from %s with %d vectors",
                self.index_path,
                loaded_index.ntotal,
            )
        else:
            logger.warning(
                "FAISS index not found at %s. Start with an empty index.",
                self.index_path,
            )
            self.index = None
