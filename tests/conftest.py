"""Test configuration and fixtures for docchat tests.

This module provides reusable test fixtures organized by functionality:
- Constants and test data
- Deterministic fake providers (embeddings, vector index, completions)
- OpenAI response factories
- Pipeline, store and HTTP client fixtures
"""

import asyncio
import hashlib
import re
import sqlite3
from collections.abc import Sequence
from unittest.mock import AsyncMock, Mock

import numpy as np
import pytest
from fastapi.testclient import TestClient

from docchat import (
    FALLBACK_ANSWER,
    ChatPipeline,
    DocumentChunk,
    FaissVectorStore,
    IndexMatch,
    SessionStore,
    Turn,
    create_app,
)
from docchat.context import CHUNK_SEPARATOR
from docchat.rewriter import REWRITE_INSTRUCTION


class TestConstants:
    """Centralized test constants shared across the suite."""

    TEST_API_KEY = "test-key"
    TEST_EMBEDDING_MODEL = "text-embedding-3-small"
    DEFAULT_EMBEDDING_DIMENSION = 64

    STACK_CHUNK = "A stack follows LIFO order."
    STACK_QUESTION = "What order does a stack use?"
    QUEUE_QUESTION = "What about a queue?"


STOPWORDS = {
    "about",
    "and",
    "are",
    "does",
    "for",
    "how",
    "its",
    "the",
    "use",
    "what",
    "which",
    "with",
}


def keywords(text: str) -> set[str]:
    return {
        word
        for word in re.findall(r"[a-z]+", text.lower())
        if len(word) > 2 and word not in STOPWORDS
    }


class MockEmbeddingService:
    """Mock embedding service for testing without API calls.

    Generates deterministic embeddings based on text content hash,
    ensuring consistent test results across runs.
    """

    def __init__(
        self, dimension: int = TestConstants.DEFAULT_EMBEDDING_DIMENSION
    ) -> None:
        self.dimension = dimension
        self.calls: list[str] = []

    def get_embedding(self, text: str) -> np.ndarray:
        """Generate deterministic mock embedding based on text hash."""
        seed = int.from_bytes(
            hashlib.sha256(text.lower().encode("utf-8")).digest()[:8],
            byteorder="big",
            signed=False,
        )
        rng = np.random.default_rng(seed)
        embedding = rng.normal(0, 1, self.dimension)
        return (embedding / np.linalg.norm(embedding)).astype(np.float32)

    async def embed(self, text: str) -> np.ndarray:
        self.calls.append(text)
        await asyncio.sleep(0)
        return self.get_embedding(text)

    async def embed_batch(self, texts: list[str]) -> list[np.ndarray]:
        return [self.get_embedding(text) for text in texts]


class InMemoryVectorIndex:
    """Brute-force cosine index holding chunk texts as metadata."""

    def __init__(self, embedder: MockEmbeddingService) -> None:
        self.embedder = embedder
        self.entries: list[tuple[np.ndarray, dict]] = []

    def add_texts(self, texts: Sequence[str], source: str = "dsa.pdf") -> None:
        for text in texts:
            metadata = {"text": text, "source": source, "chunk_id": len(self.entries)}
            self.entries.append((self.embedder.get_embedding(text), metadata))

    async def query(
        self,
        vector: np.ndarray,
        top_k: int,
        *,
        include_metadata: bool = True,
    ) -> list[IndexMatch]:
        await asyncio.sleep(0)
        scored = sorted(
            ((float(np.dot(vector, emb)), meta) for emb, meta in self.entries),
            key=lambda pair: pair[0],
            reverse=True,
        )
        return [
            IndexMatch(score=score, metadata=dict(meta) if include_metadata else {})
            for score, meta in scored[:top_k]
        ]


class RuleBasedCompletion:
    """Deterministic stand-in for a context-constrained language model.

    Rewrites return the follow-up unchanged. Answers return the first context
    chunk sharing a keyword with the question, otherwise the fallback sentence.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[list[Turn], str]] = []

    async def generate(self, turns: Sequence[Turn], system_instruction: str) -> str:
        self.calls.append((list(turns), system_instruction))
        await asyncio.sleep(0)
        question = turns[-1].text
        if system_instruction == REWRITE_INSTRUCTION:
            return question

        context = system_instruction.rsplit("Context: ", 1)[-1]
        for chunk in context.split(CHUNK_SEPARATOR):
            if keywords(question) & keywords(chunk):
                return chunk
        return FALLBACK_ANSWER


class EchoCompletion:
    """Answers every question with a reply derived from it."""

    def __init__(self) -> None:
        self.calls: list[tuple[list[Turn], str]] = []

    async def generate(self, turns: Sequence[Turn], system_instruction: str) -> str:
        self.calls.append((list(turns), system_instruction))
        for _ in range(3):
            await asyncio.sleep(0)
        question = turns[-1].text
        if system_instruction == REWRITE_INSTRUCTION:
            return question
        return f"Answer to: {question}"


def stored_chunk_texts(store: FaissVectorStore) -> list[str]:
    """Read chunk contents back from the metadata database in insertion order."""
    with sqlite3.connect(store.db_path) as conn:
        rows = conn.execute("SELECT content FROM chunks ORDER BY id").fetchall()
    return [row[0] for row in rows]


def create_mock_openai_response(embeddings: list[list[float]]) -> Mock:
    """Create a mock OpenAI embeddings API response.

    Args:
        embeddings: List of embedding vectors to return.

    Returns:
        Mock object representing OpenAI embeddings API response.
    """
    mock_response = Mock()
    mock_response.data = [Mock(embedding=emb) for emb in embeddings]
    return mock_response


def create_mock_chat_response(content: str | None) -> Mock:
    """Create a mock OpenAI chat completion response.

    Args:
        content: The content for the chat completion response.

    Returns:
        Mock object representing OpenAI chat completion response.
    """
    mock_response = Mock()
    mock_response.choices = [Mock(message=Mock(content=content))]
    return mock_response


@pytest.fixture
def mock_embedding_service():
    """Deterministic hash-seeded embedding provider."""
    return MockEmbeddingService()


@pytest.fixture
def mock_embeddings(mock_embedding_service):
    """Factory function to create mock embeddings using the service."""
    return mock_embedding_service.get_embedding


@pytest.fixture
def vector_index(mock_embedding_service):
    """Empty in-memory index sharing the mock embedding space."""
    return InMemoryVectorIndex(mock_embedding_service)


@pytest.fixture
def stack_index(vector_index):
    """Index seeded with a single chunk about stacks."""
    vector_index.add_texts([TestConstants.STACK_CHUNK])
    return vector_index


@pytest.fixture
def session_store():
    return SessionStore()


@pytest.fixture
def scripted_completion():
    """Completion provider whose replies are set per test."""

    def _create(responses=None, side_effect=None) -> Mock:
        provider = Mock()
        provider.generate = AsyncMock(return_value=responses, side_effect=side_effect)
        return provider

    return _create


@pytest.fixture
def pipeline_factory(mock_embedding_service, session_store):
    """Factory for pipelines wired to fake providers."""

    def _create_pipeline(
        index,
        completion=None,
        *,
        sessions: SessionStore | None = None,
        top_k: int = 10,
        max_context_chars: int = 0,
    ) -> ChatPipeline:
        return ChatPipeline.from_providers(
            embeddings=mock_embedding_service,
            index=index,
            completion=completion or RuleBasedCompletion(),
            sessions=sessions if sessions is not None else session_store,
            top_k=top_k,
            max_context_chars=max_context_chars,
        )

    return _create_pipeline


@pytest.fixture
def client_factory():
    """Factory for HTTP clients around a given pipeline."""
    clients: list[TestClient] = []

    def _create_client(pipeline) -> TestClient:
        client = TestClient(create_app(pipeline), raise_server_exceptions=False)
        client.__enter__()
        clients.append(client)
        return client

    yield _create_client

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def temp_faiss_store(tmp_path) -> FaissVectorStore:
    """Create temporary FAISS vector store for testing."""
    return FaissVectorStore(
        db_path=tmp_path / "test_store.db",
        index_path=tmp_path / "faiss" / "index.faiss",
    )


@pytest.fixture
def sample_text_chunks():
    """Create sample document chunks with text and metadata only (no embeddings)."""
    texts = [
        "A stack is a linear data structure that follows LIFO order.",
        "A queue is a linear data structure that follows FIFO order.",
        "Binary search runs in logarithmic time on sorted arrays.",
        "A hash table maps keys to values using a hash function.",
        "Depth-first search explores a graph branch by branch.",
    ]
    return [
        DocumentChunk(
            content=text,
            metadata={
                "source": f"dsa_{i // 3}.pdf",
                "chunk_id": i,
                "start_char": i * 100,
                "end_char": i * 100 + len(text),
                "length": len(text),
            },
        )
        for i, text in enumerate(texts)
    ]


@pytest.fixture
def sample_embedded_chunks(sample_text_chunks, mock_embeddings):
    """Create sample document chunks with embeddings based on text chunks."""
    return [
        DocumentChunk(
            content=chunk.content,
            metadata=dict(chunk.metadata),
            embedding=mock_embeddings(chunk.content),
        )
        for chunk in sample_text_chunks
    ]


@pytest.fixture
def sample_results():
    """Ranked (chunk, score) pairs as the retriever returns them."""
    return [
        (
            DocumentChunk(
                content="A stack follows LIFO order.",
                metadata={"text": "A stack follows LIFO order.", "source": "dsa.pdf"},
            ),
            0.9,
        ),
        (
            DocumentChunk(
                content="Push adds an element to the top of the stack.",
                metadata={
                    "text": "Push adds an element to the top of the stack.",
                    "source": "dsa.pdf",
                },
            ),
            0.7,
        ),
        (
            DocumentChunk(
                content="Pop removes the top element.",
                metadata={"text": "Pop removes the top element.", "source": "dsa.pdf"},
            ),
            0.5,
        ),
    ]
