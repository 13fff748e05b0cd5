"""Tests for the indexing job feeding the chat pipeline."""

import asyncio
from unittest.mock import AsyncMock, create_autospec

import pytest
from conftest import stored_chunk_texts

from docchat import (
    EmbeddingService,
    IngestionPipeline,
    Retriever,
    UpstreamError,
)


@pytest.fixture
def ingestion_factory(mock_embedding_service, temp_faiss_store):
    def _create(chunk_size: int = 200, overlap: int = 50, embedder=None):
        return IngestionPipeline(
            embedding_service=embedder or mock_embedding_service,
            vector_store=temp_faiss_store,
            chunk_size=chunk_size,
            overlap=overlap,
        )

    return _create


def test_process_document_indexes_and_saves(ingestion_factory, tmp_path):
    doc_path = tmp_path / "dsa.txt"
    doc_path.write_text(
        "A stack follows LIFO order.\n\nA queue follows FIFO order.",
        encoding="utf-8",
    )
    pipeline = ingestion_factory(chunk_size=30, overlap=0)

    count = asyncio.run(pipeline.process_document(doc_path))

    store = pipeline.vector_store
    assert count == 2
    assert store.ntotal == 2
    assert store.index_path.exists()
    assert set(stored_chunk_texts(store)) == {
        "A stack follows LIFO order.",
        "A queue follows FIFO order.",
    }


def test_indexed_chunks_are_retrievable(
    ingestion_factory, mock_embedding_service, tmp_path
):
    doc_path = tmp_path / "dsa.txt"
    doc_path.write_text("Heaps are trees.\n\nTries store strings.", encoding="utf-8")
    pipeline = ingestion_factory(chunk_size=20, overlap=0)
    asyncio.run(pipeline.process_document(doc_path))

    retriever = Retriever(mock_embedding_service, pipeline.vector_store, top_k=1)
    results = asyncio.run(retriever.retrieve("Tries store strings."))

    assert [chunk.content for chunk, _ in results] == ["Tries store strings."]
    assert results[0][0].metadata["source"] == "dsa.txt"


def test_empty_document_indexes_nothing(ingestion_factory, tmp_path):
    doc_path = tmp_path / "empty.txt"
    doc_path.write_text("   ", encoding="utf-8")
    embedder = create_autospec(EmbeddingService, instance=True)
    pipeline = ingestion_factory(embedder=embedder)

    assert asyncio.run(pipeline.process_document(doc_path)) == 0
    embedder.embed_batch.assert_not_called()
    assert not pipeline.vector_store.index_path.exists()


def test_embedding_failure_leaves_index_empty(ingestion_factory, tmp_path):
    doc_path = tmp_path / "dsa.txt"
    doc_path.write_text("A stack follows LIFO order.", encoding="utf-8")
    embedder = create_autospec(EmbeddingService, instance=True)
    embedder.embed_batch = AsyncMock(side_effect=UpstreamError("embedding", "quota"))
    pipeline = ingestion_factory(embedder=embedder)

    with pytest.raises(UpstreamError, match="quota"):
        asyncio.run(pipeline.process_document(doc_path))

    assert pipeline.vector_store.ntotal == 0
