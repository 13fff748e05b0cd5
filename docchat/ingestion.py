"""One-shot indexing job: Load -> Split -> Embed -> Store."""

from pathlib import Path

from .config import config
from .document_processing import DocumentLoader, TextChunker
from .embeddings import EmbeddingService
from .vector_store import FaissVectorStore

logger = config.get_logger(__name__)


class IngestionPipeline:
    """Populates the vector index with embedded chunks of a source document."""

    def __init__(
        self,
        embedding_service: EmbeddingService,
        vector_store: FaissVectorStore,
        chunk_size: int | None = None,
        overlap: int | None = None,
    ) -> None:
        """Initialize the ingestion job.

        Args:
            embedding_service: Service used to embed chunk texts.
            vector_store: Index that receives the chunks.
            chunk_size: Size of text chunks. If None, uses config.CHUNK_SIZE.
            overlap: Overlap between chunks. If None, uses config.CHUNK_OVERLAP.
        """
        self.embedding_service = embedding_service
        self.vector_store = vector_store
        self.chunker = TextChunker(
            chunk_size=chunk_size if chunk_size is not None else config.CHUNK_SIZE,
            overlap=overlap if overlap is not None else config.CHUNK_OVERLAP,
        )

    async def process_document(self, file_path: Path) -> int:
        """Index a document and persist the vector index.

        Returns:
            Number of chunks added to the index.
        """
        logger.info("Starting ingestion for document: %s", file_path)

        text = DocumentLoader.load_document(file_path)
        chunks = self.chunker.chunk_text(text, source=file_path.name)
        if not chunks:
            logger.warning("No text extracted from %s; nothing to index", file_path)
            return 0

        embeddings = await self.embedding_service.embed_batch(
            [chunk.content for chunk in chunks]
        )
        for chunk, embedding in zip(chunks, embeddings, strict=True):
            chunk.embedding = embedding

        self.vector_store.add_chunks(chunks)
        self.vector_store.save()

        logger.info("Indexed %d chunks from %s", len(chunks), file_path.name)
        return len(chunks)
