"""Dense retrieval of document chunks for a standalone query."""

from .config import config
from .models import DocumentChunk, RetrievalResult
from .providers import EmbeddingProvider, VectorIndex

logger = config.get_logger(__name__)


class Retriever:
    """Embeds a query and looks up its nearest chunks in the vector index."""

    def __init__(
        self,
        embeddings: EmbeddingProvider,
        index: VectorIndex,
        top_k: int | None = None,
    ) -> None:
        """Initialize the retriever.

        Args:
            embeddings: Provider used to embed the query.
            index: Vector index holding the chunk embeddings.
            top_k: Number of chunks to fetch. If None, uses config.RETRIEVAL_TOP_K.
        """
        self.embeddings = embeddings
        self.index = index
        self.top_k = top_k if top_k is not None else config.RETRIEVAL_TOP_K

    async def retrieve(self, query: str, top_k: int | None = None) -> RetrievalResult:
        """Return ranked (chunk, score) pairs, most similar first.

        Matches whose metadata carries no ``text`` cannot ground an answer and
        are skipped. An empty index yields an empty result.
        """
        top_k = top_k if top_k is not None else self.top_k
        vector = await self.embeddings.embed(query)
        matches = await self.index.query(vector, top_k, include_metadata=True)

        results: RetrievalResult = []
        for match in matches[:top_k]:
            text = match.metadata.get("text")
            if not text:
                logger.warning("Skipping match without text metadata: %s", match)
                continue
            chunk = DocumentChunk(content=text, metadata=match.metadata)
            results.append((chunk, float(match.score)))

        logger.info("Retrieved %d chunks for query", len(results))
        for i, (chunk, score) in enumerate(results):
            logger.debug(
                "  Context %d: %s (score: %.4f)",
                i + 1,
                chunk.metadata.get("source", "unknown"),
                score,
            )
        return results
