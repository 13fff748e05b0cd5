"""OpenAI embeddings service."""

import numpy as np
from openai import AsyncOpenAI, OpenAIError

from .config import config
from .exceptions import UpstreamError

logger = config.get_logger(__name__)


class EmbeddingService:
    """Handles OpenAI embeddings generation."""

    provider = "embedding"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
    ) -> None:
        """Initialize the EmbeddingService with OpenAI API key and model.

        Args:
            api_key: OpenAI API key. If None,
                reads from OPENAI_API_KEY environment variable.
            model: Embedding model name. If None, uses config.EMBEDDING_MODEL.
        """
        api_key = api_key or config.get_openai_api_key()
        default_headers = config.get_api_headers()
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=config.OPENAI_BASE_URL,
            default_headers=default_headers or None,
        )
        self.model = model or config.EMBEDDING_MODEL

    async def embed(self, text: str) -> np.ndarray:
        """Get embedding for a single text.

        Args:
            text: The input text to generate an embedding for.

        Returns:
            np.ndarray: The embedding vector for the input text.

        Raises:
            UpstreamError: If the embeddings API call fails.
        """
        try:
            response = await self.client.embeddings.create(
                model=self.model,
                input=text,
            )
        except OpenAIError as exc:
            logger.exception("Error generating embedding")
            raise UpstreamError(self.provider, str(exc)) from exc
        return np.array(response.data[0].embedding, dtype="float32")

    async def embed_batch(
        self,
        texts: list[str],
        batch_size: int | None = None,
    ) -> list[np.ndarray]:
        """Get embeddings for multiple texts in batches.

        Args:
            texts: List of input texts to generate embeddings for.
            batch_size: Number of texts to process in each batch. If None,
                uses config.EMBEDDING_BATCH_SIZE.

        Returns:
            list[np.ndarray]: List of embedding vectors for the input texts.

        Raises:
            UpstreamError: If any batch request fails.
        """
        batch_size = batch_size or config.EMBEDDING_BATCH_SIZE
        embeddings = []

        for i in range(0, len(texts), batch_size):
            batch_texts = texts[i : i + batch_size]
            try:
                response = await self.client.embeddings.create(
                    model=self.model,
                    input=batch_texts,
                )
            except OpenAIError as exc:
                logger.exception("Error generating batch embeddings")
                raise UpstreamError(self.provider, str(exc)) from exc
            embeddings.extend(
                np.array(data.embedding, dtype="float32") for data in response.data
            )
            logger.info("Generated embeddings for batch %d", i // batch_size + 1)

        return embeddings
