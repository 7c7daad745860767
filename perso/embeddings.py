"""Embeddings service for any OpenAI-compatible endpoint."""

import asyncio

import numpy as np
from openai import AsyncOpenAI, OpenAIError

from .config import config
from .errors import ClientConfigurationError, EmbeddingError

logger = config.get_logger(__name__)


def create_async_client(
    api_key: str | None = None,
    base_url: str | None = None,
    timeout: float | None = None,
) -> AsyncOpenAI:
    """Build the shared async client used by the embedding and chat services.

    Returns:
        A configured ``AsyncOpenAI`` client.

    Raises:
        ClientConfigurationError: If the SDK rejects the configuration.
    """
    default_headers = config.get_api_headers()
    try:
        return AsyncOpenAI(
            api_key=config.get_client_api_key(api_key),
            base_url=base_url or config.OPENAI_BASE_URL,
            timeout=timeout if timeout is not None else config.REQUEST_TIMEOUT,
            max_retries=config.MAX_RETRIES,
            default_headers=default_headers or None,
        )
    except OpenAIError as exc:
        msg = f"Failed to create API client: {exc}"
        raise ClientConfigurationError(msg) from exc


class EmbeddingService:
    """Handles embedding generation with bounded request concurrency."""

    def __init__(  # noqa: PLR0913
        self,
        api_key: str | None = None,
        model: str | None = None,
        *,
        client: AsyncOpenAI | None = None,
        dimensions: int | None = None,
        batch_size: int | None = None,
        max_concurrency: int | None = None,
    ) -> None:
        """Initialize the EmbeddingService.

        Args:
            api_key: API key. If None, reads OPENAI_API_KEY and falls back to
                the no-credential marker.
            model: Embedding model name. If None, uses config.EMBEDDING_MODEL.
            client: Pre-built client to share with other services.
            dimensions: Expected vector length; vectors of any other length
                are rejected. None disables the check.
            batch_size: Texts per request. If None, uses
                config.EMBEDDING_BATCH_SIZE.
            max_concurrency: Requests in flight at once. If None, uses
                config.EMBEDDING_CONCURRENCY.
        """
        self.client = client or create_async_client(api_key=api_key)
        self.model = model or config.EMBEDDING_MODEL
        self.dimensions = dimensions
        self.batch_size = batch_size or config.EMBEDDING_BATCH_SIZE
        self.max_concurrency = max(1, max_concurrency or config.EMBEDDING_CONCURRENCY)

    def _to_vector(self, raw: list[float]) -> np.ndarray:
        vector = np.asarray(raw, dtype=np.float32)
        if self.dimensions is not None and vector.shape != (self.dimensions,):
            msg = (
                f"Embedding model '{self.model}' returned {vector.size} dimensions, "
                f"expected {self.dimensions}"
            )
            raise EmbeddingError(msg)
        return vector

    async def get_embedding(self, text: str) -> np.ndarray:
        """Get embedding for a single text.

        Args:
            text: The input text to generate an embedding for.

        Returns:
            np.ndarray: The embedding vector for the input text.

        Raises:
            EmbeddingError: If the request fails or returns no vector.
        """
        try:
            response = await self.client.embeddings.create(
                model=self.model,
                input=text,
                encoding_format="float",
            )
            raw = response.data[0].embedding
        except Exception as exc:
            logger.exception("Error generating embedding")
            msg = f"Embedding request failed: {exc}"
            raise EmbeddingError(msg) from exc

        return self._to_vector(raw)

    async def get_embeddings_batch(
        self,
        texts: list[str],
        batch_size: int | None = None,
    ) -> list[np.ndarray]:
        """Get embeddings for multiple texts, sending batches concurrently.

        Args:
            texts: List of input texts to generate embeddings for.
            batch_size: Number of texts to process in each request.

        Returns:
            list[np.ndarray]: Embedding vectors in the same order as ``texts``.

        Raises:
            EmbeddingError: If any batch fails.
        """
        if not texts:
            return []

        size = batch_size or self.batch_size
        batches = [texts[i : i + size] for i in range(0, len(texts), size)]
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def embed_batch(number: int, batch: list[str]) -> list[np.ndarray]:
            async with semaphore:
                try:
                    response = await self.client.embeddings.create(
                        model=self.model,
                        input=batch,
                        encoding_format="float",
                    )
                except Exception as exc:
                    logger.exception("Error generating batch embeddings")
                    msg = f"Embedding request failed for batch {number}: {exc}"
                    raise EmbeddingError(msg) from exc

            if len(response.data) != len(batch):
                msg = (
                    f"Embedding batch {number} returned {len(response.data)} "
                    f"vectors for {len(batch)} texts"
                )
                raise EmbeddingError(msg)
            logger.info("Generated embeddings for batch %d", number)
            return [self._to_vector(data.embedding) for data in response.data]

        results = await asyncio.gather(
            *(embed_batch(n, batch) for n, batch in enumerate(batches, start=1))
        )
        return [vector for batch_vectors in results for vector in batch_vectors]
