"""RAG pipeline: Load -> Split -> Embed -> Index, then retrieval."""

from pathlib import Path
from typing import cast

from .config import config
from .document_processing import DocumentLoader, TextChunker
from .embeddings import EmbeddingService
from .errors import EmbeddingError, IndexBuildError
from .models import Document, DocumentChunk
from .vector_store import BaseVectorIndex, VectorBackend, get_vector_index

logger = config.get_logger(__name__)


class RAGPipeline:
    """Builds the single-document index once and answers retrieval queries."""

    def __init__(  # noqa: PLR0913
        self,
        embedding_service: EmbeddingService | None = None,
        *,
        chunk_size: int | None = None,
        overlap: int | None = None,
        vector_backend: VectorBackend | str | None = None,
        dimension: int | None = None,
        top_k: int | None = None,
    ) -> None:
        """Initialize the RAG pipeline.

        Args:
            embedding_service: Service used for both chunks and queries. If
                None, one is created from configuration.
            chunk_size: Size of text chunks. If None, uses config.CHUNK_SIZE.
            overlap: Overlap between chunks. If None, uses config.CHUNK_OVERLAP.
            vector_backend: "memory" or "faiss". Defaults to
                config.VECTOR_BACKEND.
            dimension: Embedding dimension shared by the service and the
                index. If None, uses config.EMBEDDING_DIMS.
            top_k: Default number of passages to retrieve. If None, uses
                config.TOP_K.
        """
        if chunk_size is None:
            chunk_size = config.CHUNK_SIZE
        if overlap is None:
            overlap = config.CHUNK_OVERLAP

        self.dimension = dimension if dimension is not None else config.EMBEDDING_DIMS
        self.top_k = top_k if top_k is not None else config.TOP_K
        backend_value = vector_backend or config.VECTOR_BACKEND
        self.vector_backend = cast("VectorBackend", backend_value.lower())

        self.chunker = TextChunker(chunk_size=chunk_size, overlap=overlap)
        self.embedding_service = embedding_service or EmbeddingService(
            dimensions=self.dimension
        )
        self.vector_index: BaseVectorIndex = get_vector_index(
            self.vector_backend, dimension=self.dimension
        )
        self.document: Document | None = None
        logger.info("Using %s vector index", self.vector_backend)

    async def build(self, file_path: Path | str) -> BaseVectorIndex:
        """Load, chunk and embed a document, replacing the current index.

        Returns:
            The freshly built index.

        Raises:
            LoadError: If the document cannot be read.
            IndexBuildError: If embedding or indexing fails.
        """
        file_path = Path(file_path)
        logger.info("Starting RAG pipeline for document: %s", file_path)

        document = DocumentLoader.to_document(file_path)
        chunks = self.chunker.chunk_text(document.text, source=document.source)
        if not chunks:
            logger.warning("Document %s contains no extractable text", file_path)

        try:
            embeddings = await self.embedding_service.get_embeddings_batch(
                [chunk.content for chunk in chunks]
            )
        except EmbeddingError as exc:
            msg = f"Failed to build embeddings for '{file_path}': {exc}"
            raise IndexBuildError(msg) from exc

        for chunk, embedding in zip(chunks, embeddings, strict=True):
            chunk.embedding = embedding

        index = get_vector_index(self.vector_backend, dimension=self.dimension)
        try:
            index.add(chunks)
        except ValueError as exc:
            msg = f"Failed to index '{file_path}': {exc}"
            raise IndexBuildError(msg) from exc

        self.vector_index = index
        self.document = document
        logger.info("Document processing completed: %d chunks indexed", len(index))
        return index

    async def retrieve(
        self, question: str, top_k: int | None = None
    ) -> list[tuple[DocumentChunk, float]]:
        """Embed the question and return the closest passages.

        Args:
            question: The user's question.
            top_k: Number of passages. If None, uses the pipeline default.

        Returns:
            A list of (DocumentChunk, similarity) tuples, best first.

        Raises:
            EmbeddingError: If the question cannot be embedded.
        """
        logger.info("Processing query: %s", question)

        query_embedding = await self.embedding_service.get_embedding(question)
        try:
            return self.vector_index.query(
                query_embedding, self.top_k if top_k is None else top_k
            )
        except ValueError as exc:
            raise EmbeddingError(str(exc)) from exc
