"""Test configuration and fixtures for Perso tests.

This module provides reusable test fixtures organized by functionality:
- Constants and test data
- Mock services and API responses
- EmbeddingService / CompletionService fixtures
- Document fixtures (generated PDFs)
- Vector index fixtures
- Pipeline, agent and chat loop factories
"""

import asyncio
import hashlib
import io
from contextlib import contextmanager
from pathlib import Path
from unittest.mock import AsyncMock, Mock, patch

import numpy as np
import pytest

from perso import (
    ChatLoop,
    CompletionService,
    DocumentChunk,
    EmbeddingService,
    FaissVectorIndex,
    InMemoryVectorIndex,
    RAGAgent,
    RAGPipeline,
)
from perso.errors import EmbeddingError


class TestConstants:
    """Centralized test constants to avoid repetition across test files."""

    TEST_API_KEY = "test-key"
    TEST_EMBEDDING_MODEL = "nomic-embed-text"
    TEST_CHAT_MODEL = "llama3:latest"
    DEFAULT_EMBEDDING_DIMENSION = 384


class MockEmbeddingService:
    """Mock embedding service for testing without API calls.

    Generates deterministic embeddings based on text content hash. Texts
    listed in ``failing_texts`` raise ``EmbeddingError`` to simulate an
    unreachable service.
    """

    def __init__(
        self,
        dimension: int = TestConstants.DEFAULT_EMBEDDING_DIMENSION,
        failing_texts: set[str] | None = None,
    ) -> None:
        self.dimension = dimension
        self.failing_texts = failing_texts or set()
        self.calls: list[str | list[str]] = []

    def embed(self, text: str) -> np.ndarray:
        """Generate deterministic mock embedding based on text hash."""
        if text in self.failing_texts:
            msg = f"Embedding request failed: model unavailable for {text!r}"
            raise EmbeddingError(msg)
        seed = int.from_bytes(
            hashlib.sha256(text.lower().encode("utf-8")).digest()[:8],
            byteorder="big",
            signed=False,
        )
        rng = np.random.default_rng(seed)
        embedding = rng.normal(0, 1, self.dimension)
        return (embedding / np.linalg.norm(embedding)).astype(np.float32)

    async def get_embedding(self, text: str) -> np.ndarray:
        self.calls.append(text)
        return self.embed(text)

    async def get_embeddings_batch(
        self,
        texts: list[str],
        batch_size: int | None = None,  # noqa: ARG002
    ) -> list[np.ndarray]:
        self.calls.append(list(texts))
        return [self.embed(text) for text in texts]


def create_mock_embeddings_response(embeddings: list[list[float]]) -> Mock:
    """Create a mock embeddings API response.

    Args:
        embeddings: List of embedding vectors to return.

    Returns:
        Mock object representing the embeddings API response.
    """
    mock_response = Mock()
    mock_response.data = [Mock(embedding=emb) for emb in embeddings]
    return mock_response


def create_mock_chat_response(content: str | None) -> Mock:
    """Create a mock chat completion response.

    Args:
        content: The content for the chat completion response.

    Returns:
        Mock object representing a chat completion response.
    """
    mock_response = Mock()
    mock_response.choices = [Mock(message=Mock(content=content))]
    return mock_response


def make_pdf_bytes(text: str) -> bytes:
    """Build a minimal one-page PDF showing ``text`` in Helvetica.

    Returns:
        The PDF file contents with a correct cross-reference table.
    """
    escaped = text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
    stream = f"BT /F1 12 Tf 72 712 Td ({escaped}) Tj ET".encode("latin-1")
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        (
            b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
            b"/Contents 4 0 R /Resources << /Font << /F1 5 0 R >> >> >>"
        ),
        b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"

    xref_offset = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\n" % (len(objects) + 1)
    out += b"startxref\n%d\n%%%%EOF\n" % xref_offset
    return bytes(out)


@pytest.fixture
def pdf_factory(tmp_path):
    """Factory writing generated PDFs into the test's temporary directory."""

    def _create_pdf(text: str, name: str = "knowledge.pdf") -> Path:
        pdf_path = tmp_path / name
        pdf_path.write_bytes(make_pdf_bytes(text))
        return pdf_path

    return _create_pdf


@pytest.fixture
def embeddings_response():
    """Builder for embeddings API responses used with hand-written side effects."""
    return create_mock_embeddings_response


@pytest.fixture
def openai_embeddings_api_mock():
    """Base fixture that patches the async embeddings ``create`` method."""
    with patch(
        "openai.resources.embeddings.AsyncEmbeddings.create",
        new_callable=AsyncMock,
    ) as mock_create:
        yield mock_create


@pytest.fixture
def openai_embeddings_factory(openai_embeddings_api_mock):
    """Factory for creating embeddings API mocks with different scenarios."""

    def _create_mock(  # noqa: ANN202
        scenario="single_success",
        embeddings=None,
        error_message="API Error",
        side_effects=None,
    ):
        """Create a mock based on scenario type.

        Args:
            scenario: Type of mock ('single_success', 'batch_success', 'error',
                'multiple_batches', 'partial_failure')
            embeddings: Custom embeddings to return, or None for defaults
            error_message: Custom error message for error scenarios
            side_effects: Custom side effects list for complex scenarios
        """
        openai_embeddings_api_mock.reset_mock()
        openai_embeddings_api_mock.side_effect = None
        openai_embeddings_api_mock.return_value = None

        if scenario == "single_success":
            mock_embedding = embeddings or [0.1, 0.2, 0.3, 0.4, 0.5]
            openai_embeddings_api_mock.return_value = create_mock_embeddings_response(
                [mock_embedding]
            )
        elif scenario == "batch_success":
            mock_embeddings = embeddings or [
                [0.1, 0.2, 0.3],
                [0.4, 0.5, 0.6],
                [0.7, 0.8, 0.9],
            ]
            openai_embeddings_api_mock.return_value = create_mock_embeddings_response(
                mock_embeddings
            )
        elif scenario == "error":
            openai_embeddings_api_mock.side_effect = Exception(error_message)
        elif scenario == "multiple_batches":
            openai_embeddings_api_mock.side_effect = side_effects or [
                create_mock_embeddings_response([[0.1, 0.2], [0.3, 0.4]]),
                create_mock_embeddings_response([[0.5, 0.6], [0.7, 0.8]]),
            ]
        elif scenario == "partial_failure":
            openai_embeddings_api_mock.side_effect = [
                create_mock_embeddings_response([[0.1, 0.2]]),
                Exception("Second batch failed"),
            ]

        return openai_embeddings_api_mock

    return _create_mock


@pytest.fixture
def embedding_service_factory():
    """Factory for creating EmbeddingService instances."""

    def _create_service(  # noqa: ANN202
        api_key=None, model=None, dimensions=None, max_concurrency=None
    ):
        return EmbeddingService(
            api_key=api_key or TestConstants.TEST_API_KEY,
            model=model or TestConstants.TEST_EMBEDDING_MODEL,
            dimensions=dimensions,
            max_concurrency=max_concurrency,
        )

    return _create_service


@pytest.fixture
def embedding_service(embedding_service_factory):
    """Default EmbeddingService with test API key for most tests."""
    return embedding_service_factory()


@pytest.fixture
def completion_service():
    """CompletionService with a test key and the default chat model."""
    return CompletionService(
        api_key=TestConstants.TEST_API_KEY,
        model=TestConstants.TEST_CHAT_MODEL,
        max_tokens=200,
        temperature=0.0,
    )


@pytest.fixture
def chat_response():
    """Builder for chat completion responses used in side-effect lists."""
    return create_mock_chat_response


@pytest.fixture
def chat_mock_factory():
    """Factory patching a CompletionService's ``chat.completions.create``."""

    @contextmanager
    def _mock_chat(  # noqa: ANN202
        service, content: str | None = "Test response", side_effect=None
    ):
        with patch.object(
            service.client.chat.completions,
            "create",
            new_callable=AsyncMock,
        ) as mock_create:
            if side_effect is not None:
                mock_create.side_effect = side_effect
            else:
                mock_create.return_value = create_mock_chat_response(content)
            yield mock_create

    return _mock_chat


@pytest.fixture
def mock_embedding_service_factory():
    """The MockEmbeddingService class, for tests needing custom dimensions or faults."""
    return MockEmbeddingService


@pytest.fixture
def embedding_dimension():
    """Vector size produced by MockEmbeddingService by default."""
    return TestConstants.DEFAULT_EMBEDDING_DIMENSION


@pytest.fixture(scope="session")
def mock_embedding_service():
    """Pre-configured MockEmbeddingService for consistent test embeddings."""
    return MockEmbeddingService()


@pytest.fixture
def mock_embeddings(mock_embedding_service):
    """Factory function to create deterministic embeddings synchronously."""

    def _create_mock_embedding(
        text: str, dimension: int = TestConstants.DEFAULT_EMBEDDING_DIMENSION
    ) -> np.ndarray:
        if dimension != TestConstants.DEFAULT_EMBEDDING_DIMENSION:
            return MockEmbeddingService(dimension).embed(text)
        return mock_embedding_service.embed(text)

    return _create_mock_embedding


@pytest.fixture
def sample_text_chunks():
    """Create sample document chunks with text and metadata only (no embeddings)."""
    texts = [
        "Machine learning is a subset of artificial intelligence.",
        "Neural networks are computational models inspired by the brain.",
        "Deep learning uses multiple layers to learn complex patterns.",
        "Supervised learning uses labeled training data.",
        "Unsupervised learning finds patterns in unlabeled data.",
    ]

    return [
        DocumentChunk(
            content=text,
            metadata={
                "source": "test_doc.pdf",
                "chunk_id": i,
                "start_char": i * 100,
                "end_char": (i + 1) * 100,
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
            metadata=chunk.metadata,
            embedding=mock_embeddings(chunk.content),
        )
        for chunk in sample_text_chunks
    ]


@pytest.fixture(params=[InMemoryVectorIndex, FaissVectorIndex], ids=["memory", "faiss"])
def index_class(request):
    """Run a test against every vector index backend."""
    return request.param


@pytest.fixture
def rag_pipeline_factory():
    """Factory for RAGPipeline instances backed by MockEmbeddingService."""

    def _create_pipeline(
        embedding_service=None,
        chunk_size: int = 200,
        overlap: int = 50,
        vector_backend: str = "memory",
        top_k: int = 3,
    ) -> RAGPipeline:
        return RAGPipeline(
            embedding_service or MockEmbeddingService(),
            chunk_size=chunk_size,
            overlap=overlap,
            vector_backend=vector_backend,
            dimension=TestConstants.DEFAULT_EMBEDDING_DIMENSION,
            top_k=top_k,
        )

    return _create_pipeline


@pytest.fixture
def chat_loop_factory(completion_service):
    """Factory for a ChatLoop wired to in-memory console streams.

    Returns a ``(loop, stdout, stderr)`` triple; the pipeline behind the
    loop uses MockEmbeddingService and the fixture's CompletionService.
    """

    def _create_loop(
        user_input: str,
        pipeline: RAGPipeline,
        service: CompletionService | None = None,
    ) -> tuple[ChatLoop, io.StringIO, io.StringIO]:
        stdout = io.StringIO()
        stderr = io.StringIO()
        agent = RAGAgent(pipeline, service or completion_service)
        loop = ChatLoop(
            agent,
            stdin=io.StringIO(user_input),
            stdout=stdout,
            stderr=stderr,
            assistant_name="Perso",
        )
        return loop, stdout, stderr

    return _create_loop


@pytest.fixture
def run():
    """Drive a coroutine to completion from a synchronous test."""
    return asyncio.run
