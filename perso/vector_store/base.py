"""Shared behaviour for in-memory vector indexes."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Self

import numpy as np

from perso.config import config
from perso.models import DocumentChunk

if TYPE_CHECKING:
    from collections.abc import Sequence

IndexInput = DocumentChunk | tuple[str, np.ndarray]

logger = config.get_logger(__name__)


class BaseVectorIndex:
    """Insertion-ordered store of embedded chunks ranked by cosine similarity.

    Similarity is the dot product of L2-normalized vectors, so scores lie in
    [-1, 1]. A zero vector scores 0 against everything. Subclasses provide
    the raw search; this class owns validation, ordering and the chunk list.
    """

    backend = "base"

    def __init__(self, dimension: int | None = None) -> None:
        """Create an empty index.

        Args:
            dimension: Fixed vector length. If None, the first added vector
                decides it.
        """
        self._dimension = dimension
        self.chunks: list[DocumentChunk] = []
        if dimension is not None:
            self._init_index(dimension)

    @classmethod
    def build(
        cls,
        entries: Iterable[IndexInput] = (),
        *,
        dimension: int | None = None,
        **kwargs: object,
    ) -> Self:
        """Construct an index from zero or more entries.

        Returns:
            The populated index.
        """
        index = cls(dimension=dimension, **kwargs)
        index.add(entries)
        return index

    def __len__(self) -> int:
        return len(self.chunks)

    @property
    def dimension(self) -> int | None:
        return self._dimension

    @staticmethod
    def normalize_embedding(embedding: np.ndarray | Sequence[float]) -> np.ndarray:
        """Normalize embedding for cosine similarity using inner product search.

        Returns:
            A new float32 unit vector, or the zero vector unchanged.
        """
        vector = np.array(embedding, dtype=np.float32)
        norm = np.linalg.norm(vector)
        if norm == 0:
            return vector
        return vector / norm

    def _coerce_entry(self, entry: IndexInput, position: int) -> DocumentChunk:
        if isinstance(entry, DocumentChunk):
            chunk = entry
        else:
            text, embedding = entry
            chunk = DocumentChunk(
                content=text,
                metadata={"source": "document", "chunk_id": position},
                embedding=embedding,
            )

        if chunk.embedding is None:
            msg = f"Chunk {chunk.metadata.get('chunk_id')} has no embedding"
            raise ValueError(msg)

        vector = self.normalize_embedding(chunk.embedding)
        if vector.ndim != 1:
            msg = f"Embedding must be one-dimensional, got shape {vector.shape}"
            raise ValueError(msg)

        return DocumentChunk(
            content=chunk.content,
            metadata=dict(chunk.metadata),
            embedding=vector,
        )

    def _check_dimension(self, size: int) -> None:
        if self._dimension is not None and size != self._dimension:
            msg = (
                f"Embedding dimension {size} does not match "
                f"index dimension {self._dimension}"
            )
            raise ValueError(msg)

    def add(self, entries: Iterable[IndexInput]) -> None:
        """Append entries. Either every entry is added or none is.

        Raises:
            ValueError: If an entry lacks an embedding or has the wrong
                dimension.
        """
        staged: list[DocumentChunk] = []
        dimension = self._dimension
        for entry in entries:
            chunk = self._coerce_entry(entry, len(self.chunks) + len(staged))
            size = chunk.embedding.shape[0]  # type: ignore[union-attr]
            if dimension is None:
                dimension = size
            elif size != dimension:
                msg = (
                    f"Embedding dimension {size} does not match "
                    f"index dimension {dimension}"
                )
                raise ValueError(msg)
            staged.append(chunk)

        if not staged:
            return

        if self._dimension is None:
            self._dimension = dimension
            self._init_index(dimension)  # type: ignore[arg-type]

        vectors = np.vstack([chunk.embedding for chunk in staged]).astype(np.float32)
        self._add_vectors(vectors)
        self.chunks.extend(staged)
        logger.info("Added %d vectors to %s index", len(staged), self.backend)

    def query(
        self,
        query_embedding: np.ndarray | Sequence[float],
        k: int,
    ) -> list[tuple[DocumentChunk, float]]:
        """Return up to ``k`` chunks ranked by similarity, highest first.

        Equal scores keep insertion order. Safe to call concurrently; the
        index is never mutated here.

        Returns:
            Ranked list of (DocumentChunk, score) tuples.

        Raises:
            ValueError: If the query dimension does not match the index.
        """
        if k <= 0 or not self.chunks:
            return []

        normalized_query = self.normalize_embedding(query_embedding)
        self._check_dimension(normalized_query.shape[0])

        hits = self._search(normalized_query, min(k, len(self.chunks)))
        return [(self.chunks[position], score) for position, score in hits]

    def _init_index(self, dimension: int) -> None:
        """Prepare backend storage once the dimension is known."""

    def _add_vectors(self, vectors: np.ndarray) -> None:
        raise NotImplementedError

    def _search(self, query: np.ndarray, k: int) -> list[tuple[int, float]]:
        """Return ``k`` (position, score) pairs in final rank order."""
        raise NotImplementedError
