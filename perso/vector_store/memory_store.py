"""Brute-force numpy vector index."""

from __future__ import annotations

import numpy as np

from perso.vector_store.base import BaseVectorIndex


class InMemoryVectorIndex(BaseVectorIndex):
    """Exact cosine search by a linear scan over a dense matrix.

    One matrix-vector product per query, O(n*d). Fine for the chunks of a
    single document.
    """

    backend = "memory"

    def __init__(self, dimension: int | None = None) -> None:
        """Create an empty index with an optional fixed dimension."""
        self._matrix: np.ndarray | None = None
        super().__init__(dimension)

    def _init_index(self, dimension: int) -> None:
        self._matrix = np.empty((0, dimension), dtype=np.float32)

    def _add_vectors(self, vectors: np.ndarray) -> None:
        if self._matrix is None:
            self._init_index(vectors.shape[1])
        self._matrix = np.vstack([self._matrix, vectors])

    def _search(self, query: np.ndarray, k: int) -> list[tuple[int, float]]:
        if self._matrix is None:
            return []
        scores = self._matrix @ query
        # stable sort keeps insertion order for equal scores
        order = np.argsort(-scores, kind="stable")[:k]
        return [(int(position), float(scores[position])) for position in order]
