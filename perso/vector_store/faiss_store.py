"""FAISS-backed in-memory vector index."""

from __future__ import annotations

import faiss
import numpy as np

from perso.config import config
from perso.vector_store.base import BaseVectorIndex

logger = config.get_logger(__name__)


class FaissVectorIndex(BaseVectorIndex):
    """Vector index using a FAISS inner-product index over unit vectors.

    FAISS does not promise an order for equal scores, so a widened candidate
    set is re-ranked by (score, insertion position).
    """

    backend = "faiss"

    def __init__(
        self,
        dimension: int | None = None,
        raw_top_k_multiplier: int = 2,
    ) -> None:
        """Configure FAISS-backed vector index."""
        self.index: faiss.IndexFlatIP | None = None
        self.raw_top_k_multiplier = max(1, raw_top_k_multiplier)
        super().__init__(dimension)

    def _init_index(self, dimension: int) -> None:
        self.index = faiss.IndexFlatIP(dimension)
        logger.info("Initialized FAISS IndexFlatIP with dimension %d", dimension)

    def _add_vectors(self, vectors: np.ndarray) -> None:
        if self.index is None:
            self._init_index(vectors.shape[1])
        self.index.add(np.ascontiguousarray(vectors))  # pyright: ignore[reportCallIssue]

    def _search(self, query: np.ndarray, k: int) -> list[tuple[int, float]]:
        index = self.index
        if index is None or index.ntotal == 0:
            logger.warning("FAISS index not initialized; returning no results")
            return []

        raw_top_k = min(max(k, self.raw_top_k_multiplier * k), index.ntotal)
        scores, positions = index.search(
            np.ascontiguousarray(query.reshape(1, -1)),
            raw_top_k,
        )  # pyright: ignore[reportCallIssue]

        hits = [
            (int(position), float(score))
            for score, position in zip(scores[0], positions[0], strict=True)
            if int(position) != -1  # faiss returns -1 for empty results
        ]
        hits.sort(key=lambda hit: (-hit[1], hit[0]))
        return hits[:k]
