"""Vector index backends and factory."""

from __future__ import annotations

from typing import Literal

from perso.config import config

from .base import BaseVectorIndex, IndexInput
from .faiss_store import FaissVectorIndex
from .memory_store import InMemoryVectorIndex

VectorBackend = Literal["memory", "faiss"]


def get_vector_index(
    backend: VectorBackend | str | None = None,
    *,
    dimension: int | None = None,
    raw_top_k_multiplier: int = 2,
) -> InMemoryVectorIndex | FaissVectorIndex:
    """Return an empty vector index for the requested backend.

    Raises:
        ValueError: If an unsupported backend is requested.
    """
    backend_value = (backend or config.VECTOR_BACKEND).lower()

    if backend_value == "memory":
        return InMemoryVectorIndex(dimension=dimension)

    if backend_value == "faiss":
        return FaissVectorIndex(
            dimension=dimension,
            raw_top_k_multiplier=raw_top_k_multiplier,
        )

    msg = f"Unsupported vector store backend: {backend}"
    raise ValueError(msg)


__all__ = [
    "BaseVectorIndex",
    "FaissVectorIndex",
    "InMemoryVectorIndex",
    "IndexInput",
    "VectorBackend",
    "get_vector_index",
]
