"""Data models for the RAG application."""

from dataclasses import dataclass, field
from typing import Any

import numpy as np


@dataclass(frozen=True)
class Document:
    """The loaded source document; created once at startup."""

    source: str
    text: str


@dataclass
class DocumentChunk:
    """Represents a chunk of text from a document."""

    content: str
    metadata: dict[str, Any]
    embedding: np.ndarray | None = None


@dataclass
class ConversationTurn:
    """Represents a single question/answer cycle. Never stored."""

    user_question: str
    bot_response: str
    retrieved_contexts: list[tuple[DocumentChunk, float]] = field(
        default_factory=list
    )
    timestamp: str = ""
