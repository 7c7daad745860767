"""Perso - chat with a single PDF through retrieval-augmented generation."""

from .agent import RAGAgent
from .chat import ChatLoop, ChatState
from .completion import CompletionService
from .document_processing import DocumentLoader, TextChunker
from .embeddings import EmbeddingService
from .models import ConversationTurn, Document, DocumentChunk
from .pipeline import RAGPipeline
from .vector_store import FaissVectorIndex, InMemoryVectorIndex, get_vector_index

__all__ = [
    "ChatLoop",
    "ChatState",
    "CompletionService",
    "ConversationTurn",
    "Document",
    "DocumentChunk",
    "DocumentLoader",
    "EmbeddingService",
    "FaissVectorIndex",
    "InMemoryVectorIndex",
    "RAGAgent",
    "RAGPipeline",
    "TextChunker",
    "get_vector_index",
]
