"""Question answering: retrieve, compose, complete."""

import datetime

from .completion import CompletionService
from .config import config
from .models import ConversationTurn
from .pipeline import RAGPipeline

logger = config.get_logger(__name__)


class RAGAgent:
    """Answers one question at a time from the pipeline's index.

    Each call is independent: no history is kept and retrieval is redone for
    every question.
    """

    def __init__(
        self,
        rag_pipeline: RAGPipeline,
        completion_service: CompletionService,
        *,
        preamble: str | None = None,
        top_k: int | None = None,
    ) -> None:
        """Initialize RAGAgent.

        Args:
            rag_pipeline: Pipeline holding the built index.
            completion_service: Service producing the answer text.
            preamble: System instruction. If None, uses config.SYSTEM_PREAMBLE.
            top_k: Passages per question. If None, uses the pipeline default.
        """
        self.rag_pipeline = rag_pipeline
        self.completion_service = completion_service
        self.preamble = preamble or config.SYSTEM_PREAMBLE
        self.top_k = top_k if top_k is not None else rag_pipeline.top_k

    async def answer(self, question: str) -> ConversationTurn:
        """Answer a question grounded in the retrieved passages.

        Returns:
            ConversationTurn: The question, passages used and the answer.

        Raises:
            EmbeddingError: If the question cannot be embedded.
            CompletionError: If the completion service fails.
        """
        retrieved_chunks = await self.rag_pipeline.retrieve(question, top_k=self.top_k)

        logger.info("Retrieved contexts:")
        for i, (chunk, score) in enumerate(retrieved_chunks):
            logger.info(
                "  Context %d: %s (score: %.4f)",
                i + 1,
                chunk.metadata.get("source"),
                score,
            )
            logger.debug("  Preview: %s...", chunk.content[:100])

        context = [chunk.content for chunk, _ in retrieved_chunks]
        answer = await self.completion_service.complete(self.preamble, context, question)

        return ConversationTurn(
            user_question=question,
            bot_response=answer,
            retrieved_contexts=retrieved_chunks,
            timestamp=datetime.datetime.now(tz=datetime.UTC).isoformat(),
        )
