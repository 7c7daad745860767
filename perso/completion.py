"""Chat completion service and context prompt formatting."""

from openai import AsyncOpenAI

from .config import config
from .embeddings import create_async_client
from .errors import CompletionError

logger = config.get_logger(__name__)


def build_context_prompt(context: list[str], question: str) -> str:
    """Format retrieved passages and the question into one user message.

    Returns:
        str: The prompt with numbered context sections in rank order.
    """
    if context:
        doc_context = "\n".join(
            f"[Context {i + 1}]\n{passage}\n" for i, passage in enumerate(context)
        )
    else:
        doc_context = "(no relevant document sections were found)\n"

    return (
        "=== Relevant Document Sections ===\n"
        f"{doc_context}\n"
        f"Current Question: {question}\n\n"
        "Please provide a helpful and accurate response based on the context above:"
    )


class CompletionService:
    """Generates answers from an OpenAI-compatible chat endpoint."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        *,
        client: AsyncOpenAI | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> None:
        """Initialize the CompletionService.

        Args:
            api_key: API key; see ``EmbeddingService``.
            model: Chat model name. If None, uses config.CHAT_MODEL.
            client: Pre-built client to share with other services.
            max_tokens: Response token cap. If None, uses config.CHAT_MAX_TOKENS.
            temperature: Sampling temperature. If None, uses
                config.CHAT_TEMPERATURE.
        """
        self.client = client or create_async_client(api_key=api_key)
        self.model = model or config.CHAT_MODEL
        self.max_tokens = max_tokens if max_tokens is not None else config.CHAT_MAX_TOKENS
        self.temperature = (
            temperature if temperature is not None else config.CHAT_TEMPERATURE
        )

    async def complete(self, preamble: str, context: list[str], question: str) -> str:
        """Answer ``question`` grounded in ``context``.

        Returns:
            str: The stripped answer text.

        Raises:
            CompletionError: If the request fails or the model returns nothing.
        """
        messages = [
            {"role": "system", "content": preamble},
            {"role": "user", "content": build_context_prompt(context, question)},
        ]

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
            answer = response.choices[0].message.content
        except Exception as exc:
            logger.exception("Error generating completion")
            msg = f"Completion request failed: {exc}"
            raise CompletionError(msg) from exc

        if not answer or not answer.strip():
            msg = f"Model '{self.model}' returned an empty response"
            raise CompletionError(msg)

        return answer.strip()
