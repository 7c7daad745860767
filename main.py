"""Command-line entry point for the Perso document chat."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from perso.agent import RAGAgent
from perso.chat import ChatLoop
from perso.completion import CompletionService
from perso.config import config
from perso.embeddings import EmbeddingService, create_async_client
from perso.errors import StartupError
from perso.pipeline import RAGPipeline

if TYPE_CHECKING:
    from collections.abc import Sequence
    from typing import TextIO


def positive_int(value: str) -> int:
    """Argparse type accepting integers greater than zero."""  # noqa: DOC201
    number = int(value)
    if number <= 0:
        msg = f"must be a positive integer, got {value}"
        raise argparse.ArgumentTypeError(msg)
    return number


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Build the CLI parser and read command-line arguments."""  # noqa: DOC201
    parser = argparse.ArgumentParser(
        description="Chat with a PDF using retrieval-augmented generation.",
    )
    parser.add_argument(
        "--pdf",
        type=Path,
        default=config.PDF_PATH,
        help=f"Path to the PDF to load (default: {config.PDF_PATH}).",
    )
    parser.add_argument(
        "--model",
        default=config.CHAT_MODEL,
        help=f"Chat model name (default: {config.CHAT_MODEL}).",
    )
    parser.add_argument(
        "--embedding-model",
        default=config.EMBEDDING_MODEL,
        help=f"Embedding model name (default: {config.EMBEDDING_MODEL}).",
    )
    parser.add_argument(
        "--top-k",
        type=positive_int,
        default=config.TOP_K,
        help=f"Passages retrieved per question (default: {config.TOP_K}).",
    )
    parser.add_argument(
        "--embedding-dims",
        type=positive_int,
        default=config.EMBEDDING_DIMS,
        help=f"Embedding vector size (default: {config.EMBEDDING_DIMS}).",
    )
    parser.add_argument(
        "--backend",
        choices=("memory", "faiss"),
        default=config.VECTOR_BACKEND,
        help=f"Vector index backend (default: {config.VECTOR_BACKEND}).",
    )
    parser.add_argument(
        "--chunk-size",
        type=int,
        default=config.CHUNK_SIZE,
        help="Characters per chunk; 0 embeds the whole document as one entry "
        f"(default: {config.CHUNK_SIZE}).",
    )
    parser.add_argument(
        "--chunk-overlap",
        type=int,
        default=config.CHUNK_OVERLAP,
        help=f"Characters shared by adjacent chunks (default: {config.CHUNK_OVERLAP}).",
    )
    parser.add_argument(
        "--base-url",
        default=config.OPENAI_BASE_URL,
        help=f"OpenAI-compatible API base URL (default: {config.OPENAI_BASE_URL}).",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=config.REQUEST_TIMEOUT,
        help="Per-request timeout in seconds (default: no timeout).",
    )
    args = parser.parse_args(argv)

    if args.chunk_size > 0 and not 0 <= args.chunk_overlap < args.chunk_size:
        parser.error("--chunk-overlap must be between 0 and --chunk-size")
    if args.timeout is not None and args.timeout <= 0:
        parser.error("--timeout must be positive")
    return args


async def run_chat(
    args: argparse.Namespace,
    *,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> int:
    """Build the services, index the document and run the chat loop.

    Returns:
        Process exit status: 0 after a normal exit, 1 on a startup failure.
    """
    stderr = stderr or sys.stderr
    logger = config.get_logger(__name__)

    try:
        client = create_async_client(base_url=args.base_url, timeout=args.timeout)
    except StartupError as exc:
        print(f"Error: {exc}", file=stderr)
        return 1

    try:
        embedding_service = EmbeddingService(
            model=args.embedding_model,
            client=client,
            dimensions=args.embedding_dims,
        )
        pipeline = RAGPipeline(
            embedding_service,
            chunk_size=args.chunk_size,
            overlap=args.chunk_overlap,
            vector_backend=args.backend,
            dimension=args.embedding_dims,
            top_k=args.top_k,
        )
        agent = RAGAgent(pipeline, CompletionService(model=args.model, client=client))
        chat = ChatLoop(agent, stdin=stdin, stdout=stdout, stderr=stderr)

        try:
            await chat.initialize(args.pdf)
        except StartupError as exc:
            logger.debug("Startup failed", exc_info=True)
            print(f"Error: {exc}", file=stderr)
            return 1

        return await chat.run()
    finally:
        await client.close()


def main(argv: Sequence[str] | None = None) -> int:
    """Validate configuration and start the chat."""  # noqa: DOC201
    args = parse_args(argv)

    config.setup_logging()
    logger = config.get_logger(__name__)

    try:
        config.validate(
            OPENAI_BASE_URL=args.base_url,
            TOP_K=args.top_k,
            EMBEDDING_DIMS=args.embedding_dims,
            CHUNK_SIZE=args.chunk_size,
            CHUNK_OVERLAP=args.chunk_overlap,
            VECTOR_BACKEND=args.backend,
            REQUEST_TIMEOUT=args.timeout,
        )
    except ValueError:
        logger.exception("Configuration invalid")
        return 1

    try:
        return asyncio.run(run_chat(args))
    except KeyboardInterrupt:
        print("\nGoodbye!")
        return 0


if __name__ == "__main__":
    sys.exit(main())
