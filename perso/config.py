"""Configuration management for the Perso chat application."""

import logging
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

env_path = Path(__file__).parent.parent / ".env"

if env_path.exists():
    load_dotenv(env_path)

OPENAI_HOSTED_URL = "https://api.openai.com/v1"
NO_API_KEY = "no-api-key"
"""Placeholder credential for local servers (Ollama, llama.cpp) that ignore it."""

DEFAULT_PREAMBLE = (
    "You are 'Perso', a knowledgeable personal assistant. "
    "Answer questions accurately based on the provided context. "
    "If the context doesn't contain relevant information, say so honestly."
)


def _optional_float(name: str) -> float | None:
    value = os.getenv(name, "").strip()
    return float(value) if value else None


class Config:
    """Application configuration loaded from environment variables."""

    # Service Configuration
    @classmethod
    def get_openai_api_key(cls) -> str:
        """Get the API key for the OpenAI-compatible endpoint.

        Returns:
            API key from environment or empty string if not set.
        """
        return os.getenv("OPENAI_API_KEY", "")

    @classmethod
    def get_client_api_key(cls, api_key: str | None = None) -> str:
        """Resolve the credential handed to the API client.

        Returns:
            The explicit key, the environment key, or ``NO_API_KEY`` for
            endpoints that do not authenticate.
        """
        return api_key or cls.get_openai_api_key() or NO_API_KEY

    OPENAI_BASE_URL: str = os.getenv("OPENAI_BASE_URL", "http://localhost:11434/v1")
    REQUEST_TIMEOUT: float | None = _optional_float("REQUEST_TIMEOUT")
    MAX_RETRIES: int = int(os.getenv("MAX_RETRIES", "2"))

    # Logging Configuration
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "WARNING").upper()
    OPENAI_LOG_LEVEL: str = os.getenv("OPENAI_LOG_LEVEL", "WARNING").upper()

    # Document Configuration
    PDF_PATH: Path = Path(os.getenv("PDF_PATH", "knowledge.pdf"))
    CHUNK_SIZE: int = int(os.getenv("CHUNK_SIZE", "1000"))
    CHUNK_OVERLAP: int = int(os.getenv("CHUNK_OVERLAP", "200"))

    # Embedding Configuration
    EMBEDDING_MODEL: str = os.getenv("EMBEDDING_MODEL", "nomic-embed-text")
    EMBEDDING_DIMS: int = int(os.getenv("EMBEDDING_DIMS", "768"))
    EMBEDDING_BATCH_SIZE: int = int(os.getenv("EMBEDDING_BATCH_SIZE", "32"))
    EMBEDDING_CONCURRENCY: int = int(os.getenv("EMBEDDING_CONCURRENCY", "4"))

    # Chat Model Configuration
    CHAT_MODEL: str = os.getenv("CHAT_MODEL", "llama3:latest")
    CHAT_MAX_TOKENS: int = int(os.getenv("CHAT_MAX_TOKENS", "500"))
    CHAT_TEMPERATURE: float = float(os.getenv("CHAT_TEMPERATURE", "0.7"))
    ASSISTANT_NAME: str = os.getenv("ASSISTANT_NAME", "Perso")
    SYSTEM_PREAMBLE: str = os.getenv("SYSTEM_PREAMBLE", DEFAULT_PREAMBLE)

    # Retrieval Configuration
    TOP_K: int = int(os.getenv("TOP_K", "3"))
    VECTOR_BACKEND: str = os.getenv("VECTOR_BACKEND", "memory").lower()

    # API Header Configuration
    API_USER_AGENT: str = os.getenv("API_USER_AGENT", "Perso/1.0")

    @classmethod
    def validate(cls, **overrides: object) -> None:
        """Validate configuration values.

        Args:
            **overrides: Values that replace the attribute of the same name
                for this check, such as command-line flags.

        Raises:
            ValueError: If a value is out of range or the hosted OpenAI API
                is targeted without a key.
        """

        def setting(name: str) -> Any:  # noqa: ANN401
            return overrides[name] if name in overrides else getattr(cls, name)

        base_url = setting("OPENAI_BASE_URL")
        if base_url.rstrip("/") == OPENAI_HOSTED_URL and not (
            cls.get_openai_api_key()
        ):
            msg = (
                "OPENAI_API_KEY is required for the hosted OpenAI API. "
                "Please set it in .env file or environment."
            )
            raise ValueError(msg)

        for name in (
            "TOP_K",
            "EMBEDDING_DIMS",
            "EMBEDDING_BATCH_SIZE",
            "EMBEDDING_CONCURRENCY",
        ):
            value = setting(name)
            if value <= 0:
                msg = f"{name} must be a positive integer, got {value}"
                raise ValueError(msg)

        chunk_size = setting("CHUNK_SIZE")
        chunk_overlap = setting("CHUNK_OVERLAP")
        if chunk_size > 0 and not 0 <= chunk_overlap < chunk_size:
            msg = (
                f"CHUNK_OVERLAP ({chunk_overlap}) must be between 0 and "
                f"CHUNK_SIZE ({chunk_size})"
            )
            raise ValueError(msg)

        backend = setting("VECTOR_BACKEND")
        if backend not in {"memory", "faiss"}:
            msg = f"Unsupported vector store backend: {backend}"
            raise ValueError(msg)

        timeout = setting("REQUEST_TIMEOUT")
        if timeout is not None and timeout <= 0:
            msg = f"REQUEST_TIMEOUT must be positive, got {timeout}"
            raise ValueError(msg)

    @classmethod
    def setup_logging(cls) -> None:
        """Setup basic logging configuration.

        Logs go to stderr so they never interleave with the chat transcript
        on stdout.
        """
        logging.basicConfig(
            level=getattr(logging, cls.LOG_LEVEL, logging.WARNING),
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )

        openai_level = getattr(logging, cls.OPENAI_LOG_LEVEL, logging.WARNING)
        logging.getLogger("openai").setLevel(openai_level)
        logging.getLogger("httpx").setLevel(openai_level)

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Get a logger with the specified name.

        Args:
            name: Logger name (typically __name__)

        Returns:
            Logger instance
        """
        return logging.getLogger(name)

    @classmethod
    def get_api_headers(cls) -> dict[str, str]:
        """Build default headers for outbound API calls.

        Returns:
            Mapping of header names to values used on outbound HTTP requests.
        """
        headers: dict[str, str] = {}

        if cls.API_USER_AGENT:
            headers["User-Agent"] = cls.API_USER_AGENT

        return headers


config = Config()
